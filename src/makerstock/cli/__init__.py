"""
Command-line interface for makerstock.

Provides Click-based CLI commands for browsing stock, borrowing and
returning components, and managing the cache.
"""

from makerstock.cli.main import cli

__all__ = ["cli"]

"""
CLI entry point for running makerstock as a module.

Usage: python -m makerstock [OPTIONS] COMMAND [ARGS]...
"""

from makerstock.cli.main import cli

if __name__ == "__main__":
    cli()

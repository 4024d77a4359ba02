"""
Environment-driven settings.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

import structlog

logger = structlog.get_logger(__name__)

ENV_PREFIX = "MAKERSTOCK_"


@dataclass
class Settings:
    """Connection and cache settings for the inventory client."""

    backend_url: Optional[str] = None
    sheets_api_key: Optional[str] = None
    spreadsheet_id: Optional[str] = None
    cache_path: Optional[Path] = None
    timeout: int = 30
    log_level: str = "warning"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``MAKERSTOCK_*`` environment variables."""
        if environ is None:
            environ = os.environ

        def read(name: str) -> Optional[str]:
            value = environ.get(ENV_PREFIX + name, "").strip()
            return value or None

        cache_path = read("CACHE_PATH")
        timeout = read("TIMEOUT")

        return cls(
            backend_url=read("BACKEND_URL"),
            sheets_api_key=read("SHEETS_API_KEY"),
            spreadsheet_id=read("SPREADSHEET_ID"),
            cache_path=Path(cache_path).expanduser() if cache_path else None,
            timeout=int(timeout) if timeout and timeout.isdigit() else 30,
            log_level=read("LOG_LEVEL") or "warning",
        )

    @property
    def has_sheets_credentials(self) -> bool:
        return bool(self.sheets_api_key and self.spreadsheet_id)

    def report_problems(self) -> list[str]:
        """Log missing settings. Nothing here stops the client from starting.

        Returns:
            The logged problem messages.
        """
        problems = []

        if not self.backend_url:
            message = (
                "MAKERSTOCK_BACKEND_URL is not set. "
                "Set it to the backend script deployment URL."
            )
            logger.error(message)
            problems.append(message)

        if not self.has_sheets_credentials:
            message = (
                "MAKERSTOCK_SHEETS_API_KEY or MAKERSTOCK_SPREADSHEET_ID is not set. "
                "Live stock will fall back to the backend."
            )
            logger.warning(message)
            problems.append(message)

        return problems

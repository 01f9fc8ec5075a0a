"""
Process configuration.

Values come from the environment; a `.env` file next to this module is loaded
first so local development does not need exported variables.

Environment variables:
- SALES_STORE_BACKEND: "supabase" (default) or "memory"
- SUPABASE_URL / SUPABASE_KEY: required for the supabase backend
- SALES_TABLE: Supabase table holding sale records (default: sales)
- RESTRICT_LISTING_UPDATES: reject listing edits on non-AVAILABLE sales (default: false)
- LOG_LEVEL: root log level for the API process, a standard logging level name (default: INFO)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

env_path = Path(__file__).parent / ".env"
load_dotenv(dotenv_path=env_path)

_BACKENDS = ("supabase", "memory")
_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET")
_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUE_VALUES


@dataclass(frozen=True, slots=True)
class Settings:
    store_backend: str = "supabase"
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    sales_table: str = "sales"
    restrict_listing_updates: bool = False
    log_level: str = "INFO"

    def require_supabase_credentials(self) -> tuple[str, str]:
        """Return (url, key) or fail with an actionable message."""

        if not self.supabase_url:
            raise RuntimeError(
                "Missing environment variable: SUPABASE_URL. "
                "Set SUPABASE_URL to your Supabase project URL."
            )
        if not self.supabase_key:
            raise RuntimeError(
                "Missing environment variable: SUPABASE_KEY. "
                "Set SUPABASE_KEY to your Supabase API key."
            )
        return self.supabase_url, self.supabase_key


def load_settings() -> Settings:
    """Build Settings from the current environment."""

    backend = os.getenv("SALES_STORE_BACKEND", "supabase").strip().lower()
    if backend not in _BACKENDS:
        raise RuntimeError(
            f"Invalid SALES_STORE_BACKEND: {backend!r}. Expected one of: {', '.join(_BACKENDS)}"
        )

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    if log_level not in _LOG_LEVELS:
        raise RuntimeError(
            f"Invalid LOG_LEVEL: {log_level!r}. Expected one of: {', '.join(_LOG_LEVELS)}"
        )

    return Settings(
        store_backend=backend,
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_KEY"),
        sales_table=os.getenv("SALES_TABLE", "sales"),
        restrict_listing_updates=_env_flag("RESTRICT_LISTING_UPDATES"),
        log_level=log_level,
    )


__all__ = ["Settings", "load_settings"]

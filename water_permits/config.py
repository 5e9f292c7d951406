"""
Data source configuration for the Water Permits dashboard
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_TABLE = "pozos"
DEFAULT_TIMEOUT = 15.0


@dataclass(frozen=True)
class Settings:
    """Connection settings for the hosted permits table."""
    url: str = ""
    api_key: str = ""
    table: str = DEFAULT_TABLE
    timeout_seconds: float = DEFAULT_TIMEOUT
    schema: str = ""

    @property
    def configured(self) -> bool:
        return bool(self.url.strip()) and bool(self.api_key.strip())


def _read_secrets() -> dict:
    """Return Streamlit secrets as a plain dict, or {} when none are set."""
    try:
        import streamlit as st
        return dict(st.secrets)
    except Exception:
        # st.secrets raises when no secrets.toml exists
        return {}


def _lookup(name: str, secrets: dict) -> Optional[str]:
    value = os.getenv(name)
    if value:
        return value.strip()
    value = secrets.get(name)
    if value is None:
        return None
    return str(value).strip()


def _parse_timeout(raw: Optional[str]) -> float:
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        timeout = float(raw)
    except ValueError:
        logger.warning("Invalid SUPABASE_TIMEOUT %r, using %s", raw, DEFAULT_TIMEOUT)
        return DEFAULT_TIMEOUT
    return timeout if timeout > 0 else DEFAULT_TIMEOUT


def resolve_log_level(name: Optional[str]) -> int:
    """Map a LOG_LEVEL name to a logging level; unknown names give INFO."""
    level = logging.getLevelName(str(name or "").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def load_settings(secrets: Optional[dict] = None) -> Settings:
    """
    Build Settings from the environment, falling back to Streamlit secrets.

    Recognised keys: SUPABASE_URL, SUPABASE_KEY, SUPABASE_TABLE,
    SUPABASE_TIMEOUT, SUPABASE_SCHEMA. Missing values never raise; an
    unconfigured Settings is returned instead.
    """
    if secrets is None:
        secrets = _read_secrets()

    settings = Settings(
        url=_lookup("SUPABASE_URL", secrets) or "",
        api_key=_lookup("SUPABASE_KEY", secrets) or "",
        table=_lookup("SUPABASE_TABLE", secrets) or DEFAULT_TABLE,
        timeout_seconds=_parse_timeout(_lookup("SUPABASE_TIMEOUT", secrets)),
        schema=_lookup("SUPABASE_SCHEMA", secrets) or "",
    )
    if not settings.configured:
        logger.warning("Supabase URL or API key missing; dashboard will use fallback data")
    return settings

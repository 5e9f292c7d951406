"""
Data loading utilities for the Water Permits dashboard
"""
from __future__ import annotations

import logging
from io import BytesIO
from typing import Any

import pandas as pd
import requests

from .config import Settings

logger = logging.getLogger(__name__)


class DataSourceError(RuntimeError):
    """Raised when the hosted permits table cannot be read."""


class ConfigurationError(DataSourceError):
    """Raised when the data source URL or API key is missing."""


def _headers(settings: Settings) -> dict:
    headers = {
        "apikey": settings.api_key,
        "Authorization": f"Bearer {settings.api_key}",
        "Accept": "application/json",
    }
    if settings.schema:
        headers["Accept-Profile"] = settings.schema
    return headers


def fetch_all_records(settings: Settings) -> list[dict[str, Any]]:
    """
    Fetch every row of the permits table through the PostgREST endpoint.

    Returns the rows as loosely-typed dicts. Raises DataSourceError on
    missing configuration, connectivity failures, non-2xx responses and
    payloads that are not a JSON list.
    """
    if not settings.configured:
        raise ConfigurationError(
            "Supabase URL or API key is missing. Set SUPABASE_URL and SUPABASE_KEY."
        )

    url = f"{settings.url.rstrip('/')}/rest/v1/{settings.table}"
    logger.info("Fetching permit records from table %r", settings.table)

    try:
        resp = requests.get(
            url,
            params={"select": "*"},
            headers=_headers(settings),
            timeout=settings.timeout_seconds,
        )
        resp.raise_for_status()
    except requests.exceptions.Timeout as e:
        raise DataSourceError(f"Request to {settings.table} timed out") from e
    except requests.exceptions.ConnectionError as e:
        raise DataSourceError(f"Could not connect to data source: {e}") from e
    except requests.exceptions.HTTPError as e:
        raise DataSourceError(f"Data source returned HTTP {resp.status_code}: {resp.text[:200]}") from e
    except requests.exceptions.RequestException as e:
        raise DataSourceError(f"Request failed: {e}") from e

    try:
        payload = resp.json()
    except ValueError as e:
        raise DataSourceError("Data source returned a non-JSON payload") from e

    if not isinstance(payload, list):
        raise DataSourceError(f"Expected a list of rows, got {type(payload).__name__}")

    logger.info("Fetched %d permit records", len(payload))
    return payload


def export_to_excel(df: pd.DataFrame, sheet_name: str = "Permits") -> bytes:
    """Convert DataFrame to Excel bytes for download."""
    output = BytesIO()
    with pd.ExcelWriter(output, engine="xlsxwriter") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)
    return output.getvalue()

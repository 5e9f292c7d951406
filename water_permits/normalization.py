"""
Record normalization for the Water Permits dashboard

Maps loosely-typed rows from the hosted permits table onto the canonical
record schema. Every coercion is total: bad input degrades to the field
default instead of raising.
"""
from __future__ import annotations

import hashlib
import json
import logging
import math
from collections.abc import Mapping
from datetime import date
from typing import Any, Iterable, Optional

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

NA_TEXT = "N/A"
DATE_FORMAT = "%d/%m/%Y"
CONSUMPTION_YEARS = 5

# Canonical field -> source aliases, highest priority first.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("id", "ID", "id_pozo", "permit_id"),
    "title_holder": ("title_holder", "titleHolder", "titular", "Titular", "nombre_titular", "NOMBRE"),
    "sector": ("sector", "uso", "Uso", "rubro", "Rubro", "USO"),
    "volume_requested": ("volume_requested", "volumeRequested", "vol_solicitado", "volumen_solicitado"),
    "volume_authorized": ("volume_authorized", "volumeAuthorized", "vol_autorizado", "volumen_autorizado"),
    "volume_consumed": ("volume_consumed", "volumeConsumed", "vol_consumido", "volumen_consumido"),
    "latitude": ("latitude", "lat", "latitud", "Latitud", "LAT"),
    "longitude": ("longitude", "lon", "lng", "longitud", "Longitud", "LON"),
    "department": ("department", "depto", "departamento", "Departamento"),
    "municipality": ("municipality", "municipio", "Municipio"),
    "district": ("district", "distrito", "Distrito"),
    "watershed": ("watershed", "cuenca", "Cuenca"),
    "geographic_description": (
        "geographic_description", "geographicDescription", "descripcion_geografica", "ubicacion",
    ),
    "term_years": ("term_years", "termYears", "plazo", "Plazo", "plazo_anios"),
    "expiration_date": ("expiration_date", "expirationDate", "vencimiento", "fecha_vencimiento"),
    "well_status": ("well_status", "wellStatus", "estado_pozo", "estado", "Estado"),
    "source_type": ("source_type", "sourceType", "fuente", "tipo_fuente", "Fuente"),
}

# Historical yearly consumption, oldest first. Each slot lists its aliases.
CONSUMPTION_ALIASES: tuple[tuple[str, ...], ...] = tuple(
    (f"consumption_year_{i}", f"consumo_{i}", f"consumo_anio_{i}", f"consumoAnio{i}")
    for i in range(1, CONSUMPTION_YEARS + 1)
)

TEXT_DEFAULTS: dict[str, str] = {
    "title_holder": "Unknown",
    "sector": "Unclassified",
    "department": NA_TEXT,
    "municipality": NA_TEXT,
    "district": NA_TEXT,
    "watershed": NA_TEXT,
    "geographic_description": NA_TEXT,
    "well_status": NA_TEXT,
    "source_type": "Groundwater",
}

VOLUME_FIELDS = ("volume_requested", "volume_authorized", "volume_consumed")

CANONICAL_COLUMNS = [
    "id",
    "title_holder",
    "sector",
    "volume_requested",
    "volume_authorized",
    "volume_consumed",
    "annual_consumption",
    "latitude",
    "longitude",
    "department",
    "municipality",
    "district",
    "watershed",
    "geographic_description",
    "term_years",
    "expiration_date",
    "well_status",
    "source_type",
]

SUCCESS_STATUSES = {"active", "completed", "activo", "completado"}

_MISSING_TOKENS = {"", "nan", "nat", "<na>", "none", "null", "n/a"}


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        # containers: pd.isna returns an array
        return False


def _pick(raw: Mapping, aliases: Iterable[str]) -> Any:
    """Return the first alias value that is present and not null."""
    for key in aliases:
        if key in raw and not _is_missing(raw[key]):
            return raw[key]
    return None


def coerce_number(value: Any, default: float = 0.0, allow_negative: bool = False) -> float:
    """
    Coerce an external value to a finite float.

    Numeric strings may carry thousand separators. None, NaN, infinities,
    booleans and unparseable input return `default`; negatives clamp to 0
    unless `allow_negative`.
    """
    if value is None or isinstance(value, (bool, np.bool_)):
        return default

    if isinstance(value, str):
        text = value.strip().replace(",", "").replace(" ", "")
        if not text:
            return default
        value = text

    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        logger.debug("Unparseable number %r, using %s", value, default)
        return default

    if not math.isfinite(number):
        return default
    if number < 0 and not allow_negative:
        return 0.0
    return number


def coerce_text(value: Any, default: str) -> str:
    """Collapse whitespace; blank and null-like tokens return `default`."""
    if value is None:
        return default
    if isinstance(value, float) and math.isnan(value):
        return default
    text = " ".join(str(value).split())
    if text.lower() in _MISSING_TOKENS:
        return default
    return text


def coerce_date(value: Any) -> str:
    """Format a parseable date as DD/MM/YYYY, anything else as N/A."""
    if not isinstance(value, (str, date, np.datetime64)):
        return NA_TEXT
    # pandas reads words like "now" and "today" as dates
    if isinstance(value, str) and not any(ch.isdigit() for ch in value):
        return NA_TEXT
    try:
        parsed = pd.to_datetime(value, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return NA_TEXT
    if parsed is None or pd.isna(parsed):
        return NA_TEXT
    return parsed.strftime(DATE_FORMAT)


def coerce_term(value: Any) -> int:
    return int(coerce_number(value))


def synthesize_id(raw: Mapping, index: int) -> str:
    """Deterministic fallback id from row content and position."""
    try:
        content = json.dumps(raw, sort_keys=True, default=str)
    except (TypeError, ValueError):
        content = repr(sorted(raw.items(), key=lambda kv: str(kv[0])))
    digest = hashlib.sha1(f"{index}:{content}".encode("utf-8")).hexdigest()
    return f"row-{digest[:12]}"


def _coerce_id(raw: Mapping, index: int):
    value = _pick(raw, FIELD_ALIASES["id"])
    if isinstance(value, float) and not math.isfinite(value):
        value = None
    if isinstance(value, str):
        value = value.strip()
    if isinstance(value, (bool, np.bool_)) or not value:
        return synthesize_id(raw, index)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, (int, np.integer)):
        return int(value)
    return str(value)


def normalize_record(raw: Any, index: int = 0) -> dict:
    """
    Normalize one external row into a canonical record dict.

    Never raises. Non-mapping input is treated as an empty row.
    """
    if not isinstance(raw, Mapping):
        logger.debug("Row %d is %s, not a mapping; using defaults", index, type(raw).__name__)
        raw = {}

    record: dict[str, Any] = {"id": _coerce_id(raw, index)}

    for field, default in TEXT_DEFAULTS.items():
        record[field] = coerce_text(_pick(raw, FIELD_ALIASES[field]), default)

    for field in VOLUME_FIELDS:
        record[field] = coerce_number(_pick(raw, FIELD_ALIASES[field]))

    record["annual_consumption"] = tuple(
        coerce_number(_pick(raw, aliases)) for aliases in CONSUMPTION_ALIASES
    )
    record["latitude"] = coerce_number(_pick(raw, FIELD_ALIASES["latitude"]), allow_negative=True)
    record["longitude"] = coerce_number(_pick(raw, FIELD_ALIASES["longitude"]), allow_negative=True)
    record["term_years"] = coerce_term(_pick(raw, FIELD_ALIASES["term_years"]))
    record["expiration_date"] = coerce_date(_pick(raw, FIELD_ALIASES["expiration_date"]))

    return {col: record[col] for col in CANONICAL_COLUMNS}


def _dedupe_ids(records: list[dict]) -> None:
    seen: dict[str, int] = {}
    for rec in records:
        key = str(rec["id"])
        if key not in seen:
            seen[key] = 1
            continue
        seen[key] += 1
        new_id = f"{key}-{seen[key]}"
        while new_id in seen:
            seen[key] += 1
            new_id = f"{key}-{seen[key]}"
        seen[new_id] = 1
        logger.debug("Duplicate id %s renamed to %s", key, new_id)
        rec["id"] = new_id


def empty_records() -> pd.DataFrame:
    """Canonical DataFrame with no rows."""
    return pd.DataFrame(columns=CANONICAL_COLUMNS)


def normalize_records(rows: Optional[Iterable[Any]]) -> pd.DataFrame:
    """
    Normalize a sequence of external rows into the canonical DataFrame.

    Columns are always CANONICAL_COLUMNS in order, ids are unique within
    the result and input order is preserved.
    """
    if rows is None:
        return empty_records()

    records = [normalize_record(raw, i) for i, raw in enumerate(rows)]
    if not records:
        return empty_records()

    _dedupe_ids(records)
    return pd.DataFrame.from_records(records, columns=CANONICAL_COLUMNS)


def is_success_status(status: Any) -> bool:
    """Active / Completed wells are the success class; everything else is pending."""
    return str(status).strip().lower() in SUCCESS_STATUSES

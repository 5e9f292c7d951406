"""
Aggregation pipeline for the Water Permits dashboard

Pure functions over a (filtered) canonical DataFrame. Every function
accepts an empty frame and returns zero or empty results.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import pandas as pd

from .normalization import CONSUMPTION_YEARS, is_success_status

TOP_N = 5
LABEL_LENGTH = 20
ELLIPSIS = "..."


@dataclass(frozen=True)
class KpiSummary:
    total_volume: float
    total_count: int
    average_term: float
    top_extractor: Optional[dict]


def _volumes(df: pd.DataFrame) -> pd.Series:
    return pd.to_numeric(df["volume_authorized"], errors="coerce").fillna(0.0).astype(float)


def truncate_label(name: str, length: int = LABEL_LENGTH) -> str:
    """Shorten `name` to `length` characters plus an ellipsis."""
    name = str(name)
    if len(name) > length:
        return name[:length] + ELLIPSIS
    return name


def sector_totals(df: pd.DataFrame) -> pd.DataFrame:
    """
    Authorized volume summed per sector, largest first.

    Ties keep the order in which sectors first appear in `df`.
    """
    if df.empty:
        return pd.DataFrame(columns=["sector", "volume"])

    totals = (
        pd.DataFrame({"sector": df["sector"].astype(str), "volume": _volumes(df)})
        .groupby("sector", sort=False)["volume"]
        .sum()
        .reset_index()
    )
    return totals.sort_values("volume", ascending=False, kind="mergesort").reset_index(drop=True)


def top_extractors(df: pd.DataFrame, n: int = TOP_N, label_length: int = LABEL_LENGTH) -> pd.DataFrame:
    """
    The `n` records with the largest authorized volume.

    Stable sort: equal volumes keep their input order. `name` is the
    display label, `full_name` the untruncated title holder.
    """
    columns = ["id", "name", "full_name", "volume"]
    if df.empty or n <= 0:
        return pd.DataFrame(columns=columns)

    ranked = (
        df.assign(_volume=_volumes(df))
        .sort_values("_volume", ascending=False, kind="mergesort")
        .head(n)
    )
    top = pd.DataFrame({
        "id": ranked["id"].tolist(),
        "name": [truncate_label(t, label_length) for t in ranked["title_holder"]],
        "full_name": ranked["title_holder"].astype(str).tolist(),
        "volume": ranked["_volume"].tolist(),
    })
    return top[columns]


def duration_histogram(df: pd.DataFrame) -> pd.DataFrame:
    """Number of permits per term length (years)."""
    if df.empty:
        return pd.DataFrame(columns=["term_years", "label", "count"])

    counts = (
        df.groupby("term_years", sort=True)
        .size()
        .reset_index(name="count")
    )
    counts["term_years"] = counts["term_years"].astype(int)
    counts["label"] = counts["term_years"].map(lambda y: f"{y} Year" if y == 1 else f"{y} Years")
    return counts[["term_years", "label", "count"]]


def kpi_summary(df: pd.DataFrame) -> KpiSummary:
    """Scalar rollups for the KPI cards."""
    total_count = int(len(df))
    if total_count == 0:
        return KpiSummary(total_volume=0.0, total_count=0, average_term=0.0, top_extractor=None)

    # summed from the sector totals so the pie and the KPI card agree exactly
    total_volume = float(sector_totals(df)["volume"].sum())
    terms = pd.to_numeric(df["term_years"], errors="coerce").fillna(0)
    average_term = round(float(terms.mean()), 1)

    top = top_extractors(df, n=1)
    top_extractor = top.iloc[0].to_dict() if not top.empty else None

    return KpiSummary(
        total_volume=total_volume,
        total_count=total_count,
        average_term=average_term,
        top_extractor=top_extractor,
    )


def status_breakdown(df: pd.DataFrame) -> dict[str, int]:
    """Counts of success-class (active/completed) and pending wells."""
    if df.empty:
        return {"success": 0, "pending": 0}
    success = int(df["well_status"].map(is_success_status).sum())
    return {"success": success, "pending": int(len(df)) - success}


def consumption_by_year(df: pd.DataFrame) -> pd.DataFrame:
    """Historical consumption summed across records, oldest year first."""
    labels = [f"Year {i}" for i in range(1, CONSUMPTION_YEARS + 1)]
    totals = [0.0] * CONSUMPTION_YEARS
    if not df.empty:
        for series in df["annual_consumption"]:
            for i, value in enumerate(tuple(series)[:CONSUMPTION_YEARS]):
                totals[i] += float(value)
    return pd.DataFrame({"year": labels, "consumption": totals})


def mappable_points(df: pd.DataFrame) -> pd.DataFrame:
    """Records with usable coordinates; (0, 0) means unplaceable."""
    if df.empty:
        return df.copy()
    placeable = ~((df["latitude"] == 0) & (df["longitude"] == 0))
    return df[placeable].copy()

"""
Filter control options derived from the full record set
"""
from __future__ import annotations

import pandas as pd

from .filters import DIMENSIONS


def _distinct_values(series: pd.Series) -> list[str]:
    values = set()
    for value in series.tolist():
        if not value or pd.isna(value):
            continue
        text = str(value).strip()
        if text:
            values.add(text)
    return sorted(values)


def extract_options(df: pd.DataFrame) -> dict[str, list[str]]:
    """
    Distinct, sorted values per filter dimension.

    Computed over the unfiltered collection so each dimension offers its
    full list regardless of what is chosen elsewhere. Blank values are
    left out; every dimension is present in the result.
    """
    options = {}
    for dim in DIMENSIONS:
        if df is None or dim not in df.columns:
            options[dim] = []
        else:
            options[dim] = _distinct_values(df[dim])
    return options

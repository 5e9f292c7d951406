"""
Facet filter model for the Water Permits dashboard

A selection maps each dimension to the set of chosen values. An empty or
missing set means no restriction on that dimension; the overall predicate
is the AND across dimensions.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Iterable, Optional

import pandas as pd

DIMENSIONS = ("sector", "department", "municipality", "district", "watershed")

DIMENSION_LABELS = {
    "sector": "Sector",
    "department": "Department",
    "municipality": "Municipality",
    "district": "District",
    "watershed": "Watershed",
}

Selection = dict[str, frozenset]


def _check_dimension(dimension: str) -> None:
    if dimension not in DIMENSIONS:
        raise ValueError(f"Unknown filter dimension {dimension!r}; expected one of {DIMENSIONS}.")


def empty_selection() -> Selection:
    """Selection with no active restrictions."""
    return {dim: frozenset() for dim in DIMENSIONS}


def make_selection(**values: Iterable[str]) -> Selection:
    """
    Build a selection from keyword arguments.

    >>> make_selection(sector=["Industrial"])["sector"]
    frozenset({'Industrial'})
    """
    selection = empty_selection()
    for dim, chosen in values.items():
        _check_dimension(dim)
        selection[dim] = frozenset(chosen or ())
    return selection


def with_dimension(selection: Optional[Mapping], dimension: str, values: Iterable[str]) -> Selection:
    """Return a new selection with one dimension replaced."""
    _check_dimension(dimension)
    updated = empty_selection()
    for dim in DIMENSIONS:
        updated[dim] = frozenset((selection or {}).get(dim) or ())
    updated[dimension] = frozenset(values or ())
    return updated


def active_dimensions(selection: Optional[Mapping]) -> list[str]:
    """Dimensions that currently restrict the result, in DIMENSIONS order."""
    if not selection:
        return []
    return [dim for dim in DIMENSIONS if selection.get(dim)]


def matches(record: Mapping, selection: Optional[Mapping]) -> bool:
    """True when the record satisfies every non-empty dimension of the selection."""
    for dim in active_dimensions(selection):
        if record.get(dim) not in selection[dim]:
            return False
    return True


def apply_filter(df: pd.DataFrame, selection: Optional[Mapping]) -> pd.DataFrame:
    """
    Rows of `df` matching `selection`, in their original order.

    Always returns a new DataFrame; applying the same selection to the
    result returns an equal frame.
    """
    mask = pd.Series(True, index=df.index)
    for dim in active_dimensions(selection):
        if dim not in df.columns:
            mask &= False
            continue
        mask &= df[dim].isin(selection[dim])
    return df[mask].copy()


def prune_selection(selection: Optional[Mapping], options: Mapping[str, Iterable[str]]) -> Selection:
    """Drop chosen values that no longer appear in the available options."""
    pruned = empty_selection()
    for dim in DIMENSIONS:
        chosen = frozenset((selection or {}).get(dim) or ())
        available = set(options.get(dim) or ())
        pruned[dim] = frozenset(v for v in chosen if v in available)
    return pruned

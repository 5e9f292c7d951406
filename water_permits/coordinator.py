"""
View coordinator for the Water Permits dashboard

Owns the load lifecycle, filter selection, active tab and detail
selection. Derived data is recomputed from the held records on demand
and never mutated in place.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Iterable, Optional

import pandas as pd

from .aggregations import (
    KpiSummary,
    consumption_by_year,
    duration_histogram,
    kpi_summary,
    mappable_points,
    sector_totals,
    status_breakdown,
    top_extractors,
)
from .data_loader import DataSourceError
from .filters import Selection, apply_filter, empty_selection, prune_selection, with_dimension
from .normalization import empty_records, normalize_records
from .options import extract_options

logger = logging.getLogger(__name__)

TABS = ("dashboard", "map", "data")
MAP_STYLES = ("light", "dark", "satellite")

EMPTY_ADVISORY = "The data source returned no permit records."
FALLBACK_ADVISORY = "Could not load permit records from the data source. Showing placeholder data."

# Shown when the data source is unreachable or unconfigured.
FALLBACK_ROW = {
    "id": "fallback-1",
    "titular": "Sample record (data source unavailable)",
    "uso": "Unclassified",
    "vol_autorizado": 0,
    "vol_solicitado": 0,
    "lat": 13.7,
    "lon": -89.2,
    "depto": "N/A",
    "municipio": "N/A",
    "plazo": 0,
    "estado_pozo": "N/A",
    "fuente": "Groundwater",
}


class LoadStatus(str, Enum):
    LOADING = "loading"
    READY = "ready"


@dataclass(frozen=True, eq=False)
class DashboardState:
    status: LoadStatus = LoadStatus.LOADING
    records: pd.DataFrame = field(default_factory=empty_records)
    options: dict = field(default_factory=dict)
    selection: Selection = field(default_factory=empty_selection)
    active_tab: str = "dashboard"
    selected_id: Any = None
    map_style: str = "light"
    advisory: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.error is not None


@dataclass(frozen=True, eq=False)
class DerivedView:
    filtered: pd.DataFrame
    sector_totals: pd.DataFrame
    top_extractors: pd.DataFrame
    duration_histogram: pd.DataFrame
    kpis: KpiSummary
    status_breakdown: dict
    consumption_by_year: pd.DataFrame
    map_points: pd.DataFrame


def derive_view(records: pd.DataFrame, selection: Selection) -> DerivedView:
    """Filter `records` and compute every aggregate over the result."""
    filtered = apply_filter(records, selection)
    return DerivedView(
        filtered=filtered,
        sector_totals=sector_totals(filtered),
        top_extractors=top_extractors(filtered),
        duration_histogram=duration_histogram(filtered),
        kpis=kpi_summary(filtered),
        status_breakdown=status_breakdown(filtered),
        consumption_by_year=consumption_by_year(filtered),
        map_points=mappable_points(filtered),
    )


class ViewCoordinator:
    """
    State machine: LOADING -> READY.

    READY is reached with fetched records, with an empty collection plus an
    advisory, or with the fallback collection plus an error advisory. There
    is no automatic retry; `reload` repeats the single fetch.
    """

    def __init__(self, fetch: Callable[[], Iterable[Any]]):
        self._fetch = fetch
        self.state = DashboardState()
        self.fetch_count = 0
        self._derived: Optional[DerivedView] = None

    # -- lifecycle ---------------------------------------------------------

    def init(self) -> DashboardState:
        """Issue the one fetch and settle the state with its outcome."""
        self.state = replace(self.state, status=LoadStatus.LOADING)
        self._derived = None
        self.fetch_count += 1
        try:
            rows = self._fetch()
        except DataSourceError as e:
            logger.warning("Permit fetch failed: %s", e)
            return self.on_fetch_settled(error=e)
        except Exception as e:
            logger.exception("Unexpected error while fetching permits")
            return self.on_fetch_settled(error=e)
        return self.on_fetch_settled(rows=rows)

    def reload(self) -> DashboardState:
        return self.init()

    def on_fetch_settled(
        self,
        rows: Optional[Iterable[Any]] = None,
        error: Optional[BaseException] = None,
    ) -> DashboardState:
        if error is not None:
            records = normalize_records([FALLBACK_ROW])
            advisory, err = FALLBACK_ADVISORY, str(error) or type(error).__name__
        else:
            records = normalize_records(list(rows or []))
            advisory = EMPTY_ADVISORY if records.empty else None
            err = None
            logger.info("Loaded %d permit records", len(records))

        options = extract_options(records)
        self.state = replace(
            self.state,
            status=LoadStatus.READY,
            records=records,
            options=options,
            selection=prune_selection(self.state.selection, options),
            selected_id=None,
            advisory=advisory,
            error=err,
        )
        self._derived = None
        return self.state

    # -- user events -------------------------------------------------------

    def on_filter_change(self, dimension: str, values: Iterable[str]) -> DashboardState:
        self.state = replace(self.state, selection=with_dimension(self.state.selection, dimension, values))
        self._derived = None
        return self.state

    def clear_filters(self) -> DashboardState:
        self.state = replace(self.state, selection=empty_selection())
        self._derived = None
        return self.state

    def on_tab_change(self, tab: str) -> DashboardState:
        if tab not in TABS:
            raise ValueError(f"Unknown tab {tab!r}; expected one of {TABS}.")
        self.state = replace(self.state, active_tab=tab)
        return self.state

    def on_map_style_change(self, style: str) -> DashboardState:
        if style not in MAP_STYLES:
            raise ValueError(f"Unknown map style {style!r}; expected one of {MAP_STYLES}.")
        self.state = replace(self.state, map_style=style)
        return self.state

    def on_select(self, record_id: Any) -> DashboardState:
        self.state = replace(self.state, selected_id=record_id)
        return self.state

    def clear_selection(self) -> DashboardState:
        return self.on_select(None)

    # -- derived data ------------------------------------------------------

    @property
    def derived(self) -> DerivedView:
        if self._derived is None:
            self._derived = derive_view(self.state.records, self.state.selection)
        return self._derived

    @property
    def selected_record(self) -> Optional[dict]:
        """The selected record as a dict, or None when nothing (or a stale id) is selected."""
        if self.state.selected_id is None:
            return None
        records = self.state.records
        hit = records[records["id"].astype(str) == str(self.state.selected_id)]
        if hit.empty:
            return None
        return hit.iloc[0].to_dict()

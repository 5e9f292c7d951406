"""
Water Permits Dashboard - Core Modules
"""
from .config import Settings, load_settings
from .data_loader import ConfigurationError, DataSourceError, fetch_all_records, export_to_excel
from .normalization import normalize_record, normalize_records, is_success_status
from .filters import DIMENSIONS, apply_filter, empty_selection, make_selection, matches
from .options import extract_options
from .aggregations import (
    KpiSummary, duration_histogram, kpi_summary, sector_totals, top_extractors,
)
from .coordinator import DashboardState, LoadStatus, ViewCoordinator
from .utils import fmt_number, fmt_volume, fmt_millions

__all__ = [
    'Settings', 'load_settings',
    'ConfigurationError', 'DataSourceError', 'fetch_all_records', 'export_to_excel',
    'normalize_record', 'normalize_records', 'is_success_status',
    'DIMENSIONS', 'apply_filter', 'empty_selection', 'make_selection', 'matches',
    'extract_options',
    'KpiSummary', 'duration_histogram', 'kpi_summary', 'sector_totals', 'top_extractors',
    'DashboardState', 'LoadStatus', 'ViewCoordinator',
    'fmt_number', 'fmt_volume', 'fmt_millions',
]

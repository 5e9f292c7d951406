"""
Shared utility functions for the Water Permits dashboard
"""
import pandas as pd

from .normalization import is_success_status


def fmt_number(x, decimals=0):
    """Format number with commas."""
    if x is None or pd.isna(x):
        return "—"
    return f"{x:,.{decimals}f}"


def fmt_volume(x):
    """Format a volume in cubic meters per year."""
    if x is None or pd.isna(x):
        return "—"
    return f"{x:,.0f} m³"


def fmt_millions(x, decimals=2):
    """Format a volume as millions of cubic meters."""
    if x is None or pd.isna(x):
        return "—"
    return f"{x / 1_000_000:,.{decimals}f} M m³"


def fmt_thousands(x, decimals=1):
    """Format a volume as thousands of cubic meters."""
    if x is None or pd.isna(x):
        return "—"
    return f"{x / 1_000:,.{decimals}f}k m³"


def fmt_years(x):
    if x is None or pd.isna(x):
        return "—"
    return f"{x:.1f} Years"


def first_word(name, default="N/A"):
    """First word of a title holder name, for compact KPI cards."""
    if not name:
        return default
    parts = str(name).split()
    return parts[0] if parts else default


def get_status_color(status: str) -> str:
    """Hex color for a well status badge."""
    return "#22C55E" if is_success_status(status) else "#EAB308"


def get_status_rgb(status: str) -> list:
    """RGB triple for a well status map point."""
    return [34, 197, 94] if is_success_status(status) else [234, 179, 8]


def get_status_emoji(status: str) -> str:
    return "✅" if is_success_status(status) else "⚠️"

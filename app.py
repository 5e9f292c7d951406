"""
Water Permits Dashboard - Main Entry Point
Water extraction permits: sectors, top extractors, map and detail
"""
import logging
import os

import streamlit as st

from water_permits.config import load_settings, resolve_log_level
from water_permits.coordinator import MAP_STYLES, TABS, ViewCoordinator
from water_permits.data_loader import fetch_all_records
from water_permits.filters import DIMENSIONS, active_dimensions
from water_permits.ui.components import (
    render_dashboard,
    render_detail_fields,
    render_filters,
    render_map,
    render_table,
)

logging.basicConfig(
    level=resolve_log_level(os.getenv("LOG_LEVEL")),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("water_permits.app")

st.set_page_config(
    page_title="Water Permits Dashboard",
    page_icon="💧",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Custom CSS
st.markdown("""
<style>
    .main-header {
        font-size: 2.2rem;
        font-weight: 700;
        color: #0F172A;
        margin-bottom: 0.25rem;
    }
    .sub-header {
        font-size: 1.05rem;
        color: #6B7280;
        margin-bottom: 1.5rem;
    }
    .kpi-grid {
        display: grid;
        grid-template-columns: repeat(4, minmax(0, 1fr));
        gap: 0.75rem;
        margin: 0.5rem 0 1rem 0;
    }
    .kpi-card {
        background: #FFFFFF;
        border: 1px solid #E5E7EB;
        border-radius: 12px;
        padding: 1rem 1.1rem;
    }
    .kpi-label {
        font-size: 0.72rem;
        text-transform: uppercase;
        letter-spacing: 0.08em;
        color: #64748B;
        margin-bottom: 0.35rem;
    }
    .kpi-value {
        font-size: 1.4rem;
        font-weight: 600;
        color: #0F172A;
    }
    .kpi-sub {
        margin-top: 0.3rem;
        font-size: 0.78rem;
        color: #94A3B8;
    }
</style>
""", unsafe_allow_html=True)

TAB_LABELS = {"dashboard": "📊 Dashboard", "map": "🗺️ Map", "data": "📋 Data"}
MAP_STYLE_LABELS = {"light": "Light", "dark": "Dark", "satellite": "Satellite"}


def get_coordinator() -> ViewCoordinator:
    """One coordinator per browser session; it fetches once on creation."""
    if "coordinator" not in st.session_state:
        settings = load_settings()
        coordinator = ViewCoordinator(lambda: fetch_all_records(settings))
        with st.spinner("Loading permit records..."):
            coordinator.init()
        st.session_state["coordinator"] = coordinator
    return st.session_state["coordinator"]


def _reload():
    with st.spinner("Reloading permit records..."):
        state = get_coordinator().reload()
    # keep widget values inside the refreshed options
    for dim in DIMENSIONS:
        st.session_state[f"filter_{dim}"] = sorted(state.selection[dim])
    logger.info("Reloaded permit records")


def _clear_filters():
    for dim in DIMENSIONS:
        st.session_state[f"filter_{dim}"] = []
    get_coordinator().clear_filters()


@st.dialog("Permit detail", width="large")
def show_detail(record: dict):
    st.markdown(f"### {record['title_holder']}")
    render_detail_fields(record)
    if st.button("Close", use_container_width=True):
        get_coordinator().clear_selection()
        st.rerun()


def main():
    coordinator = get_coordinator()

    st.markdown('<p class="main-header">💧 Water Permits Dashboard</p>', unsafe_allow_html=True)
    st.markdown(
        '<p class="sub-header">Water extraction authorizations by sector, holder and location</p>',
        unsafe_allow_html=True
    )

    # Filters in sidebar
    with st.sidebar:
        st.header("🔎 Filters")
        chosen = render_filters(coordinator.state.options, coordinator.state.selection)
        for dim, values in chosen.items():
            if frozenset(values) != coordinator.state.selection.get(dim, frozenset()):
                coordinator.on_filter_change(dim, values)

        st.button("Clear filters", on_click=_clear_filters, use_container_width=True)

        st.divider()
        st.subheader("Data Status")
        state = coordinator.state
        if state.is_fallback:
            st.warning("Fallback data ✗")
        else:
            st.success(f"{len(state.records):,} records ✓")
        st.button("🔄 Reload data", on_click=_reload, use_container_width=True)

    state = coordinator.state
    if state.is_fallback:
        st.error(state.advisory)
    elif state.advisory:
        st.warning(state.advisory)

    active = active_dimensions(state.selection)
    if active:
        st.caption("Active filters: " + ", ".join(active))

    tab = st.radio(
        "View",
        options=list(TABS),
        format_func=TAB_LABELS.get,
        horizontal=True,
        label_visibility="collapsed",
        key="view_tab",
    )
    if tab != state.active_tab:
        coordinator.on_tab_change(tab)

    st.markdown("---")

    view = coordinator.derived
    picked = None
    if tab == "dashboard":
        picked = render_dashboard(view)
    elif tab == "map":
        style = st.radio(
            "Map style",
            options=list(MAP_STYLES),
            format_func=MAP_STYLE_LABELS.get,
            horizontal=True,
            key="map_style",
        )
        if style != coordinator.state.map_style:
            coordinator.on_map_style_change(style)
        picked = render_map(view, coordinator.state.map_style)
    else:
        picked = render_table(view)

    # the dialog opens on a new pick; Close clears the selection
    if picked is not None:
        coordinator.on_select(picked)
        record = coordinator.selected_record
        if record is not None:
            show_detail(record)


if __name__ == "__main__":
    main()

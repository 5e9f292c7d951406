from __future__ import annotations

from typing import Any, Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import pydeck as pdk
import streamlit as st

from water_permits.aggregations import KpiSummary
from water_permits.data_loader import export_to_excel
from water_permits.filters import DIMENSION_LABELS, DIMENSIONS
from water_permits.io.export import export_csv, export_json, flatten_for_export
from water_permits.normalization import is_success_status
from water_permits.utils import (
    first_word,
    fmt_millions,
    fmt_number,
    fmt_thousands,
    fmt_volume,
    fmt_years,
    get_status_color,
    get_status_emoji,
    get_status_rgb,
)


COLORS = ["#0ea5e9", "#22c55e", "#eab308", "#f97316", "#ef4444", "#8b5cf6", "#6366f1"]
PLOT_BG = "rgba(0,0,0,0)"
INK = "#0f172a"

# El Salvador, roughly centred
DEFAULT_CENTER = (13.7, -88.9)
DEFAULT_ZOOM = 7.2

MAP_STYLE_URLS = {
    "light": "https://basemaps.cartocdn.com/gl/positron-gl-style/style.json",
    "dark": "https://basemaps.cartocdn.com/gl/dark-matter-gl-style/style.json",
    "satellite": "mapbox://styles/mapbox/satellite-v9",
}

MAP_LAYER_ID = "wells"

TABLE_COLUMNS = {
    "title_holder": "Title holder",
    "sector": "Sector",
    "location": "Location",
    "volume_authorized": "Volume (m³/year)",
    "expiration_date": "Expiration",
    "status_label": "Status",
}


# =============================================================================
# FIGURE BUILDERS
# =============================================================================

def _style(fig: go.Figure, height: int = 320) -> go.Figure:
    fig.update_layout(
        height=height,
        margin=dict(l=10, r=10, t=10, b=10),
        plot_bgcolor=PLOT_BG,
        paper_bgcolor=PLOT_BG,
        font=dict(color=INK),
    )
    return fig


def build_sector_figure(sectors: pd.DataFrame) -> go.Figure:
    """Donut of authorized volume by sector."""
    fig = px.pie(
        sectors,
        names="sector",
        values="volume",
        hole=0.45,
        color_discrete_sequence=COLORS,
    )
    fig.update_traces(
        textinfo="label+percent",
        hovertemplate="%{label}<br>%{value:,.0f} m³<extra></extra>",
    )
    fig.update_layout(legend=dict(orientation="h", y=-0.1))
    return _style(fig)


def build_top_figure(top: pd.DataFrame) -> go.Figure:
    """Horizontal bars for the top extractors; customdata carries the record id."""
    ordered = top.iloc[::-1]
    fig = go.Figure(go.Bar(
        x=ordered["volume"].tolist(),
        y=ordered["name"].tolist(),
        orientation="h",
        marker_color=[COLORS[i % len(COLORS)] for i in range(len(ordered))][::-1],
        customdata=[[str(rid), full] for rid, full in zip(ordered["id"], ordered["full_name"])],
        hovertemplate="%{customdata[1]}<br>%{x:,.0f} m³<extra></extra>",
    ))
    fig.update_xaxes(visible=False)
    return _style(fig)


def build_duration_figure(durations: pd.DataFrame) -> go.Figure:
    fig = go.Figure(go.Bar(
        x=durations["label"].tolist(),
        y=durations["count"].tolist(),
        marker_color="#f59e0b",
        name="Permits",
    ))
    fig.update_yaxes(gridcolor="#eef2f7")
    return _style(fig, height=260)


def build_consumption_figure(consumption: pd.DataFrame) -> go.Figure:
    fig = go.Figure(go.Scatter(
        x=consumption["year"].tolist(),
        y=consumption["consumption"].tolist(),
        mode="lines+markers",
        line=dict(color="#0ea5e9", width=3),
        hovertemplate="%{x}<br>%{y:,.0f} m³<extra></extra>",
    ))
    fig.update_yaxes(gridcolor="#eef2f7")
    return _style(fig, height=260)


def map_frame(points: pd.DataFrame) -> pd.DataFrame:
    """Columns the map layer needs, with display labels and status colors."""
    cols = ["id", "title_holder", "sector", "well_status", "latitude", "longitude", "volume_authorized"]
    if points.empty:
        return pd.DataFrame(columns=cols + ["volume_label", "color"])
    frame = points[cols].copy()
    frame["id"] = frame["id"].astype(str)
    frame["volume_label"] = frame["volume_authorized"].map(fmt_volume)
    frame["color"] = frame["well_status"].map(get_status_rgb)
    return frame


def build_map_deck(points: pd.DataFrame, map_style: str = "light") -> pdk.Deck:
    """Scatter layer of placeable wells; green for active/completed, amber otherwise."""
    frame = map_frame(points)
    if frame.empty:
        lat, lon = DEFAULT_CENTER
    else:
        lat, lon = float(frame["latitude"].mean()), float(frame["longitude"].mean())

    layer = pdk.Layer(
        "ScatterplotLayer",
        id=MAP_LAYER_ID,
        data=frame,
        get_position="[longitude, latitude]",
        get_fill_color="color",
        get_line_color=[255, 255, 255],
        get_radius=1500,
        radius_min_pixels=5,
        radius_max_pixels=14,
        stroked=True,
        line_width_min_pixels=2,
        pickable=True,
        auto_highlight=True,
    )
    tooltip = {
        "html": "<b>{title_holder}</b><br/>Sector: {sector}<br/>Volume: {volume_label}<br/>Status: {well_status}",
        "style": {"backgroundColor": "white", "color": INK},
    }
    return pdk.Deck(
        layers=[layer],
        initial_view_state=pdk.ViewState(latitude=lat, longitude=lon, zoom=DEFAULT_ZOOM, pitch=0),
        tooltip=tooltip,
        map_style=MAP_STYLE_URLS.get(map_style, MAP_STYLE_URLS["light"]),
    )


def table_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Display table for the data tab."""
    if df.empty:
        return pd.DataFrame(columns=list(TABLE_COLUMNS.values()))
    frame = pd.DataFrame({
        "title_holder": df["title_holder"],
        "sector": df["sector"],
        "location": df["municipality"].astype(str) + ", " + df["department"].astype(str),
        "volume_authorized": df["volume_authorized"],
        "expiration_date": df["expiration_date"],
        "status_label": [f"{get_status_emoji(s)} {s}" for s in df["well_status"]],
    })
    return frame.rename(columns=TABLE_COLUMNS).reset_index(drop=True)


# =============================================================================
# SELECTION EVENTS
# =============================================================================

def _changed(key: str, value: Any) -> bool:
    """True the first time a widget reports `value`; rerun repeats are ignored."""
    seen_key = f"_last_{key}"
    if st.session_state.get(seen_key) == value:
        return False
    st.session_state[seen_key] = value
    return value is not None


def _selection(event) -> dict:
    # widget states are dict subclasses; None when the widget has no state yet
    return (event or {}).get("selection") or {}


def selected_bar_id(event) -> Optional[str]:
    for point in _selection(event).get("points") or []:
        custom = point.get("customdata")
        if custom:
            return str(custom[0])
    return None


def selected_map_id(event) -> Optional[str]:
    objects = _selection(event).get("objects") or {}
    for obj in objects.get(MAP_LAYER_ID) or []:
        if obj.get("id") is not None:
            return str(obj["id"])
    return None


def selected_row_id(event, df: pd.DataFrame) -> Optional[str]:
    rows = _selection(event).get("rows") or []
    if not rows or rows[0] >= len(df):
        return None
    return str(df["id"].iloc[rows[0]])


# =============================================================================
# RENDERERS
# =============================================================================

def render_kpis(kpis: KpiSummary):
    top = kpis.top_extractor
    cards = [
        ("Total authorized volume", fmt_millions(kpis.total_volume), "Cubic meters per year"),
        ("Permits", fmt_number(kpis.total_count), "Wells and surface sources"),
        ("Average term", fmt_years(kpis.average_term), "Mean authorization length"),
        (
            "Largest extractor",
            first_word(top["full_name"]) if top else "N/A",
            fmt_thousands(top["volume"]) if top else "-",
        ),
    ]
    html = "<div class='kpi-grid'>"
    for label, value, sub in cards:
        html += (
            f"<div class='kpi-card'><div class='kpi-label'>{label}</div>"
            f"<div class='kpi-value'>{value}</div><div class='kpi-sub'>{sub}</div></div>"
        )
    html += "</div>"
    st.markdown(html, unsafe_allow_html=True)


def render_filters(options: dict, selection: dict) -> dict:
    """Sidebar multiselects; returns the chosen values per dimension."""
    chosen = {}
    for dim in DIMENSIONS:
        key = f"filter_{dim}"
        if key not in st.session_state:
            st.session_state[key] = sorted(selection.get(dim) or ())
        chosen[dim] = st.multiselect(
            DIMENSION_LABELS[dim],
            options=options.get(dim, []),
            key=key,
        )
    return chosen


def render_dashboard(view) -> Optional[str]:
    """Dashboard tab. Returns a record id when a top-extractor bar is clicked."""
    render_kpis(view.kpis)
    if view.filtered.empty:
        st.info("No permits match the current filters.")
        return None

    picked = None
    c1, c2 = st.columns(2)
    with c1:
        st.markdown("#### 🏭 Extraction by sector")
        st.plotly_chart(
            build_sector_figure(view.sector_totals),
            use_container_width=True,
            config={"displayModeBar": False},
        )
        st.caption("Share of authorized volume per sector.")
    with c2:
        st.markdown("#### 📊 Top 5 extractors")
        event = st.plotly_chart(
            build_top_figure(view.top_extractors),
            use_container_width=True,
            config={"displayModeBar": False},
            on_select="rerun",
            selection_mode="points",
            key="top_chart",
        )
        bar_id = selected_bar_id(event)
        if _changed("top_chart", bar_id):
            picked = bar_id

    c3, c4 = st.columns(2)
    with c3:
        st.markdown("#### 📅 Permit term distribution")
        st.plotly_chart(
            build_duration_figure(view.duration_histogram),
            use_container_width=True,
            config={"displayModeBar": False},
        )
    with c4:
        st.markdown("#### 💧 Historical consumption")
        st.plotly_chart(
            build_consumption_figure(view.consumption_by_year),
            use_container_width=True,
            config={"displayModeBar": False},
        )
    return picked


def render_map(view, map_style: str) -> Optional[str]:
    """Map tab. Returns a record id when a point is clicked."""
    placed = len(view.map_points)
    unplaced = len(view.filtered) - placed
    caption = f"{placed:,} points visible"
    if unplaced:
        caption += f" · {unplaced:,} without coordinates"
    st.caption(caption)

    event = st.pydeck_chart(
        build_map_deck(view.map_points, map_style),
        on_select="rerun",
        selection_mode="single-object",
        key="well_map",
    )
    map_id = selected_map_id(event)
    if _changed("well_map", map_id):
        return map_id
    return None


def render_table(view) -> Optional[str]:
    """Data tab. Returns a record id when a row is selected."""
    st.markdown("#### 📋 Permit detail")
    st.caption("Every authorized source matching the current filters. Select a row for details.")
    event = st.dataframe(
        table_frame(view.filtered),
        hide_index=True,
        use_container_width=True,
        column_config={
            "Volume (m³/year)": st.column_config.NumberColumn(format="%.0f"),
        },
        on_select="rerun",
        selection_mode="single-row",
        key="permit_table",
    )
    row_id = selected_row_id(event, view.filtered)

    export = flatten_for_export(view.filtered)
    d1, d2, d3 = st.columns(3)
    with d1:
        st.download_button("⬇️ CSV", export_csv(view.filtered), file_name="permits.csv", mime="text/csv")
    with d2:
        st.download_button("⬇️ JSON", export_json(view.filtered), file_name="permits.json", mime="application/json")
    with d3:
        st.download_button(
            "⬇️ Excel",
            export_to_excel(export),
            file_name="permits.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )

    if _changed("permit_table", row_id):
        return row_id
    return None


def render_detail_fields(record: dict):
    status = record["well_status"]
    badge = "Authorized" if is_success_status(status) else "Pending / other"
    st.markdown(
        f"<span style='background:{get_status_color(status)};color:white;padding:2px 10px;"
        f"border-radius:999px;font-size:0.8rem'>{status} · {badge}</span>",
        unsafe_allow_html=True,
    )
    c1, c2 = st.columns(2)
    with c1:
        st.metric("Authorized", fmt_volume(record["volume_authorized"]))
        st.metric("Requested", fmt_volume(record["volume_requested"]))
        st.metric("Consumed", fmt_volume(record["volume_consumed"]))
    with c2:
        st.markdown(f"**Sector:** {record['sector']}")
        st.markdown(f"**Source:** {record['source_type']}")
        st.markdown(f"**Term:** {record['term_years']} years")
        st.markdown(f"**Expires:** {record['expiration_date']}")
        st.markdown(f"**Department:** {record['department']}")
        st.markdown(f"**Municipality:** {record['municipality']}")
        st.markdown(f"**District:** {record['district']}")
        st.markdown(f"**Watershed:** {record['watershed']}")
    st.markdown(f"**Location:** {record['geographic_description']}")
    if record["latitude"] == 0 and record["longitude"] == 0:
        st.caption("No coordinates on file.")
    else:
        st.caption(f"Coordinates: {record['latitude']:.5f}, {record['longitude']:.5f}")

    history = pd.DataFrame({
        "Year": [f"Year {i + 1}" for i in range(len(record["annual_consumption"]))],
        "Consumption (m³)": list(record["annual_consumption"]),
    })
    st.dataframe(history, hide_index=True, use_container_width=True)

"""
Tests for the pure builders in water_permits.ui.components: figures,
map layer, table frame and selection event parsing. Nothing is rendered.
"""
import pydeck as pdk

from water_permits.aggregations import (
    consumption_by_year,
    duration_histogram,
    mappable_points,
    sector_totals,
    top_extractors,
)
from water_permits.normalization import empty_records
from water_permits.ui.components import (
    MAP_LAYER_ID,
    MAP_STYLE_URLS,
    TABLE_COLUMNS,
    build_consumption_figure,
    build_duration_figure,
    build_map_deck,
    build_sector_figure,
    build_top_figure,
    map_frame,
    selected_bar_id,
    selected_map_id,
    selected_row_id,
    table_frame,
)


class TestFigures:
    def test_sector_figure(self, scenario_df):
        fig = build_sector_figure(sector_totals(scenario_df))
        assert list(fig.data[0].labels) == ["Industrial", "Agricultural"]

    def test_top_figure_carries_ids(self, scenario_df):
        fig = build_top_figure(top_extractors(scenario_df))
        bar = fig.data[0]
        # largest at the top of a horizontal bar chart
        assert list(bar.y)[-1] == "Beta Textiles"
        assert [c[0] for c in bar.customdata] == ["3", "1", "2"]

    def test_duration_and_consumption(self, sample_df):
        assert len(build_duration_figure(duration_histogram(sample_df)).data[0].x) == 3
        assert len(build_consumption_figure(consumption_by_year(sample_df)).data[0].y) == 5

    def test_empty_figures(self):
        empty = empty_records()
        build_sector_figure(sector_totals(empty))
        build_top_figure(top_extractors(empty))
        build_duration_figure(duration_histogram(empty))


class TestMap:
    def test_map_frame(self, scenario_df):
        frame = map_frame(mappable_points(scenario_df))
        assert frame["id"].tolist() == ["1", "2"]
        assert frame["color"].tolist() == [[34, 197, 94], [234, 179, 8]]
        assert frame["volume_label"].tolist() == ["100 m³", "200 m³"]

    def test_deck(self, scenario_df):
        deck = build_map_deck(mappable_points(scenario_df), "dark")
        assert isinstance(deck, pdk.Deck)
        assert deck.map_style == MAP_STYLE_URLS["dark"]
        assert deck.layers[0].id == MAP_LAYER_ID

    def test_unknown_style_falls_back_to_light(self, scenario_df):
        deck = build_map_deck(mappable_points(scenario_df), "sepia")
        assert deck.map_style == MAP_STYLE_URLS["light"]

    def test_empty_deck_uses_default_center(self):
        deck = build_map_deck(empty_records())
        assert deck.initial_view_state.latitude == 13.7


class TestTable:
    def test_columns(self, scenario_df):
        table = table_frame(scenario_df)
        assert list(table.columns) == list(TABLE_COLUMNS.values())
        assert table.iloc[0]["Location"] == "Sonsonate Centro, Sonsonate"
        assert table.iloc[0]["Status"] == "✅ Activo"

    def test_empty(self):
        assert list(table_frame(empty_records()).columns) == list(TABLE_COLUMNS.values())


class TestSelectionEvents:
    def test_bar(self):
        event = {"selection": {"points": [{"customdata": ["229", "TACUBAYA"]}]}}
        assert selected_bar_id(event) == "229"

    def test_map(self):
        event = {"selection": {"objects": {MAP_LAYER_ID: [{"id": "420"}]}}}
        assert selected_map_id(event) == "420"

    def test_row(self, scenario_df):
        event = {"selection": {"rows": [2]}}
        assert selected_row_id(event, scenario_df) == "3"

    def test_nothing_selected(self, scenario_df):
        for event in (None, {}, {"selection": {}}):
            assert selected_bar_id(event) is None
            assert selected_map_id(event) is None
            assert selected_row_id(event, scenario_df) is None

    def test_row_out_of_range(self, scenario_df):
        assert selected_row_id({"selection": {"rows": [10]}}, scenario_df) is None

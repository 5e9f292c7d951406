"""
Tests for water_permits.normalization: coercion helpers, alias lookup,
id synthesis and the canonical record invariants.
"""
import math

import pandas as pd
import pytest

from water_permits.normalization import (
    CANONICAL_COLUMNS,
    FIELD_ALIASES,
    coerce_date,
    coerce_number,
    coerce_text,
    is_success_status,
    normalize_record,
    normalize_records,
    synthesize_id,
)

TEXT_FIELDS = [
    "title_holder", "sector", "department", "municipality", "district",
    "watershed", "geographic_description", "expiration_date", "well_status", "source_type",
]
QUANTITY_FIELDS = ["volume_requested", "volume_authorized", "volume_consumed"]


def assert_canonical(record):
    assert list(record) == CANONICAL_COLUMNS
    for field in TEXT_FIELDS:
        assert isinstance(record[field], str) and record[field]
    for field in QUANTITY_FIELDS:
        assert math.isfinite(record[field]) and record[field] >= 0
    assert len(record["annual_consumption"]) == 5
    assert all(math.isfinite(v) and v >= 0 for v in record["annual_consumption"])
    assert math.isfinite(record["latitude"]) and math.isfinite(record["longitude"])
    assert isinstance(record["term_years"], int) and record["term_years"] >= 0
    assert record["id"] not in (None, "")


# ── coerce_number ─────────────────────────────────────────────────────────────

class TestCoerceNumber:
    @pytest.mark.parametrize("value,expected", [
        (22950, 22950.0),
        ("22,950", 22950.0),
        (" 6315.18 ", 6315.18),
        ("abc", 0.0),
        ("", 0.0),
        (None, 0.0),
        (float("nan"), 0.0),
        (float("inf"), 0.0),
        (True, 0.0),
        ([1, 2], 0.0),
        (-5, 0.0),
        (10**400, 0.0),
        (-(10**400), 0.0),
    ])
    def test_values(self, value, expected):
        assert coerce_number(value) == expected

    def test_negative_allowed_for_coordinates(self):
        assert coerce_number("-89.5", allow_negative=True) == -89.5

    def test_custom_default(self):
        assert coerce_number("x", default=7.0) == 7.0


class TestCoerceText:
    def test_collapses_whitespace(self):
        assert coerce_text("  La   Paz ", "N/A") == "La Paz"

    @pytest.mark.parametrize("value", [None, "", "   ", "nan", "None", float("nan"), pd.NA])
    def test_blank_values_use_default(self, value):
        assert coerce_text(value, "Unknown") == "Unknown"

    def test_non_string_is_stringified(self):
        assert coerce_text(42, "N/A") == "42"


class TestCoerceDate:
    def test_iso_date(self):
        assert coerce_date("2029-04-08") == "08/04/2029"

    def test_timestamp(self):
        assert coerce_date(pd.Timestamp("2030-06-15")) == "15/06/2030"

    @pytest.mark.parametrize("value", [None, "", "someday", "now", "today", " Today ", 12345, {"a": 1}, ["2029-01-01"]])
    def test_unparseable_is_na(self, value):
        assert coerce_date(value) == "N/A"


# ── normalize_record ──────────────────────────────────────────────────────────

class TestNormalizeRecord:
    def test_spanish_aliases(self, sample_rows):
        rec = normalize_record(sample_rows[0])
        assert rec["id"] == 229
        assert rec["title_holder"] == "TACUBAYA, S.A. DE C.V."
        assert rec["sector"] == "Industrial"
        assert rec["volume_authorized"] == 22950.0
        assert rec["latitude"] == pytest.approx(13.95859)
        assert rec["longitude"] == pytest.approx(-89.863454)
        assert rec["department"] == "Ahuachapán"
        assert rec["term_years"] == 5
        assert rec["expiration_date"] == "08/04/2029"
        assert rec["well_status"] == "Activo"
        assert rec["source_type"] == "Subterránea"
        assert rec["annual_consumption"] == (1000.0, 1200.0, 0.0, 900.0, 1100.0)

    def test_english_aliases(self):
        rec = normalize_record({
            "id": "P-1", "titleHolder": "Acme", "sector": "Tourism",
            "volumeAuthorized": 10, "termYears": 3, "wellStatus": "Active",
        })
        assert rec["id"] == "P-1"
        assert rec["title_holder"] == "Acme"
        assert rec["volume_authorized"] == 10.0
        assert rec["term_years"] == 3

    def test_alias_priority(self):
        rec = normalize_record({"volume_authorized": 10, "vol_autorizado": 20})
        assert rec["volume_authorized"] == 10.0

    def test_null_alias_falls_through(self):
        rec = normalize_record({"volume_authorized": None, "vol_autorizado": 20})
        assert rec["volume_authorized"] == 20.0

    def test_defaults_for_empty_row(self):
        rec = normalize_record({})
        assert_canonical(rec)
        assert rec["title_holder"] == "Unknown"
        assert rec["sector"] == "Unclassified"
        assert rec["department"] == "N/A"
        assert rec["source_type"] == "Groundwater"
        assert rec["expiration_date"] == "N/A"
        assert rec["latitude"] == 0.0 and rec["longitude"] == 0.0
        assert str(rec["id"]).startswith("row-")

    @pytest.mark.parametrize("raw", [
        None,
        "not a row",
        42,
        {"titular": 123, "uso": ["x"], "vol_autorizado": {"a": 1}, "plazo": "five"},
        {"lat": "north", "lon": float("nan"), "vencimiento": 3.5, "consumo_2": -10},
        {"id": float("nan"), "plazo": float("inf")},
        {"id": True},
        {"vol_autorizado": 10**400, "plazo": 10**400, "lat": 10**400, "consumo_1": 10**400},
    ])
    def test_totality(self, raw):
        assert_canonical(normalize_record(raw))

    def test_float_id_becomes_int(self):
        assert normalize_record({"id": 229.0})["id"] == 229

    def test_term_truncates(self):
        assert normalize_record({"plazo": "5.9"})["term_years"] == 5


class TestSynthesizeId:
    def test_deterministic(self):
        row = {"titular": "X", "uso": "Industrial"}
        assert synthesize_id(row, 3) == synthesize_id(dict(row), 3)

    def test_position_changes_id(self):
        row = {"titular": "X"}
        assert synthesize_id(row, 0) != synthesize_id(row, 1)

    def test_identical_rows_get_distinct_ids(self):
        df = normalize_records([{"titular": "Same"}, {"titular": "Same"}])
        assert df["id"].is_unique


# ── normalize_records ─────────────────────────────────────────────────────────

class TestNormalizeRecords:
    def test_columns_and_order(self, sample_df):
        assert list(sample_df.columns) == CANONICAL_COLUMNS
        assert sample_df["id"].tolist()[:3] == [229, 420, 103]

    def test_messy_row_degrades(self, sample_df):
        messy = sample_df.iloc[3]
        assert messy["title_holder"] == "Unknown"
        assert messy["sector"] == "Unclassified"
        assert messy["volume_authorized"] == 0.0
        assert messy["term_years"] == 0
        assert messy["expiration_date"] == "N/A"

    @pytest.mark.parametrize("rows", [None, []])
    def test_empty_input(self, rows):
        df = normalize_records(rows)
        assert df.empty
        assert list(df.columns) == CANONICAL_COLUMNS

    def test_duplicate_source_ids_made_unique(self):
        df = normalize_records([{"id": 5}, {"id": 5}, {"id": 5}])
        assert df["id"].tolist() == [5, "5-2", "5-3"]

    def test_ids_unique_across_snapshot(self, sample_df):
        assert sample_df["id"].astype(str).is_unique


def test_alias_table_covers_scalar_fields():
    scalar = set(CANONICAL_COLUMNS) - {"annual_consumption"}
    assert scalar <= set(FIELD_ALIASES)


@pytest.mark.parametrize("status,expected", [
    ("Active", True),
    ("completed", True),
    ("Activo", True),
    (" Completado ", True),
    ("En proceso", False),
    ("Mantenimiento", False),
    ("N/A", False),
])
def test_is_success_status(status, expected):
    assert is_success_status(status) is expected

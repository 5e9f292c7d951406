"""
Tests for app.py run through Streamlit's AppTest harness.

requests.get is replaced with a counting stub; no network access.
"""
from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

from water_permits import data_loader

APP_PATH = str(Path(__file__).resolve().parent.parent / "app.py")


class FakeResponse:
    status_code = 200
    text = ""

    def __init__(self, rows):
        self._rows = rows

    def raise_for_status(self):
        pass

    def json(self):
        return self._rows


@pytest.fixture
def counted_source(monkeypatch, scenario_rows):
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setenv("SUPABASE_KEY", "secret")
    calls = []

    def _get(url, **kwargs):
        calls.append(url)
        return FakeResponse(scenario_rows)

    monkeypatch.setattr(data_loader.requests, "get", _get)
    return calls


def test_each_session_fetches_once(counted_source):
    first = AppTest.from_file(APP_PATH, default_timeout=30).run()
    assert not first.exception
    first.run()
    assert len(counted_source) == 1

    # a browser refresh is a new session and must hit the data source again
    second = AppTest.from_file(APP_PATH, default_timeout=30).run()
    assert not second.exception
    assert len(counted_source) == 2


def test_invalid_log_level_still_renders(counted_source, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "verbose")
    at = AppTest.from_file(APP_PATH, default_timeout=30).run()
    assert not at.exception

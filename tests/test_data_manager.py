"""Tests for dataset and topology loading."""

import json

import pandas as pd
import pytest
import requests

from gapviz import data_manager
from gapviz.aggregate import gender_gap_rows


@pytest.fixture(autouse=True)
def _fresh_caches(tmp_path, monkeypatch):
    monkeypatch.setenv("DATA_CACHE_DIR", str(tmp_path / "cache"))
    data_manager._load_csv.cache_clear()
    data_manager._load_topology.cache_clear()
    yield
    data_manager._load_csv.cache_clear()
    data_manager._load_topology.cache_clear()


class _Response:
    def __init__(self, payload, status=200):
        self._payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self._payload


class TestCsvLoading:
    def test_round_trip_through_aggregation(self, tmp_path, gender_raw):
        path = tmp_path / "gender.csv"
        gender_raw.to_csv(path, index=False)
        loaded = data_manager.load_gender_data(path)
        assert len(loaded) == len(gender_raw)
        gaps = gender_gap_rows(loaded)
        row = gaps[(gaps["decade"] == 2000) & (gaps["region"] == "South Asia")].iloc[0]
        assert row["secondary_gap"] == -20.0

    def test_missing_file_gives_empty_frame(self, tmp_path, caplog):
        with caplog.at_level("ERROR", logger="gapviz.data_manager"):
            loaded = data_manager.load_life_data(tmp_path / "absent.csv")
        assert loaded.empty
        assert "Error loading dataset" in caplog.text

    def test_empty_file_gives_empty_frame(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("", encoding="utf-8")
        assert data_manager.load_gender_data(path).empty

    def test_loaded_once(self, tmp_path, monkeypatch):
        path = tmp_path / "life.csv"
        pd.DataFrame({"region": ["A"], "Year": [1990]}).to_csv(path, index=False)
        calls = []
        original = data_manager.read_dataset

        def counting(source, sep=","):
            calls.append(source)
            return original(source, sep=sep)

        monkeypatch.setattr(data_manager, "read_dataset", counting)
        data_manager.load_life_data(path)
        data_manager.load_life_data(path)
        assert len(calls) == 1
        data_manager.load_life_data(path, force_reload=True)
        assert len(calls) == 2

    def test_callers_get_independent_copies(self, tmp_path):
        path = tmp_path / "life.csv"
        pd.DataFrame({"region": ["A"], "Year": [1990]}).to_csv(path, index=False)
        first = data_manager.load_life_data(path)
        first.loc[0, "region"] = "changed"
        assert data_manager.load_life_data(path).loc[0, "region"] == "A"


class TestTopologyLoading:
    def test_local_file(self, tmp_path, tiny_topology):
        path = tmp_path / "world.json"
        path.write_text(json.dumps(tiny_topology), encoding="utf-8")
        assert data_manager.load_world_topology(path) == tiny_topology

    def test_not_a_topology(self, tmp_path):
        path = tmp_path / "world.json"
        path.write_text(json.dumps({"type": "FeatureCollection"}), encoding="utf-8")
        assert data_manager.load_world_topology(path) is None

    def test_download_is_cached(self, monkeypatch, tiny_topology):
        calls = []

        def fake_get(url, timeout):
            calls.append(url)
            return _Response(tiny_topology)

        monkeypatch.setattr(data_manager.requests, "get", fake_get)
        url = "https://example.org/countries-110m.json"
        assert data_manager.load_world_topology(url) == tiny_topology
        assert data_manager.topology_cache_path(url).exists()

        assert data_manager.load_world_topology(url, force_reload=True) == tiny_topology
        assert len(calls) == 1

    def test_download_failure_is_logged(self, monkeypatch, caplog):
        def failing_get(url, timeout):
            return _Response({}, status=503)

        monkeypatch.setattr(data_manager.requests, "get", failing_get)
        with caplog.at_level("ERROR", logger="gapviz.data_manager"):
            result = data_manager.load_world_topology("https://example.org/world.json")
        assert result is None
        assert "Error loading world map" in caplog.text


def test_cache_dir_honours_env(tmp_path):
    assert data_manager._resolve_cache_dir() == (tmp_path / "cache").resolve()

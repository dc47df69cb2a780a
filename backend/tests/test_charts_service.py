import json
import os
from datetime import date

import pytest

from app.config import AppConfig
from application.charts_service import CHARTS_JSON_FILE, ChartsService, bin_labels
from application.tasks import export_charts
from domain.summary import Summary, SummaryRecord
from infrastructure.memory_store import InMemorySummaryRepository


def _service():
    return ChartsService(AppConfig(raw={}))


def _record(day, **fields):
    return SummaryRecord(day=day, summary=Summary(**fields))


def test_bin_labels():
    assert bin_labels([0, 1, 100, 500, 1000000]) == ["0", "1-99", "100-499", "500-999,999", "1,000,000+"]


def test_player_types_fold_small_clients_into_others():
    record = _record(
        date(2024, 1, 1),
        num_instances=10,
        player_types={"NavidromeUI": 700, "Symfonium": 299, "Rare": 1},
    )
    chart = _service().player_types_chart([record])
    assert chart["data"] == [
        {"name": "NavidromeUI", "value": 700},
        {"name": "Symfonium", "value": 299},
        {"name": "Others (less than 0.2%)", "value": 1},
    ]


def test_players_per_installation_regroups_counts():
    record = _record(date(2024, 1, 1), num_instances=6, players={"0": 1, "3": 2, "7": 1, "12": 1, "99": 1})
    chart = _service().players_per_installation_chart([record])
    assert chart["series"][0]["data"] == [1, 0, 0, 2, 0, 0, 1, 1, 0, 1]


def test_build_charts_trims_and_orders(records_factory):
    records = records_factory([100, 110, 10])
    payload = _service().build_charts(records)

    assert payload["totalInstances"] == 110
    assert [chart["id"] for chart in payload["charts"]] == [
        "versions", "os", "players", "playerTypes", "tracks", "albumsArtists",
    ]
    versions = payload["charts"][0]["options"]
    assert versions["dates"] == ["Jan 01, 2024", "Jan 02, 2024"]
    assert versions["series"][0] == {"name": "All", "data": [100, 110]}
    assert versions["series"][-1] == {"name": "Others", "data": [0, 0]}


def test_build_charts_optional_per_installation(records_factory):
    payload = _service().build_charts(records_factory([5]), include_per_installation=True)
    assert "playersPerInstallation" in [chart["id"] for chart in payload["charts"]]


def test_build_charts_empty():
    assert _service().build_charts([]) is None


def test_tracks_chart_follows_threshold_order():
    record = _record(date(2024, 1, 1), num_instances=3, tracks={"100": 2, "0": 1})
    service = ChartsService(AppConfig(raw={"bins": {"tracks": [0, 1, 100]}}))
    chart = service.tracks_chart([record])
    assert chart["labels"] == ["0", "1-99", "100+"]
    assert chart["series"][0]["data"] == [1, 0, 2]


def test_export_writes_charts_json(tmp_path, records_factory):
    summaries = InMemorySummaryRepository()
    for record in records_factory([3, 4]):
        summaries.save(record.day, record.summary)

    path = export_charts(summaries, _service(), tmp_path / "out")

    assert path == tmp_path / "out" / CHARTS_JSON_FILE
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["totalInstances"] == 4
    assert not list((tmp_path / "out").glob("*.tmp"))


def test_export_without_data_writes_nothing(tmp_path):
    assert export_charts(InMemorySummaryRepository(), _service(), tmp_path) is None
    assert not (tmp_path / CHARTS_JSON_FILE).exists()


def test_failed_export_leaves_no_temp_file(tmp_path, monkeypatch, records_factory):
    def _fail(src, dst):
        raise OSError("read-only filesystem")

    monkeypatch.setattr(os, "replace", _fail)
    with pytest.raises(OSError):
        _service().export_charts_json(records_factory([3]), tmp_path)

    monkeypatch.undo()
    assert list(tmp_path.iterdir()) == []

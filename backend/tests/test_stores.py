import os
from datetime import date, datetime

import pytest

from domain.summary import Stats, Summary
from infrastructure.database import make_engine
from infrastructure.file_store import FileSummaryRepository
from infrastructure.memory_store import InMemoryReportRepository, InMemorySummaryRepository
from infrastructure.repository import SummaryPersistenceError
from infrastructure.sqlite_repo import SQLiteReportRepository

DAY = date(2024, 3, 10)

SUMMARY = Summary(
    num_instances=2,
    num_active_users=3,
    versions={"0.54.2": 2},
    music_fs={"ext4": 1, "unknown": 1},
    track_stats=Stats(min=10, max=20, mean=15.0, median=15.0, std_dev=5.0),
)


# Summary serialization --------------------------------------------------
def test_summary_dict_omits_empty_values():
    data = SUMMARY.to_dict()
    assert data["numInstances"] == 2
    assert data["musicFS"] == {"ext4": 1, "unknown": 1}
    assert data["trackStats"]["stdDev"] == 5.0
    assert "os" not in data
    assert "albumStats" not in data
    assert Summary.from_dict(data) == SUMMARY


def test_summary_from_json_rejects_non_object():
    with pytest.raises(ValueError):
        Summary.from_json("[1, 2]")


# File store -------------------------------------------------------------
def test_file_store_round_trip(tmp_path):
    store = FileSummaryRepository(tmp_path)
    store.save(DAY, SUMMARY)

    assert store.path_for(DAY) == tmp_path / "summaries" / "2024" / "03" / "summary-2024-03-10.json"
    assert store.get(DAY) == SUMMARY
    assert store.get(date(2024, 3, 11)) is None


def test_file_store_lists_in_order_and_skips_bad_files(tmp_path):
    store = FileSummaryRepository(tmp_path)
    store.save(date(2024, 3, 12), SUMMARY)
    store.save(date(2024, 2, 28), SUMMARY)
    store.save(date(2024, 3, 1), Summary())

    broken = store.path_for(date(2024, 3, 5))
    broken.parent.mkdir(parents=True, exist_ok=True)
    broken.write_text("{not json", encoding="utf-8")
    (broken.parent / "summary-2024-13-40.json").write_text("{}", encoding="utf-8")

    days = [record.day for record in store.list_records()]
    assert days == [date(2024, 2, 28), date(2024, 3, 12)]


def test_file_store_failed_write_keeps_previous(tmp_path, monkeypatch):
    store = FileSummaryRepository(tmp_path)
    store.save(DAY, SUMMARY)

    def _fail(src, dst):
        raise OSError("read-only filesystem")

    monkeypatch.setattr(os, "replace", _fail)
    with pytest.raises(SummaryPersistenceError):
        store.save(DAY, Summary(num_instances=99))

    monkeypatch.undo()
    assert store.get(DAY) == SUMMARY
    assert [p.name for p in store.path_for(DAY).parent.iterdir()] == ["summary-2024-03-10.json"]


def test_file_store_empty_folder(tmp_path):
    assert FileSummaryRepository(tmp_path / "missing").list_records() == []


# Memory stores ----------------------------------------------------------
def test_memory_summary_store_skips_empty_days():
    store = InMemorySummaryRepository()
    store.save(DAY, SUMMARY)
    store.save(date(2024, 3, 9), Summary())
    assert [record.day for record in store.list_records()] == [DAY]
    assert store.raw_document(DAY) == SUMMARY.to_json()


def test_memory_report_store_purge(report_factory):
    repo = InMemoryReportRepository()
    repo.save_report(report_factory("a", timestamp=datetime(2024, 1, 1)))
    repo.save_report(report_factory("b", timestamp=datetime(2024, 3, 1)))
    assert repo.purge_older_than(datetime(2024, 2, 1)) == 1
    assert [r.instance_id for r in repo.select_day(date(2024, 3, 1))] == ["b"]


# SQLite report store ----------------------------------------------------
@pytest.fixture
def sqlite_repo(tmp_path):
    return SQLiteReportRepository(make_engine(tmp_path / "reports.db"))


def test_sqlite_select_day_latest_per_instance(sqlite_repo, report_factory):
    sqlite_repo.save_report(report_factory("b", timestamp=datetime(2024, 3, 10, 8), version="b1"))
    sqlite_repo.save_report(report_factory("a", timestamp=datetime(2024, 3, 10, 9), version="a1"))
    sqlite_repo.save_report(report_factory("a", timestamp=datetime(2024, 3, 10, 22), version="a2"))
    sqlite_repo.save_report(report_factory("a", timestamp=datetime(2024, 3, 11, 1), version="a3"))
    sqlite_repo.save_report(report_factory("c", timestamp=datetime(2024, 3, 9, 23), version="c1"))

    reports = list(sqlite_repo.select_day(DAY))

    assert [(r.instance_id, r.version) for r in reports] == [("a", "a2"), ("b", "b1")]
    assert reports[0].library.active_players == {"NavidromeUI_1.0": 1}


def test_sqlite_collapses_duplicate_timestamps(sqlite_repo, report_factory):
    stamp = datetime(2024, 3, 10, 12)
    sqlite_repo.save_report(report_factory("a", timestamp=stamp))
    sqlite_repo.save_report(report_factory("a", timestamp=stamp))
    assert len(list(sqlite_repo.select_day(DAY))) == 1


def test_sqlite_purge(sqlite_repo, report_factory):
    sqlite_repo.save_report(report_factory("a", timestamp=datetime(2024, 1, 1)))
    sqlite_repo.save_report(report_factory("b", timestamp=datetime(2024, 3, 10)))
    assert sqlite_repo.purge_older_than(datetime(2024, 2, 1)) == 1
    assert [r.instance_id for r in sqlite_repo.select_day(DAY)] == ["b"]


def test_sqlite_keeps_naive_utc_timestamps(sqlite_repo, report_factory):
    from infrastructure.models import ReportModel, utc_now

    stamp = datetime(2024, 3, 10, 23, 59, 59)
    sqlite_repo.save_report(report_factory("a", timestamp=stamp))

    (report,) = sqlite_repo.select_day(DAY)
    assert report.timestamp == stamp
    assert report.timestamp.tzinfo is None
    assert ReportModel.__table__.c.time.type.timezone is False
    assert utc_now().tzinfo is None

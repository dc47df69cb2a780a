"""Shared fixtures. The in-memory backend is selected before deps is imported."""
import os
import tempfile
from datetime import date, datetime, timedelta

os.environ["STORAGE"] = "memory"
os.environ.setdefault("DATA_FOLDER", tempfile.mkdtemp(prefix="insights-test-"))

import pytest

from domain.report import FSInfo, LibraryInfo, OSInfo, Report
from domain.summary import Summary, SummaryRecord


def make_report(
    instance_id="i1",
    timestamp=None,
    version="0.54.0 (abcdef1234567890)",
    os_type="linux",
    arch="amd64",
    containerized=True,
    distro="",
    tracks=1500,
    albums=120,
    artists=80,
    playlists=2,
    shares=0,
    radios=1,
    libraries=1,
    active_users=1,
    players=None,
    music_fs="ext4",
    data_fs="ext4",
):
    return Report(
        instance_id=instance_id,
        timestamp=timestamp or datetime(2024, 3, 10, 12, 0),
        version=version,
        os=OSInfo(type=os_type, distro=distro, arch=arch, containerized=containerized),
        fs={
            "music": FSInfo(type=music_fs) if music_fs is not None else None,
            "data": FSInfo(type=data_fs) if data_fs is not None else None,
        },
        library=LibraryInfo(
            tracks=tracks,
            albums=albums,
            artists=artists,
            playlists=playlists,
            shares=shares,
            radios=radios,
            libraries=libraries,
            active_users=active_users,
            active_players=dict(players or {"NavidromeUI_1.0": 1}),
        ),
    )


def make_records(counts, start=date(2024, 1, 1), versions=None):
    """Consecutive daily records; a ``None`` count leaves that day out."""
    records = []
    for offset, count in enumerate(counts):
        if count is None:
            continue
        summary = Summary(
            num_instances=count,
            versions=dict(versions[offset]) if versions else {"1.0": count},
            os={"Linux - amd64": count},
            player_types={"NavidromeUI": count},
        )
        records.append(SummaryRecord(day=start + timedelta(days=offset), summary=summary))
    return records


@pytest.fixture
def report_factory():
    return make_report


@pytest.fixture
def records_factory():
    return make_records

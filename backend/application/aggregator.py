"""Daily summarization: one day of reports in, one Summary out."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional

from app.config import AppConfig
from domain.normalizer import (
    ALBUM_BINS,
    ARTIST_BINS,
    TRACK_BINS,
    map_fs,
    map_os,
    map_player_types,
    map_to_bins,
    map_version,
)
from domain.report import Report
from domain.statistics import calc_stats
from domain.summary import Summary
from infrastructure.repository import ReportRepository, SummaryPersistenceError, SummaryRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BinSet:
    tracks: List[int] = field(default_factory=lambda: list(TRACK_BINS))
    albums: List[int] = field(default_factory=lambda: list(ALBUM_BINS))
    artists: List[int] = field(default_factory=lambda: list(ARTIST_BINS))

    @classmethod
    def from_config(cls, config: AppConfig) -> "BinSet":
        bins_cfg = config.bins or {}
        return cls(
            tracks=sorted(int(v) for v in bins_cfg.get("tracks", TRACK_BINS)),
            albums=sorted(int(v) for v in bins_cfg.get("albums", ALBUM_BINS)),
            artists=sorted(int(v) for v in bins_cfg.get("artists", ARTIST_BINS)),
        )


def _bump(counters: Dict[str, int], key: str) -> None:
    counters[key] = counters.get(key, 0) + 1


def summarize_reports(reports: Iterable[Report], bins: Optional[BinSet] = None) -> Optional[Summary]:
    """Aggregate one day's reports, at most one per instance.

    Returns ``None`` when the day has no reports at all.
    """
    bins = bins or BinSet()
    num_instances = 0
    num_active_users = 0
    counters: Dict[str, Dict[str, int]] = {
        name: {}
        for name in (
            "versions", "os", "distros", "player_types", "players", "users",
            "tracks", "albums", "artists", "music_fs", "data_fs",
        )
    }
    # tracks/albums/artists of 0 mean "not scanned yet" and stay out of the stats
    samples: Dict[str, List[int]] = {
        name: [] for name in ("tracks", "albums", "artists", "playlists", "shares", "radios", "libraries")
    }

    for report in reports:
        lib = report.library
        num_instances += 1
        num_active_users += lib.active_users
        _bump(counters["versions"], map_version(report.version))
        _bump(counters["os"], map_os(report.os))
        if report.os.type == "linux" and not report.os.containerized:
            _bump(counters["distros"], report.os.distro)
        _bump(counters["users"], str(lib.active_users))
        _bump(counters["music_fs"], map_fs(report.mount("music")))
        _bump(counters["data_fs"], map_fs(report.mount("data")))
        total_players = map_player_types(lib.active_players, counters["player_types"])
        _bump(counters["players"], str(total_players))

        map_to_bins(lib.tracks, bins.tracks, counters["tracks"])
        map_to_bins(lib.albums, bins.albums, counters["albums"])
        map_to_bins(lib.artists, bins.artists, counters["artists"])

        for name, value in (("tracks", lib.tracks), ("albums", lib.albums), ("artists", lib.artists)):
            if value > 0:
                samples[name].append(value)
        samples["playlists"].append(lib.playlists)
        samples["shares"].append(lib.shares)
        samples["radios"].append(lib.radios)
        samples["libraries"].append(lib.libraries)

    if num_instances == 0:
        return None

    return Summary(
        num_instances=num_instances,
        num_active_users=num_active_users,
        track_stats=calc_stats(samples["tracks"]),
        album_stats=calc_stats(samples["albums"]),
        artist_stats=calc_stats(samples["artists"]),
        playlist_stats=calc_stats(samples["playlists"]),
        share_stats=calc_stats(samples["shares"]),
        radio_stats=calc_stats(samples["radios"]),
        library_stats=calc_stats(samples["libraries"]),
        **counters,
    )


class SummaryService:
    """Runs the daily aggregation against the report and summary stores."""

    def __init__(
        self,
        config: AppConfig,
        reports: ReportRepository,
        summaries: SummaryRepository,
    ):
        self.config = config
        self.reports = reports
        self.summaries = summaries
        self._apply_bins_config()

    def _apply_bins_config(self) -> None:
        self.bins = BinSet.from_config(self.config)

    def update_config(self, config: AppConfig) -> None:
        self.config = config
        self._apply_bins_config()

    def summarize_day(self, day: date) -> Optional[Summary]:
        """Summarize ``day`` and overwrite its stored summary.

        Nothing is stored for a day without reports. Storage failures are
        raised as ``SummaryPersistenceError``.
        """
        logger.info("Summarizing data for %s", day.isoformat())
        summary = summarize_reports(self.reports.select_day(day), self.bins)
        if summary is None:
            logger.info("No data to summarize for %s", day.isoformat())
            return None

        try:
            self.summaries.save(day, summary)
        except SummaryPersistenceError:
            logger.exception("Error saving summary for %s", day.isoformat())
            raise
        except OSError as exc:
            logger.exception("Error saving summary for %s", day.isoformat())
            raise SummaryPersistenceError(f"Cannot write summary for {day}: {exc}") from exc
        logger.info("Stored summary for %s: %d instances", day.isoformat(), summary.num_instances)
        return summary

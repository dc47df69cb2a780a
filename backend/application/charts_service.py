"""Chart-ready payloads built from the stored daily summaries.

Only data selection lives here; colors, sizes and labels styling are the
frontend's business.
"""
from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from app.config import AppConfig
from domain.normalizer import ALBUM_BINS, ARTIST_BINS, TRACK_BINS
from domain.summary import SummaryRecord
from .reporting import (
    INCOMPLETE_THRESHOLD,
    OTHERS_LABEL,
    TOP_VERSIONS_COUNT,
    VERSION_SELECTION_DAYS,
    build_category_series,
    build_time_series,
    exclude_incomplete_days,
)

logger = logging.getLogger(__name__)

CHARTS_JSON_FILE = "charts.json"
PLAYER_GROUP_THRESHOLD = 0.002

# (label, min, max) with max None meaning unbounded
PLAYERS_PER_INSTALLATION_BINS = (
    ("0", 0, 0),
    ("1", 1, 1),
    ("2", 2, 2),
    ("3", 3, 3),
    ("4", 4, 4),
    ("5", 5, 5),
    ("6-10", 6, 10),
    ("11-20", 11, 20),
    ("21-50", 21, 50),
    ("50+", 51, None),
)


def bin_labels(bins: Sequence[int]) -> List[str]:
    """Human range labels for ascending thresholds, e.g. ``1-99``, ``100-499``, ``1,000,000+``."""
    labels = []
    for index, low in enumerate(bins):
        if index + 1 == len(bins):
            labels.append(f"{low:,}+")
            continue
        high = bins[index + 1] - 1
        labels.append(f"{low:,}" if high == low else f"{low:,}-{high:,}")
    return labels


def _sorted_slices(counts: Dict[str, int]) -> List[Dict[str, Any]]:
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [{"name": name, "value": value} for name, value in ranked]


class ChartsService:
    def __init__(self, config: AppConfig):
        self.config = config
        self._apply_charts_config()

    def _apply_charts_config(self) -> None:
        charts_cfg = self.config.charts or {}
        bins_cfg = self.config.bins or {}
        self.top_versions = int(charts_cfg.get("top_versions", TOP_VERSIONS_COUNT))
        self.version_selection_days = int(charts_cfg.get("version_selection_days", VERSION_SELECTION_DAYS))
        self.incomplete_threshold = float(charts_cfg.get("incomplete_threshold", INCOMPLETE_THRESHOLD))
        self.player_group_threshold = float(charts_cfg.get("player_group_threshold", PLAYER_GROUP_THRESHOLD))
        self.track_bins = sorted(int(v) for v in bins_cfg.get("tracks", TRACK_BINS))
        self.album_bins = sorted(int(v) for v in bins_cfg.get("albums", ALBUM_BINS))
        self.artist_bins = sorted(int(v) for v in bins_cfg.get("artists", ARTIST_BINS))

    def update_config(self, config: AppConfig) -> None:
        self.config = config
        self._apply_charts_config()

    # Time series ---------------------------------------------------------
    def versions_chart(self, records: Sequence[SummaryRecord]) -> Dict[str, Any]:
        data = build_category_series(
            records,
            lambda summary: summary.versions,
            top_n=self.top_versions,
            window_days=self.version_selection_days,
        )
        series = [{"name": "All", "data": data.all}]
        series.extend({"name": label, "data": data.series[label]} for label in data.categories)
        series.append({"name": OTHERS_LABEL, "data": data.others})
        return {
            "title": "Number of Installations",
            "dates": data.labels,
            "gaps": [gap.labels() for gap in data.gaps],
            "series": series,
        }

    def players_chart(self, records: Sequence[SummaryRecord]) -> Dict[str, Any]:
        ts = build_time_series(records)
        return {
            "title": "Number of Active Clients",
            "dates": ts.labels,
            "gaps": [gap.labels() for gap in ts.find_gaps()],
            "series": [
                {
                    "name": "Total Clients",
                    "data": ts.values(lambda summary: sum(summary.player_types.values())),
                }
            ],
        }

    # Latest-day snapshots ------------------------------------------------
    def os_chart(self, records: Sequence[SummaryRecord]) -> Dict[str, Any]:
        latest = records[-1].summary
        return {"title": "Operating systems and architectures", "data": _sorted_slices(latest.os)}

    def player_types_chart(self, records: Sequence[SummaryRecord]) -> Dict[str, Any]:
        latest = records[-1].summary
        total = sum(latest.player_types.values())
        threshold = total * self.player_group_threshold
        kept: Dict[str, int] = {}
        others = 0
        for player_type, count in latest.player_types.items():
            if count < threshold:
                others += count
            else:
                kept[player_type] = count

        data = _sorted_slices(kept)
        if others:
            data.append({"name": f"Others (less than {self.player_group_threshold * 100:g}%)", "value": others})
            data.sort(key=lambda item: -item["value"])
        return {"title": "Client types", "data": data}

    def players_per_installation_chart(self, records: Sequence[SummaryRecord]) -> Dict[str, Any]:
        latest = records[-1].summary
        values = [0] * len(PLAYERS_PER_INSTALLATION_BINS)
        for key, instances in latest.players.items():
            try:
                players = int(key)
            except ValueError:
                continue
            for index, (_, low, high) in enumerate(PLAYERS_PER_INSTALLATION_BINS):
                if players >= low and (high is None or players <= high):
                    values[index] += instances
                    break
        return {
            "title": "Active Clients per Installation",
            "labels": [label for label, _, _ in PLAYERS_PER_INSTALLATION_BINS],
            "series": [{"name": "Installations", "data": values}],
        }

    def tracks_chart(self, records: Sequence[SummaryRecord]) -> Dict[str, Any]:
        latest = records[-1].summary
        return {
            "title": "Number of Tracks in Library",
            "labels": bin_labels(self.track_bins),
            "series": [
                {"name": "Installations", "data": [latest.tracks.get(str(b), 0) for b in self.track_bins]},
            ],
        }

    def albums_artists_chart(self, records: Sequence[SummaryRecord]) -> Dict[str, Any]:
        latest = records[-1].summary
        # albums and artists share the label axis of the album thresholds
        return {
            "title": "Albums and Artists in Library",
            "labels": bin_labels(self.album_bins),
            "series": [
                {"name": "Albums", "data": [latest.albums.get(str(b), 0) for b in self.album_bins]},
                {"name": "Artists", "data": [latest.artists.get(str(b), 0) for b in self.artist_bins]},
            ],
        }

    # Page ----------------------------------------------------------------
    def build_charts(
        self,
        records: Sequence[SummaryRecord],
        include_per_installation: bool = False,
    ) -> Optional[Dict[str, Any]]:
        """Trim incomplete days and build every chart; ``None`` when nothing is left."""
        trimmed = exclude_incomplete_days(records, self.incomplete_threshold)
        if not trimmed:
            return None

        charts = [
            {"id": "versions", "options": self.versions_chart(trimmed)},
            {"id": "os", "options": self.os_chart(trimmed)},
            {"id": "players", "options": self.players_chart(trimmed)},
            {"id": "playerTypes", "options": self.player_types_chart(trimmed)},
        ]
        if include_per_installation:
            charts.append(
                {"id": "playersPerInstallation", "options": self.players_per_installation_chart(trimmed)}
            )
        charts.append({"id": "tracks", "options": self.tracks_chart(trimmed)})
        charts.append({"id": "albumsArtists", "options": self.albums_artists_chart(trimmed)})

        return {
            "totalInstances": trimmed[-1].summary.num_instances,
            "lastUpdated": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "charts": charts,
        }

    def export_charts_json(self, records: Sequence[SummaryRecord], output_dir: Path) -> Optional[Path]:
        payload = self.build_charts(records)
        if payload is None:
            logger.info("No data to export")
            return None

        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / CHARTS_JSON_FILE
        tmp_path = output_path.with_suffix(".json.tmp")
        try:
            tmp_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, output_path)
        except OSError:
            if tmp_path.exists():
                tmp_path.unlink()
            raise
        logger.info("Exported charts to %s", output_path)
        return output_path

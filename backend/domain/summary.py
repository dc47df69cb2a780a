"""Daily aggregate of all qualifying reports, plus its JSON form."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Optional

# (attribute, json key) pairs, in serialization order
COUNTER_FIELDS = (
    ("versions", "versions"),
    ("os", "os"),
    ("distros", "distros"),
    ("player_types", "playerTypes"),
    ("players", "players"),
    ("users", "users"),
    ("tracks", "tracks"),
    ("albums", "albums"),
    ("artists", "artists"),
    ("music_fs", "musicFS"),
    ("data_fs", "dataFS"),
)

STATS_FIELDS = (
    ("track_stats", "trackStats"),
    ("album_stats", "albumStats"),
    ("artist_stats", "artistStats"),
    ("playlist_stats", "playlistStats"),
    ("share_stats", "shareStats"),
    ("radio_stats", "radioStats"),
    ("library_stats", "libraryStats"),
)


@dataclass(frozen=True)
class Stats:
    min: int
    max: int
    mean: float
    median: float
    std_dev: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min": self.min,
            "max": self.max,
            "mean": self.mean,
            "median": self.median,
            "stdDev": self.std_dev,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Stats":
        return cls(
            min=int(data.get("min", 0)),
            max=int(data.get("max", 0)),
            mean=float(data.get("mean", 0.0)),
            median=float(data.get("median", 0.0)),
            std_dev=float(data.get("stdDev", 0.0)),
        )


@dataclass(frozen=True)
class Summary:
    """One calendar day of aggregated reports. Never mutated once built."""

    num_instances: int = 0
    num_active_users: int = 0
    versions: Dict[str, int] = field(default_factory=dict)
    os: Dict[str, int] = field(default_factory=dict)
    distros: Dict[str, int] = field(default_factory=dict)  # non-containerized Linux only
    player_types: Dict[str, int] = field(default_factory=dict)
    players: Dict[str, int] = field(default_factory=dict)  # active players per instance -> instances
    users: Dict[str, int] = field(default_factory=dict)  # active users per instance -> instances
    tracks: Dict[str, int] = field(default_factory=dict)
    albums: Dict[str, int] = field(default_factory=dict)
    artists: Dict[str, int] = field(default_factory=dict)
    music_fs: Dict[str, int] = field(default_factory=dict)
    data_fs: Dict[str, int] = field(default_factory=dict)
    track_stats: Optional[Stats] = None
    album_stats: Optional[Stats] = None
    artist_stats: Optional[Stats] = None
    playlist_stats: Optional[Stats] = None
    share_stats: Optional[Stats] = None
    radio_stats: Optional[Stats] = None
    library_stats: Optional[Stats] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with camelCase keys, leaving out zero and empty values."""
        data: Dict[str, Any] = {}
        if self.num_instances:
            data["numInstances"] = self.num_instances
        if self.num_active_users:
            data["numActiveUsers"] = self.num_active_users
        for attr, key in COUNTER_FIELDS:
            counter = getattr(self, attr)
            if counter:
                data[key] = {label: counter[label] for label in sorted(counter)}
        for attr, key in STATS_FIELDS:
            stats = getattr(self, attr)
            if stats is not None:
                data[key] = stats.to_dict()
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Summary":
        kwargs: Dict[str, Any] = {
            "num_instances": int(data.get("numInstances", 0)),
            "num_active_users": int(data.get("numActiveUsers", 0)),
        }
        for attr, key in COUNTER_FIELDS:
            kwargs[attr] = {str(k): int(v) for k, v in (data.get(key) or {}).items()}
        for attr, key in STATS_FIELDS:
            raw = data.get(key)
            kwargs[attr] = Stats.from_dict(raw) if raw else None
        return cls(**kwargs)

    @classmethod
    def from_json(cls, text: str) -> "Summary":
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("Summary document must be a JSON object.")
        return cls.from_dict(data)


@dataclass(frozen=True)
class SummaryRecord:
    """A persisted summary tagged with its calendar day."""

    day: date
    summary: Summary

"""Raw usage report submitted by a single running instance."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class OSInfo:
    type: str = ""
    distro: str = ""
    version: str = ""
    arch: str = ""
    containerized: bool = False
    num_cpu: int = 0


@dataclass
class FSInfo:
    """A mounted filesystem; ``type`` is the raw tag, often a magic number."""

    type: str = ""


@dataclass
class LibraryInfo:
    tracks: int = 0
    albums: int = 0
    artists: int = 0
    playlists: int = 0
    shares: int = 0
    radios: int = 0
    libraries: int = 0
    active_users: int = 0
    active_players: Dict[str, int] = field(default_factory=dict)


@dataclass
class Report:
    instance_id: str
    timestamp: datetime
    version: str = ""
    os: OSInfo = field(default_factory=OSInfo)
    fs: Dict[str, Optional[FSInfo]] = field(default_factory=dict)  # mount name -> descriptor
    library: LibraryInfo = field(default_factory=LibraryInfo)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], timestamp: datetime) -> "Report":
        """Build a report from the JSON document an instance submits."""
        os_raw = payload.get("os") or {}
        lib_raw = payload.get("library") or {}
        fs_raw = payload.get("fs") or {}

        fs: Dict[str, Optional[FSInfo]] = {}
        for name, info in fs_raw.items():
            fs[name] = FSInfo(type=str(info.get("type", ""))) if info else None

        players = lib_raw.get("activePlayers") or {}
        return cls(
            instance_id=str(payload.get("id", "")),
            timestamp=timestamp,
            version=str(payload.get("version", "")),
            os=OSInfo(
                type=str(os_raw.get("type", "")),
                distro=str(os_raw.get("distro", "")),
                version=str(os_raw.get("version", "")),
                arch=str(os_raw.get("arch", "")),
                containerized=bool(os_raw.get("containerized", False)),
                num_cpu=int(os_raw.get("numCPU", 0)),
            ),
            fs=fs,
            library=LibraryInfo(
                tracks=int(lib_raw.get("tracks", 0)),
                albums=int(lib_raw.get("albums", 0)),
                artists=int(lib_raw.get("artists", 0)),
                playlists=int(lib_raw.get("playlists", 0)),
                shares=int(lib_raw.get("shares", 0)),
                radios=int(lib_raw.get("radios", 0)),
                libraries=int(lib_raw.get("libraries", 0)),
                active_users=int(lib_raw.get("activeUsers", 0)),
                active_players={str(k): int(v) for k, v in players.items()},
            ),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.instance_id,
            "version": self.version,
            "os": {
                "type": self.os.type,
                "distro": self.os.distro,
                "version": self.os.version,
                "arch": self.os.arch,
                "containerized": self.os.containerized,
                "numCPU": self.os.num_cpu,
            },
            "fs": {name: ({"type": info.type} if info else None) for name, info in self.fs.items()},
            "library": {
                "tracks": self.library.tracks,
                "albums": self.library.albums,
                "artists": self.library.artists,
                "playlists": self.library.playlists,
                "shares": self.library.shares,
                "radios": self.library.radios,
                "libraries": self.library.libraries,
                "activeUsers": self.library.active_users,
                "activePlayers": dict(self.library.active_players),
            },
        }

    def mount(self, name: str) -> Optional[FSInfo]:
        return self.fs.get(name)

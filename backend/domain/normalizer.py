"""Canonical labels for raw report fields and size-bin assignment.

Every function here is total: unexpected input always yields some label,
never an exception.
"""
from __future__ import annotations

import re
from typing import Dict, List, Mapping, Optional, Pattern, Sequence, Tuple

from .report import FSInfo, OSInfo

# Versions ---------------------------------------------------------------
# A parenthesized git sha is cut down to its first 8 hex digits
_VERSION_HASH = re.compile(r"\(([0-9a-fA-F]{8})[0-9a-fA-F]*\)")


def map_version(version: str) -> str:
    return _VERSION_HASH.sub(r"(\1)", version)


# Operating systems ------------------------------------------------------
_OS_NAMES: Dict[str, str] = {
    "darwin": "macOS",
    "windows": "Windows",
    "freebsd": "FreeBSD",
    "netbsd": "NetBSD",
    "openbsd": "OpenBSD",
}


def map_os(os_info: OSInfo) -> str:
    """Friendly ``"<name> - <arch>"`` label for an OS descriptor."""
    if os_info.type == "linux":
        name = "Linux (containerized)" if os_info.containerized else "Linux"
    elif os_info.type in _OS_NAMES:
        name = _OS_NAMES[os_info.type]
    else:
        name = os_info.type.title().replace("bsd", "BSD")
    return f"{name} - {os_info.arch}"


# Player types -----------------------------------------------------------
# First match wins. An empty label drops the entry altogether.
PLAYER_TYPE_RULES: Tuple[Tuple[Pattern[str], str], ...] = (
    (re.compile(r"NavidromeUI.*"), "NavidromeUI"),
    (re.compile(r"supersonic"), "Supersonic"),
    (re.compile(r"(?i)feishin"), ""),  # old versions report once per alias
    (re.compile(r"audioling"), "Audioling"),
    (re.compile(r"^AginMusic.*"), "AginMusic"),
    (re.compile(r"playSub.*"), "play:Sub"),
    (re.compile(r"eu\.callcc\.audrey"), "audrey"),
    (re.compile(r"DSubCC"), ""),  # chromecast
    (re.compile(r"bonob\+.*"), ""),  # transcodings
    (re.compile(r"https?://airsonic.*"), "Airsonic Refix"),
    (re.compile(r"multi-scrobbler.*"), "Multi-Scrobbler"),
    (re.compile(r"SubMusic.*"), "SubMusic"),
    (re.compile(r"(?i)(hiby|_hiby_)"), "HiBy"),
    (re.compile(r"microSub"), "AVSub"),
    (re.compile(r"Stream Music"), "Musiver"),
)


def player_type(player: str) -> str:
    for pattern, label in PLAYER_TYPE_RULES:
        if pattern.search(player):
            return label
    return player


def map_player_types(active_players: Mapping[str, int], totals: Dict[str, int]) -> int:
    """Fold one report's players into ``totals`` and return its player count.

    Aliases of the same client collapse onto one label and contribute the
    largest of their counts, not the sum.
    """
    seen: Dict[str, int] = {}
    for player, count in active_players.items():
        label = player_type(player)
        if not label:
            continue
        seen[label] = max(seen.get(label, 0), count)

    total = 0
    for label, count in seen.items():
        total += count
        totals[label] = totals.get(label, 0) + count
    return total


# Filesystems ------------------------------------------------------------
FS_MAPPINGS: Dict[str, str] = {
    "unknown(0x2011bab0)": "exfat",
    "unknown(0x7366746e)": "ntfs",
    "unknown(0xc36400)": "ceph",
    "unknown(0xf15f)": "ecryptfs",
    "unknown(0xff534d42)": "cifs",
    "unknown(0x786f4256)": "vboxsf",
    "unknown(0xf2f52010)": "f2fs",
    "unknown(0x5346544e)": "ntfs",  # NTFS_SB_MAGIC
    "unknown(0x482b)": "hfs+",
    "unknown(0xca451a4e)": "virtiofs",
    "unknown(0x187)": "autofs",
    # magic numbers reported through a signed 32-bit integer
    "unknown(0x-6edc97c2)": "btrfs",  # 0x9123683e
    "unknown(0x-1acb2be)": "smb2",  # 0xfe534d42
    "unknown(0x-acb2be)": "cifs",  # 0xff534d42
    "unknown(0x-d0adff0)": "f2fs",  # 0xf2f52010
}


def map_fs(fs: Optional[FSInfo]) -> str:
    if fs is None or not fs.type:
        return "unknown"
    return FS_MAPPINGS.get(fs.type, fs.type.lower())


# Size bins --------------------------------------------------------------
TRACK_BINS: List[int] = [0, 1, 100, 500, 1000, 5000, 10000, 20000, 50000, 100000, 500000, 1000000]
ALBUM_BINS: List[int] = [0, 1, 10, 50, 100, 500, 1000, 2000, 5000, 10000, 50000, 100000]
ARTIST_BINS: List[int] = [0, 1, 10, 50, 100, 500, 1000, 2000, 5000, 10000, 50000, 100000]


def map_to_bins(count: int, bins: Sequence[int], counters: Dict[str, int]) -> None:
    """Count ``count`` under the largest threshold not above it.

    ``bins`` must be ascending. Counts below the lowest threshold are left
    out.
    """
    for threshold in reversed(bins):
        if count >= threshold:
            key = str(threshold)
            counters[key] = counters.get(key, 0) + 1
            return

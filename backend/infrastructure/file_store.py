"""Summary store keeping one JSON document per day on disk.

Layout: ``<data_folder>/summaries/YYYY/MM/summary-YYYY-MM-DD.json``.
"""
from __future__ import annotations

import logging
import os
import re
import tempfile
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional

from domain.summary import Summary, SummaryRecord
from .repository import SummaryPersistenceError, SummaryRepository

logger = logging.getLogger(__name__)

SUMMARIES_DIR = "summaries"
DATE_FORMAT = "%Y-%m-%d"
DIR_PERMISSIONS = 0o750
FILE_PERMISSIONS = 0o600

_SUMMARY_FILE = re.compile(r"^summary-(\d{4}-\d{2}-\d{2})\.json$")


class FileSummaryRepository(SummaryRepository):
    def __init__(self, data_folder: Path):
        self.base_dir = Path(data_folder) / SUMMARIES_DIR

    def path_for(self, day: date) -> Path:
        return self.base_dir / f"{day:%Y}" / f"{day:%m}" / f"summary-{day.strftime(DATE_FORMAT)}.json"

    def save(self, day: date, summary: Summary) -> None:
        target = self.path_for(day)
        tmp_name = None
        try:
            target.parent.mkdir(mode=DIR_PERMISSIONS, parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".summary-", suffix=".tmp", dir=target.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(summary.to_json())
            os.chmod(tmp_name, FILE_PERMISSIONS)
            # readers see either the old document or the new one
            os.replace(tmp_name, target)
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise SummaryPersistenceError(f"Cannot write summary for {day}: {exc}") from exc

    def get(self, day: date) -> Optional[Summary]:
        path = self.path_for(day)
        if not path.exists():
            return None
        return Summary.from_json(path.read_text(encoding="utf-8"))

    def list_records(self) -> List[SummaryRecord]:
        if not self.base_dir.exists():
            return []

        records: List[SummaryRecord] = []
        for path in self.base_dir.rglob("summary-*.json"):
            match = _SUMMARY_FILE.match(path.name)
            if not match:
                continue
            try:
                day = datetime.strptime(match.group(1), DATE_FORMAT).date()
            except ValueError as exc:
                logger.warning("Skipping file with invalid date %s: %s", path, exc)
                continue
            try:
                summary = Summary.from_json(path.read_text(encoding="utf-8"))
            except OSError as exc:
                logger.warning("Skipping unreadable file %s: %s", path, exc)
                continue
            except (ValueError, TypeError, AttributeError) as exc:
                logger.warning("Skipping malformed file %s: %s", path, exc)
                continue
            if summary.num_instances == 0:
                continue
            records.append(SummaryRecord(day=day, summary=summary))

        records.sort(key=lambda record: record.day)
        return records

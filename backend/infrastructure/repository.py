"""Abstract repository interfaces for persistence."""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta
from typing import Iterator, List, Optional

from domain.report import Report
from domain.summary import Summary, SummaryRecord


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open [start, end) window covering one calendar day."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


class SummaryPersistenceError(RuntimeError):
    """A summary could not be written; any previous version is left intact."""


class ReportRepository(ABC):
    """Raw report store so memory / SQLite share the same API."""

    @abstractmethod
    def save_report(self, report: Report) -> None:
        raise NotImplementedError

    @abstractmethod
    def select_day(self, day: date) -> Iterator[Report]:
        """Yield the latest report of each instance within ``day``, by instance id."""
        raise NotImplementedError

    @abstractmethod
    def purge_older_than(self, cutoff: datetime) -> int:
        raise NotImplementedError


class SummaryRepository(ABC):
    """One summary per calendar day, overwritten on every save."""

    @abstractmethod
    def save(self, day: date, summary: Summary) -> None:
        raise NotImplementedError

    @abstractmethod
    def get(self, day: date) -> Optional[Summary]:
        raise NotImplementedError

    @abstractmethod
    def list_records(self) -> List[SummaryRecord]:
        """All non-empty summaries, oldest first."""
        raise NotImplementedError

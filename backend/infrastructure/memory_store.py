"""In-memory data stores for tests and throwaway deployments."""
from __future__ import annotations

from datetime import date, datetime
from typing import Dict, Iterator, List, Optional

from domain.report import Report
from domain.summary import Summary, SummaryRecord
from .repository import ReportRepository, SummaryRepository, day_bounds


class InMemoryReportRepository(ReportRepository):
    def __init__(self):
        self._reports: List[Report] = []

    def save_report(self, report: Report) -> None:
        self._reports.append(report)

    def select_day(self, day: date) -> Iterator[Report]:
        start, end = day_bounds(day)
        latest: Dict[str, Report] = {}
        for report in self._reports:
            if not start <= report.timestamp < end:
                continue
            current = latest.get(report.instance_id)
            if current is None or report.timestamp >= current.timestamp:
                latest[report.instance_id] = report
        for instance_id in sorted(latest):
            yield latest[instance_id]

    def purge_older_than(self, cutoff: datetime) -> int:
        kept = [report for report in self._reports if report.timestamp >= cutoff]
        deleted = len(self._reports) - len(kept)
        self._reports = kept
        return deleted


class InMemorySummaryRepository(SummaryRepository):
    """Keeps the serialized JSON so reads go through the same decoding as files."""

    def __init__(self):
        self._documents: Dict[date, str] = {}

    def save(self, day: date, summary: Summary) -> None:
        self._documents[day] = summary.to_json()

    def get(self, day: date) -> Optional[Summary]:
        document = self._documents.get(day)
        if document is None:
            return None
        return Summary.from_json(document)

    def list_records(self) -> List[SummaryRecord]:
        records = []
        for day in sorted(self._documents):
            summary = Summary.from_json(self._documents[day])
            if summary.num_instances == 0:
                continue
            records.append(SummaryRecord(day=day, summary=summary))
        return records

    def raw_document(self, day: date) -> Optional[str]:
        return self._documents.get(day)

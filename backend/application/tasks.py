"""Periodic jobs: summarize recent days, purge raw reports, export charts."""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import List, Optional

from infrastructure.repository import ReportRepository, SummaryPersistenceError, SummaryRepository
from .aggregator import SummaryService
from .charts_service import ChartsService

logger = logging.getLogger(__name__)

SUMMARIZE_LOOKBACK_DAYS = 10
PURGE_RETENTION_DAYS = 60


def summarize_recent(
    service: SummaryService,
    today: date,
    lookback_days: int = SUMMARIZE_LOOKBACK_DAYS,
) -> List[date]:
    """Re-run summarization for ``today`` and the days before it, newest first.

    Late reports keep changing recent days, so they are rebuilt on every
    run. Returns the days whose summary could not be stored.
    """
    failed: List[date] = []
    for offset in range(lookback_days):
        day = today - timedelta(days=offset)
        try:
            service.summarize_day(day)
        except SummaryPersistenceError:
            failed.append(day)
    if failed:
        logger.error("Summarization failed for %s", ", ".join(d.isoformat() for d in failed))
    return failed


def purge_old_reports(
    repository: ReportRepository,
    now: datetime,
    retention_days: int = PURGE_RETENTION_DAYS,
) -> int:
    logger.info("Cleaning reports older than %d days", retention_days)
    return repository.purge_older_than(now - timedelta(days=retention_days))


def export_charts(
    summaries: SummaryRepository,
    charts: ChartsService,
    output_dir: Path,
) -> Optional[Path]:
    logger.info("Exporting charts JSON")
    return charts.export_charts_json(summaries.list_records(), output_dir)

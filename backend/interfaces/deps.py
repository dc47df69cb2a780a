"""Shared singletons for settings, repositories and services.

The storage backend (sqlite | memory) comes from app_config.yaml or the
STORAGE environment variable.
"""
from __future__ import annotations

import logging

from app.config import AppConfig, get_settings
from application.aggregator import SummaryService
from application.charts_service import ChartsService
from infrastructure.repository import ReportRepository, SummaryRepository
from infrastructure.memory_store import InMemoryReportRepository, InMemorySummaryRepository
from infrastructure.file_store import FileSummaryRepository

logger = logging.getLogger(__name__)

settings = get_settings()


def _create_repositories() -> tuple[ReportRepository, SummaryRepository]:
    backend = settings.database_backend
    if backend == "memory":
        return InMemoryReportRepository(), InMemorySummaryRepository()
    elif backend == "sqlite":
        from infrastructure.sqlite_repo import SQLiteReportRepository

        return SQLiteReportRepository(), FileSummaryRepository(settings.data_folder)
    else:
        raise ValueError(f"Unknown storage backend: {backend}. Supported: sqlite, memory")


report_repository, summary_repository = _create_repositories()
summary_service = SummaryService(settings, report_repository, summary_repository)
charts_service = ChartsService(settings)

logger.info("Storage backend: %s", settings.database_backend)


def apply_settings(new_settings: AppConfig) -> None:
    """Update global settings reference and refresh dependent singletons."""
    global settings
    settings = new_settings
    summary_service.update_config(new_settings)
    charts_service.update_config(new_settings)


def reload_settings_from_disk() -> AppConfig:
    """Force re-read of app_config.yaml and propagate changes."""
    get_settings.cache_clear()
    fresh = get_settings()
    apply_settings(fresh)
    return fresh

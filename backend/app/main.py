"""FastAPI entry point for the usage insights service."""
from fastapi import FastAPI
import asyncio
import contextlib
import logging
from datetime import datetime, timezone
from pathlib import Path

from application.tasks import export_charts, purge_old_reports, summarize_recent
from interfaces import charts_router
from interfaces import deps

logging.basicConfig(
    level=str(deps.settings.logging.get("level", "INFO")).upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Usage Insights")

app.include_router(charts_router)


@app.get("/health", tags=["health"])
def health_check() -> dict:
    """Expose a minimal health endpoint to help dev tooling."""
    return {"status": "ok", "configVersion": deps.settings.version}


def run_periodic_jobs() -> None:
    """One pass of summarize, purge and export; blocking."""
    settings = deps.settings
    now = datetime.now(timezone.utc)
    summarize_recent(
        deps.summary_service,
        now.date(),
        int(settings.summarize.get("lookback_days", 10)),
    )
    purge_old_reports(
        deps.report_repository,
        now.replace(tzinfo=None),
        int(settings.retention.get("purge_days", 60)),
    )
    export_charts(
        deps.summary_repository,
        deps.charts_service,
        Path(settings.charts.get("output_dir", "web/chartdata")),
    )


# Background tasks ----------------------------------------------
@app.on_event("startup")
async def _start_background_tasks() -> None:  # pragma: no cover - runtime wiring
    async def _summarize_loop():
        while True:
            try:
                loop = asyncio.get_running_loop()
                await loop.run_in_executor(None, run_periodic_jobs)
            except Exception:
                logger.exception("Periodic jobs failed")
            interval = float(deps.settings.summarize.get("interval_minutes", 120)) * 60
            await asyncio.sleep(interval)

    app.state._summarize_task = asyncio.create_task(_summarize_loop())
    logger.info("Background summarization loop started")


@app.on_event("shutdown")
async def _stop_background_tasks() -> None:  # pragma: no cover - runtime wiring
    task = getattr(app.state, "_summarize_task", None)
    if task:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
    logger.info("Background summarization loop stopped")

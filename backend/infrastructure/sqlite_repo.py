"""SQLite-backed raw report store."""
from __future__ import annotations

import json
import logging
from datetime import date, datetime
from typing import Iterator

from sqlalchemy import and_, delete, func
from sqlalchemy.engine import Engine
from sqlmodel import select

from domain.report import Report
from .repository import ReportRepository, day_bounds
from .database import SessionLocal, init_db
from .models import ReportModel

logger = logging.getLogger(__name__)


class SQLiteReportRepository(ReportRepository):
    def __init__(self, engine: Engine | None = None):
        self._engine = engine
        init_db(engine)

    def save_report(self, report: Report) -> None:
        with SessionLocal(self._engine) as session, session.begin():
            session.add(
                ReportModel(
                    instance_id=report.instance_id,
                    time=report.timestamp,
                    data=json.dumps(report.to_payload()),
                )
            )

    def select_day(self, day: date) -> Iterator[Report]:
        start, end = day_bounds(day)
        latest = (
            select(ReportModel.instance_id, func.max(ReportModel.time).label("max_time"))
            .where(ReportModel.time >= start)
            .where(ReportModel.time < end)
            .group_by(ReportModel.instance_id)
            .subquery()
        )
        statement = (
            select(ReportModel)
            .join(
                latest,
                and_(
                    ReportModel.instance_id == latest.c.instance_id,
                    ReportModel.time == latest.c.max_time,
                ),
            )
            .order_by(ReportModel.instance_id, ReportModel.time.desc(), ReportModel.id.desc())
        )

        with SessionLocal(self._engine) as session:
            previous_id = None
            for model in session.exec(statement):
                # rows sharing the max timestamp would count the instance twice
                if model.instance_id == previous_id:
                    continue
                previous_id = model.instance_id
                try:
                    payload = json.loads(model.data)
                    yield Report.from_payload(payload, model.time)
                except (ValueError, TypeError, AttributeError) as exc:
                    logger.warning("Skipping unparseable report %s from %s: %s", model.id, model.instance_id, exc)

    def purge_older_than(self, cutoff: datetime) -> int:
        with SessionLocal(self._engine) as session, session.begin():
            result = session.execute(delete(ReportModel).where(ReportModel.time < cutoff))
            deleted = result.rowcount or 0
        logger.info("Deleted %d old reports", deleted)
        return deleted

"""SQLModel ORM tables for raw report storage."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, Index
from sqlmodel import SQLModel, Field


def utc_now() -> datetime:
    """Current UTC time as a naive datetime, the form every timestamp is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ReportModel(SQLModel, table=True):
    __table_args__ = (Index("ix_reportmodel_instance_time", "instance_id", "time"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    instance_id: str = Field(index=True)
    # naive UTC; an explicit column keeps the type independent of SQLModel's datetime mapping
    time: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=False), nullable=False, index=True),
    )
    data: str  # JSON payload as submitted

"""Read endpoints for charts and daily summaries, plus a re-summarize trigger."""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from infrastructure.repository import SummaryPersistenceError
from interfaces import deps

router = APIRouter(tags=["insights"])


class ChartEntry(BaseModel):
    id: str
    options: Dict[str, Any]


class ChartsResponse(BaseModel):
    totalInstances: int
    lastUpdated: str
    charts: List[ChartEntry]


class SummaryListItem(BaseModel):
    day: str = Field(..., description="YYYY-MM-DD")
    numInstances: int


class ResummarizeResponse(BaseModel):
    day: str
    stored: bool
    summary: Optional[Dict[str, Any]] = None


def _parse_day(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid day, expected YYYY-MM-DD") from exc


@router.get("/charts", response_model=ChartsResponse)
def get_charts(perInstallation: bool = Query(False)) -> ChartsResponse:
    records = deps.summary_repository.list_records()
    payload = deps.charts_service.build_charts(records, include_per_installation=perInstallation)
    if payload is None:
        raise HTTPException(status_code=404, detail="No data available")
    return ChartsResponse(**payload)


@router.get("/summaries", response_model=List[SummaryListItem])
def list_summaries() -> List[SummaryListItem]:
    return [
        SummaryListItem(day=record.day.isoformat(), numInstances=record.summary.num_instances)
        for record in deps.summary_repository.list_records()
    ]


@router.get("/summaries/{day}")
def get_summary(day: str) -> Dict[str, Any]:
    summary = deps.summary_repository.get(_parse_day(day))
    if summary is None:
        raise HTTPException(status_code=404, detail="Summary not found")
    return summary.to_dict()


@router.post("/summaries/{day}", response_model=ResummarizeResponse)
def resummarize(day: str) -> ResummarizeResponse:
    """Rebuild one day's summary from the raw reports."""
    target = _parse_day(day)
    try:
        summary = deps.summary_service.summarize_day(target)
    except SummaryPersistenceError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return ResummarizeResponse(
        day=target.isoformat(),
        stored=summary is not None,
        summary=summary.to_dict() if summary else None,
    )

"""Metrics endpoints: burndown/burnup, sprint stats, velocity and cumulative flow"""
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from sprintboard.api.errors import service_errors
from sprintboard.config import settings
from sprintboard.database import get_db
from sprintboard.schemas import CumulativeFlow, MetricUnit, SnapshotResult, SprintMetrics, SprintStats, VelocityPoint
from sprintboard.services.metrics import MetricsEngine, metrics_cache
from sprintboard.services.snapshots import SnapshotRecorder
from sprintboard.utils.timeutils import utcnow

router = APIRouter()


def _engine(db: Session) -> MetricsEngine:
    return MetricsEngine(db, cache=metrics_cache)


@router.get("/sprints/{sprint_id}/metrics", response_model=SprintMetrics)
def sprint_metrics(
    sprint_id: int,
    unit: MetricUnit = Query(MetricUnit.CARDS, description="Unit for the burndown and burnup series"),
    db: Session = Depends(get_db),
):
    with service_errors():
        return _engine(db).compute_sprint_metrics(sprint_id, unit=unit)


@router.get("/sprints/{sprint_id}/stats", response_model=SprintStats)
def sprint_stats(sprint_id: int, db: Session = Depends(get_db)):
    with service_errors():
        return _engine(db).compute_sprint_stats(sprint_id)


@router.get("/boards/{board_id}/velocity", response_model=List[VelocityPoint])
def velocity_data(
    board_id: int,
    sprint_count: int = Query(settings.DEFAULT_VELOCITY_SPRINT_COUNT, ge=1),
    db: Session = Depends(get_db),
):
    with service_errors():
        return _engine(db).compute_velocity(board_id, sprint_count)


@router.get("/boards/{board_id}/cumulative-flow", response_model=CumulativeFlow)
def cumulative_flow(
    board_id: int,
    days: int = Query(
        settings.DEFAULT_FLOW_DAYS,
        ge=1,
        le=settings.MAX_FLOW_DAYS,
        description=f"Trailing window in days, at most {settings.MAX_FLOW_DAYS} (MAX_FLOW_DAYS)",
    ),
    db: Session = Depends(get_db),
):
    """Per-column occupancy for the trailing window; missing days are explicit gaps.

    Windows longer than ``MAX_FLOW_DAYS`` are rejected.
    """
    with service_errors():
        return _engine(db).compute_cumulative_flow(board_id, days)


@router.post("/boards/{board_id}/snapshots", response_model=SnapshotResult, status_code=status.HTTP_201_CREATED)
def record_snapshot(board_id: int, db: Session = Depends(get_db)):
    """Capture today's column occupancy for the board."""
    today = utcnow().date()
    with service_errors():
        columns = SnapshotRecorder(db).record_daily_snapshot(board_id, today)
    return SnapshotResult(board_id=board_id, recorded_date=today, columns=columns)

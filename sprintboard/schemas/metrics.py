"""Schemas for sprint metrics, velocity and cumulative flow"""
import datetime
import enum
from typing import List, Optional

from pydantic import BaseModel


class MetricUnit(str, enum.Enum):
    CARDS = "cards"
    POINTS = "points"


class FlowSource(str, enum.Enum):
    SNAPSHOT = "snapshot"
    LIVE = "live"
    GAP = "gap"


class DailyMetric(BaseModel):
    date: datetime.date
    remaining: int
    completed: int
    total: int
    ideal_remaining: Optional[float] = None


class SprintMetrics(BaseModel):
    sprint_id: int
    sprint_name: str
    unit: MetricUnit
    total_cards: int
    completed_cards: int
    total_points: int
    completed_points: int
    burndown: List[DailyMetric]
    burnup: List[DailyMetric]


class SprintStats(BaseModel):
    sprint_id: int
    total_cards: int
    completed_cards: int
    total_points: int
    completed_points: int
    days_elapsed: int
    days_remaining: int


class VelocityPoint(BaseModel):
    sprint_id: int
    sprint_name: str
    completed_cards: int
    completed_points: int


class ColumnCount(BaseModel):
    column_id: int
    column_name: str
    card_count: int
    story_points: int


class FlowSnapshotEntry(BaseModel):
    date: datetime.date
    source: FlowSource
    columns: List[ColumnCount]


class CumulativeFlow(BaseModel):
    board_id: int
    days: int
    # True when any day is served from live state or missing entirely.
    approximated: bool
    snapshots: List[FlowSnapshotEntry]


class SnapshotResult(BaseModel):
    board_id: int
    recorded_date: datetime.date
    columns: List[ColumnCount]

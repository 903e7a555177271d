"""
Pydantic schemas for request/response validation
"""
from sprintboard.schemas.board import BoardCreate, BoardResponse, ColumnCreate, ColumnResponse, ColumnUpdate
from sprintboard.schemas.card import CardCreate, CardMove, CardResponse, CardSprintsUpdate, StoryPointsUpdate
from sprintboard.schemas.sprint import (
    BoardSprints,
    ClosedSprintPage,
    SprintComplete,
    SprintCreate,
    SprintRename,
    SprintResponse,
    SprintUpdate,
)
from sprintboard.schemas.metrics import (
    ColumnCount,
    CumulativeFlow,
    DailyMetric,
    FlowSnapshotEntry,
    FlowSource,
    MetricUnit,
    SnapshotResult,
    SprintMetrics,
    SprintStats,
    VelocityPoint,
)

__all__ = [
    "BoardCreate",
    "BoardResponse",
    "ColumnCreate",
    "ColumnResponse",
    "ColumnUpdate",
    "CardCreate",
    "CardMove",
    "CardResponse",
    "CardSprintsUpdate",
    "StoryPointsUpdate",
    "BoardSprints",
    "ClosedSprintPage",
    "SprintComplete",
    "SprintCreate",
    "SprintRename",
    "SprintResponse",
    "SprintUpdate",
    "ColumnCount",
    "CumulativeFlow",
    "DailyMetric",
    "FlowSnapshotEntry",
    "FlowSource",
    "MetricUnit",
    "SnapshotResult",
    "SprintMetrics",
    "SprintStats",
    "VelocityPoint",
]

"""Schemas for sprints and closed-sprint pages"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from sprintboard.models.sprint import SprintStatus


class SprintCreate(BaseModel):
    name: str = Field(..., max_length=255)
    goal: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class SprintUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    goal: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class SprintRename(BaseModel):
    name: str = Field(..., max_length=255)


class SprintComplete(BaseModel):
    move_incomplete_to_backlog: bool = False


class SprintResponse(BaseModel):
    id: int
    board_id: int
    name: str
    goal: Optional[str]
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    status: SprintStatus
    position: int
    created_at: datetime
    updated_at: datetime
    closed_at: Optional[datetime]

    class Config:
        from_attributes = True


class ClosedSprintPage(BaseModel):
    items: List[SprintResponse]
    has_more: bool
    cursor: Optional[str]
    total_count: int


class BoardSprints(BaseModel):
    active: Optional[SprintResponse]
    upcoming: List[SprintResponse]
    closed: ClosedSprintPage

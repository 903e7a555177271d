"""Schemas for cards, story points and sprint membership"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class CardCreate(BaseModel):
    board_id: int
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    column_id: Optional[int] = None
    story_points: Optional[int] = None


class CardMove(BaseModel):
    column_id: int


class StoryPointsUpdate(BaseModel):
    # Range checks happen in the ledger so the caller gets a ValidationError reason.
    story_points: Optional[int] = None


class CardSprintsUpdate(BaseModel):
    sprint_ids: List[int] = Field(default_factory=list)


class CardResponse(BaseModel):
    id: int
    board_id: int
    column_id: int
    title: str
    description: Optional[str]
    story_points: Optional[int]
    completed_at: Optional[datetime]
    sprint_ids: List[int]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

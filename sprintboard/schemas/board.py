"""Schemas for boards and columns"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class BoardCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class ColumnCreate(BaseModel):
    name: str = Field(..., max_length=255)
    is_backlog: bool = False
    is_done: bool = False


class ColumnUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    is_done: Optional[bool] = None
    is_hidden: Optional[bool] = None


class ColumnResponse(BaseModel):
    id: int
    board_id: int
    name: str
    position: int
    is_backlog: bool
    is_done: bool
    is_hidden: bool
    color: str

    class Config:
        from_attributes = True


class BoardResponse(BaseModel):
    id: int
    name: str
    created_at: datetime
    updated_at: datetime
    columns: List[ColumnResponse] = []

    class Config:
        from_attributes = True

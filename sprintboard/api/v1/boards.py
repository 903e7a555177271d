"""Board and column endpoints"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from sprintboard.api.errors import service_errors
from sprintboard.database import get_db
from sprintboard.schemas import BoardCreate, BoardResponse, ColumnCreate, ColumnResponse, ColumnUpdate
from sprintboard.services import boards

router = APIRouter()


@router.post("/boards", response_model=BoardResponse, status_code=status.HTTP_201_CREATED)
def create_board(board_in: BoardCreate, db: Session = Depends(get_db)):
    """Create a board with its default Backlog, Todo, In Progress and Done columns."""
    with service_errors():
        board = boards.create_board(db, board_in.name)
    return BoardResponse.model_validate(board)


@router.get("/boards/{board_id}", response_model=BoardResponse)
def get_board(board_id: int, db: Session = Depends(get_db)):
    with service_errors():
        board = boards.get_board(db, board_id)
    return BoardResponse.model_validate(board)


@router.delete("/boards/{board_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_board(board_id: int, db: Session = Depends(get_db)):
    with service_errors():
        boards.delete_board(db, board_id)


@router.get("/boards/{board_id}/columns", response_model=List[ColumnResponse])
def list_columns(board_id: int, db: Session = Depends(get_db)):
    with service_errors():
        columns = boards.list_columns(db, board_id)
    return [ColumnResponse.model_validate(column) for column in columns]


@router.post("/boards/{board_id}/columns", response_model=ColumnResponse, status_code=status.HTTP_201_CREATED)
def create_column(board_id: int, column_in: ColumnCreate, db: Session = Depends(get_db)):
    with service_errors():
        column = boards.create_column(
            db,
            board_id,
            column_in.name,
            is_backlog=column_in.is_backlog,
            is_done=column_in.is_done,
        )
    return ColumnResponse.model_validate(column)


@router.patch("/columns/{column_id}", response_model=ColumnResponse)
def update_column(column_id: int, column_update: ColumnUpdate, db: Session = Depends(get_db)):
    update_data = column_update.model_dump(exclude_unset=True)
    with service_errors():
        column = boards.update_column(db, column_id, **update_data)
    return ColumnResponse.model_validate(column)


@router.delete("/columns/{column_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_column(column_id: int, db: Session = Depends(get_db)):
    """Delete a column and its cards. The backlog column is refused with 400."""
    with service_errors():
        boards.delete_column(db, column_id)

"""Boards, columns and the card-movement interface used by kanban views.

Every board is provisioned with exactly one backlog column at creation time.
That column is protected for the lifetime of the board: all delete requests go
through :func:`ensure_column_deletable`.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from sprintboard.exceptions import ValidationError
from sprintboard.models import Board, BoardColumn, Card
from sprintboard.services.backlog import BacklogAssigner
from sprintboard.services.common import load_entity, require_name
from sprintboard.services.story_points import StoryPointLedger, validate_points

logger = logging.getLogger(__name__)

DEFAULT_COLUMNS = (
    {"name": "Backlog", "is_backlog": True, "is_hidden": True, "color": "#6B7280"},
    {"name": "Todo", "color": "#3B82F6"},
    {"name": "In Progress", "color": "#F59E0B"},
    {"name": "Done", "is_done": True, "color": "#10B981"},
)


def get_board(db: Session, board_id: int) -> Board:
    return load_entity(db, Board, board_id)


def get_column(db: Session, column_id: int) -> BoardColumn:
    return load_entity(db, BoardColumn, column_id, label="Column")


def get_card(db: Session, card_id: int) -> Card:
    return load_entity(db, Card, card_id)


def backlog_column(db: Session, board_id: int) -> BoardColumn:
    column = (
        db.query(BoardColumn)
        .filter(BoardColumn.board_id == board_id, BoardColumn.is_backlog.is_(True))
        .first()
    )
    if column is None:
        # Boards are provisioned with one; reaching this means the data was edited by hand.
        raise ValidationError(f"Board {board_id} has no backlog column")
    return column


def list_columns(db: Session, board_id: int) -> List[BoardColumn]:
    get_board(db, board_id)
    return (
        db.query(BoardColumn)
        .filter(BoardColumn.board_id == board_id)
        .order_by(BoardColumn.position.asc(), BoardColumn.id.asc())
        .all()
    )


def create_board(db: Session, name: str) -> Board:
    """Create a board together with its default columns."""
    board = Board(name=require_name(name, "Board name"))
    for position, defaults in enumerate(DEFAULT_COLUMNS):
        board.columns.append(BoardColumn(position=position, **defaults))
    db.add(board)
    db.commit()
    db.refresh(board)
    logger.info("Created board %s with %d default columns", board.id, len(DEFAULT_COLUMNS))
    return board


def delete_board(db: Session, board_id: int) -> None:
    board = get_board(db, board_id)
    db.delete(board)
    db.commit()
    logger.info("Deleted board %s", board_id)


def create_column(
    db: Session,
    board_id: int,
    name: str,
    is_backlog: bool = False,
    is_done: bool = False,
) -> BoardColumn:
    board = get_board(db, board_id)
    clean_name = require_name(name, "Column name")

    if is_backlog:
        existing = (
            db.query(BoardColumn)
            .filter(BoardColumn.board_id == board.id, BoardColumn.is_backlog.is_(True))
            .first()
        )
        if existing is not None:
            raise ValidationError(f"Board {board.id} already has a backlog column ('{existing.name}')")

    max_position = (
        db.query(func.max(BoardColumn.position)).filter(BoardColumn.board_id == board.id).scalar()
    )
    column = BoardColumn(
        board_id=board.id,
        name=clean_name,
        position=(max_position if max_position is not None else -1) + 1,
        is_backlog=is_backlog,
        is_done=is_done,
    )
    db.add(column)
    board.touch()
    db.commit()
    db.refresh(column)
    return column


def update_column(
    db: Session,
    column_id: int,
    name: Optional[str] = None,
    is_done: Optional[bool] = None,
    is_hidden: Optional[bool] = None,
) -> BoardColumn:
    column = get_column(db, column_id)
    if name is not None:
        column.name = require_name(name, "Column name")
    if is_done is not None:
        if is_done and column.is_backlog:
            raise ValidationError("The backlog column cannot be a done column")
        column.is_done = is_done
    if is_hidden is not None:
        column.is_hidden = is_hidden
    column.board.touch()
    db.commit()
    db.refresh(column)
    return column


def ensure_column_deletable(column: BoardColumn) -> None:
    """The one place that decides whether a column may be deleted."""
    if column.is_backlog:
        raise ValidationError(
            f"Column '{column.name}' is the board's backlog column and cannot be deleted"
        )


def delete_column(db: Session, column_id: int) -> None:
    """Delete a column and the cards it holds; the backlog column is refused."""
    column = get_column(db, column_id)
    try:
        ensure_column_deletable(column)
    except ValidationError:
        logger.warning("Refused to delete backlog column %s on board %s", column.id, column.board_id)
        raise
    board = column.board
    db.delete(column)
    board.touch()
    db.commit()


def create_card(
    db: Session,
    board_id: int,
    title: str,
    column_id: Optional[int] = None,
    story_points: Optional[int] = None,
    description: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Card:
    """Create a card, by default in the board's backlog column."""
    board = get_board(db, board_id)
    column = get_column(db, column_id) if column_id is not None else backlog_column(db, board.id)
    if column.board_id != board.id:
        raise ValidationError(f"Column {column.id} does not belong to board {board.id}")

    card = Card(
        board=board,
        column=column,
        title=require_name(title, "Card title"),
        description=description,
        story_points=validate_points(story_points),
    )
    StoryPointLedger(db).record_column_transition(card, None, column, now=now)
    db.add(card)
    board.touch()
    db.commit()
    db.refresh(card)
    return card


def move_card(db: Session, card_id: int, column_id: int, now: Optional[datetime] = None) -> Card:
    """Move a card to another column on its board.

    Entering a done column stamps ``completed_at``; leaving the done columns
    clears it. Entering the backlog column clears sprint membership.
    """
    card = get_card(db, card_id)
    target = get_column(db, column_id)
    if target.board_id != card.board_id:
        raise ValidationError(f"Column {target.id} does not belong to board {card.board_id}")

    source = card.column
    card.column = target
    StoryPointLedger(db).record_column_transition(card, source, target, now=now)

    if target.is_backlog and not source.is_backlog:
        BacklogAssigner(db).clear_memberships_for_backlog_column_move(card)

    card.board.touch()
    db.commit()
    db.refresh(card)
    return card

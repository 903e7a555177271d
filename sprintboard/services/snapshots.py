"""Daily column-occupancy snapshots, the history behind cumulative flow."""
import logging
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from sprintboard.models import Board, BoardColumn, Card, FlowSnapshot
from sprintboard.schemas import ColumnCount
from sprintboard.services.common import load_entity
from sprintboard.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


def column_occupancy(db: Session, board_id: int) -> List[ColumnCount]:
    """Current card count and story points for every column on the board."""
    totals = {
        column_id: (count, points)
        for column_id, count, points in (
            db.query(Card.column_id, func.count(Card.id), func.coalesce(func.sum(Card.story_points), 0))
            .filter(Card.board_id == board_id)
            .group_by(Card.column_id)
            .all()
        )
    }
    columns = (
        db.query(BoardColumn)
        .filter(BoardColumn.board_id == board_id)
        .order_by(BoardColumn.position.asc(), BoardColumn.id.asc())
        .all()
    )
    return [
        ColumnCount(
            column_id=column.id,
            column_name=column.name,
            card_count=totals.get(column.id, (0, 0))[0],
            story_points=int(totals.get(column.id, (0, 0))[1]),
        )
        for column in columns
    ]


class SnapshotRecorder:
    def __init__(self, db: Session):
        self.db = db

    def record_daily_snapshot(self, board_id: int, day: Optional[date] = None) -> List[ColumnCount]:
        """Capture today's (or ``day``'s) occupancy, replacing any earlier capture of that day."""
        board = load_entity(self.db, Board, board_id)
        day = day or utcnow().date()
        counts = column_occupancy(self.db, board.id)

        self.db.query(FlowSnapshot).filter(
            FlowSnapshot.board_id == board.id,
            FlowSnapshot.recorded_date == day,
        ).delete(synchronize_session=False)
        for count in counts:
            self.db.add(
                FlowSnapshot(
                    board_id=board.id,
                    recorded_date=day,
                    column_id=count.column_id,
                    column_name=count.column_name,
                    card_count=count.card_count,
                    story_points=count.story_points,
                )
            )
        board.touch()
        self.db.commit()
        logger.info("Recorded flow snapshot for board %s on %s (%d columns)", board.id, day, len(counts))
        return counts

    def has_snapshot(self, board_id: int, day: date) -> bool:
        return (
            self.db.query(FlowSnapshot.id)
            .filter(FlowSnapshot.board_id == board_id, FlowSnapshot.recorded_date == day)
            .first()
            is not None
        )

    def snapshots_by_day(self, board_id: int, start: date, end: date) -> Dict[date, List[ColumnCount]]:
        rows = (
            self.db.query(FlowSnapshot)
            .filter(
                FlowSnapshot.board_id == board_id,
                FlowSnapshot.recorded_date >= start,
                FlowSnapshot.recorded_date <= end,
            )
            .order_by(FlowSnapshot.recorded_date.asc(), FlowSnapshot.id.asc())
            .all()
        )
        by_day: Dict[date, List[ColumnCount]] = {}
        for row in rows:
            by_day.setdefault(row.recorded_date, []).append(
                ColumnCount(
                    column_id=row.column_id,
                    column_name=row.column_name,
                    card_count=row.card_count,
                    story_points=row.story_points,
                )
            )
        return by_day

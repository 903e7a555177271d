"""Sprint lifecycle: Future -> Active -> Closed, one active sprint per board.

``start_sprint`` runs its "no other active sprint" check and the status flip
under a per-board lock, and the ``uq_sprints_one_active_per_board`` partial
unique index rejects a second active row even from another process. Either
path surfaces as ``ConflictError``.
"""
import logging
import threading
import weakref
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sprintboard.exceptions import ConflictError, StateError, ValidationError
from sprintboard.models import Board, Card, Sprint, SprintStatus
from sprintboard.services.backlog import BacklogAssigner
from sprintboard.services.common import load_entity, require_name
from sprintboard.services.pagination import ClosedSprintPaginator
from sprintboard.utils.timeutils import to_naive_utc, utcnow

logger = logging.getLogger(__name__)


class _BoardLock:
    """Mutex for one board; dropped from the registry once nobody holds it."""

    def __init__(self):
        self._lock = threading.Lock()

    def __enter__(self):
        self._lock.acquire()
        return self

    def __exit__(self, *exc_info):
        self._lock.release()


_board_locks: "weakref.WeakValueDictionary[int, _BoardLock]" = weakref.WeakValueDictionary()
_board_locks_guard = threading.Lock()

# Marks an update_sprint argument the caller did not send.
UNSET = object()


def _board_lock(board_id: int) -> _BoardLock:
    with _board_locks_guard:
        lock = _board_locks.get(board_id)
        if lock is None:
            lock = _BoardLock()
            _board_locks[board_id] = lock
        return lock


def _validate_dates(start_date: Optional[datetime], end_date: Optional[datetime]) -> None:
    if start_date is not None and end_date is not None and end_date < start_date:
        raise ValidationError("Sprint end date cannot be before its start date")


class SprintRegistry:
    def __init__(self, db: Session):
        self.db = db

    def get_sprint(self, sprint_id: int) -> Sprint:
        return load_entity(self.db, Sprint, sprint_id)

    def create_sprint(
        self,
        board_id: int,
        name: str,
        goal: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Sprint:
        board = load_entity(self.db, Board, board_id)
        clean_name = require_name(name, "Sprint name")
        start_date = to_naive_utc(start_date)
        end_date = to_naive_utc(end_date)
        _validate_dates(start_date, end_date)

        max_position = (
            self.db.query(func.max(Sprint.position)).filter(Sprint.board_id == board.id).scalar()
        )
        sprint = Sprint(
            board_id=board.id,
            name=clean_name,
            goal=goal,
            start_date=start_date,
            end_date=end_date,
            status=SprintStatus.FUTURE,
            position=(max_position if max_position is not None else -1) + 1,
        )
        self.db.add(sprint)
        board.touch()
        self.db.commit()
        self.db.refresh(sprint)
        logger.info("Created sprint %s '%s' on board %s", sprint.id, sprint.name, board.id)
        return sprint

    def active_sprint(self, board_id: int) -> Optional[Sprint]:
        return (
            self.db.query(Sprint)
            .filter(Sprint.board_id == board_id, Sprint.status == SprintStatus.ACTIVE)
            .populate_existing()
            .first()
        )

    def upcoming_sprints(self, board_id: int) -> List[Sprint]:
        # Dated sprints first by start date, then undated ones in creation order.
        return (
            self.db.query(Sprint)
            .filter(Sprint.board_id == board_id, Sprint.status == SprintStatus.FUTURE)
            .order_by(Sprint.start_date.is_(None), Sprint.start_date.asc(), Sprint.position.asc())
            .all()
        )

    def start_sprint(self, sprint_id: int) -> Sprint:
        sprint = self.get_sprint(sprint_id)
        board_id = sprint.board_id

        with _board_lock(board_id):
            self.db.refresh(sprint)
            if sprint.status != SprintStatus.FUTURE:
                raise StateError(sprint.id, sprint.status, SprintStatus.ACTIVE)

            active = self.active_sprint(board_id)
            if active is not None:
                logger.warning(
                    "Refused to start sprint %s: sprint %s is already active on board %s",
                    sprint.id,
                    active.id,
                    board_id,
                )
                raise ConflictError(board_id, active.id)

            sprint.status = SprintStatus.ACTIVE
            if sprint.start_date is None:
                sprint.start_date = utcnow()
            sprint.board.touch()
            try:
                self.db.commit()
            except IntegrityError as exc:
                self.db.rollback()
                logger.warning("Active-sprint index rejected sprint %s on board %s", sprint.id, board_id)
                raise ConflictError(board_id) from exc

        self.db.refresh(sprint)
        logger.info("Started sprint %s on board %s", sprint.id, board_id)
        return sprint

    def complete_sprint(self, sprint_id: int, move_incomplete_to_backlog: bool = False) -> Sprint:
        """Close an active sprint.

        Members keep their membership as the historical record used by
        velocity. With ``move_incomplete_to_backlog`` only cards that were never
        completed are detached from this sprint.
        """
        sprint = self.get_sprint(sprint_id)
        if sprint.status != SprintStatus.ACTIVE:
            raise StateError(sprint.id, sprint.status, SprintStatus.CLOSED)

        now = utcnow()
        if move_incomplete_to_backlog:
            incomplete: List[Card] = [card for card in sprint.cards if card.completed_at is None]
            for card in incomplete:
                card.sprints.remove(sprint)
            logger.info("Detached %d incomplete cards from sprint %s", len(incomplete), sprint.id)

        sprint.status = SprintStatus.CLOSED
        sprint.closed_at = now
        if sprint.end_date is None:
            sprint.end_date = now
        sprint.board.touch()
        self.db.commit()
        self.db.refresh(sprint)
        logger.info("Closed sprint %s on board %s", sprint.id, sprint.board_id)
        return sprint

    def rename_sprint(self, sprint_id: int, new_name: str) -> Sprint:
        sprint = self.get_sprint(sprint_id)
        sprint.name = require_name(new_name, "Sprint name")
        sprint.board.touch()
        self.db.commit()
        self.db.refresh(sprint)
        return sprint

    def update_sprint(
        self,
        sprint_id: int,
        name: Optional[str] = None,
        goal=UNSET,
        start_date=UNSET,
        end_date=UNSET,
    ) -> Sprint:
        """Apply the fields that were sent; an explicit ``None`` clears goal or dates."""
        sprint = self.get_sprint(sprint_id)
        new_start = sprint.start_date if start_date is UNSET else to_naive_utc(start_date)
        new_end = sprint.end_date if end_date is UNSET else to_naive_utc(end_date)
        _validate_dates(new_start, new_end)

        if name is not None:
            sprint.name = require_name(name, "Sprint name")
        if goal is not UNSET:
            sprint.goal = goal
        sprint.start_date = new_start
        sprint.end_date = new_end
        sprint.board.touch()
        self.db.commit()
        self.db.refresh(sprint)
        return sprint

    def delete_sprint(self, sprint_id: int) -> None:
        """Delete a sprint after detaching it from every card that holds it."""
        sprint = self.get_sprint(sprint_id)
        board = sprint.board
        detached = BacklogAssigner(self.db).detach_sprint_from_cards(sprint)
        self.db.flush()
        self.db.delete(sprint)
        board.touch()
        self.db.commit()
        logger.info("Deleted sprint %s (detached from %d cards)", sprint_id, detached)

    def list_sprints(self, board_id: int) -> dict:
        load_entity(self.db, Board, board_id)
        return {
            "active": self.active_sprint(board_id),
            "upcoming": self.upcoming_sprints(board_id),
            "closed": ClosedSprintPaginator(self.db).first_page(board_id),
        }

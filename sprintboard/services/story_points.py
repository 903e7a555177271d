"""Story point estimates and completion timestamps on cards."""
import logging
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from sprintboard.exceptions import ValidationError
from sprintboard.models import BoardColumn, Card
from sprintboard.services.common import load_entity
from sprintboard.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


def validate_points(points: Optional[int]) -> Optional[int]:
    if points is None:
        return None
    if isinstance(points, bool) or not isinstance(points, int):
        raise ValidationError(f"Story points must be a whole number, got {points!r}")
    if points < 0:
        raise ValidationError(f"Story points cannot be negative, got {points}")
    return points


class StoryPointLedger:
    """Reads and writes the optional estimate on a card.

    Also owns ``completed_at``, which kanban moves report through
    :meth:`record_column_transition`; it is never set directly by callers.
    """

    def __init__(self, db: Session):
        self.db = db

    def set_story_points(self, card_id: int, points: Optional[int]) -> Card:
        card = load_entity(self.db, Card, card_id)
        card.story_points = validate_points(points)
        card.board.touch()
        self.db.commit()
        self.db.refresh(card)
        return card

    @staticmethod
    def total_points(cards: Iterable[Card]) -> int:
        return sum(card.story_points or 0 for card in cards)

    @staticmethod
    def record_column_transition(
        card: Card,
        source: Optional[BoardColumn],
        target: BoardColumn,
        now: Optional[datetime] = None,
    ) -> None:
        if target.is_done:
            if source is None or not source.is_done or card.completed_at is None:
                card.completed_at = now or utcnow()
                logger.debug("Card %s completed at %s", card.id, card.completed_at)
        elif card.completed_at is not None:
            logger.debug("Card %s reopened; clearing completion time", card.id)
            card.completed_at = None

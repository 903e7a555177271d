"""Card-to-sprint membership and backlog classification.

Membership is a genuine set relation (``card_sprints``): a card may belong to
no sprint (it is then in the backlog), one sprint, or several at once.
"""
import logging
from typing import Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sprintboard.exceptions import ValidationError
from sprintboard.models import Board, Card, Sprint, SprintStatus
from sprintboard.services.common import load_entity

logger = logging.getLogger(__name__)

# Policies for what entering the backlog column does to a card's sprints.
CLEAR_ALL = "all"
CLEAR_ACTIVE_ONLY = "active_only"
BACKLOG_COLUMN_POLICY = CLEAR_ALL


class BacklogAssigner:
    def __init__(self, db: Session):
        self.db = db

    def _load_pair(self, card_id: int, sprint_id: int):
        card = load_entity(self.db, Card, card_id)
        sprint = load_entity(self.db, Sprint, sprint_id)
        if card.board_id != sprint.board_id:
            raise ValidationError(
                f"Card {card.id} and sprint {sprint.id} belong to different boards"
            )
        return card, sprint

    def assign_card_to_sprint(self, card_id: int, sprint_id: int) -> Card:
        """Add ``sprint_id`` to the card's sprints; assigning twice is a no-op."""
        card, sprint = self._load_pair(card_id, sprint_id)
        if sprint in card.sprints:
            return card

        card.sprints.append(sprint)
        card.board.touch()
        try:
            self.db.commit()
        except IntegrityError:
            # A concurrent request added the same pair first.
            self.db.rollback()
        self.db.refresh(card)
        return card

    def unassign_card_from_sprint(self, card_id: int, sprint_id: int) -> Card:
        """Remove ``sprint_id`` from the card's sprints; non-members are left alone."""
        card, sprint = self._load_pair(card_id, sprint_id)
        if sprint not in card.sprints:
            return card

        card.sprints.remove(sprint)
        card.board.touch()
        self.db.commit()
        self.db.refresh(card)
        return card

    def set_card_sprints(self, card_id: int, sprint_ids: Iterable[int]) -> Card:
        """Replace the card's whole membership set."""
        card = load_entity(self.db, Card, card_id)
        sprints = []
        for sprint_id in dict.fromkeys(sprint_ids):
            sprint = load_entity(self.db, Sprint, sprint_id)
            if sprint.board_id != card.board_id:
                raise ValidationError(
                    f"Card {card.id} and sprint {sprint.id} belong to different boards"
                )
            sprints.append(sprint)

        card.sprints = sprints
        card.board.touch()
        self.db.commit()
        self.db.refresh(card)
        return card

    def move_card_to_backlog(self, card_id: int) -> Card:
        """Drop every sprint membership without moving the card's column."""
        card = load_entity(self.db, Card, card_id)
        if card.sprints:
            card.sprints = []
            card.board.touch()
            self.db.commit()
            self.db.refresh(card)
        return card

    def cards_in_backlog(self, board_id: int) -> List[Card]:
        load_entity(self.db, Board, board_id)
        return (
            self.db.query(Card)
            .filter(Card.board_id == board_id, ~Card.sprints.any())
            .order_by(Card.id.asc())
            .all()
        )

    def cards_in_sprint(self, sprint_id: int) -> List[Card]:
        load_entity(self.db, Sprint, sprint_id)
        return (
            self.db.query(Card)
            .filter(Card.sprints.any(Sprint.id == sprint_id))
            .order_by(Card.id.asc())
            .all()
        )

    def clear_memberships_for_backlog_column_move(self, card: Card, policy: Optional[str] = None) -> List[int]:
        """Apply the backlog-column rule to ``card`` and return the sprint ids removed.

        Whether entering the backlog column should drop every sprint or only the
        active one is unresolved; the default policy drops every sprint. The
        caller commits.
        """
        policy = policy or BACKLOG_COLUMN_POLICY
        if policy == CLEAR_ALL:
            removed = list(card.sprints)
        elif policy == CLEAR_ACTIVE_ONLY:
            removed = [sprint for sprint in card.sprints if sprint.status == SprintStatus.ACTIVE]
        else:
            raise ValueError(f"Unknown backlog column policy: {policy}")

        for sprint in removed:
            card.sprints.remove(sprint)
        if removed:
            logger.info(
                "Card %s entered the backlog column; removed from sprints %s",
                card.id,
                [sprint.id for sprint in removed],
            )
        return [sprint.id for sprint in removed]

    def detach_sprint_from_cards(self, sprint: Sprint) -> int:
        """Remove ``sprint`` from every card's membership set. The caller commits."""
        members = list(sprint.cards)
        for card in members:
            card.sprints.remove(sprint)
        return len(members)

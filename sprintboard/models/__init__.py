"""Sprintboard Database Models"""
from sprintboard.models.board import Board
from sprintboard.models.board_column import BoardColumn
from sprintboard.models.sprint import Sprint, SprintStatus, card_sprints
from sprintboard.models.card import Card
from sprintboard.models.flow_snapshot import FlowSnapshot

__all__ = [
    "Board",
    "BoardColumn",
    "Sprint",
    "SprintStatus",
    "card_sprints",
    "Card",
    "FlowSnapshot",
]

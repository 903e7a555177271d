"""Keyset pagination over a board's closed sprints.

Pages are ordered by ``closed_at`` descending with the sprint id as a
tie-breaker. The cursor carries the ``(closed_at, id)`` of the last item
served, so sprints closed between two calls sort ahead of the cursor and never
shift later pages the way an offset would.
"""
import base64
import binascii
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from sprintboard.config import settings
from sprintboard.exceptions import ValidationError
from sprintboard.models import Board, Sprint, SprintStatus
from sprintboard.services.common import load_entity

CURSOR_VERSION = 1


@dataclass
class Page:
    items: List[Sprint] = field(default_factory=list)
    has_more: bool = False
    cursor: Optional[str] = None
    total_count: int = 0


def encode_cursor(closed_at: datetime, sprint_id: int) -> str:
    payload = json.dumps({"v": CURSOR_VERSION, "c": closed_at.isoformat(), "i": sprint_id})
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii").rstrip("=")


def decode_cursor(cursor: str) -> Tuple[datetime, int]:
    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        payload = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8"))
        if payload["v"] != CURSOR_VERSION:
            raise ValueError("unsupported cursor version")
        return datetime.fromisoformat(payload["c"]), int(payload["i"])
    except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError) as exc:
        raise ValidationError("Invalid pagination cursor") from exc


class ClosedSprintPaginator:
    def __init__(self, db: Session, page_size: Optional[int] = None):
        self.db = db
        self.page_size = page_size or settings.CLOSED_SPRINT_PAGE_SIZE

    def _closed_query(self, board_id: int):
        return self.db.query(Sprint).filter(
            Sprint.board_id == board_id,
            Sprint.status == SprintStatus.CLOSED,
        )

    def _page(self, board_id: int, after: Optional[Tuple[datetime, int]]) -> Page:
        load_entity(self.db, Board, board_id)
        query = self._closed_query(board_id)
        if after is not None:
            closed_at, sprint_id = after
            query = query.filter(
                or_(
                    Sprint.closed_at < closed_at,
                    and_(Sprint.closed_at == closed_at, Sprint.id < sprint_id),
                )
            )

        rows = (
            query.order_by(Sprint.closed_at.desc(), Sprint.id.desc())
            .limit(self.page_size + 1)
            .all()
        )
        items = rows[: self.page_size]
        has_more = len(rows) > self.page_size
        cursor = encode_cursor(items[-1].closed_at, items[-1].id) if items else None
        return Page(
            items=items,
            has_more=has_more,
            cursor=cursor,
            total_count=self._closed_query(board_id).count(),
        )

    def first_page(self, board_id: int) -> Page:
        return self._page(board_id, None)

    def load_more(self, board_id: int, cursor: str) -> Page:
        return self._page(board_id, decode_cursor(cursor))

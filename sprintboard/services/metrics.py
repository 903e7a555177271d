"""Burndown, burnup, velocity and cumulative flow.

Everything here is derived on demand from current sprint membership, story
points and each card's ``completed_at``. Two approximations are accepted:

* sprint scope is the membership at query time, applied to every day of the
  sprint (cards that left mid-sprint are not tracked);
* a card that leaves the done column loses its ``completed_at``, so earlier
  days can report less completed work than a previous query did.

Cumulative flow is the exception: it needs column occupancy over time, which
only the daily snapshots provide. Missing days are reported as gaps.
"""
import bisect
import logging
import threading
import time
from datetime import date, timedelta
from typing import Callable, Dict, Hashable, List, Optional, Tuple

from sqlalchemy.orm import Session

from sprintboard.config import settings
from sprintboard.exceptions import ValidationError
from sprintboard.models import Board, Card, Sprint, SprintStatus
from sprintboard.schemas import (
    CumulativeFlow,
    DailyMetric,
    FlowSnapshotEntry,
    FlowSource,
    MetricUnit,
    SprintMetrics,
    SprintStats,
    VelocityPoint,
)
from sprintboard.services.backlog import BacklogAssigner
from sprintboard.services.common import load_entity
from sprintboard.services.snapshots import SnapshotRecorder, column_occupancy
from sprintboard.services.story_points import StoryPointLedger
from sprintboard.utils.timeutils import date_range, end_of_day, utcnow

logger = logging.getLogger(__name__)


class MetricsCache:
    """Short-lived cache for metric queries.

    Keys include the board's ``updated_at``, so any mutation on the board makes
    older entries unreachable; the TTL bounds how long they linger.
    """

    def __init__(self, ttl_seconds: float):
        self.ttl_seconds = ttl_seconds
        self._entries: Dict[Hashable, Tuple[float, object]] = {}
        self._lock = threading.Lock()

    def get_or_compute(self, key: Hashable, compute: Callable[[], object]):
        now = time.monotonic()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry[0] > now:
                return entry[1]

        value = compute()
        with self._lock:
            self._entries = {k: v for k, v in self._entries.items() if v[0] > now}
            self._entries[key] = (now + self.ttl_seconds, value)
        return value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


metrics_cache = MetricsCache(settings.METRICS_CACHE_TTL_SECONDS)


def _weight(unit: MetricUnit) -> Callable[[Card], int]:
    if unit == MetricUnit.POINTS:
        return lambda card: card.story_points or 0
    return lambda card: 1


class MetricsEngine:
    def __init__(self, db: Session, cache: Optional[MetricsCache] = None):
        self.db = db
        self.cache = cache

    def _cached(self, key: Hashable, compute: Callable[[], object]):
        if self.cache is None:
            return compute()
        return self.cache.get_or_compute(key, compute)

    def compute_sprint_metrics(
        self,
        sprint_id: int,
        unit: MetricUnit = MetricUnit.CARDS,
        today: Optional[date] = None,
    ) -> SprintMetrics:
        sprint = load_entity(self.db, Sprint, sprint_id)
        today = today or utcnow().date()
        key = ("sprint_metrics", sprint.id, unit, today, sprint.board.updated_at)
        return self._cached(key, lambda: self._sprint_metrics(sprint, unit, today))

    def _sprint_metrics(self, sprint: Sprint, unit: MetricUnit, today: date) -> SprintMetrics:
        cards = BacklogAssigner(self.db).cards_in_sprint(sprint.id)
        done_cards = [card for card in cards if card.completed_at is not None]
        weight = _weight(unit)
        total = sum(weight(card) for card in cards)

        start_day = (sprint.start_date or sprint.created_at).date()
        last_day = min(today, sprint.end_date.date()) if sprint.end_date else today
        planned_end = sprint.end_date.date() if sprint.end_date else last_day
        planned_days = (planned_end - start_day).days

        completions = sorted((card.completed_at, weight(card)) for card in done_cards)
        completion_times = [completed_at for completed_at, _ in completions]
        running = [0]
        for _, amount in completions:
            running.append(running[-1] + amount)

        burndown: List[DailyMetric] = []
        burnup: List[DailyMetric] = []
        for day in date_range(start_day, last_day):
            completed = running[bisect.bisect_right(completion_times, end_of_day(day))]
            remaining = total - completed
            if planned_days > 0:
                elapsed = min((day - start_day).days / planned_days, 1.0)
                ideal = round(total * (1 - elapsed), 2)
            else:
                ideal = 0.0
            burndown.append(
                DailyMetric(date=day, remaining=remaining, completed=completed, total=total, ideal_remaining=ideal)
            )
            burnup.append(DailyMetric(date=day, remaining=remaining, completed=completed, total=total))

        return SprintMetrics(
            sprint_id=sprint.id,
            sprint_name=sprint.name,
            unit=unit,
            total_cards=len(cards),
            completed_cards=len(done_cards),
            total_points=StoryPointLedger.total_points(cards),
            completed_points=StoryPointLedger.total_points(done_cards),
            burndown=burndown,
            burnup=burnup,
        )

    def compute_sprint_stats(self, sprint_id: int, today: Optional[date] = None) -> SprintStats:
        sprint = load_entity(self.db, Sprint, sprint_id)
        today = today or utcnow().date()
        cards = BacklogAssigner(self.db).cards_in_sprint(sprint.id)
        done_cards = [card for card in cards if card.completed_at is not None]

        days_elapsed = max((today - sprint.start_date.date()).days, 0) if sprint.start_date else 0
        days_remaining = max((sprint.end_date.date() - today).days, 0) if sprint.end_date else 0
        return SprintStats(
            sprint_id=sprint.id,
            total_cards=len(cards),
            completed_cards=len(done_cards),
            total_points=StoryPointLedger.total_points(cards),
            completed_points=StoryPointLedger.total_points(done_cards),
            days_elapsed=days_elapsed,
            days_remaining=days_remaining,
        )

    def compute_velocity(self, board_id: int, sprint_count: int) -> List[VelocityPoint]:
        """Completed work for the last ``sprint_count`` closed sprints, oldest first."""
        board = load_entity(self.db, Board, board_id)
        if sprint_count < 1:
            raise ValidationError("Sprint count must be at least 1")
        key = ("velocity", board.id, sprint_count, board.updated_at)
        return self._cached(key, lambda: self._velocity(board.id, sprint_count))

    def _velocity(self, board_id: int, sprint_count: int) -> List[VelocityPoint]:
        closed = (
            self.db.query(Sprint)
            .filter(Sprint.board_id == board_id, Sprint.status == SprintStatus.CLOSED)
            .order_by(Sprint.closed_at.desc(), Sprint.id.desc())
            .limit(sprint_count)
            .all()
        )
        assigner = BacklogAssigner(self.db)
        points: List[VelocityPoint] = []
        for sprint in reversed(closed):
            completed = [
                card
                for card in assigner.cards_in_sprint(sprint.id)
                if card.completed_at is not None and sprint.created_at <= card.completed_at <= sprint.closed_at
            ]
            points.append(
                VelocityPoint(
                    sprint_id=sprint.id,
                    sprint_name=sprint.name,
                    completed_cards=len(completed),
                    completed_points=StoryPointLedger.total_points(completed),
                )
            )
        return points

    def compute_cumulative_flow(self, board_id: int, days: int, today: Optional[date] = None) -> CumulativeFlow:
        board = load_entity(self.db, Board, board_id)
        if days < 1 or days > settings.MAX_FLOW_DAYS:
            raise ValidationError(f"Days must be between 1 and {settings.MAX_FLOW_DAYS}")
        today = today or utcnow().date()
        key = ("cumulative_flow", board.id, days, today, board.updated_at)
        return self._cached(key, lambda: self._cumulative_flow(board.id, days, today))

    def _cumulative_flow(self, board_id: int, days: int, today: date) -> CumulativeFlow:
        start = today - timedelta(days=days - 1)
        recorded = SnapshotRecorder(self.db).snapshots_by_day(board_id, start, today)

        entries: List[FlowSnapshotEntry] = []
        for day in date_range(start, today):
            if day in recorded:
                entries.append(FlowSnapshotEntry(date=day, source=FlowSource.SNAPSHOT, columns=recorded[day]))
            elif day == today:
                entries.append(
                    FlowSnapshotEntry(date=day, source=FlowSource.LIVE, columns=column_occupancy(self.db, board_id))
                )
            else:
                entries.append(FlowSnapshotEntry(date=day, source=FlowSource.GAP, columns=[]))

        gaps = sum(1 for entry in entries if entry.source == FlowSource.GAP)
        if gaps:
            logger.info("Cumulative flow for board %s has %d missing snapshot days", board_id, gaps)
        return CumulativeFlow(
            board_id=board_id,
            days=days,
            approximated=any(entry.source != FlowSource.SNAPSHOT for entry in entries),
            snapshots=entries,
        )

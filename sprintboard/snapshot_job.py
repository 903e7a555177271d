"""Daily cumulative-flow snapshot job.

Run once a day per deployment, e.g. from cron::

    python -m sprintboard.snapshot_job
    python -m sprintboard.snapshot_job --date 2024-05-01

or let the API process run it with ``SNAPSHOT_SCHEDULER_ENABLED=true``.
A day the job does not run shows up as a gap in the flow chart.
"""
import argparse
import asyncio
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from sprintboard.config import configure_logging
from sprintboard.database import SessionLocal
from sprintboard.models import Board
from sprintboard.services.snapshots import SnapshotRecorder
from sprintboard.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


def run_once(db: Session, day: Optional[date] = None, skip_existing: bool = False) -> dict:
    """Record ``day``'s snapshot for every board.

    A failure on one board is logged and counted; the other boards are still
    captured.
    """
    day = day or utcnow().date()
    recorder = SnapshotRecorder(db)
    board_ids: List[int] = [board_id for (board_id,) in db.query(Board.id).order_by(Board.id).all()]
    recorded, skipped, failed = 0, 0, 0

    for board_id in board_ids:
        if skip_existing and recorder.has_snapshot(board_id, day):
            skipped += 1
            continue
        try:
            recorder.record_daily_snapshot(board_id, day)
            recorded += 1
        except Exception:
            db.rollback()
            failed += 1
            logger.exception("Failed to record flow snapshot for board %s on %s", board_id, day)

    logger.info("Snapshot run for %s: %d recorded, %d skipped, %d failed", day, recorded, skipped, failed)
    return {"date": day, "recorded": recorded, "skipped": skipped, "failed": failed}


def _scheduled_run() -> None:
    db = SessionLocal()
    try:
        run_once(db, skip_existing=True)
    finally:
        db.close()


async def run_scheduler(interval_seconds: float) -> None:
    """Wake every ``interval_seconds`` and capture today's snapshot for boards still missing one."""
    while True:
        try:
            await asyncio.to_thread(_scheduled_run)
        except Exception:
            logger.exception("Snapshot scheduler run failed")
        await asyncio.sleep(interval_seconds)


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Record daily cumulative-flow snapshots for every board.")
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Day to record (YYYY-MM-DD); defaults to today (UTC)",
    )
    parser.add_argument(
        "--skip-existing",
        action="store_true",
        help="Leave boards that already have a snapshot for the day untouched",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    configure_logging()
    db = SessionLocal()
    try:
        result = run_once(db, args.date, skip_existing=args.skip_existing)
    finally:
        db.close()
    return 1 if result["failed"] else 0


if __name__ == "__main__":
    raise SystemExit(main())

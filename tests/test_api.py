import pytest
from fastapi import HTTPException

from sprintboard.api.v1 import boards as boards_api
from sprintboard.api.v1 import cards as cards_api
from sprintboard.api.v1 import metrics as metrics_api
from sprintboard.api.v1 import sprints as sprints_api
from sprintboard.models import SprintStatus
from sprintboard.schemas import (
    BoardCreate,
    CardCreate,
    CardMove,
    CardSprintsUpdate,
    MetricUnit,
    SprintComplete,
    SprintCreate,
    SprintRename,
    SprintUpdate,
    StoryPointsUpdate,
)
from tests.conftest import column_named


def _create_board(db_session, name="API Board"):
    return boards_api.create_board(BoardCreate(name=name), db_session)


def _create_sprint(db_session, board_id, name):
    return sprints_api.create_sprint(board_id, SprintCreate(name=name), db_session)


def test_board_response_includes_columns(db_session):
    board = _create_board(db_session)

    assert board.name == "API Board"
    assert [c.name for c in board.columns] == ["Backlog", "Todo", "In Progress", "Done"]


def test_sprint_lifecycle_over_the_api(db_session):
    board = _create_board(db_session)
    sprint = _create_sprint(db_session, board.id, "S1")
    assert sprint.status == SprintStatus.FUTURE

    started = sprints_api.start_sprint(sprint.id, db_session)
    assert started.status == SprintStatus.ACTIVE
    assert sprints_api.sprints_for_board(board.id, db_session).active.id == sprint.id

    closed = sprints_api.complete_sprint(sprint.id, None, db_session)
    assert closed.status == SprintStatus.CLOSED
    overview = sprints_api.sprints_for_board(board.id, db_session)
    assert overview.active is None
    assert [s.id for s in overview.closed.items] == [sprint.id]


def test_starting_second_sprint_returns_conflict(db_session):
    board = _create_board(db_session)
    first = _create_sprint(db_session, board.id, "S1")
    second = _create_sprint(db_session, board.id, "S2")
    sprints_api.start_sprint(first.id, db_session)

    with pytest.raises(HTTPException) as exc_info:
        sprints_api.start_sprint(second.id, db_session)

    assert exc_info.value.status_code == 409
    assert exc_info.value.detail == f"Board {board.id} already has an active sprint"


def test_invalid_transition_returns_conflict(db_session):
    board = _create_board(db_session)
    sprint = _create_sprint(db_session, board.id, "S1")

    with pytest.raises(HTTPException) as exc_info:
        sprints_api.complete_sprint(sprint.id, SprintComplete(), db_session)

    assert exc_info.value.status_code == 409
    assert exc_info.value.detail == f"Invalid transition for sprint {sprint.id}: future → closed"


def test_unknown_sprint_returns_not_found(db_session):
    with pytest.raises(HTTPException) as exc_info:
        sprints_api.get_sprint(321, db_session)

    assert exc_info.value.status_code == 404
    assert exc_info.value.detail == "Sprint 321 not found"


def test_blank_rename_returns_bad_request(db_session):
    board = _create_board(db_session)
    sprint = _create_sprint(db_session, board.id, "S1")

    with pytest.raises(HTTPException) as exc_info:
        sprints_api.rename_sprint(sprint.id, SprintRename(name="  "), db_session)

    assert exc_info.value.status_code == 400


def test_update_sprint_only_touches_sent_fields(db_session):
    board = _create_board(db_session)
    sprint = sprints_api.create_sprint(board.id, SprintCreate(name="S1", goal="Original"), db_session)

    updated = sprints_api.update_sprint(sprint.id, SprintUpdate(name="S1b"), db_session)

    assert updated.name == "S1b"
    assert updated.goal == "Original"


def test_closed_sprint_pages_over_the_api(db_session):
    board = _create_board(db_session)
    for index in range(12):
        sprint = _create_sprint(db_session, board.id, f"S{index}")
        sprints_api.start_sprint(sprint.id, db_session)
        sprints_api.complete_sprint(sprint.id, None, db_session)

    first = sprints_api.closed_sprints(board.id, None, db_session)
    second = sprints_api.closed_sprints(board.id, first.cursor, db_session)

    assert len(first.items) == 10
    assert first.has_more is True
    assert len(second.items) == 2
    assert second.has_more is False
    assert first.total_count == 12

    with pytest.raises(HTTPException) as exc_info:
        sprints_api.closed_sprints(board.id, "garbage", db_session)
    assert exc_info.value.status_code == 400


def test_card_membership_endpoints(db_session):
    board = _create_board(db_session)
    sprint = _create_sprint(db_session, board.id, "S1")
    card = cards_api.create_card(CardCreate(board_id=board.id, title="Card", story_points=3), db_session)
    assert [c.id for c in sprints_api.backlog_cards(board.id, db_session)] == [card.id]

    card = cards_api.assign_card_to_sprint(card.id, sprint.id, db_session)
    card = cards_api.assign_card_to_sprint(card.id, sprint.id, db_session)
    assert card.sprint_ids == [sprint.id]
    assert [c.id for c in sprints_api.sprint_cards(sprint.id, db_session)] == [card.id]
    assert sprints_api.backlog_cards(board.id, db_session) == []

    card = cards_api.unassign_card_from_sprint(card.id, sprint.id, db_session)
    assert card.sprint_ids == []

    card = cards_api.set_card_sprints(card.id, CardSprintsUpdate(sprint_ids=[sprint.id]), db_session)
    assert card.sprint_ids == [sprint.id]
    card = cards_api.move_card_to_backlog(card.id, db_session)
    assert card.sprint_ids == []


def test_negative_story_points_return_bad_request(db_session):
    board = _create_board(db_session)
    card = cards_api.create_card(CardCreate(board_id=board.id, title="Card"), db_session)

    with pytest.raises(HTTPException) as exc_info:
        cards_api.set_story_points(card.id, StoryPointsUpdate(story_points=-2), db_session)

    assert exc_info.value.status_code == 400
    assert cards_api.set_story_points(card.id, StoryPointsUpdate(story_points=5), db_session).story_points == 5


def test_deleting_backlog_column_returns_bad_request(db_session):
    board = _create_board(db_session)
    backlog = next(c for c in board.columns if c.is_backlog)

    with pytest.raises(HTTPException) as exc_info:
        boards_api.delete_column(backlog.id, db_session)

    assert exc_info.value.status_code == 400
    assert "backlog column" in exc_info.value.detail


def test_move_card_reports_completion(db_session):
    board = _create_board(db_session)
    card = cards_api.create_card(CardCreate(board_id=board.id, title="Card"), db_session)
    done = column_named(db_session, board, "Done")

    moved = cards_api.move_card(card.id, CardMove(column_id=done.id), db_session)

    assert moved.column_id == done.id
    assert moved.completed_at is not None


def test_metrics_endpoints(db_session):
    board = _create_board(db_session)
    sprint = _create_sprint(db_session, board.id, "S1")
    card = cards_api.create_card(CardCreate(board_id=board.id, title="Card", story_points=5), db_session)
    cards_api.assign_card_to_sprint(card.id, sprint.id, db_session)
    sprints_api.start_sprint(sprint.id, db_session)
    cards_api.move_card(card.id, CardMove(column_id=column_named(db_session, board, "Done").id), db_session)
    sprints_api.complete_sprint(sprint.id, None, db_session)

    metrics = metrics_api.sprint_metrics(sprint.id, MetricUnit.POINTS, db_session)
    assert metrics.total_points == 5
    assert metrics.burndown[-1].remaining == 0

    stats = metrics_api.sprint_stats(sprint.id, db_session)
    assert stats.completed_cards == 1

    velocity = metrics_api.velocity_data(board.id, 5, db_session)
    assert [(p.completed_cards, p.completed_points) for p in velocity] == [(1, 5)]

    snapshot = metrics_api.record_snapshot(board.id, db_session)
    flow = metrics_api.cumulative_flow(board.id, 3, db_session)
    assert flow.snapshots[-1].date == snapshot.recorded_date
    assert flow.snapshots[-1].source == "snapshot"
    assert [entry.source for entry in flow.snapshots[:2]] == ["gap", "gap"]


def test_velocity_rejects_zero_count(db_session):
    board = _create_board(db_session)

    with pytest.raises(HTTPException) as exc_info:
        metrics_api.velocity_data(board.id, 0, db_session)

    assert exc_info.value.status_code == 400


def test_sprint_dates_with_offsets_over_the_api(db_session):
    board = _create_board(db_session)

    sprint = sprints_api.create_sprint(
        board.id,
        SprintCreate(name="S1", start_date="2024-05-01T09:00:00Z", end_date="2024-05-05T17:00:00"),
        db_session,
    )
    assert sprint.start_date.isoformat() == "2024-05-01T09:00:00"

    updated = sprints_api.update_sprint(sprint.id, SprintUpdate(end_date="2024-05-05T17:00:00+02:00"), db_session)
    assert updated.end_date.isoformat() == "2024-05-05T15:00:00"

    with pytest.raises(HTTPException) as exc_info:
        sprints_api.update_sprint(sprint.id, SprintUpdate(end_date="2024-05-01T10:00:00+02:00"), db_session)
    assert exc_info.value.status_code == 400


def test_patch_with_null_end_date_clears_it(db_session):
    board = _create_board(db_session)
    sprint = sprints_api.create_sprint(
        board.id, SprintCreate(name="S1", end_date="2024-05-05T17:00:00"), db_session
    )

    updated = sprints_api.update_sprint(sprint.id, SprintUpdate(end_date=None), db_session)

    assert updated.end_date is None


def test_cumulative_flow_window_is_capped(db_session):
    board = _create_board(db_session)

    with pytest.raises(HTTPException) as exc_info:
        metrics_api.cumulative_flow(board.id, 91, db_session)

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "Days must be between 1 and 90"

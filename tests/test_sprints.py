from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from sprintboard.exceptions import ConflictError, NotFoundError, StateError, ValidationError
from sprintboard.models import Sprint, SprintStatus
from sprintboard.services import boards
from sprintboard.services.backlog import BacklogAssigner
from sprintboard.services import sprints as sprint_service
from sprintboard.services.sprints import SprintRegistry
from tests.conftest import make_card


def test_create_sprint_starts_in_future_state(db_session, board):
    registry = SprintRegistry(db_session)

    sprint = registry.create_sprint(board.id, "  Sprint 1  ", goal="Ship login")

    assert sprint.status == SprintStatus.FUTURE
    assert sprint.name == "Sprint 1"
    assert sprint.goal == "Ship login"
    assert sprint.closed_at is None
    assert sprint.position == 0
    assert registry.create_sprint(board.id, "Sprint 2").position == 1


def test_create_sprint_rejects_blank_name(db_session, board):
    with pytest.raises(ValidationError) as exc_info:
        SprintRegistry(db_session).create_sprint(board.id, "   ")
    assert exc_info.value.reason == "Sprint name cannot be empty"


def test_create_sprint_rejects_end_before_start(db_session, board):
    with pytest.raises(ValidationError):
        SprintRegistry(db_session).create_sprint(
            board.id,
            "Backwards",
            start_date=datetime(2024, 5, 10),
            end_date=datetime(2024, 5, 1),
        )


def test_create_sprint_on_missing_board(db_session):
    with pytest.raises(NotFoundError) as exc_info:
        SprintRegistry(db_session).create_sprint(999, "Orphan")
    assert exc_info.value.reason == "Board 999 not found"


def test_lifecycle_moves_through_list_sprints(db_session, board):
    registry = SprintRegistry(db_session)
    sprint = registry.create_sprint(board.id, "S1")

    listing = registry.list_sprints(board.id)
    assert listing["active"] is None
    assert [s.id for s in listing["upcoming"]] == [sprint.id]
    assert listing["closed"].items == []

    registry.start_sprint(sprint.id)
    listing = registry.list_sprints(board.id)
    assert listing["active"].id == sprint.id
    assert listing["upcoming"] == []

    closed = registry.complete_sprint(sprint.id)
    assert closed.status == SprintStatus.CLOSED
    assert closed.closed_at is not None
    listing = registry.list_sprints(board.id)
    assert listing["active"] is None
    assert [s.id for s in listing["closed"].items] == [sprint.id]
    assert listing["closed"].total_count == 1


def test_start_sprint_stamps_start_date_only_when_missing(db_session, board):
    registry = SprintRegistry(db_session)
    planned = registry.create_sprint(board.id, "Planned", start_date=datetime(2024, 5, 1))
    undated = registry.create_sprint(board.id, "Undated")

    assert registry.start_sprint(planned.id).start_date == datetime(2024, 5, 1)
    registry.complete_sprint(planned.id)
    assert registry.start_sprint(undated.id).start_date is not None


def test_complete_sprint_sets_missing_end_date(db_session, board):
    registry = SprintRegistry(db_session)
    sprint = registry.create_sprint(board.id, "S1")
    registry.start_sprint(sprint.id)

    closed = registry.complete_sprint(sprint.id)

    assert closed.end_date == closed.closed_at


def test_second_active_sprint_is_a_conflict(db_session, board):
    registry = SprintRegistry(db_session)
    first = registry.create_sprint(board.id, "S1")
    second = registry.create_sprint(board.id, "S2")
    registry.start_sprint(first.id)

    with pytest.raises(ConflictError) as exc_info:
        registry.start_sprint(second.id)

    assert exc_info.value.board_id == board.id
    assert exc_info.value.active_sprint_id == first.id
    assert registry.get_sprint(second.id).status == SprintStatus.FUTURE


def test_one_active_sprint_per_board_not_per_system(db_session, board):
    other_board = boards.create_board(db_session, "Other")
    registry = SprintRegistry(db_session)
    a = registry.create_sprint(board.id, "A")
    b = registry.create_sprint(other_board.id, "B")

    registry.start_sprint(a.id)
    registry.start_sprint(b.id)

    assert registry.active_sprint(board.id).id == a.id
    assert registry.active_sprint(other_board.id).id == b.id


@pytest.mark.parametrize("status", [SprintStatus.ACTIVE, SprintStatus.CLOSED])
def test_start_requires_future_status(db_session, board, status):
    registry = SprintRegistry(db_session)
    sprint = registry.create_sprint(board.id, "S1")
    registry.start_sprint(sprint.id)
    if status == SprintStatus.CLOSED:
        registry.complete_sprint(sprint.id)

    with pytest.raises(StateError) as exc_info:
        registry.start_sprint(sprint.id)

    assert exc_info.value.from_status == status
    assert exc_info.value.to_status == SprintStatus.ACTIVE


def test_complete_requires_active_status(db_session, board):
    registry = SprintRegistry(db_session)
    sprint = registry.create_sprint(board.id, "S1")

    with pytest.raises(StateError) as exc_info:
        registry.complete_sprint(sprint.id)

    assert exc_info.value.reason == f"Invalid transition for sprint {sprint.id}: future → closed"


def test_closed_sprint_cannot_be_closed_again(db_session, board):
    registry = SprintRegistry(db_session)
    sprint = registry.create_sprint(board.id, "S1")
    registry.start_sprint(sprint.id)
    registry.complete_sprint(sprint.id)

    with pytest.raises(StateError):
        registry.complete_sprint(sprint.id)


def test_complete_keeps_memberships_by_default(db_session, board):
    registry = SprintRegistry(db_session)
    assigner = BacklogAssigner(db_session)
    sprint = registry.create_sprint(board.id, "S1")
    done = make_card(db_session, board, "done", column="Done")
    open_card = make_card(db_session, board, "open")
    assigner.assign_card_to_sprint(done.id, sprint.id)
    assigner.assign_card_to_sprint(open_card.id, sprint.id)
    registry.start_sprint(sprint.id)

    registry.complete_sprint(sprint.id)

    assert [c.id for c in assigner.cards_in_sprint(sprint.id)] == [done.id, open_card.id]


def test_complete_can_return_incomplete_cards_to_backlog(db_session, board):
    registry = SprintRegistry(db_session)
    assigner = BacklogAssigner(db_session)
    sprint = registry.create_sprint(board.id, "S1")
    done = make_card(db_session, board, "done", column="Done")
    open_card = make_card(db_session, board, "open")
    assigner.assign_card_to_sprint(done.id, sprint.id)
    assigner.assign_card_to_sprint(open_card.id, sprint.id)
    registry.start_sprint(sprint.id)

    registry.complete_sprint(sprint.id, move_incomplete_to_backlog=True)

    assert [c.id for c in assigner.cards_in_sprint(sprint.id)] == [done.id]
    assert [c.id for c in assigner.cards_in_backlog(board.id)] == [open_card.id]


def test_rename_sprint(db_session, board):
    registry = SprintRegistry(db_session)
    sprint = registry.create_sprint(board.id, "S1")

    assert registry.rename_sprint(sprint.id, "Renamed").name == "Renamed"
    with pytest.raises(ValidationError):
        registry.rename_sprint(sprint.id, "")


def test_update_sprint_validates_against_stored_dates(db_session, board):
    registry = SprintRegistry(db_session)
    sprint = registry.create_sprint(
        board.id, "S1", start_date=datetime(2024, 5, 1), end_date=datetime(2024, 5, 14)
    )

    updated = registry.update_sprint(sprint.id, goal="New goal", end_date=datetime(2024, 5, 10))
    assert updated.goal == "New goal"
    assert updated.end_date == datetime(2024, 5, 10)

    with pytest.raises(ValidationError):
        registry.update_sprint(sprint.id, start_date=datetime(2024, 6, 1))


def test_upcoming_orders_dated_sprints_first(db_session, board):
    registry = SprintRegistry(db_session)
    undated = registry.create_sprint(board.id, "Undated")
    later = registry.create_sprint(board.id, "Later", start_date=datetime(2024, 6, 1))
    sooner = registry.create_sprint(board.id, "Sooner", start_date=datetime(2024, 5, 1))

    assert [s.id for s in registry.upcoming_sprints(board.id)] == [sooner.id, later.id, undated.id]


def test_delete_sprint_returns_members_to_backlog(db_session, board):
    registry = SprintRegistry(db_session)
    assigner = BacklogAssigner(db_session)
    sprint_id = registry.create_sprint(board.id, "S1").id
    card_id = make_card(db_session, board, "card").id
    assigner.assign_card_to_sprint(card_id, sprint_id)

    registry.delete_sprint(sprint_id)

    assert db_session.get(Sprint, sprint_id) is None
    assert [c.id for c in assigner.cards_in_backlog(board.id)] == [card_id]
    with pytest.raises(NotFoundError):
        registry.get_sprint(sprint_id)


def test_partial_index_rejects_second_active_row(db_session, board):
    registry = SprintRegistry(db_session)
    first = registry.create_sprint(board.id, "S1")
    second = registry.create_sprint(board.id, "S2")

    first.status = SprintStatus.ACTIVE
    db_session.commit()
    second.status = SprintStatus.ACTIVE
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_create_sprint_accepts_offset_aware_and_naive_dates(db_session, board):
    sprint = SprintRegistry(db_session).create_sprint(
        board.id,
        "Mixed",
        start_date=datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc),
        end_date=datetime(2024, 5, 5, 17, 0),
    )

    assert sprint.start_date == datetime(2024, 5, 1, 9, 0)
    assert sprint.end_date == datetime(2024, 5, 5, 17, 0)


def test_offset_dates_are_stored_as_utc(db_session, board):
    plus_two = timezone(timedelta(hours=2))
    registry = SprintRegistry(db_session)
    sprint = registry.create_sprint(board.id, "Berlin", start_date=datetime(2024, 5, 1, 9, 0))

    updated = registry.update_sprint(sprint.id, end_date=datetime(2024, 5, 5, 17, 0, tzinfo=plus_two))

    assert updated.end_date == datetime(2024, 5, 5, 15, 0)


def test_offset_dates_are_compared_in_utc(db_session, board):
    plus_two = timezone(timedelta(hours=2))

    # 10:00+02:00 is 08:00 UTC, before the 09:00 UTC start.
    with pytest.raises(ValidationError):
        SprintRegistry(db_session).create_sprint(
            board.id,
            "Backwards",
            start_date=datetime(2024, 5, 1, 9, 0),
            end_date=datetime(2024, 5, 1, 10, 0, tzinfo=plus_two),
        )


def test_update_sprint_clears_fields_sent_as_none(db_session, board):
    registry = SprintRegistry(db_session)
    sprint = registry.create_sprint(
        board.id, "S1", goal="Goal", start_date=datetime(2024, 5, 1), end_date=datetime(2024, 5, 14)
    )

    updated = registry.update_sprint(sprint.id, goal=None, end_date=None)

    assert updated.goal is None
    assert updated.end_date is None
    assert updated.start_date == datetime(2024, 5, 1)


def test_board_locks_are_released_after_use(db_session, board):
    registry = SprintRegistry(db_session)
    sprint = registry.create_sprint(board.id, "S1")

    held = sprint_service._board_lock(board.id)
    assert sprint_service._board_lock(board.id) is held
    del held

    registry.start_sprint(sprint.id)

    assert board.id not in sprint_service._board_locks

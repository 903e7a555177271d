"""Sprint planning endpoints"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from sprintboard.api.errors import service_errors
from sprintboard.database import get_db
from sprintboard.models import Sprint
from sprintboard.schemas import (
    BoardSprints,
    CardResponse,
    ClosedSprintPage,
    SprintComplete,
    SprintCreate,
    SprintRename,
    SprintResponse,
    SprintUpdate,
)
from sprintboard.services.backlog import BacklogAssigner
from sprintboard.services.pagination import ClosedSprintPaginator, Page
from sprintboard.services.sprints import SprintRegistry

router = APIRouter()


def _serialize_sprint(sprint: Sprint) -> SprintResponse:
    return SprintResponse.model_validate(sprint)


def _serialize_page(page: Page) -> ClosedSprintPage:
    return ClosedSprintPage(
        items=[_serialize_sprint(sprint) for sprint in page.items],
        has_more=page.has_more,
        cursor=page.cursor,
        total_count=page.total_count,
    )


@router.post("/boards/{board_id}/sprints", response_model=SprintResponse, status_code=status.HTTP_201_CREATED)
def create_sprint(board_id: int, sprint_in: SprintCreate, db: Session = Depends(get_db)):
    """Create a sprint in the Future state."""
    with service_errors():
        sprint = SprintRegistry(db).create_sprint(
            board_id,
            sprint_in.name,
            goal=sprint_in.goal,
            start_date=sprint_in.start_date,
            end_date=sprint_in.end_date,
        )
    return _serialize_sprint(sprint)


@router.get("/boards/{board_id}/sprints", response_model=BoardSprints)
def sprints_for_board(board_id: int, db: Session = Depends(get_db)):
    """Active sprint, upcoming sprints and the first page of closed sprints."""
    with service_errors():
        overview = SprintRegistry(db).list_sprints(board_id)
    active = overview["active"]
    return BoardSprints(
        active=_serialize_sprint(active) if active is not None else None,
        upcoming=[_serialize_sprint(sprint) for sprint in overview["upcoming"]],
        closed=_serialize_page(overview["closed"]),
    )


@router.get("/boards/{board_id}/sprints/closed", response_model=ClosedSprintPage)
def closed_sprints(
    board_id: int,
    cursor: Optional[str] = Query(None, description="Cursor returned by the previous page"),
    db: Session = Depends(get_db),
):
    with service_errors():
        paginator = ClosedSprintPaginator(db)
        page = paginator.load_more(board_id, cursor) if cursor else paginator.first_page(board_id)
    return _serialize_page(page)


@router.get("/boards/{board_id}/backlog", response_model=List[CardResponse])
def backlog_cards(board_id: int, db: Session = Depends(get_db)):
    """Cards on the board that belong to no sprint."""
    with service_errors():
        cards = BacklogAssigner(db).cards_in_backlog(board_id)
    return [CardResponse.model_validate(card) for card in cards]


@router.get("/sprints/{sprint_id}", response_model=SprintResponse)
def get_sprint(sprint_id: int, db: Session = Depends(get_db)):
    with service_errors():
        sprint = SprintRegistry(db).get_sprint(sprint_id)
    return _serialize_sprint(sprint)


@router.patch("/sprints/{sprint_id}", response_model=SprintResponse)
def update_sprint(sprint_id: int, sprint_update: SprintUpdate, db: Session = Depends(get_db)):
    update_data = sprint_update.model_dump(exclude_unset=True)
    with service_errors():
        sprint = SprintRegistry(db).update_sprint(sprint_id, **update_data)
    return _serialize_sprint(sprint)


@router.post("/sprints/{sprint_id}/rename", response_model=SprintResponse)
def rename_sprint(sprint_id: int, rename_in: SprintRename, db: Session = Depends(get_db)):
    with service_errors():
        sprint = SprintRegistry(db).rename_sprint(sprint_id, rename_in.name)
    return _serialize_sprint(sprint)


@router.post("/sprints/{sprint_id}/start", response_model=SprintResponse)
def start_sprint(sprint_id: int, db: Session = Depends(get_db)):
    with service_errors():
        sprint = SprintRegistry(db).start_sprint(sprint_id)
    return _serialize_sprint(sprint)


@router.post("/sprints/{sprint_id}/complete", response_model=SprintResponse)
def complete_sprint(
    sprint_id: int,
    complete_in: Optional[SprintComplete] = None,
    db: Session = Depends(get_db),
):
    move_incomplete = complete_in.move_incomplete_to_backlog if complete_in else False
    with service_errors():
        sprint = SprintRegistry(db).complete_sprint(sprint_id, move_incomplete_to_backlog=move_incomplete)
    return _serialize_sprint(sprint)


@router.delete("/sprints/{sprint_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sprint(sprint_id: int, db: Session = Depends(get_db)):
    with service_errors():
        SprintRegistry(db).delete_sprint(sprint_id)


@router.get("/sprints/{sprint_id}/cards", response_model=List[CardResponse])
def sprint_cards(sprint_id: int, db: Session = Depends(get_db)):
    with service_errors():
        cards = BacklogAssigner(db).cards_in_sprint(sprint_id)
    return [CardResponse.model_validate(card) for card in cards]

"""Card endpoints: creation, kanban moves, story points and sprint membership"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from sprintboard.api.errors import service_errors
from sprintboard.database import get_db
from sprintboard.schemas import CardCreate, CardMove, CardResponse, CardSprintsUpdate, StoryPointsUpdate
from sprintboard.services import boards
from sprintboard.services.backlog import BacklogAssigner
from sprintboard.services.story_points import StoryPointLedger

router = APIRouter()


@router.post("/cards", response_model=CardResponse, status_code=status.HTTP_201_CREATED)
def create_card(card_in: CardCreate, db: Session = Depends(get_db)):
    with service_errors():
        card = boards.create_card(
            db,
            card_in.board_id,
            card_in.title,
            column_id=card_in.column_id,
            story_points=card_in.story_points,
            description=card_in.description,
        )
    return CardResponse.model_validate(card)


@router.get("/cards/{card_id}", response_model=CardResponse)
def get_card(card_id: int, db: Session = Depends(get_db)):
    with service_errors():
        card = boards.get_card(db, card_id)
    return CardResponse.model_validate(card)


@router.post("/cards/{card_id}/move", response_model=CardResponse)
def move_card(card_id: int, move_in: CardMove, db: Session = Depends(get_db)):
    """Move a card between kanban columns."""
    with service_errors():
        card = boards.move_card(db, card_id, move_in.column_id)
    return CardResponse.model_validate(card)


@router.put("/cards/{card_id}/story-points", response_model=CardResponse)
def set_story_points(card_id: int, points_in: StoryPointsUpdate, db: Session = Depends(get_db)):
    with service_errors():
        card = StoryPointLedger(db).set_story_points(card_id, points_in.story_points)
    return CardResponse.model_validate(card)


@router.post("/cards/{card_id}/sprints/{sprint_id}", response_model=CardResponse)
def assign_card_to_sprint(card_id: int, sprint_id: int, db: Session = Depends(get_db)):
    with service_errors():
        card = BacklogAssigner(db).assign_card_to_sprint(card_id, sprint_id)
    return CardResponse.model_validate(card)


@router.delete("/cards/{card_id}/sprints/{sprint_id}", response_model=CardResponse)
def unassign_card_from_sprint(card_id: int, sprint_id: int, db: Session = Depends(get_db)):
    with service_errors():
        card = BacklogAssigner(db).unassign_card_from_sprint(card_id, sprint_id)
    return CardResponse.model_validate(card)


@router.put("/cards/{card_id}/sprints", response_model=CardResponse)
def set_card_sprints(card_id: int, sprints_in: CardSprintsUpdate, db: Session = Depends(get_db)):
    with service_errors():
        card = BacklogAssigner(db).set_card_sprints(card_id, sprints_in.sprint_ids)
    return CardResponse.model_validate(card)


@router.post("/cards/{card_id}/backlog", response_model=CardResponse)
def move_card_to_backlog(card_id: int, db: Session = Depends(get_db)):
    """Remove a card from all its sprints without changing its column."""
    with service_errors():
        card = BacklogAssigner(db).move_card_to_backlog(card_id)
    return CardResponse.model_validate(card)

from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import sprintboard.models as models
from sprintboard.database import Base
from sprintboard.services import boards
from sprintboard.services.metrics import metrics_cache
from sprintboard.services.sprints import SprintRegistry
from sprintboard.utils.timeutils import utcnow

TEST_DATABASE_URL = "sqlite://"
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def db_session() -> Session:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    metrics_cache.clear()
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def board(db_session: Session) -> models.Board:
    return boards.create_board(db_session, "Team Board")


def column_named(session: Session, board: models.Board, name: str) -> models.BoardColumn:
    return (
        session.query(models.BoardColumn)
        .filter(models.BoardColumn.board_id == board.id, models.BoardColumn.name == name)
        .one()
    )


def make_card(session: Session, board: models.Board, title: str, column: str = "Todo", points=None) -> models.Card:
    return boards.create_card(
        session,
        board.id,
        title,
        column_id=column_named(session, board, column).id,
        story_points=points,
    )


def make_closed_sprint(session: Session, board: models.Board, name: str) -> models.Sprint:
    registry = SprintRegistry(session)
    sprint = registry.create_sprint(board.id, name)
    registry.start_sprint(sprint.id)
    return registry.complete_sprint(sprint.id)


def days_ago(days: int) -> datetime:
    return utcnow().replace(microsecond=0) - timedelta(days=days)

"""Version 1 of the planning API."""
from fastapi import APIRouter

from sprintboard.api.v1 import boards, cards, metrics, sprints

api_router = APIRouter()
api_router.include_router(boards.router, tags=["boards"])
api_router.include_router(cards.router, tags=["cards"])
api_router.include_router(sprints.router, tags=["sprints"])
api_router.include_router(metrics.router, tags=["metrics"])

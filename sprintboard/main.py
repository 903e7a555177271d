"""FastAPI application for sprint planning and metrics."""
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sprintboard import models  # noqa: F401  (registers the tables)
from sprintboard.api.v1 import api_router
from sprintboard.config import configure_logging, settings
from sprintboard.database import Base, engine
from sprintboard.snapshot_job import run_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging()
    Base.metadata.create_all(bind=engine)

    scheduler = None
    if settings.SNAPSHOT_SCHEDULER_ENABLED:
        logger.info("Starting snapshot scheduler every %ss", settings.SNAPSHOT_INTERVAL_SECONDS)
        scheduler = asyncio.create_task(run_scheduler(settings.SNAPSHOT_INTERVAL_SECONDS))
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.cancel()


app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, debug=settings.DEBUG, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.get("/health", include_in_schema=False)
def health():
    return {"status": "ok", "version": settings.APP_VERSION}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("sprintboard.main:app", host=settings.HOST, port=settings.PORT)

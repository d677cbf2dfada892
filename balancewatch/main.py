"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from balancewatch.config import settings
from balancewatch.database import create_db_and_tables, make_engine
from balancewatch.errors import PipelineError
from balancewatch.services.notifications import build_notifier
from balancewatch.store import SnapshotStore
from balancewatch.utils.logging import setup_logging
from balancewatch.api import dashboard, ingest, system

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    setup_logging()
    engine = make_engine(settings.database_url)
    create_db_and_tables(engine)
    app.state.store = SnapshotStore(engine)
    app.state.notifier = build_notifier()

    if not settings.service_api_key:
        logger.warning("BW_SERVICE_API_KEY is not set; ingestion and triggers will reject every call")
    if app.state.notifier is None:
        logger.warning("BW_WEBHOOK_URL is not set; hourly batches are not forwarded and the anchor export will fail")

    if settings.scheduler_enabled:
        from balancewatch.engine.scheduler import start_scheduler
        start_scheduler(app.state.store, app.state.notifier)

    yield

    if settings.scheduler_enabled:
        from balancewatch.engine.scheduler import stop_scheduler
        stop_scheduler()
    engine.dispose()


app = FastAPI(
    title="Balance Watch",
    description="Account snapshot ingestion, hourly rollups and daily deltas",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError):
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


# Mount routers
app.include_router(ingest.router)
app.include_router(dashboard.router)
app.include_router(system.router)

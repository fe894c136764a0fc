from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from printsync import config
from printsync.config import PipelineSettings, logger
from printsync.errors import ConfigError
from printsync.services.pipeline import PipelineOrchestrator, build_orchestrator
from printsync.services.poller import Poller

from .routers import router


@asynccontextmanager
async def lifespan(app: FastAPI):
    owns_orchestrator = app.state.orchestrator is None
    if owns_orchestrator:
        settings = app.state.settings or PipelineSettings.from_env()
        try:
            settings.validate()
        except ConfigError as exc:
            logger.error(f"Missing environment configuration: {exc}")
            raise
        app.state.settings = settings
        app.state.orchestrator = build_orchestrator(settings)

    interval = (
        app.state.settings.poll_interval_seconds
        if app.state.settings
        else config.POLL_INTERVAL_SECONDS
    )
    if app.state.start_poller:
        app.state.poller = Poller(app.state.orchestrator, interval)
        app.state.poller.start()

    logger.info("Printify sync service started")
    try:
        yield
    finally:
        if app.state.poller is not None:
            await app.state.poller.stop()
            app.state.poller = None
        if owns_orchestrator:
            await app.state.orchestrator.aclose()
            app.state.orchestrator = None
        logger.info("Printify sync service stopped")


def create_app(
    orchestrator: Optional[PipelineOrchestrator] = None,
    *,
    settings: Optional[PipelineSettings] = None,
    start_poller: Optional[bool] = None,
) -> FastAPI:
    """Build the API. The pipeline is wired at startup unless one is passed in."""
    app = FastAPI(
        title="Printify Sync",
        description="Turns newly generated images into Printify products",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.orchestrator = orchestrator
    app.state.settings = settings
    app.state.poller = None
    app.state.start_poller = (
        config.POLLING_ENABLED if start_poller is None else start_poller
    )

    app.include_router(router)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


# Initialize FastAPI application
app = create_app()

logger.info("Printify sync API initialized successfully")

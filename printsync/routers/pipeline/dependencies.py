"""FastAPI dependencies shared across pipeline endpoints."""

from fastapi import HTTPException, Request

from printsync import config
from printsync.services.pipeline import PipelineOrchestrator


def get_orchestrator(request: Request) -> PipelineOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Pipeline is not initialized")
    return orchestrator


def require_app_secret(request: Request) -> None:
    """
    Validate the X-App-Secret header when APP_SECRET is configured.

    Raises:
        HTTPException: 400 if header is missing, 403 if invalid
    """
    if not config.APP_SECRET:
        return

    secret = request.headers.get("X-App-Secret")
    if not secret:
        raise HTTPException(status_code=400, detail="Missing X-App-Secret header")
    if secret != config.APP_SECRET:
        raise HTTPException(status_code=403, detail="Invalid X-App-Secret header")

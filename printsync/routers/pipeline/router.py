"""FastAPI router for on-demand pipeline control."""

from fastapi import APIRouter, Depends, Request

from printsync.config import logger
from printsync.services.pipeline import PipelineOrchestrator

from .dependencies import get_orchestrator, require_app_secret
from .models import CycleResponse, StatusResponse

router = APIRouter(prefix="/api/v1", tags=["Pipeline"])


@router.post(
    "/cycle",
    response_model=CycleResponse,
    dependencies=[Depends(require_app_secret)],
)
async def trigger_cycle(
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
) -> CycleResponse:
    """Run one sync cycle now. Returns ``busy`` if one is already running."""

    logger.info("On-demand cycle requested")
    result = await orchestrator.run_cycle()
    return CycleResponse(**result.to_dict())


@router.get("/status", response_model=StatusResponse)
async def pipeline_status(
    request: Request,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
) -> StatusResponse:
    poller = getattr(request.app.state, "poller", None)
    return StatusResponse(
        polling=bool(poller and poller.running),
        **orchestrator.status(),
    )

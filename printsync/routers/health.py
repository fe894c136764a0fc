"""Liveness endpoint."""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["Health"])

HEALTH_MESSAGE = "Printify auto-uploader is alive"


@router.get("/health", response_class=PlainTextResponse)
async def health() -> str:
    return HEALTH_MESSAGE

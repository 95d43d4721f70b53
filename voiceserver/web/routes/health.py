"""
Read-only status endpoints.
"""

import logging

from fastapi import APIRouter, Request

logger = logging.getLogger("voiceserver.web.health")

router = APIRouter(tags=["Status"])


@router.get("/health")
async def health_check(request: Request):
    """
    Health check endpoint.
    Returns the selected backend, availability of every registered backend and
    the selected backend's own health fields.
    """
    return request.app.state.notifier.health()


@router.get("/voices")
async def list_voices(request: Request):
    """List voice identifiers known to the selected backend."""
    notifier = request.app.state.notifier
    return {
        "status": "success",
        "backend": notifier.backend.name,
        "voices": notifier.voices(),
    }

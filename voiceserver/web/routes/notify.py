"""
Notification endpoints.
Validate, rate-limit and queue messages; never wait for speech.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger("voiceserver.web.notify")

router = APIRouter(tags=["Notifications"])


class NotifyRequest(BaseModel):
    """Body of POST /notify."""
    message: Any = None
    voice_enabled: bool = True
    voice_id: Optional[str] = None
    agent: Optional[str] = None


class PaiRequest(BaseModel):
    """Body of POST /pai."""
    message: Any = None
    agent: Optional[str] = None


def client_identity(request: Request) -> str:
    """First X-Forwarded-For entry, else the peer address. Trusted as sent."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


@router.post("/notify", status_code=202)
async def notify(body: NotifyRequest, request: Request):
    """
    Queue a notification for playback.
    Accepts an optional voice id and agent name.
    """
    notifier = request.app.state.notifier
    result = notifier.notify(
        body.message,
        client_identity(request),
        voice_id=body.voice_id,
        agent=body.agent,
        voice_enabled=body.voice_enabled,
    )
    return {"status": "success", "message": result}


@router.post("/pai", status_code=202)
async def pai(body: PaiRequest, request: Request):
    """
    Queue a notification for the assistant persona.
    The agent defaults to the configured persona.
    """
    notifier = request.app.state.notifier
    result = notifier.notify(
        body.message,
        client_identity(request),
        agent=body.agent or notifier.config.default_agent,
    )
    return {"status": "success", "message": result}


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "error", "message": message})

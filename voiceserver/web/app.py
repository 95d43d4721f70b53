"""
FastAPI application for the voice notification server.
Provides the notification endpoints and the health/status endpoints.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response
import uvicorn

from voiceserver.core.errors import VoiceServerError
from voiceserver.core.service import VoiceNotifier
from voiceserver.version import __version__
from voiceserver.web.routes import health, notify
from voiceserver.web.routes.notify import error_response

logger = logging.getLogger("voiceserver.web.app")


def create_app(notifier: VoiceNotifier) -> FastAPI:
    """
    Build the app around an already-configured notifier.

    The notifier's playback worker runs for the lifetime of the app.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting voice server (backend: {notifier.backend.name})")
        await notifier.start()
        try:
            yield
        finally:
            logger.info("Shutting down voice server")
            await notifier.stop()

    app = FastAPI(
        title="Voice Notification Server",
        description="Speaks short notifications through a local or cloud TTS backend",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.notifier = notifier

    cors_headers = {
        "Access-Control-Allow-Origin": notifier.config.server.cors_origin,
        "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
    }

    @app.middleware("http")
    async def cors(request: Request, call_next):
        if request.method == "OPTIONS":
            response = Response(status_code=204)
        else:
            response = await call_next(request)
        response.headers.update(cors_headers)
        return response

    @app.exception_handler(VoiceServerError)
    async def voice_server_error_handler(request: Request, exc: VoiceServerError):
        notifier.error_handler.log_error(exc, context={"path": request.url.path})
        return error_response(exc.status_code, exc.user_message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        logger.warning(f"Invalid request body on {request.url.path}: {detail}")
        return error_response(400, f"Invalid request: {detail}")

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        notifier.error_handler.log_error(exc, context={"path": request.url.path})
        # Runs outside the http middleware stack, so CORS headers are added here
        response = error_response(500, "Internal server error")
        response.headers.update(cors_headers)
        return response

    app.include_router(notify.router)
    app.include_router(health.router)

    return app


def run_server(app: FastAPI, host: str = "127.0.0.1", port: int = 8888):
    """
    Run the web server (blocking).

    Args:
        app: Application from create_app()
        host: Host to bind to (127.0.0.1 for local only)
        port: Port to listen on
    """
    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level="info",
        log_config=None,
    )
    server = uvicorn.Server(config)
    server.run()

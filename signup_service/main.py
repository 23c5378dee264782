# signup_service/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from signup_service.api.api import api_router
from signup_service.core.config import settings
from signup_service.core.errors import (
    AppError,
    PayloadTooLargeError,
    app_error_handler,
    http_error_handler,
    render_app_error,
    unexpected_error_handler,
    validation_error_handler,
)
from signup_service.core.rate_limiter import RequestRateLimiters
from signup_service.core.security import SECURITY_HEADERS
from signup_service.db.session import engine

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class BodySizeLimitMiddleware:
    """
    Rejects request bodies over MAX_REQUEST_BODY_BYTES with 413.

    A declared Content-Length is checked up front. Bodies without one
    (chunked uploads) are counted while the endpoint reads them.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limit = settings.MAX_REQUEST_BODY_BYTES
        path = scope.get("path", "")
        content_length = Headers(scope=scope).get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > limit:
            logger.warning(f"Rejected {content_length} byte body on {path}")
            response = render_app_error(PayloadTooLargeError())
            await response(scope, receive, send)
            return

        received = 0

        async def receive_limited() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    logger.warning(f"Rejected streamed body over {limit} bytes on {path}")
                    raise StarletteHTTPException(status_code=413, detail=PayloadTooLargeError().message)
            return message

        await self.app(scope, receive_limited, send)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info(f"Starting {settings.PROJECT_NAME} ({settings.ENV})...")

    app.state.rate_limiters = RequestRateLimiters.from_settings(settings)
    await app.state.rate_limiters.start()
    logger.info("Rate limiters ready")

    yield

    logger.info("Shutting down...")
    await app.state.rate_limiters.stop()
    engine.dispose()
    logger.info("Database pool closed")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    description="Registration API for the BOSS.net V private party.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)
app.add_middleware(BodySizeLimitMiddleware)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    return response


app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.add_exception_handler(StarletteHTTPException, http_error_handler)
app.add_exception_handler(Exception, unexpected_error_handler)

app.include_router(api_router, prefix="/api")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=5177)

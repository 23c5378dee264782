"""
Application errors and their HTTP mapping.

Every error that leaves the process is one of the kinds below. Handlers
render them as a flat ``{"error": message, ...}`` body so the signup form
can show ``error`` directly. Database and driver text never ends up in a
response; it is logged server-side only.
"""

import logging
import traceback
from typing import Any, Dict, List, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from signup_service.core.security import SECURITY_HEADERS

logger = logging.getLogger(__name__)


class ErrorCategory:
    """Log tags for the error kinds below"""
    VALIDATION = "validation_error"
    BOT_DETECTED = "bot_detected"
    RATE_LIMIT = "rate_limit_error"
    CONFLICT = "conflict_error"
    INVALID_DATA = "invalid_data"
    AUTHENTICATION = "authentication_error"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    INTERNAL = "internal_error"


class AppError(Exception):
    """An error the API answers with a fixed message and status."""

    def __init__(
        self,
        message: str,
        category: str = ErrorCategory.INTERNAL,
        status_code: int = 500,
        extra: Optional[Dict[str, Any]] = None,
        retry_after: Optional[int] = None,
    ):
        self.message = message
        self.category = category
        self.status_code = status_code
        self.extra = extra or {}
        self.retry_after = retry_after
        super().__init__(self.message)


class RegistrationValidationError(AppError):
    """Submission failed field validation. Itemized, client-fixable."""

    def __init__(self, details: List[str], consent_error: Optional[str] = None):
        extra: Dict[str, Any] = {"details": details}
        if consent_error:
            extra["consent"] = consent_error
        super().__init__(
            message="Eingabefehler gefunden.",
            category=ErrorCategory.VALIDATION,
            status_code=400,
            extra=extra,
        )
        self.details = details
        self.consent_error = consent_error


class BotDetectedError(AppError):
    """Opaque rejection. Never says which heuristic fired."""

    def __init__(self):
        super().__init__(
            message="Verdächtige Aktivität erkannt.",
            category=ErrorCategory.BOT_DETECTED,
            status_code=429,
        )


class RateLimitError(AppError):
    """A per-address window is full."""

    def __init__(self, message: str, retry_after: int = 60):
        super().__init__(
            message=message,
            category=ErrorCategory.RATE_LIMIT,
            status_code=429,
            extra={"retry_after": retry_after},
            retry_after=retry_after,
        )


class RegistrationConflictError(AppError):
    """Unique email violated by a concurrent submission."""

    def __init__(self):
        super().__init__(
            message="E-Mail bereits registriert.",
            category=ErrorCategory.CONFLICT,
            status_code=409,
        )


class InvalidRegistrationDataError(AppError):
    """A store check constraint rejected the row."""

    def __init__(self):
        super().__init__(
            message="Ungültige Eingabedaten.",
            category=ErrorCategory.INVALID_DATA,
            status_code=400,
        )


class RegistrationStoreError(AppError):
    """Any other store failure. Opaque to the caller."""

    def __init__(self, message: str = "Ein Fehler ist aufgetreten. Bitte versuche es später erneut."):
        super().__init__(
            message=message,
            category=ErrorCategory.INTERNAL,
            status_code=500,
        )


class UnauthorizedError(AppError):
    def __init__(self):
        super().__init__(
            message="Unauthorized",
            category=ErrorCategory.AUTHENTICATION,
            status_code=401,
        )


class PayloadTooLargeError(AppError):
    def __init__(self):
        super().__init__(
            message="Anfrage zu groß.",
            category=ErrorCategory.PAYLOAD_TOO_LARGE,
            status_code=413,
        )


def render_app_error(error: AppError) -> JSONResponse:
    headers = {}
    if error.retry_after:
        headers["Retry-After"] = str(error.retry_after)

    return JSONResponse(
        status_code=error.status_code,
        content={"error": error.message, **error.extra},
        headers=headers,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Renders an AppError; server-side failures log at error level."""
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        f"{exc.category} on {request.method} {request.url.path}: {exc.message}",
        extra={"category": exc.category, "status_code": exc.status_code},
    )
    return render_app_error(exc)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies (e.g. broken JSON) are reported like field errors."""
    details = []
    for err in exc.errors():
        field = ".".join(str(loc) for loc in err["loc"] if loc != "body")
        details.append(f"{field}: {err['msg']}" if field else err["msg"])

    logger.warning(f"Request validation error on {request.url.path}: {details}")
    return render_app_error(RegistrationValidationError(details=details))


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        message = "Endpoint nicht gefunden."
    elif exc.status_code == 405:
        message = "Methode nicht erlaubt."
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": message},
        headers=getattr(exc, "headers", None),
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort. Logs the traceback, answers with a generic message."""
    logger.critical(
        f"Unexpected error: {type(exc).__name__}",
        extra={
            "traceback": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            "path": request.url.path,
            "method": request.method,
        },
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={"error": "Ein unerwarteter Fehler ist aufgetreten."},
        # ServerErrorMiddleware sends this outside the header middleware
        headers=SECURITY_HEADERS,
    )

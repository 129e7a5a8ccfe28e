import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class BarbershopError(Exception):
    """Base class for errors that map onto an HTTP response.

    ``message`` is returned verbatim to the caller, so it must never carry
    internal detail.
    """

    status_code = 500
    code = "internal"
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRequest(BarbershopError):
    status_code = 400
    code = "invalid_request"
    default_message = "Invalid request"


class MissingFields(InvalidRequest):
    code = "missing_fields"
    default_message = "Service, date and time are required"


class PastDateTime(InvalidRequest):
    code = "past_date_time"
    default_message = "Cannot book an appointment in the past"


class TokenInvalidOrUsed(InvalidRequest):
    code = "token_invalid_or_used"
    default_message = "Invalid or already used token"


class TokenExpired(InvalidRequest):
    code = "token_expired"
    default_message = "Token expired"


class Unauthenticated(BarbershopError):
    status_code = 401
    code = "unauthenticated"
    default_message = "Not authenticated"


class InvalidCredentials(Unauthenticated):
    code = "invalid_credentials"
    default_message = "Invalid credentials"


class InvalidRenewalCredential(Unauthenticated):
    code = "invalid_refresh_token"
    default_message = "Invalid refresh token"


class Forbidden(BarbershopError):
    status_code = 403
    code = "forbidden"
    default_message = "Access denied"


class AccountDisabled(Forbidden):
    code = "account_disabled"
    default_message = "Account is disabled"


class NotFound(BarbershopError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class Conflict(BarbershopError):
    status_code = 409
    code = "conflict"
    default_message = "Conflict"


class SlotConflict(Conflict):
    code = "slot_conflict"
    default_message = "Time slot already booked for this barber"


class InvalidStatusTransition(Conflict):
    code = "invalid_status_transition"
    default_message = "Status change not allowed"


class TooManyAttempts(BarbershopError):
    status_code = 429
    code = "too_many_attempts"
    default_message = "Too many failed attempts"


class Internal(BarbershopError):
    pass


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


def _error_body(request: Request, detail, code: str) -> dict:
    return {
        "success": False,
        "detail": detail,
        "code": code,
        "request_id": _request_id(request),
    }


def register_error_handlers(app: FastAPI, debug_errors: bool = False) -> None:
    @app.exception_handler(BarbershopError)
    async def barbershop_error_handler(request: Request, exc: BarbershopError):
        if exc.status_code >= 500:
            logger.error(
                "Request failed request_id=%s path=%s code=%s",
                _request_id(request),
                request.url.path,
                exc.code,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, exc.message, exc.code),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        messages = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
            messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
        return JSONResponse(
            status_code=400,
            content=_error_body(request, "; ".join(messages) or "Invalid request", InvalidRequest.code),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        code = "not_found" if exc.status_code == 404 else "http_error"
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, exc.detail, code),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        request_id = _request_id(request)
        logger.exception(
            "Unhandled error request_id=%s method=%s path=%s",
            request_id,
            request.method,
            request.url.path,
        )
        content = _error_body(request, Internal.default_message, Internal.code)
        if debug_errors:
            content["stack"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
        return JSONResponse(status_code=500, content=content)

"""Exception handlers mapping domain errors to JSON responses."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from neriah.api.auth.exceptions import AuthenticationError
from neriah.providers.base import AttachmentNotFoundError, MailProviderError
from neriah.services.item_service import InvalidSnoozeError, ItemNotFoundError
from neriah.services.sync_service import (
    EligibilityError,
    PersistenceError,
    ProfileNotFoundError,
    SyncInProgressError,
)

logger = structlog.get_logger(__name__)

Handler = Callable[[Request, Exception], Awaitable[JSONResponse]]


def error_response(status_code: int, error: str, message: str) -> JSONResponse:
    """Build the ``{error, message}`` body used by every error response."""
    return JSONResponse(status_code=status_code, content={"error": error, "message": message})


def _handler(status_code: int, error: str) -> Handler:
    async def handle(request: Request, exc: Exception) -> JSONResponse:
        await logger.awarning(
            "request_rejected",
            error=error,
            status_code=status_code,
            detail=str(exc),
        )
        return error_response(status_code, error, str(exc))

    return handle


async def _validation_handler(request: Request, exc: Exception) -> JSONResponse:
    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    fields = sorted({".".join(str(p) for p in e.get("loc", ())[1:]) for e in errors})
    message = "Invalid request" + (f": {', '.join(f for f in fields if f)}" if fields else "")
    return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, "validation_error", message)


async def _unhandled_handler(request: Request, exc: Exception) -> JSONResponse:
    await logger.aexception("unhandled_error", error_type=type(exc).__name__)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        str(exc) or "Internal server error",
    )


def setup_error_handlers(app: FastAPI) -> None:
    """Register exception handlers.

    Starlette picks the handler for the most specific class in the
    exception's MRO, so subclasses registered here override their bases.

    Args:
        app: FastAPI application.
    """
    handlers: dict[type[Exception], Handler] = {
        EligibilityError: _handler(status.HTTP_400_BAD_REQUEST, "not_eligible"),
        ProfileNotFoundError: _handler(status.HTTP_404_NOT_FOUND, "profile_not_found"),
        AuthenticationError: _handler(status.HTTP_401_UNAUTHORIZED, "unauthorized"),
        ItemNotFoundError: _handler(status.HTTP_404_NOT_FOUND, "item_not_found"),
        AttachmentNotFoundError: _handler(status.HTTP_404_NOT_FOUND, "attachment_not_found"),
        SyncInProgressError: _handler(status.HTTP_409_CONFLICT, "sync_in_progress"),
        InvalidSnoozeError: _handler(status.HTTP_422_UNPROCESSABLE_ENTITY, "invalid_snooze"),
        MailProviderError: _handler(status.HTTP_502_BAD_GATEWAY, "mail_provider_error"),
        PersistenceError: _handler(status.HTTP_500_INTERNAL_SERVER_ERROR, "persistence_error"),
        RequestValidationError: _validation_handler,
        Exception: _unhandled_handler,
    }
    for exc_class, handler in handlers.items():
        app.add_exception_handler(exc_class, handler)

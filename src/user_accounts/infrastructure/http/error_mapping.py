"""Translate user domain failures into HTTP statuses and error envelopes."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from user_accounts.application.dto.user_models import ApiResponse
from user_accounts.application.services.user_service import (
    EmailAlreadyExistsError,
    UserNotFoundError,
    UserServiceError,
    UserValidationError,
)

logger = logging.getLogger(__name__)

VALIDATION_FAILED_MESSAGE = "Validation failed"
INTERNAL_ERROR_MESSAGE = "Internal server error"


def map_error_to_response(
    error: Exception,
    *,
    split_status_codes: bool = False,
) -> tuple[int, ApiResponse[None]]:
    """Return HTTP status and error envelope for one failure.

    Not-found and conflict failures are reported as 400 unless
    `split_status_codes` opts into 404/409.
    """

    if isinstance(error, UserValidationError):
        return 400, ApiResponse[None](
            success=False,
            message=VALIDATION_FAILED_MESSAGE,
            errors=error.errors,
        )
    if isinstance(error, UserNotFoundError):
        status = 404 if split_status_codes else 400
        return status, ApiResponse[None](success=False, message=str(error))
    if isinstance(error, EmailAlreadyExistsError):
        status = 409 if split_status_codes else 400
        return status, ApiResponse[None](success=False, message=str(error))
    if isinstance(error, UserServiceError):
        return 400, ApiResponse[None](success=False, message=str(error))
    return 500, ApiResponse[None](success=False, message=INTERNAL_ERROR_MESSAGE)


def format_request_errors(errors: Sequence[Any]) -> list[str]:
    """Render request schema errors as `field: message` strings."""

    rendered: list[str] = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "path")]
        message = str(error.get("msg", "invalid value"))
        rendered.append(f"{'.'.join(location)}: {message}" if location else message)
    return rendered


def envelope_response(
    status_code: int,
    envelope: ApiResponse[Any],
    *,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Serialize one envelope with camelCase keys."""

    return JSONResponse(
        status_code=status_code,
        content=envelope.model_dump(mode="json", by_alias=True),
        headers=headers,
    )


def register_error_handlers(app: FastAPI, *, split_status_codes: bool = False) -> None:
    """Install exception handlers mapping failures to the error envelope."""

    @app.exception_handler(RequestValidationError)
    async def _handle_request_validation(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        _ = request
        errors = format_request_errors(exc.errors())
        return envelope_response(
            400,
            ApiResponse[None](
                success=False,
                message=VALIDATION_FAILED_MESSAGE,
                errors=errors,
            ),
        )

    @app.exception_handler(UserServiceError)
    async def _handle_user_service_error(
        request: Request,
        exc: UserServiceError,
    ) -> JSONResponse:
        status_code, envelope = map_error_to_response(
            exc,
            split_status_codes=split_status_codes,
        )
        logger.info(
            "user_request_rejected method=%s path=%s status=%s reason=%s",
            request.method,
            request.url.path,
            status_code,
            type(exc).__name__,
        )
        return envelope_response(status_code, envelope)

    @app.exception_handler(StarletteHTTPException)
    async def _handle_http_error(
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        _ = request
        return envelope_response(
            exc.status_code,
            ApiResponse[None](success=False, message=str(exc.detail)),
            headers=exc.headers,
        )

    # Last resort for unexpected errors: answered and logged once, never re-raised.
    @app.middleware("http")
    async def _handle_unexpected_error(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception(
                "user_request_failed method=%s path=%s",
                request.method,
                request.url.path,
            )
            status_code, envelope = map_error_to_response(exc)
            return envelope_response(status_code, envelope)

"""
Domain exceptions, structured error responses and global exception handlers.

Every error returned by the API follows this envelope:

    {
        "error": "snake_case_code",
        "message": "Human-readable description.",
        "detail": { ... }   // optional
    }
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


# --------------------------------------------------------------------------- #
# Canonical error envelope
# --------------------------------------------------------------------------- #

def error_response(
    code: str,
    message: str,
    status_code: int,
    detail: Any = None,
) -> JSONResponse:
    body: dict[str, Any] = {"error": code, "message": message}
    if detail is not None:
        body["detail"] = detail
    return JSONResponse(status_code=status_code, content=body)


# --------------------------------------------------------------------------- #
# Custom exception classes
# --------------------------------------------------------------------------- #

class ClarityAPIError(Exception):
    """Base exception for all domain errors raised inside services."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class InvalidInputError(ClarityAPIError):
    """Malformed arguments, detected before any computation starts."""

    def __init__(self, message: str) -> None:
        super().__init__("invalid_input", message, status.HTTP_422_UNPROCESSABLE_ENTITY)


class ComputationFailureError(ClarityAPIError):
    """An unexpected failure inside one pipeline stage."""

    def __init__(self, stage: str, message: str) -> None:
        self.stage = stage
        super().__init__(
            "computation_failure",
            f"{stage}: {message}",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


class PixelBufferTooLargeError(ClarityAPIError):
    def __init__(self, size_bytes: int, max_bytes: int) -> None:
        super().__init__(
            "pixel_buffer_too_large",
            f"Pixel buffer is {size_bytes:,} bytes; maximum allowed is {max_bytes:,} bytes.",
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        )


class BatchTooLargeError(ClarityAPIError):
    def __init__(self, received: int, max_allowed: int) -> None:
        super().__init__(
            "batch_too_large",
            f"Batch contains {received} images; maximum allowed is {max_allowed}.",
            status.HTTP_422_UNPROCESSABLE_ENTITY,
        )


# --------------------------------------------------------------------------- #
# FastAPI exception handlers, register via register_exception_handlers()
# --------------------------------------------------------------------------- #

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ClarityAPIError)
    async def clarity_api_error_handler(
        request: Request, exc: ClarityAPIError
    ) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("ClarityAPIError [%s]: %s", exc.code, exc.message)
        else:
            logger.warning("ClarityAPIError [%s]: %s", exc.code, exc.message)
        return error_response(exc.code, exc.message, exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        # Dependencies (e.g. auth) raise with the envelope already in `detail`.
        if isinstance(exc.detail, dict) and "error" in exc.detail:
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.detail,
                headers=exc.headers,
            )
        return error_response(
            code="http_error",
            message=str(exc.detail),
            status_code=exc.status_code,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.debug("RequestValidationError: %s", exc.errors())
        return error_response(
            code="validation_error",
            message="Request body or query parameters failed validation.",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=jsonable_errors(exc.errors()),
        )

    @app.exception_handler(ValidationError)
    async def pydantic_validation_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        return error_response(
            code="validation_error",
            message="Internal data validation error.",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=jsonable_errors(exc.errors()),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.exception("Unhandled exception: %s", exc)
        return error_response(
            code="internal_error",
            message="An unexpected error occurred. Please try again later.",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


def jsonable_errors(errors: Any) -> Any:
    # Validator errors may carry the raised exception in `ctx`.
    return jsonable_encoder(errors, custom_encoder={Exception: str})

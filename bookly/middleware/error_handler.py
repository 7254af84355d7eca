"""Error handling: typed scheduling failures and a last-resort middleware."""

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from bookly.exceptions import (
    ConflictError,
    InputValidationError,
    NotFoundError,
    SchedulingError,
    StorageError,
)
from bookly.middleware.logging import redact_pii

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: list[tuple[type[SchedulingError], int]] = [
    (NotFoundError, 404),
    (InputValidationError, 400),
    (ConflictError, 409),
    (StorageError, 503),
]


def status_for(exc: SchedulingError) -> int:
    for error_cls, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            return status_code
    return 500


def register_exception_handlers(app: FastAPI, expose_details: bool = False) -> None:
    """Map core failures onto HTTP responses.

    ``expose_details`` adds the underlying cause of storage failures to the
    body; it is meant for development only.
    """

    @app.exception_handler(SchedulingError)
    async def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
        status_code = status_for(exc)
        content: dict = {"detail": exc.message, "error_type": exc.code}
        if exc.details:
            content["details"] = exc.details

        if isinstance(exc, StorageError):
            logger.error("Storage failure: %s (cause: %s)", exc.message, redact_pii(str(exc.__cause__)))
            if expose_details and exc.__cause__ is not None:
                content["cause"] = redact_pii(str(exc.__cause__))
        else:
            logger.info("%s %s -> %d %s", request.method, request.url.path, status_code, exc.code)

        return JSONResponse(status_code=status_code, content=content)

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error("Unclassified storage failure: %s", redact_pii(str(exc)))
        content = {"detail": "Storage is unavailable. Please try again later.", "error_type": StorageError.code}
        if expose_details:
            content["cause"] = redact_pii(str(exc))
        return JSONResponse(status_code=503, content=content)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Catch unhandled exceptions and return safe error responses."""

    def __init__(self, app, expose_details: bool = False) -> None:
        super().__init__(app)
        self._expose_details = expose_details

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            error_msg = redact_pii(str(exc))
            tb = traceback.format_exc()

            logger.error(
                "Unhandled exception: %s\n%s",
                error_msg,
                redact_pii(tb),
            )

            detail = "An internal error occurred. Please try again later."
            if self._expose_details:
                detail = f"Internal server error: {error_msg}"
            return JSONResponse(
                status_code=500,
                content={
                    "detail": detail,
                    "error_type": type(exc).__name__,
                },
            )

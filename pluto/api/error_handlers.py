"""Error Handlers — turn loader and storage failures into the JSON error envelope.

Invariants:
    - PlutoError keeps its own status: 400 bad path, 404/409 singleton misses,
      503 when storage is down
    - Request errors log at WARNING, storage and server errors at ERROR
    - Bad query parameters (unknown strategy, non-integer id) answer 400, not 422
    - Unexpected exceptions answer 500 with a fixed message and no internals
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from pluto.core.errors import PlutoError, ErrorSeverity

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Install the PlutoError, validation and fallback handlers."""
    app.add_exception_handler(PlutoError, _handle_pluto_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)


async def _handle_pluto_error(request: Request, exc: PlutoError) -> JSONResponse:
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        f"{request.method} {request.url.path} failed: {exc.message}",
        extra={
            "error_code": exc.code,
            "entity": exc.context.entity,
            "strategy": exc.context.strategy,
        },
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def _handle_validation_error(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    logger.warning(
        f"Rejected query on {request.url.path}: {exc.errors()}",
        extra={"error_code": "VALIDATION_ERROR"},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_validation_envelope(exc),
    )


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.url.path}",
        exc_info=True,
        extra={"error_code": "INTERNAL_ERROR"},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "category": "internal",
                "severity": ErrorSeverity.CRITICAL.value,
            },
        },
    )


def _validation_envelope(exc: RequestValidationError) -> dict:
    """One entry per rejected parameter, located as e.g. "query.strategy"."""
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Invalid request parameters",
            "category": "validation",
            "severity": ErrorSeverity.ERROR.value,
            "details": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }

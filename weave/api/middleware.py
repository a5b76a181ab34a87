"""API middleware: CORS, request logging and error handling.

Starlette runs middleware last-added-first, so ``create_app`` adds
``ErrorHandlingMiddleware`` before ``RequestLoggingMiddleware``; the
logger then sees the final status code even when an error was converted
into a JSON body.
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from weave.api.schemas import ErrorResponse
from weave.utils.errors import WeaveError
from weave.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware; defaults to ``["*"]`` for local development."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code and duration."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
            return response
        finally:
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=response.status_code if response else 500,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Convert :class:`WeaveError` into ``{"error", "detail"}`` with its status code.

    Stack traces stay in the server log; the client only sees the class
    name and message.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except WeaveError as exc:
            log = _logger.warning if exc.status_code < 500 else _logger.error
            log(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                status=exc.status_code,
                path=str(request.url.path),
                exc_info=exc.status_code >= 500,
            )
            body = ErrorResponse(error=type(exc).__name__, detail=exc.message)
            return JSONResponse(status_code=exc.status_code, content=body.model_dump())

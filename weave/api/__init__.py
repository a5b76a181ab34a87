"""Weave API layer: routes, schemas, WebSocket and middleware."""

from weave.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from weave.api.routes import router
from weave.api.schemas import ErrorResponse, HealthResponse, IngestResponse
from weave.api.websocket import websocket_progress

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "websocket_progress",
    "ErrorResponse",
    "HealthResponse",
    "IngestResponse",
]

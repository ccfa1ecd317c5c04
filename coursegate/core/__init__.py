# Core infrastructure
from coursegate.core.context import (
    clear_context,
    get_context,
    get_request_id,
    set_actor,
    set_request_id,
    set_trace_id,
)
from coursegate.core.exceptions import (
    AlreadyEnrolledError,
    AuthorizationError,
    CourseGateError,
    GatewayError,
    NotFoundError,
    ValidationError,
)
from coursegate.core.logging import configure_structlog, get_logger


__all__ = [
    "AlreadyEnrolledError",
    "AuthorizationError",
    "CourseGateError",
    "GatewayError",
    "NotFoundError",
    "ValidationError",
    "clear_context",
    "configure_structlog",
    "get_context",
    "get_logger",
    "get_request_id",
    "set_actor",
    "set_request_id",
    "set_trace_id",
]

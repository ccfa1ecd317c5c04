"""Request context management using contextvars.

Each request gets a unique ID plus optional actor and trace information.
These values are only used to enrich log events; service operations always
receive the acting user explicitly and never read them from here.
"""

from contextvars import ContextVar
from typing import Any
from uuid import UUID, uuid4


request_id_var: ContextVar[str] = ContextVar("request_id", default="")
actor_id_var: ContextVar[str | None] = ContextVar("actor_id", default=None)
actor_role_var: ContextVar[str | None] = ContextVar("actor_role", default=None)
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return str(uuid4())


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


def set_request_id(request_id: str | None = None) -> str:
    """Set the request ID for the current context.

    Args:
        request_id: Optional request ID. If not provided, generates a new one.

    Returns:
        The request ID that was set.
    """
    rid = request_id or generate_request_id()
    request_id_var.set(rid)
    return rid


def set_actor(actor_id: str | UUID | None, role: str | None = None) -> None:
    """Record the authenticated actor for log enrichment."""
    actor_id_var.set(str(actor_id) if actor_id is not None else None)
    actor_role_var.set(role)


def set_trace_id(trace_id: str | None) -> None:
    """Set the trace ID from distributed tracing headers."""
    trace_id_var.set(trace_id)


def get_context() -> dict[str, Any]:
    """Get all non-empty context variables as a dictionary."""
    context: dict[str, Any] = {}

    request_id = request_id_var.get()
    if request_id:
        context["request_id"] = request_id

    actor_id = actor_id_var.get()
    if actor_id:
        context["actor_id"] = actor_id
        context["actor_role"] = actor_role_var.get()

    trace_id = trace_id_var.get()
    if trace_id:
        context["trace_id"] = trace_id

    return context


def clear_context() -> None:
    """Clear all context variables.

    Called at the end of each request to prevent leakage between requests.
    """
    request_id_var.set("")
    actor_id_var.set(None)
    actor_role_var.set(None)
    trace_id_var.set(None)

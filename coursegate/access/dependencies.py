"""Dependency injection for access module."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import AccessGate


async def get_access_gate(request: Request) -> AccessGate:
    """Get access gate from app state."""
    gate = getattr(request.app.state, "access_gate", None)
    if gate is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Access service not available",
        )
    return gate


AccessGateDep = Annotated[AccessGate, Depends(get_access_gate)]

"""Dependency injection for messaging module."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import MessagingService


async def get_messaging_service(request: Request) -> MessagingService:
    """Get messaging service from app state."""
    service = getattr(request.app.state, "messaging_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Messaging service not available",
        )
    return service


MessagingServiceDep = Annotated[MessagingService, Depends(get_messaging_service)]

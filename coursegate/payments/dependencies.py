"""Dependency injection for payments module."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import PaymentService


async def get_payment_service(request: Request) -> PaymentService:
    """Get payment service from app state.

    Missing when Stripe credentials are not configured.
    """
    service = getattr(request.app.state, "payment_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Payments not available",
        )
    return service


PaymentServiceDep = Annotated[PaymentService, Depends(get_payment_service)]

"""Pydantic schemas for enrollment endpoints."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .models import EnrollmentResult, EnrollmentState


class CheckoutDirectiveResponse(BaseModel):
    """Where to go to pay for a course."""

    course_id: UUID
    amount: int = Field(..., description="Amount in minor units (cents)")
    currency: str
    checkout_path: str


class EnrollmentResponse(BaseModel):
    """Result of an enrollment request."""

    course_id: UUID
    user_id: UUID
    state: EnrollmentState
    already_enrolled: bool = False
    checkout: CheckoutDirectiveResponse | None = None

    @classmethod
    def from_result(cls, result: EnrollmentResult) -> "EnrollmentResponse":
        checkout = None
        if result.checkout is not None:
            checkout = CheckoutDirectiveResponse(
                course_id=result.checkout.course_id,
                amount=result.checkout.amount,
                currency=result.checkout.currency,
                checkout_path=result.checkout.checkout_path,
            )
        return cls(
            course_id=result.course_id,
            user_id=result.user_id,
            state=result.state,
            already_enrolled=result.already_enrolled,
            checkout=checkout,
        )


class EnrollmentStateResponse(BaseModel):
    """Current enrollment state of the caller for a course."""

    course_id: UUID
    state: EnrollmentState


class EnrolledCourseResponse(BaseModel):
    """Public summary of an enrolled course."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str
    price: Decimal
    is_free: bool


class EnrolledCourseListResponse(BaseModel):
    items: list[EnrolledCourseResponse]
    total: int

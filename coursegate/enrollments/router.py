"""Enrollment API endpoints.

- POST /v1/courses/{course_id}/enroll: free enrollment, 409 for paid courses
- GET /v1/courses/{course_id}/enrollment: caller's enrollment state
- GET /v1/users/me/courses: caller's enrolled courses
"""

from uuid import UUID

from fastapi import APIRouter, status
from fastapi.responses import ORJSONResponse

from coursegate.auth.dependencies import CurrentActor

from .dependencies import EnrollmentServiceDep
from .models import EnrollmentState
from .schemas import (
    EnrolledCourseListResponse,
    EnrolledCourseResponse,
    EnrollmentResponse,
    EnrollmentStateResponse,
)


router = APIRouter(prefix="/v1", tags=["enrollments"])


@router.post(
    "/courses/{course_id}/enroll",
    response_model=EnrollmentResponse,
    summary="Enroll in a course",
    responses={
        status.HTTP_409_CONFLICT: {
            "model": EnrollmentResponse,
            "description": "Payment required; use the checkout directive",
        },
    },
)
async def enroll(
    course_id: UUID,
    actor: CurrentActor,
    service: EnrollmentServiceDep,
):
    """Enroll the caller. Idempotent; paid courses answer 409 with checkout info."""
    result = await service.request_enrollment(course_id, actor.actor_id)
    response = EnrollmentResponse.from_result(result)

    if result.state is EnrollmentState.PAYMENT_REQUIRED:
        return ORJSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=response.model_dump(mode="json"),
        )
    return response


@router.get(
    "/courses/{course_id}/enrollment",
    response_model=EnrollmentStateResponse,
    summary="Get enrollment state",
)
async def get_enrollment_state(
    course_id: UUID,
    actor: CurrentActor,
    service: EnrollmentServiceDep,
) -> EnrollmentStateResponse:
    state = await service.get_enrollment_state(course_id, actor.actor_id)
    return EnrollmentStateResponse(course_id=course_id, state=state)


@router.get(
    "/users/me/courses",
    response_model=EnrolledCourseListResponse,
    summary="List my courses",
)
async def list_my_courses(
    actor: CurrentActor,
    service: EnrollmentServiceDep,
) -> EnrolledCourseListResponse:
    courses = await service.list_enrolled_courses(actor.actor_id)
    items = [
        EnrolledCourseResponse(
            id=c.id,
            title=c.title,
            description=c.description,
            price=c.price,
            is_free=not c.requires_payment,
        )
        for c in courses
    ]
    return EnrolledCourseListResponse(items=items, total=len(items))

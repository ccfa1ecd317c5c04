"""Gated course content endpoints.

- GET /v1/courses/{course_id}: public detail, protected fields for members
- GET /v1/courses/{course_id}/videos: members only (403 otherwise)
"""

from uuid import UUID

from fastapi import APIRouter

from coursegate.auth.dependencies import CurrentActor, OptionalActor

from .dependencies import AccessGateDep
from .schemas import CourseDetailResponse, CourseVideosResponse, VideoResponse


router = APIRouter(prefix="/v1/courses", tags=["courses"])


@router.get(
    "/{course_id}",
    response_model=CourseDetailResponse,
    summary="Get course detail",
)
async def get_course(
    course_id: UUID,
    actor: OptionalActor,
    gate: AccessGateDep,
) -> CourseDetailResponse:
    """Anonymous callers and non-members get the public view."""
    view = await gate.resolve_visible_content(
        course_id, actor.actor_id if actor else None
    )
    return CourseDetailResponse.from_view(view)


@router.get(
    "/{course_id}/videos",
    response_model=CourseVideosResponse,
    summary="Get course videos",
)
async def get_course_videos(
    course_id: UUID,
    actor: CurrentActor,
    gate: AccessGateDep,
) -> CourseVideosResponse:
    course = await gate.require_enrollment(course_id, actor.actor_id)
    return CourseVideosResponse(
        course_id=course.id,
        videos=[VideoResponse.model_validate(v) for v in course.videos],
        pdf_url=course.pdf_url,
    )

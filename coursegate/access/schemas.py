"""Pydantic schemas for gated course content."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .service import CourseView


class VideoResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    url: str
    title: str = ""


class CourseDetailResponse(BaseModel):
    """Course detail; protected fields are empty unless the caller is enrolled."""

    course_id: UUID
    title: str
    description: str
    price: Decimal
    is_free: bool
    is_enrolled: bool
    videos: list[VideoResponse] = Field(default_factory=list)
    pdf_url: str | None = None

    @classmethod
    def from_view(cls, view: CourseView) -> "CourseDetailResponse":
        return cls(
            course_id=view.course_id,
            title=view.title,
            description=view.description,
            price=view.price,
            is_free=view.is_free,
            is_enrolled=view.is_enrolled,
            videos=[VideoResponse.model_validate(v) for v in view.videos],
            pdf_url=view.pdf_url,
        )


class CourseVideosResponse(BaseModel):
    course_id: UUID
    videos: list[VideoResponse]
    pdf_url: str | None = None

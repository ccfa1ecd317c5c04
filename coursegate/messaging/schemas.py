"""Pydantic schemas for messaging endpoints."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


MAX_CONTENT_LENGTH = 10000


class _ContentMixin(BaseModel):
    content: str = Field(..., min_length=1, max_length=MAX_CONTENT_LENGTH)
    pdf_url: str | None = Field(None, max_length=2048)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Strip whitespace and validate content."""
        v = v.strip()
        if not v:
            msg = "Content cannot be empty"
            raise ValueError(msg)
        return v


class SendMessageRequest(_ContentMixin):
    course_id: UUID
    receiver_id: UUID


class ReplyMessageRequest(_ContentMixin):
    pass


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    sender_id: UUID
    receiver_id: UUID
    content: str
    timestamp: datetime
    is_read: bool
    pdf_url: str | None = None


class MessageListResponse(BaseModel):
    items: list[MessageResponse]
    total: int

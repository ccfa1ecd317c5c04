"""Course messaging endpoints.

Students message the teachers of courses they are enrolled in; teachers
answer students who wrote to them.
"""

from uuid import UUID

from fastapi import APIRouter, status

from coursegate.auth.dependencies import CurrentActor, TeacherActor

from .dependencies import MessagingServiceDep
from .schemas import (
    MessageListResponse,
    MessageResponse,
    ReplyMessageRequest,
    SendMessageRequest,
)


router = APIRouter(prefix="/v1/messages", tags=["messages"])


def _list_response(messages) -> MessageListResponse:
    items = [MessageResponse.model_validate(m) for m in messages]
    return MessageListResponse(items=items, total=len(items))


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send message",
)
async def send_message(
    data: SendMessageRequest,
    actor: CurrentActor,
    service: MessagingServiceDep,
) -> MessageResponse:
    message = await service.authorize_send(
        data.course_id, actor, data.receiver_id, data.content, data.pdf_url
    )
    return MessageResponse.model_validate(message)


@router.get(
    "/inbox",
    response_model=MessageListResponse,
    summary="Teacher inbox",
)
async def get_inbox(
    actor: TeacherActor,
    service: MessagingServiceDep,
) -> MessageListResponse:
    """Messages received by the calling teacher, newest first."""
    return _list_response(await service.list_teacher_inbox(actor.actor_id))


@router.get(
    "/{course_id}/{peer_id}",
    response_model=MessageListResponse,
    summary="Get conversation",
)
async def get_conversation(
    course_id: UUID,
    peer_id: UUID,
    actor: CurrentActor,
    service: MessagingServiceDep,
) -> MessageListResponse:
    """Messages between the caller and peer in a course, oldest first."""
    messages = await service.authorize_read(course_id, actor.actor_id, peer_id)
    return _list_response(messages)


@router.post(
    "/{message_id}/reply",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Reply to message",
)
async def reply_to_message(
    message_id: UUID,
    data: ReplyMessageRequest,
    actor: TeacherActor,
    service: MessagingServiceDep,
) -> MessageResponse:
    message = await service.reply_to_message(
        message_id, actor, data.content, data.pdf_url
    )
    return MessageResponse.model_validate(message)


@router.post(
    "/{message_id}/read",
    response_model=MessageResponse,
    summary="Mark message as read",
)
async def mark_read(
    message_id: UUID,
    actor: CurrentActor,
    service: MessagingServiceDep,
) -> MessageResponse:
    message = await service.mark_read(message_id, actor.actor_id)
    return MessageResponse.model_validate(message)

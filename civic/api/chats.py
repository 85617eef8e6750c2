"""Chat threads API."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from civic.core.deps import get_chat_service, get_current_actor, get_message_service, require_roles
from civic.core.identity import Actor
from civic.models.enums import Role
from civic.schemas.chat import ChatCreate, ChatResponse, MessageCreate, MessageResponse
from civic.services.chat_service import ChatService
from civic.services.message_service import MessageService

router = APIRouter(prefix="/chats", tags=["chats"])

chat_participant = require_roles(Role.CITIZEN, Role.EXTERNAL_MAINTAINER, Role.TECHNICAL_STAFF_MEMBER)


@router.post("", response_model=ChatResponse, status_code=status.HTTP_201_CREATED)
def create_chat(
    data: ChatCreate,
    chats: ChatService = Depends(get_chat_service),
    actor: Actor = Depends(chat_participant),
):
    """Open (or return the existing) chat with another user about a report."""
    return chats.open_chat(data.report_id, actor, data.other_user_id)


@router.get("", response_model=list[ChatResponse])
def list_my_chats(
    chats: ChatService = Depends(get_chat_service),
    actor: Actor = Depends(chat_participant),
):
    return chats.for_user(actor.actor_id)


@router.get("/{chat_id}", response_model=ChatResponse)
def get_chat(
    chat_id: int,
    chats: ChatService = Depends(get_chat_service),
    actor: Actor = Depends(get_current_actor),
):
    return chats.get(chat_id, actor)


@router.post("/{chat_id}/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def post_chat_message(
    chat_id: int,
    data: MessageCreate,
    messages: MessageService = Depends(get_message_service),
    actor: Actor = Depends(get_current_actor),
):
    return messages.post(actor, data.text, chat_id=chat_id, receiver_id=data.receiver_id)


@router.get("/{chat_id}/messages", response_model=list[MessageResponse])
def list_chat_messages(
    chat_id: int,
    messages: MessageService = Depends(get_message_service),
    actor: Actor = Depends(get_current_actor),
):
    return messages.by_chat(chat_id, actor)

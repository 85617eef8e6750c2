"""Messages API (user-scoped)."""

from fastapi import APIRouter, Depends

from civic.core.deps import get_current_actor, get_message_service
from civic.core.identity import Actor
from civic.schemas.chat import MessageResponse
from civic.services.message_service import MessageService

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("/me", response_model=list[MessageResponse])
def my_messages(
    messages: MessageService = Depends(get_message_service),
    actor: Actor = Depends(get_current_actor),
):
    """Messages the current user sent or received, oldest first."""
    return messages.by_user(actor.actor_id)

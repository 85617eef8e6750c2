"""Notifications API."""

from fastapi import APIRouter, Depends

from civic.core.deps import get_current_actor, get_dispatcher, require_roles
from civic.core.identity import Actor
from civic.models.enums import Role
from civic.schemas.notification import NotificationResponse
from civic.services.notification_service import NotificationDispatcher

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationResponse])
def list_notifications(
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    _: Actor = Depends(require_roles(Role.ADMINISTRATOR, Role.MUNICIPAL_ADMINISTRATOR)),
):
    """All notifications (administrators only)."""
    return dispatcher.list_all()


@router.get("/me", response_model=list[NotificationResponse])
def my_notifications(
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    actor: Actor = Depends(get_current_actor),
):
    """Notifications addressed to the current user, newest first."""
    return dispatcher.for_user(actor.actor_id)


@router.patch("/{notification_id}/seen", response_model=NotificationResponse)
def mark_seen(
    notification_id: int,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    actor: Actor = Depends(get_current_actor),
):
    return dispatcher.mark_seen(notification_id, actor)

"""Messages: chat-thread messages and flat per-report comments."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from civic.core.errors import ForbiddenError, InternalError, NotFoundError, ValidationError
from civic.core.identity import Actor
from civic.models.chat_thread import ChatThread
from civic.models.enums import STAFF_ROLES
from civic.models.message import Message
from civic.models.report import Report
from civic.services import access
from civic.services.notification_service import NotificationDispatcher
from civic.services.reference_data import ReferenceData

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _with_context(stmt):
    return stmt.options(
        selectinload(Message.sender),
        selectinload(Message.receiver),
        selectinload(Message.report),
    )


def _ordered(stmt):
    return stmt.order_by(Message.sent_at.asc(), Message.id.asc())


class MessageService:
    def __init__(
        self,
        db: Session,
        ref: ReferenceData,
        dispatcher: NotificationDispatcher,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.db = db
        self.ref = ref
        self.dispatcher = dispatcher
        self.clock = clock

    def post(
        self,
        actor: Actor,
        text: str,
        *,
        chat_id: int | None = None,
        report_id: int | None = None,
        receiver_id: int | None = None,
    ) -> Message:
        """Post into a chat thread or onto a report's comment thread (exactly one)."""
        if (chat_id is None) == (report_id is None):
            raise ValidationError("Provide exactly one of chat_id or report_id")
        if chat_id is not None:
            return self.post_to_chat(chat_id, actor, text, receiver_id)
        return self.post_comment(report_id, actor, text, receiver_id)

    def post_to_chat(self, chat_id: int, actor: Actor, text: str, receiver_id: int | None = None) -> Message:
        text = _require_text(text)
        thread = self.db.get(ChatThread, chat_id)
        if not thread:
            raise NotFoundError(f"Chat {chat_id} not found")
        if not thread.has_participant(actor.actor_id):
            raise ForbiddenError("Only the chat participants can post in this chat")
        other_id = thread.other_party_id(actor.actor_id)
        if receiver_id is not None and receiver_id != other_id:
            raise ValidationError("Receiver must be the other chat participant")

        message = Message(
            report_id=thread.report_id,
            chat_id=thread.id,
            sender_id=actor.actor_id,
            receiver_id=other_id,
            text=text,
            sent_at=self.clock(),
        )
        return self._store(message)

    def post_comment(self, report_id: int, actor: Actor, text: str, receiver_id: int | None = None) -> Message:
        text = _require_text(text)
        report = self.db.get(Report, report_id)
        if not report:
            raise NotFoundError(f"Report {report_id} not found")
        if not access.can_view(actor, report, self.ref):
            raise ForbiddenError("Not allowed to comment on this report")
        if receiver_id is not None:
            self.ref.require_user(receiver_id)
            if receiver_id == actor.actor_id:
                raise ValidationError("Cannot send a message to yourself")

        message = Message(
            report_id=report.id,
            sender_id=actor.actor_id,
            receiver_id=receiver_id,
            text=text,
            sent_at=self.clock(),
        )
        return self._store(message)

    def by_report(self, report_id: int, actor: Actor | None = None) -> list[Message]:
        """Messages attached to a report, oldest first.

        Non-staff actors see the comment thread plus their own chat messages.
        """
        report = self.db.get(Report, report_id)
        if not report:
            raise NotFoundError(f"Report {report_id} not found")
        stmt = _with_context(select(Message)).where(Message.report_id == report_id)
        if actor is not None:
            if not access.can_view(actor, report, self.ref):
                raise ForbiddenError("Not allowed to read messages on this report")
            if actor.role not in STAFF_ROLES:
                stmt = stmt.where(
                    or_(
                        Message.chat_id.is_(None),
                        Message.sender_id == actor.actor_id,
                        Message.receiver_id == actor.actor_id,
                    )
                )
        return list(self.db.execute(_ordered(stmt)).scalars().all())

    def by_chat(self, chat_id: int, actor: Actor | None = None) -> list[Message]:
        thread = self.db.get(ChatThread, chat_id)
        if not thread:
            raise NotFoundError(f"Chat {chat_id} not found")
        if actor is not None and not thread.has_participant(actor.actor_id):
            raise ForbiddenError("Only the chat participants can read this chat")
        stmt = _with_context(select(Message)).where(Message.chat_id == chat_id)
        return list(self.db.execute(_ordered(stmt)).scalars().all())

    def by_user(self, user_id: int) -> list[Message]:
        """Messages the user sent or received, oldest first."""
        stmt = _with_context(select(Message)).where(
            or_(Message.sender_id == user_id, Message.receiver_id == user_id)
        )
        return list(self.db.execute(_ordered(stmt)).scalars().all())

    def _store(self, message: Message) -> Message:
        self.db.add(message)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("message_store_failed report_id=%s", message.report_id)
            raise InternalError("Unexpected storage failure") from None
        self.db.refresh(message)
        self.dispatcher.on_new_message(message)
        return message


def _require_text(text: str | None) -> str:
    if text is None or not text.strip():
        raise ValidationError("Message text must not be empty")
    return text.strip()

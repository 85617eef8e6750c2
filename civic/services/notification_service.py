"""Notification dispatcher.

Consumes workflow status changes and new messages and turns them into
notification records (plus an optional mail summary). Dispatch is advisory:
a failure here is logged and never fails the operation that triggered it.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from civic.core.errors import ForbiddenError, InternalError, NotFoundError
from civic.core.identity import Actor
from civic.models.enums import NotificationType, ReportStatus
from civic.models.message import Message
from civic.models.notification import Notification
from civic.models.report import Report
from civic.models.user import User
from civic.services.mail_service import MailPort

logger = logging.getLogger(__name__)


def _with_relations(stmt):
    return stmt.options(
        selectinload(Notification.user),
        selectinload(Notification.report).selectinload(Report.category),
        selectinload(Notification.report).selectinload(Report.created_by),
        selectinload(Notification.message).selectinload(Message.sender),
    )


class NotificationDispatcher:
    def __init__(self, db: Session, mailer: MailPort | None = None) -> None:
        self.db = db
        self.mailer = mailer

    # ---- event handlers (best-effort) ----

    def on_status_change(
        self,
        report: Report,
        previous_status: ReportStatus,
        new_status: ReportStatus,
    ) -> Notification | None:
        """Notify the report's creator that its status changed."""
        report_id = recipient_id = None
        try:
            report_id, recipient_id = report.id, report.created_by_id
            notification = Notification(
                type=NotificationType.REPORT_STATUS.value,
                user_id=recipient_id,
                report_id=report_id,
                previous_status=previous_status.value,
                new_status=new_status.value,
            )
            self._persist(notification)
        except Exception:
            self.db.rollback()
            logger.exception(
                "notification_dispatch_failed type=REPORT_STATUS report_id=%s user_id=%s %s->%s",
                report_id,
                recipient_id,
                previous_status.value,
                new_status.value,
            )
            return None
        self._mail(
            notification,
            subject=f"Report #{report_id} is now {new_status.value}",
            body=f"The status of your report #{report_id} changed from {previous_status.value} to {new_status.value}.",
        )
        return notification

    def on_new_message(self, message: Message) -> Notification | None:
        """Notify the receiver of a chat message, or the other side of a report comment."""
        message_id = report_id = None
        try:
            message_id, report_id, text = message.id, message.report_id, message.text
            recipient_id = self._message_recipient(message)
            if recipient_id is None:
                logger.debug("no recipient for message_id=%s, skipping notification", message_id)
                return None
            notification = Notification(
                type=NotificationType.MESSAGE.value,
                user_id=recipient_id,
                report_id=report_id,
                message_id=message_id,
            )
            self._persist(notification)
        except Exception:
            self.db.rollback()
            logger.exception(
                "notification_dispatch_failed type=MESSAGE report_id=%s message_id=%s",
                report_id,
                message_id,
            )
            return None
        self._mail(
            notification,
            subject=f"New message on report #{report_id}",
            body=text,
        )
        return notification

    # ---- queries ----

    def list_all(self) -> list[Notification]:
        """All notifications with user, report and message context, newest first."""
        result = self.db.execute(
            _with_relations(select(Notification)).order_by(Notification.created_at.desc(), Notification.id.desc())
        )
        return list(result.scalars().all())

    def for_user(self, user_id: int) -> list[Notification]:
        """Notifications addressed to one user, newest first."""
        result = self.db.execute(
            _with_relations(select(Notification))
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
        )
        return list(result.scalars().all())

    def mark_seen(self, notification_id: int, actor: Actor | None = None) -> Notification:
        """Set ``seen``. Marking an already-seen notification is a no-op success."""
        notification = self.db.get(Notification, notification_id)
        if not notification:
            raise NotFoundError(f"Notification {notification_id} not found")
        if actor is not None and notification.user_id != actor.actor_id:
            raise ForbiddenError("Only the recipient can mark this notification as seen")
        if notification.seen:
            return notification
        notification.seen = True
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("mark_seen_failed notification_id=%s", notification_id)
            raise InternalError("Unexpected storage failure") from None
        self.db.refresh(notification)
        return notification

    # ---- helpers ----

    def _message_recipient(self, message: Message) -> int | None:
        if message.receiver_id is not None:
            recipient_id = message.receiver_id
        else:
            report = self.db.get(Report, message.report_id)
            if report is None:
                return None
            if message.sender_id != report.created_by_id:
                recipient_id = report.created_by_id
            else:
                recipient_id = report.assigned_to_id
        if recipient_id == message.sender_id:
            return None
        return recipient_id

    def _persist(self, notification: Notification) -> None:
        self.db.add(notification)
        self.db.commit()
        self.db.refresh(notification)

    def _mail(self, notification: Notification, subject: str, body: str) -> None:
        if self.mailer is None:
            return
        try:
            user = self.db.get(User, notification.user_id)
            if not user or not user.email_notifications_enabled:
                return
            self.mailer.send(user.email, subject, body)
        except Exception:
            logger.exception(
                "mail_delivery_failed notification_id=%s user_id=%s",
                notification.id,
                notification.user_id,
            )

"""Chat threads: private two-party channels scoped to one report."""

from __future__ import annotations

import logging

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from civic.core.errors import ForbiddenError, InternalError, NotFoundError, ValidationError
from civic.core.identity import Actor
from civic.models.chat_thread import ChatThread
from civic.models.enums import STAFF_ROLES, ChatType, Role
from civic.models.report import Report
from civic.models.user import User
from civic.services import access
from civic.services.reference_data import ReferenceData

logger = logging.getLogger(__name__)

CHAT_ROLES = frozenset({Role.CITIZEN, Role.EXTERNAL_MAINTAINER, Role.TECHNICAL_STAFF_MEMBER})


def chat_type_for(first: User, second: User) -> ChatType:
    roles = {Role(first.role), Role(second.role)}
    has_staff = bool(roles & STAFF_ROLES)
    if has_staff and Role.CITIZEN in roles:
        return ChatType.CITIZEN_STAFF
    if has_staff and Role.EXTERNAL_MAINTAINER in roles:
        return ChatType.MAINTAINER_STAFF
    return ChatType.DIRECT


def _with_parties(stmt):
    return stmt.options(selectinload(ChatThread.party_a), selectinload(ChatThread.party_b))


class ChatService:
    def __init__(self, db: Session, ref: ReferenceData) -> None:
        self.db = db
        self.ref = ref

    def find_thread(self, report_id: int, party_a_id: int, party_b_id: int) -> ChatThread | None:
        low, high = sorted((party_a_id, party_b_id))
        return self.db.execute(
            select(ChatThread).where(
                ChatThread.report_id == report_id,
                ChatThread.party_a_id == low,
                ChatThread.party_b_id == high,
            )
        ).scalar_one_or_none()

    def ensure_thread(self, report: Report, party_a_id: int, party_b_id: int) -> ChatThread:
        """Return the thread for the unordered pair, creating it if needed.

        Only flushes; the caller owns the transaction.
        """
        if party_a_id == party_b_id:
            raise ValidationError("A chat needs two distinct participants")
        existing = self.find_thread(report.id, party_a_id, party_b_id)
        if existing:
            return existing
        first = self.ref.require_user(party_a_id)
        second = self.ref.require_user(party_b_id)
        low, high = sorted((party_a_id, party_b_id))
        thread = ChatThread(
            report_id=report.id,
            party_a_id=low,
            party_b_id=high,
            chat_type=chat_type_for(first, second).value,
        )
        self.db.add(thread)
        self.db.flush()
        logger.info("chat thread %s opened on report %s between %s and %s", thread.id, report.id, low, high)
        return thread

    def create_thread(self, report_id: int, party_a_id: int, party_b_id: int) -> ChatThread:
        """Idempotent: the same pair on the same report always yields one thread."""
        report = self.db.get(Report, report_id)
        if not report:
            raise NotFoundError(f"Report {report_id} not found")
        try:
            thread = self.ensure_thread(report, party_a_id, party_b_id)
            self.db.commit()
        except IntegrityError:
            # lost a concurrent create for the same pair
            self.db.rollback()
            thread = self.find_thread(report_id, party_a_id, party_b_id)
            if thread is None:
                raise InternalError("Unexpected storage failure") from None
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("chat_create_failed report_id=%s", report_id)
            raise InternalError("Unexpected storage failure") from None
        except Exception:
            self.db.rollback()
            raise
        return self.get(thread.id)

    def open_chat(self, report_id: int, actor: Actor, other_user_id: int) -> ChatThread:
        """An authorised participant opens a chat with another user about a report."""
        if actor.role not in CHAT_ROLES:
            raise ForbiddenError(f"Role {actor.role.value} cannot open chats")
        report = self.db.get(Report, report_id)
        if not report:
            raise NotFoundError(f"Report {report_id} not found")
        if not access.can_view(actor, report, self.ref):
            raise ForbiddenError("Not allowed to open a chat on this report")
        if other_user_id == actor.actor_id:
            raise ValidationError("A chat needs two distinct participants")
        other = self.ref.require_user(other_user_id)
        if not self._involved_in(other, report):
            raise ForbiddenError(f"User {other_user_id} is not involved in report {report_id}")
        if actor.role not in STAFF_ROLES and Role(other.role) not in STAFF_ROLES:
            raise ForbiddenError("One side of a chat must be municipal staff")
        return self.create_thread(report_id, actor.actor_id, other_user_id)

    def _involved_in(self, user: User, report: Report) -> bool:
        """Creator, assignee, or active staff who can see the report."""
        if not user.is_active:
            return False
        if user.id in (report.created_by_id, report.assigned_to_id):
            return True
        role = Role(user.role)
        return role in STAFF_ROLES and access.can_view(Actor(actor_id=user.id, role=role), report, self.ref)

    def for_report(self, report_id: int, actor: Actor | None = None) -> list[ChatThread]:
        """Threads on a report, by id ascending.

        Staff with visibility see every thread; other actors only their own.
        """
        report = self.db.get(Report, report_id)
        if not report:
            raise NotFoundError(f"Report {report_id} not found")
        stmt = _with_parties(select(ChatThread)).where(ChatThread.report_id == report_id)
        if actor is not None:
            if not access.can_view(actor, report, self.ref):
                raise ForbiddenError("Not allowed to see chats on this report")
            if actor.role not in STAFF_ROLES:
                stmt = stmt.where(
                    or_(ChatThread.party_a_id == actor.actor_id, ChatThread.party_b_id == actor.actor_id)
                )
        result = self.db.execute(stmt.order_by(ChatThread.id.asc()))
        return list(result.scalars().all())

    def for_user(self, user_id: int) -> list[ChatThread]:
        """Threads where the user is either participant, by id ascending."""
        result = self.db.execute(
            _with_parties(select(ChatThread))
            .where(or_(ChatThread.party_a_id == user_id, ChatThread.party_b_id == user_id))
            .order_by(ChatThread.id.asc())
        )
        return list(result.scalars().all())

    def get(self, thread_id: int, actor: Actor | None = None) -> ChatThread:
        thread = self.db.execute(
            _with_parties(select(ChatThread)).where(ChatThread.id == thread_id)
        ).scalar_one_or_none()
        if not thread:
            raise NotFoundError(f"Chat {thread_id} not found")
        if actor is not None and not thread.has_participant(actor.actor_id):
            raise ForbiddenError("Only the chat participants can access this chat")
        return thread

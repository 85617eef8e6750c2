"""FastAPI dependencies.

Services are built per request from the request's DB session; nothing is
looked up from module-level service instances.
"""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from civic.core.config import settings
from civic.core.errors import ForbiddenError, UnauthorizedError
from civic.core.identity import Actor, resolve_actor
from civic.db.session import get_db
from civic.models.enums import Role
from civic.services.chat_service import ChatService
from civic.services.mail_service import LoggingMailer, MailPort, SmtpMailer
from civic.services.message_service import MessageService
from civic.services.notification_service import NotificationDispatcher
from civic.services.reference_data import ReferenceData
from civic.services.report_store import ReportStore
from civic.services.workflow import WorkflowEngine

security = HTTPBearer(auto_error=False)


def get_mailer() -> MailPort:
    """Mail port from settings; overridden in tests."""
    if not settings.smtp_host:
        return LoggingMailer()
    return SmtpMailer(
        host=settings.smtp_host,
        port=settings.smtp_port,
        from_address=settings.mail_from_address,
        from_name=settings.mail_from_name,
        user=settings.smtp_user,
        password=settings.smtp_password,
        timeout=settings.mail_timeout_seconds,
    )


def get_optional_actor(
    db: Annotated[Session, Depends(get_db)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> Actor | None:
    if not credentials:
        return None
    return resolve_actor(db, credentials.credentials)


def get_current_actor(actor: Annotated[Actor | None, Depends(get_optional_actor)]) -> Actor:
    """Require authenticated actor. Raises 401 if not authenticated."""
    if actor is None:
        raise UnauthorizedError("Not authenticated")
    return actor


def require_roles(*roles: Role):
    """Dependency factory: the actor must hold one of ``roles``."""
    allowed = frozenset(roles)

    def _require(actor: Annotated[Actor, Depends(get_current_actor)]) -> Actor:
        if actor.role not in allowed:
            raise ForbiddenError(f"Role {actor.role.value} is not allowed here")
        return actor

    return _require


def get_dispatcher(
    db: Annotated[Session, Depends(get_db)],
    mailer: Annotated[MailPort, Depends(get_mailer)],
) -> NotificationDispatcher:
    return NotificationDispatcher(db, mailer)


def get_chat_service(db: Annotated[Session, Depends(get_db)]) -> ChatService:
    return ChatService(db, ReferenceData(db))


def get_message_service(
    db: Annotated[Session, Depends(get_db)],
    dispatcher: Annotated[NotificationDispatcher, Depends(get_dispatcher)],
) -> MessageService:
    return MessageService(db, ReferenceData(db), dispatcher)


def get_workflow(
    db: Annotated[Session, Depends(get_db)],
    chats: Annotated[ChatService, Depends(get_chat_service)],
    dispatcher: Annotated[NotificationDispatcher, Depends(get_dispatcher)],
) -> WorkflowEngine:
    return WorkflowEngine(
        store=ReportStore(db),
        ref=ReferenceData(db),
        chats=chats,
        dispatcher=dispatcher,
        maintainer_chat_partner=settings.maintainer_chat_partner,
    )

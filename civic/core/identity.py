"""Identity port: turns a bearer credential into an ``Actor``."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from civic.core.errors import UnauthorizedError
from civic.core.security import decode_access_token
from civic.models.enums import Role
from civic.models.user import User


@dataclass(frozen=True)
class Actor:
    """Authenticated identity performing an operation."""

    actor_id: int
    role: Role

    @classmethod
    def of(cls, user: User) -> "Actor":
        return cls(actor_id=user.id, role=Role(user.role))


def resolve_actor(db: Session, token: str) -> Actor:
    """Validate the token and load the active user behind it."""
    payload = decode_access_token(token)
    if not payload or "sub" not in payload:
        raise UnauthorizedError("Invalid or expired token")
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise UnauthorizedError("Invalid token subject")
    user = db.get(User, user_id)
    if not user:
        raise UnauthorizedError("User not found")
    if not user.is_active:
        raise UnauthorizedError("User is inactive")
    return Actor.of(user)

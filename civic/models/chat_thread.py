"""Two-party chat thread scoped to a report."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from civic.db.base import Base
from civic.models.report import Report
from civic.models.user import User


class ChatThread(Base):
    """Private channel between two users about one report.

    Participants are stored ordered (``party_a_id < party_b_id``) so the
    unique constraint covers the unordered pair.
    """

    __tablename__ = "chat_threads"
    __table_args__ = (
        UniqueConstraint("report_id", "party_a_id", "party_b_id", name="uq_chat_thread_report_parties"),
        CheckConstraint("party_a_id < party_b_id", name="distinct_parties"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    report_id: Mapped[int] = mapped_column(ForeignKey("reports.id", ondelete="CASCADE"), nullable=False, index=True)
    party_a_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    party_b_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    chat_type: Mapped[str] = mapped_column(String(30), nullable=False)  # CITIZEN_STAFF | MAINTAINER_STAFF | DIRECT
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    report: Mapped[Report] = relationship()
    party_a: Mapped[User] = relationship(foreign_keys=[party_a_id])
    party_b: Mapped[User] = relationship(foreign_keys=[party_b_id])

    def has_participant(self, user_id: int) -> bool:
        return user_id in (self.party_a_id, self.party_b_id)

    def other_party_id(self, user_id: int) -> int:
        return self.party_b_id if user_id == self.party_a_id else self.party_a_id

"""Message model. Immutable once written."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from civic.db.base import Base
from civic.models.chat_thread import ChatThread
from civic.models.report import Report
from civic.models.user import User


class Message(Base):
    """Entry in a chat thread (``chat_id`` set) or a flat report comment thread."""

    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    report_id: Mapped[int] = mapped_column(ForeignKey("reports.id", ondelete="CASCADE"), nullable=False, index=True)
    chat_id: Mapped[int | None] = mapped_column(ForeignKey("chat_threads.id", ondelete="CASCADE"), nullable=True, index=True)
    sender_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    receiver_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    sent_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    report: Mapped[Report] = relationship()
    chat: Mapped[ChatThread | None] = relationship()
    sender: Mapped[User] = relationship(foreign_keys=[sender_id])
    receiver: Mapped[User | None] = relationship(foreign_keys=[receiver_id])

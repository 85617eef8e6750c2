"""SQLAlchemy models."""

from __future__ import annotations

from civic.models.chat_thread import ChatThread
from civic.models.message import Message
from civic.models.notification import Notification
from civic.models.reference import Category, Office
from civic.models.report import Report
from civic.models.user import User

__all__ = [
    "User",
    "Office",
    "Category",
    "Report",
    "ChatThread",
    "Message",
    "Notification",
]

"""Notification schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from civic.schemas.report import CategoryInfo
from civic.schemas.user import UserSummary


class NotificationReport(BaseModel):
    id: int
    title: str
    status: str
    category: CategoryInfo | None
    created_by: UserSummary

    model_config = {"from_attributes": True}


class NotificationMessage(BaseModel):
    id: int
    text: str
    sent_at: datetime
    sender: UserSummary

    model_config = {"from_attributes": True}


class NotificationResponse(BaseModel):
    id: int
    type: str
    previous_status: str | None
    new_status: str | None
    seen: bool
    created_at: datetime
    user: UserSummary
    report: NotificationReport
    message: NotificationMessage | None

    model_config = {"from_attributes": True}

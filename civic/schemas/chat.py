"""Chat thread and message schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from civic.schemas.user import UserSummary


class ChatCreate(BaseModel):
    report_id: int
    other_user_id: int


class ChatResponse(BaseModel):
    id: int
    report_id: int
    chat_type: str
    party_a: UserSummary
    party_b: UserSummary
    created_at: datetime

    model_config = {"from_attributes": True}


class MessageCreate(BaseModel):
    text: str = Field(..., min_length=1)
    receiver_id: int | None = None


class MessageResponse(BaseModel):
    id: int
    report_id: int
    chat_id: int | None
    sender: UserSummary
    receiver: UserSummary | None
    text: str
    sent_at: datetime

    model_config = {"from_attributes": True}

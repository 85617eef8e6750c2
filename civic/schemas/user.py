"""User schemas."""

from __future__ import annotations

from pydantic import BaseModel


class UserSummary(BaseModel):
    id: int
    username: str
    first_name: str
    last_name: str
    role: str

    model_config = {"from_attributes": True}

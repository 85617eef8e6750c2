"""Report schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from civic.schemas.user import UserSummary


class ReportCreate(BaseModel):
    title: str | None = Field(default=None, max_length=200)
    description: str = Field(..., min_length=1)
    latitude: float | None = None
    longitude: float | None = None
    category_id: int | None = None
    images: list[str] = Field(default_factory=list)
    anonymous: bool = False


class CategoryUpdate(BaseModel):
    category_id: int


class ReviewRequest(BaseModel):
    decision: str = Field(..., pattern="^(ACCEPT|REJECT)$")
    reason: str | None = None


class MaintainerAssignment(BaseModel):
    maintainer_id: int


class StatusUpdate(BaseModel):
    status: str


class CategoryInfo(BaseModel):
    id: int
    name: str
    office_id: int

    model_config = {"from_attributes": True}


class ReportResponse(BaseModel):
    id: int
    title: str
    description: str
    latitude: float | None
    longitude: float | None
    images: list[str]
    anonymous: bool
    status: str
    rejection_reason: str | None
    category: CategoryInfo | None
    created_by: UserSummary | None
    assigned_to: UserSummary | None
    created_at: datetime
    updated_at: datetime | None

    model_config = {"from_attributes": True}


def public_report(report) -> ReportResponse:
    """Response for listings that may be seen by anyone: anonymous creators are hidden."""
    data = ReportResponse.model_validate(report)
    if report.anonymous:
        data.created_by = None
    return data

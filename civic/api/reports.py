"""Reports API."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from civic.core.config import settings
from civic.core.deps import get_chat_service, get_current_actor, get_message_service, get_optional_actor, get_workflow
from civic.core.errors import UnauthorizedError
from civic.core.identity import Actor
from civic.schemas.chat import ChatResponse, MessageCreate, MessageResponse
from civic.schemas.report import (
    CategoryUpdate,
    MaintainerAssignment,
    ReportCreate,
    ReportResponse,
    ReviewRequest,
    StatusUpdate,
    public_report,
)
from civic.services.chat_service import ChatService
from civic.services.message_service import MessageService
from civic.services.workflow import WorkflowEngine

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
def create_report(
    data: ReportCreate,
    workflow: WorkflowEngine = Depends(get_workflow),
    actor: Actor = Depends(get_current_actor),
):
    """Citizen files a new report (SUBMITTED)."""
    return workflow.create_report(
        actor,
        description=data.description,
        title=data.title,
        latitude=data.latitude,
        longitude=data.longitude,
        category_id=data.category_id,
        images=data.images,
        anonymous=data.anonymous,
    )


@router.get("", response_model=list[ReportResponse])
def list_by_status(
    status_: str = Query(..., alias="status"),
    workflow: WorkflowEngine = Depends(get_workflow),
    actor: Actor | None = Depends(get_optional_actor),
):
    """Reports in one status. Public only when ``public_status_listing`` is enabled."""
    if actor is None and not settings.public_status_listing:
        raise UnauthorizedError("Not authenticated")
    return [public_report(r) for r in workflow.reports_by_status(status_)]


@router.get("/me", response_model=list[ReportResponse])
def my_reports(
    workflow: WorkflowEngine = Depends(get_workflow),
    actor: Actor = Depends(get_current_actor),
):
    """Reports created by the current user, newest first."""
    return workflow.my_reports(actor)


@router.get("/assigned", response_model=list[ReportResponse])
def assigned_reports(
    workflow: WorkflowEngine = Depends(get_workflow),
    actor: Actor = Depends(get_current_actor),
):
    """Reports assigned to the current maintainer or supervised by the staff member's office."""
    return workflow.assigned_reports(actor)


@router.get("/{report_id}", response_model=ReportResponse)
def get_report(
    report_id: int,
    workflow: WorkflowEngine = Depends(get_workflow),
    actor: Actor = Depends(get_current_actor),
):
    return workflow.report_by_id(report_id, actor)


@router.put("/{report_id}/category", response_model=ReportResponse)
def set_category(
    report_id: int,
    data: CategoryUpdate,
    workflow: WorkflowEngine = Depends(get_workflow),
    actor: Actor = Depends(get_current_actor),
):
    return workflow.set_category(report_id, actor, data.category_id)


@router.post("/{report_id}/review", response_model=ReportResponse)
def review(
    report_id: int,
    data: ReviewRequest,
    workflow: WorkflowEngine = Depends(get_workflow),
    actor: Actor = Depends(get_current_actor),
):
    """Public relations officer accepts (ASSIGNED) or rejects (REJECTED, reason required)."""
    return workflow.accept_or_reject(report_id, actor, data.decision, data.reason)


@router.post("/{report_id}/maintainer", response_model=ReportResponse)
def assign_maintainer(
    report_id: int,
    data: MaintainerAssignment,
    workflow: WorkflowEngine = Depends(get_workflow),
    actor: Actor = Depends(get_current_actor),
):
    """Technical staff hands the report to an external maintainer and opens their chat."""
    return workflow.assign_external_maintainer(report_id, actor, data.maintainer_id)


@router.put("/{report_id}/status", response_model=ReportResponse)
def update_status(
    report_id: int,
    data: StatusUpdate,
    workflow: WorkflowEngine = Depends(get_workflow),
    actor: Actor = Depends(get_current_actor),
):
    return workflow.update_status(report_id, actor, data.status)


@router.post("/{report_id}/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def post_comment(
    report_id: int,
    data: MessageCreate,
    messages: MessageService = Depends(get_message_service),
    actor: Actor = Depends(get_current_actor),
):
    """Comment on the report's shared thread."""
    return messages.post(actor, data.text, report_id=report_id, receiver_id=data.receiver_id)


@router.get("/{report_id}/messages", response_model=list[MessageResponse])
def list_report_messages(
    report_id: int,
    messages: MessageService = Depends(get_message_service),
    actor: Actor = Depends(get_current_actor),
):
    return messages.by_report(report_id, actor)


@router.get("/{report_id}/chats", response_model=list[ChatResponse])
def list_report_chats(
    report_id: int,
    chats: ChatService = Depends(get_chat_service),
    actor: Actor = Depends(get_current_actor),
):
    return chats.for_report(report_id, actor)

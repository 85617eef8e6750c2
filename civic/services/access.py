"""Who may see or act on a report."""

from __future__ import annotations

from civic.core.identity import Actor
from civic.models.enums import Role
from civic.models.report import Report
from civic.services.reference_data import ReferenceData

TRIAGE_ROLES = frozenset({Role.PUBLIC_RELATIONS_OFFICER, Role.MUNICIPAL_ADMINISTRATOR})


def supervises(actor: Actor, report: Report, ref: ReferenceData) -> bool:
    """A technical staff member supervises reports in their office's categories."""
    if actor.role != Role.TECHNICAL_STAFF_MEMBER or report.category_id is None:
        return False
    staff = ref.get_user(actor.actor_id)
    category = ref.get_category(report.category_id)
    if not staff or not category or staff.office_id is None:
        return False
    return staff.office_id == category.office_id


def is_assignee(actor: Actor, report: Report) -> bool:
    return report.assigned_to_id is not None and report.assigned_to_id == actor.actor_id


def can_view(actor: Actor, report: Report, ref: ReferenceData) -> bool:
    """Creator, triage staff, the assignee and supervising staff see a report."""
    if actor.role in TRIAGE_ROLES or actor.role == Role.ADMINISTRATOR:
        return True
    if actor.role == Role.CITIZEN:
        return report.created_by_id == actor.actor_id
    if actor.role == Role.EXTERNAL_MAINTAINER:
        return is_assignee(actor, report)
    return supervises(actor, report, ref) or is_assignee(actor, report)

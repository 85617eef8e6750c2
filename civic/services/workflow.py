"""Report workflow engine.

Validates role-gated transitions against ``core.workflow_policy``, writes the
new status through the report store in one unit of work together with any
side entities (assignment, chat thread), then hands the status change to the
notification dispatcher before returning.
"""

from __future__ import annotations

import logging
from typing import Any

from civic.core.errors import ForbiddenError, InvalidTransitionError, ValidationError
from civic.core.identity import Actor
from civic.core.workflow_policy import (
    CREATE_ROLES,
    DERIVED_TITLE_LENGTH,
    INITIAL_STATUS,
    MAX_REPORT_IMAGES,
    TRANSITIONS,
    ReviewDecision,
    Transition,
    TransitionRule,
)
from civic.models.enums import TERMINAL_STATUSES, ReportStatus, Role
from civic.models.report import Report
from civic.services import access
from civic.services.chat_service import ChatService
from civic.services.notification_service import NotificationDispatcher
from civic.services.reference_data import ReferenceData
from civic.services.report_store import ReportStore

logger = logging.getLogger(__name__)

MAINTAINER_CHAT_PARTNERS = ("staff", "citizen")


def _parse_status(value: Any) -> ReportStatus:
    try:
        return ReportStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown report status '{value}'") from None


class WorkflowEngine:
    def __init__(
        self,
        store: ReportStore,
        ref: ReferenceData,
        chats: ChatService,
        dispatcher: NotificationDispatcher,
        maintainer_chat_partner: str = "staff",
    ) -> None:
        if maintainer_chat_partner not in MAINTAINER_CHAT_PARTNERS:
            raise ValueError(f"maintainer_chat_partner must be one of {MAINTAINER_CHAT_PARTNERS}")
        self.store = store
        self.ref = ref
        self.chats = chats
        self.dispatcher = dispatcher
        self.maintainer_chat_partner = maintainer_chat_partner

    # ---- creation ----

    def create_report(
        self,
        actor: Actor,
        description: str,
        title: str | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
        category_id: int | None = None,
        images: list[str] | None = None,
        anonymous: bool = False,
    ) -> Report:
        """Citizen files a report. It starts in SUBMITTED."""
        if actor.role not in CREATE_ROLES:
            raise ForbiddenError(f"Role {actor.role.value} cannot create reports")
        if not description or not description.strip():
            raise ValidationError("Description must be a non-empty string")
        images = [i.strip() for i in (images or []) if i and i.strip()]
        if len(images) > MAX_REPORT_IMAGES:
            raise ValidationError(f"A report can have at most {MAX_REPORT_IMAGES} images")
        description = description.strip()
        title = (title or "").strip() or description[:DERIVED_TITLE_LENGTH]

        with self.store.unit_of_work():
            if category_id is not None:
                self.ref.require_category(category_id)
            report = Report(
                title=title,
                description=description,
                latitude=latitude,
                longitude=longitude,
                category_id=category_id,
                images=images,
                anonymous=anonymous,
                status=INITIAL_STATUS.value,
                created_by_id=actor.actor_id,
            )
            self.store.add(report)
        logger.info("report %s created by user %s", report.id, actor.actor_id)
        return report

    # ---- transitions ----

    def transition(
        self,
        report_id: int,
        actor: Actor,
        requested: Transition,
        payload: dict[str, Any] | None = None,
    ) -> Report:
        """Apply one transition atomically and notify.

        Raises NotFoundError, ForbiddenError, InvalidTransitionError,
        ValidationError or ConflictError; on any of them nothing is written.
        """
        payload = payload or {}
        rule = TRANSITIONS[requested]

        with self.store.unit_of_work():
            report = self.store.require(report_id)
            if actor.role not in rule.roles:
                raise ForbiddenError(
                    f"Role {actor.role.value} is not allowed to perform {requested.value}"
                )
            previous = ReportStatus(report.status)
            if previous in TERMINAL_STATUSES:
                raise InvalidTransitionError(f"Report {report_id} is {previous.value}; no further transitions")
            if previous not in rule.sources:
                raise InvalidTransitionError(
                    f"Cannot perform {requested.value} on a report in status {previous.value}"
                )
            target = self._target(requested, payload)
            if (previous, target) not in rule.edges:
                raise InvalidTransitionError(f"Transition {previous.value} -> {target.value} is not allowed")
            self._check_gates(rule, report, actor)
            self._apply(requested, report, actor, target, payload)
            self.store.write_status(report, target)

        logger.info(
            "report %s %s by user %s: %s -> %s",
            report_id,
            requested.value,
            actor.actor_id,
            previous.value,
            target.value,
        )
        if rule.notify:
            self.dispatcher.on_status_change(report, previous, target)
        return report

    def set_category(self, report_id: int, actor: Actor, category_id: int | None) -> Report:
        return self.transition(report_id, actor, Transition.SET_CATEGORY, {"category_id": category_id})

    def accept_or_reject(self, report_id: int, actor: Actor, decision: str, reason: str | None = None) -> Report:
        return self.transition(report_id, actor, Transition.REVIEW, {"decision": decision, "reason": reason})

    def assign_external_maintainer(self, report_id: int, actor: Actor, maintainer_id: int | None) -> Report:
        return self.transition(report_id, actor, Transition.ASSIGN_MAINTAINER, {"maintainer_id": maintainer_id})

    def update_status(self, report_id: int, actor: Actor, new_status: str) -> Report:
        return self.transition(report_id, actor, Transition.UPDATE_STATUS, {"status": new_status})

    # ---- queries ----

    def reports_by_status(self, status: str) -> list[Report]:
        return self.store.by_status(_parse_status(status))

    def my_reports(self, actor: Actor) -> list[Report]:
        return self.store.by_creator(actor.actor_id)

    def assigned_reports(self, actor: Actor) -> list[Report]:
        if actor.role == Role.EXTERNAL_MAINTAINER:
            return self.store.by_assignee_or_office(actor.actor_id, None)
        if actor.role == Role.TECHNICAL_STAFF_MEMBER:
            staff = self.ref.require_user(actor.actor_id)
            return self.store.by_assignee_or_office(actor.actor_id, staff.office_id)
        raise ForbiddenError(f"Role {actor.role.value} has no assigned reports")

    def report_by_id(self, report_id: int, actor: Actor) -> Report:
        report = self.store.require(report_id)
        if not access.can_view(actor, report, self.ref):
            raise ForbiddenError("Not allowed to see this report")
        return report

    # ---- helpers ----

    def _target(self, requested: Transition, payload: dict[str, Any]) -> ReportStatus:
        if requested == Transition.SET_CATEGORY:
            return ReportStatus.CATEGORIZED
        if requested == Transition.ASSIGN_MAINTAINER:
            return ReportStatus.EXTERNALLY_ASSIGNED
        if requested == Transition.REVIEW:
            decision = payload.get("decision")
            if decision is None:
                raise ValidationError("decision is required")
            try:
                decision = ReviewDecision(str(decision).upper())
            except ValueError:
                raise ValidationError("decision must be ACCEPT or REJECT") from None
            return ReportStatus.ASSIGNED if decision == ReviewDecision.ACCEPT else ReportStatus.REJECTED
        status = payload.get("status")
        if status is None:
            raise ValidationError("status is required")
        return _parse_status(status)

    def _check_gates(self, rule: TransitionRule, report: Report, actor: Actor) -> None:
        if rule.supervisor_gated and not access.supervises(actor, report, self.ref):
            raise ForbiddenError("Only staff of the office handling this category can do this")
        if rule.assignee_gated:
            if actor.role == Role.EXTERNAL_MAINTAINER and access.is_assignee(actor, report):
                return
            if actor.role == Role.TECHNICAL_STAFF_MEMBER and access.supervises(actor, report, self.ref):
                return
            raise ForbiddenError("Only the assignee or supervising staff can update this report")

    def _apply(
        self,
        requested: Transition,
        report: Report,
        actor: Actor,
        target: ReportStatus,
        payload: dict[str, Any],
    ) -> None:
        if requested == Transition.SET_CATEGORY:
            category = self.ref.require_category(payload.get("category_id"))
            report.category_id = category.id
        elif requested == Transition.REVIEW:
            if report.category_id is None:
                raise ValidationError("Report has no category")
            if target == ReportStatus.REJECTED:
                reason = (payload.get("reason") or "").strip()
                if not reason:
                    raise ValidationError("A rejection reason is required")
                report.rejection_reason = reason
        elif requested == Transition.ASSIGN_MAINTAINER:
            maintainer_id = payload.get("maintainer_id")
            if maintainer_id is None:
                raise ValidationError("maintainer_id is required")
            maintainer = self.ref.get_user(maintainer_id)
            if (
                not maintainer
                or maintainer.role != Role.EXTERNAL_MAINTAINER.value
                or not maintainer.is_active
            ):
                raise ValidationError(f"User {maintainer_id} is not an active external maintainer")
            report.assigned_to_id = maintainer.id
            partner_id = actor.actor_id if self.maintainer_chat_partner == "staff" else report.created_by_id
            self.chats.ensure_thread(report, partner_id, maintainer.id)

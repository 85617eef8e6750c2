"""Report store: atomic transitions and optimistic concurrency."""

import logging

import pytest
from sqlalchemy.exc import SQLAlchemyError

from civic.core.errors import ConflictError
from civic.models.chat_thread import ChatThread
from civic.models.enums import ReportStatus
from civic.models.notification import Notification
from civic.models.report import Report


def _categorized(services, cast):
    report = services.workflow.create_report(cast.as_citizen, description="Overflowing bin")
    services.workflow.set_category(report.id, cast.as_pro, cast.category.id)
    return report.id


def test_version_increments_on_every_transition(services, cast):
    report_id = _categorized(services, cast)
    before = services.workflow.store.require(report_id).version
    services.workflow.accept_or_reject(report_id, cast.as_pro, "ACCEPT")
    assert services.workflow.store.require(report_id).version == before + 1


def test_concurrent_transition_loser_gets_conflict(services, cast, wire, session_factory):
    """Two writers on the same report: the stale one fails and writes nothing."""
    report_id = _categorized(services, cast)
    s1, s2 = session_factory(), session_factory()
    try:
        slow, fast = wire(session=s1), wire(session=s2)
        held = slow.workflow.store.require(report_id)  # keeps the row at its current version in s1

        fast.workflow.accept_or_reject(report_id, cast.as_pro, "ACCEPT")
        assert held.status == ReportStatus.CATEGORIZED.value
        with pytest.raises(ConflictError):
            slow.workflow.accept_or_reject(report_id, cast.as_pro, "REJECT", reason="Duplicate")
    finally:
        s1.close()
        s2.close()

    check = session_factory()
    try:
        report = check.get(Report, report_id)
        assert report.status == ReportStatus.ASSIGNED.value
        assert report.rejection_reason is None
        notes = check.query(Notification).filter(Notification.report_id == report_id).all()
        assert [n.new_status for n in notes] == [ReportStatus.ASSIGNED.value]
    finally:
        check.close()


def test_failed_side_effect_leaves_nothing_applied(services, cast, db, monkeypatch):
    """Assignment and chat creation commit together with the status or not at all."""
    report_id = _categorized(services, cast)
    services.workflow.accept_or_reject(report_id, cast.as_pro, "ACCEPT")

    def broken(*args, **kwargs):
        raise RuntimeError("interrupted")

    monkeypatch.setattr(services.chats, "ensure_thread", broken)
    with pytest.raises(RuntimeError):
        services.workflow.assign_external_maintainer(report_id, cast.as_staff, cast.maintainer.id)

    report = services.workflow.store.require(report_id)
    assert report.status == ReportStatus.ASSIGNED.value
    assert report.assigned_to_id is None
    assert db.query(ChatThread).filter(ChatThread.report_id == report_id).count() == 0


def test_notification_failure_does_not_fail_transition(services, cast, db, monkeypatch, caplog):
    report_id = _categorized(services, cast)

    def broken(notification):
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(services.dispatcher, "_persist", broken)
    with caplog.at_level(logging.ERROR, logger="civic.services.notification_service"):
        report = services.workflow.accept_or_reject(report_id, cast.as_pro, "ACCEPT")

    assert report.status == ReportStatus.ASSIGNED.value
    assert db.query(Notification).filter(Notification.report_id == report_id).count() == 0
    assert "notification_dispatch_failed" in caplog.text

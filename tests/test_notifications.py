"""Notification dispatcher tests."""

import logging

import pytest
from sqlalchemy.exc import SQLAlchemyError

from civic.core.errors import ForbiddenError, NotFoundError
from civic.core.identity import Actor
from civic.models.enums import NotificationType, ReportStatus, Role
from civic.models.notification import Notification


def _accepted(services, cast):
    wf = services.workflow
    report = wf.create_report(cast.as_citizen, description="Graffiti on the school wall")
    wf.set_category(report.id, cast.as_pro, cast.category.id)
    wf.accept_or_reject(report.id, cast.as_pro, "ACCEPT")
    return report


def test_status_change_creates_notification_for_creator(services, cast):
    report = services.workflow.create_report(cast.as_citizen, description="Fallen tree")
    note = services.dispatcher.on_status_change(report, ReportStatus.CATEGORIZED, ReportStatus.ASSIGNED)

    assert note.type == NotificationType.REPORT_STATUS.value
    assert note.user_id == cast.citizen.id
    assert note.report_id == report.id
    assert (note.previous_status, note.new_status) == ("CATEGORIZED", "ASSIGNED")
    assert note.message_id is None
    assert note.seen is False


def test_my_notifications_newest_first_and_scoped(services, cast, make_user):
    report = _accepted(services, cast)
    services.workflow.assign_external_maintainer(report.id, cast.as_staff, cast.maintainer.id)

    mine = services.dispatcher.for_user(cast.citizen.id)
    assert [n.new_status for n in mine] == ["EXTERNALLY_ASSIGNED", "ASSIGNED"]
    assert all(n.user_id == cast.citizen.id for n in mine)
    assert services.dispatcher.for_user(make_user(Role.CITIZEN).id) == []


def test_list_all_carries_relation_context(services, cast):
    report = _accepted(services, cast)
    note = next(n for n in services.dispatcher.list_all() if n.report_id == report.id)
    assert note.user.id == cast.citizen.id
    assert note.report.category.id == cast.category.id
    assert note.report.created_by.id == cast.citizen.id
    assert note.message is None


def test_mark_seen_is_idempotent(services, cast, db):
    report = _accepted(services, cast)
    (note,) = services.dispatcher.for_user(cast.citizen.id)

    first = services.dispatcher.mark_seen(note.id)
    second = services.dispatcher.mark_seen(note.id)
    assert first.seen is True
    assert second.seen is True
    assert db.query(Notification).filter(Notification.report_id == report.id).count() == 1


def test_mark_seen_by_other_user_is_forbidden(services, cast):
    _accepted(services, cast)
    (note,) = services.dispatcher.for_user(cast.citizen.id)
    with pytest.raises(ForbiddenError):
        services.dispatcher.mark_seen(note.id, cast.as_pro)
    assert services.dispatcher.mark_seen(note.id, cast.as_citizen).seen is True


def test_mark_seen_unknown_notification(services):
    with pytest.raises(NotFoundError):
        services.dispatcher.mark_seen(999999)


def test_staff_comment_notifies_creator(services, cast):
    report = _accepted(services, cast)
    msg = services.messages.post_comment(report.id, cast.as_pro, "We are on it")
    (note,) = [n for n in services.dispatcher.for_user(cast.citizen.id) if n.type == "MESSAGE"]
    assert note.message_id == msg.id
    assert note.previous_status is None and note.new_status is None


def test_citizen_comment_without_assignee_notifies_nobody(services, cast, db):
    report = _accepted(services, cast)
    msg = services.messages.post_comment(report.id, cast.as_citizen, "Any news?")
    assert db.query(Notification).filter(Notification.message_id == msg.id).count() == 0


def test_mail_summary_sent_when_enabled(services, cast, make_user, mailer):
    citizen = make_user(Role.CITIZEN, email_notifications=True)
    cast.citizen, cast.as_citizen = citizen, Actor.of(citizen)
    _accepted(services, cast)
    assert [to for to, _, _ in mailer.sent] == [citizen.email]
    assert "ASSIGNED" in mailer.sent[0][1]


def test_mail_not_sent_when_disabled(services, cast, mailer):
    _accepted(services, cast)
    assert mailer.sent == []


def test_mail_failure_is_swallowed(services, cast, make_user, caplog):
    class BrokenMailer:
        def send(self, to, subject, body):
            raise OSError("smtp down")

    citizen = make_user(Role.CITIZEN, email_notifications=True)
    cast.citizen, cast.as_citizen = citizen, Actor.of(citizen)
    services.dispatcher.mailer = BrokenMailer()

    report = _accepted(services, cast)
    assert report.status == ReportStatus.ASSIGNED.value
    assert len(services.dispatcher.for_user(citizen.id)) == 1
    assert "mail_delivery_failed" in caplog.text


def test_unreadable_report_does_not_escape_dispatch(services, caplog):
    """Attribute reloads after the workflow commit can fail; dispatch still returns quietly."""

    class ExpiredReport:
        created_by_id = 1

        @property
        def id(self):
            raise SQLAlchemyError("connection lost")

    with caplog.at_level(logging.ERROR, logger="civic.services.notification_service"):
        note = services.dispatcher.on_status_change(ExpiredReport(), ReportStatus.CATEGORIZED, ReportStatus.ASSIGNED)
    assert note is None
    assert "notification_dispatch_failed" in caplog.text


def test_unreadable_message_does_not_escape_dispatch(services, caplog):
    class ExpiredMessage:
        @property
        def id(self):
            raise SQLAlchemyError("connection lost")

    with caplog.at_level(logging.ERROR, logger="civic.services.notification_service"):
        assert services.dispatcher.on_new_message(ExpiredMessage()) is None
    assert "notification_dispatch_failed" in caplog.text

"""Message tests: chat messages and report comments."""

from datetime import datetime, timedelta, timezone

import pytest

from civic.core.errors import ForbiddenError, NotFoundError, ValidationError
from civic.core.identity import Actor
from civic.models.enums import NotificationType, Role
from civic.models.notification import Notification


def _report(services, cast):
    report = services.workflow.create_report(cast.as_citizen, description="Bench broken in the park")
    services.workflow.set_category(report.id, cast.as_pro, cast.category.id)
    return report


def test_chat_message_goes_to_other_participant(services, cast, db):
    report = _report(services, cast)
    thread = services.chats.create_thread(report.id, cast.citizen.id, cast.staff.id)
    msg = services.messages.post_to_chat(thread.id, cast.as_staff, "  Can you send a photo?  ")

    assert msg.text == "Can you send a photo?"
    assert msg.sender_id == cast.staff.id
    assert msg.receiver_id == cast.citizen.id
    assert msg.report_id == report.id
    assert msg.chat_id == thread.id
    note = db.query(Notification).filter(Notification.message_id == msg.id).one()
    assert note.type == NotificationType.MESSAGE.value
    assert note.user_id == cast.citizen.id


def test_empty_text_is_rejected(services, cast):
    report = _report(services, cast)
    thread = services.chats.create_thread(report.id, cast.citizen.id, cast.staff.id)
    with pytest.raises(ValidationError):
        services.messages.post_to_chat(thread.id, cast.as_staff, "   ")
    with pytest.raises(ValidationError):
        services.messages.post_comment(report.id, cast.as_staff, "")


def test_non_participant_cannot_post_or_read(services, cast):
    report = _report(services, cast)
    thread = services.chats.create_thread(report.id, cast.citizen.id, cast.staff.id)
    with pytest.raises(ForbiddenError):
        services.messages.post_to_chat(thread.id, cast.as_maintainer, "hello")
    with pytest.raises(ForbiddenError):
        services.messages.by_chat(thread.id, cast.as_maintainer)


def test_receiver_must_be_other_participant(services, cast):
    report = _report(services, cast)
    thread = services.chats.create_thread(report.id, cast.citizen.id, cast.staff.id)
    with pytest.raises(ValidationError):
        services.messages.post_to_chat(thread.id, cast.as_staff, "hi", receiver_id=cast.maintainer.id)


def test_post_requires_exactly_one_target(services, cast):
    with pytest.raises(ValidationError):
        services.messages.post(cast.as_staff, "hi")
    with pytest.raises(ValidationError):
        services.messages.post(cast.as_staff, "hi", chat_id=1, report_id=1)


def test_unknown_targets(services, cast):
    with pytest.raises(NotFoundError):
        services.messages.post(cast.as_staff, "hi", chat_id=999999)
    with pytest.raises(NotFoundError):
        services.messages.post(cast.as_staff, "hi", report_id=999999)


def test_comment_requires_report_visibility(services, cast, make_user):
    report = _report(services, cast)
    with pytest.raises(ForbiddenError):
        services.messages.post_comment(report.id, Actor.of(make_user(Role.CITIZEN)), "me too")


def test_by_report_is_ordered_by_sent_at_then_id(wire, cast):
    t0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
    ticks = iter([t0 + timedelta(minutes=2), t0 + timedelta(minutes=1), t0 + timedelta(minutes=1)])
    services = wire(clock=lambda: next(ticks))
    report = _report(services, cast)

    late = services.messages.post_comment(report.id, cast.as_pro, "late")
    early_a = services.messages.post_comment(report.id, cast.as_pro, "early a")
    early_b = services.messages.post_comment(report.id, cast.as_citizen, "early b")

    listed = services.messages.by_report(report.id)
    assert [m.id for m in listed] == [early_a.id, early_b.id, late.id]
    stamps = [m.sent_at for m in listed]
    assert stamps == sorted(stamps)


def test_by_report_hides_foreign_chats_from_citizen(services, cast):
    report = _report(services, cast)
    staff_chat = services.chats.create_thread(report.id, cast.pro.id, cast.staff.id)
    services.messages.post_to_chat(staff_chat.id, cast.as_staff, "internal note")
    comment = services.messages.post_comment(report.id, cast.as_pro, "public update")

    assert [m.id for m in services.messages.by_report(report.id, cast.as_citizen)] == [comment.id]
    assert len(services.messages.by_report(report.id, cast.as_staff)) == 2


def test_by_user_covers_sent_and_received(services, cast):
    report = _report(services, cast)
    thread = services.chats.create_thread(report.id, cast.citizen.id, cast.staff.id)
    sent = services.messages.post_to_chat(thread.id, cast.as_citizen, "question")
    received = services.messages.post_to_chat(thread.id, cast.as_staff, "answer")
    assert [m.id for m in services.messages.by_user(cast.citizen.id)] == [sent.id, received.id]
    listed = services.messages.by_user(cast.staff.id)
    assert listed[0].sender.id == cast.citizen.id
    assert listed[0].receiver.id == cast.staff.id

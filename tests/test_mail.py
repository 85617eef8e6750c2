"""SMTP mailer tests (smtplib is replaced by a recorder)."""

import pytest

from civic.services import mail_service
from civic.services.mail_service import SmtpMailer


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host, self.port, self.timeout = host, port, timeout
        self.calls = []
        self.messages = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.calls.append("quit")
        return False

    def starttls(self):
        self.calls.append("starttls")

    def login(self, user, password):
        self.calls.append(("login", user, password))

    def send_message(self, msg):
        self.messages.append(msg)


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(mail_service.smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(mail_service.smtplib, "SMTP_SSL", FakeSMTP)
    return FakeSMTP


def test_starttls_with_login(fake_smtp):
    mailer = SmtpMailer("smtp.example.org", 587, "noreply@example.org", "City Reports", "bot", "secret")
    mailer.send("citizen@example.org", "Report update", "Your report is now ASSIGNED")

    (smtp,) = fake_smtp.instances
    assert (smtp.host, smtp.port) == ("smtp.example.org", 587)
    assert smtp.calls == ["starttls", ("login", "bot", "secret"), "quit"]
    (msg,) = smtp.messages
    assert msg["To"] == "citizen@example.org"
    assert msg["From"] == "City Reports <noreply@example.org>"
    assert msg["Subject"] == "Report update"
    assert "ASSIGNED" in msg.get_content()


def test_implicit_tls_port_skips_starttls(fake_smtp):
    SmtpMailer("smtp.example.org", 465, "noreply@example.org").send("a@example.org", "s", "b")
    (smtp,) = fake_smtp.instances
    assert smtp.calls == ["quit"]
    assert smtp.messages[0]["From"] == "noreply@example.org"


def test_errors_propagate(monkeypatch):
    def refuse(*args, **kwargs):
        raise OSError("connection refused")

    monkeypatch.setattr(mail_service.smtplib, "SMTP", refuse)
    with pytest.raises(OSError):
        SmtpMailer("smtp.example.org", 25, "noreply@example.org").send("a@example.org", "s", "b")

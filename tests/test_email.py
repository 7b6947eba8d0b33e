import smtplib

import pytest

from app.config import settings
from app.utils import email


class FakeSMTP:
    sent = []

    def __init__(self, host, port, timeout=None):
        self.host = host

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, user, password):
        pass

    def send_message(self, msg):
        FakeSMTP.sent.append(msg)


class BrokenSMTP(FakeSMTP):
    def send_message(self, msg):
        raise smtplib.SMTPException("relay denied")


@pytest.fixture
def smtp_host(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.example.com")
    FakeSMTP.sent = []


def test_without_smtp_host_mail_is_only_logged(monkeypatch, caplog):
    monkeypatch.setattr(settings, "SMTP_HOST", "")
    with caplog.at_level("INFO"):
        assert email.send_email("tech@example.com", "Hello", "<p>hi</p>") is True
    assert "tech@example.com" in caplog.text


def test_assignment_email_escapes_content(smtp_host, monkeypatch):
    monkeypatch.setattr(email.smtplib, "SMTP", FakeSMTP)
    email.send_assignment_email("tech@example.com", 7, "<b>Leak</b>", "desc", "plumbing", "high", None)

    assert len(FakeSMTP.sent) == 1
    msg = FakeSMTP.sent[0]
    assert msg["To"] == "tech@example.com"
    html = msg.get_body(preferencelist=("html",)).get_content()
    assert "&lt;b&gt;Leak&lt;/b&gt;" in html


def test_delivery_failure_is_reported_not_raised(smtp_host, monkeypatch):
    monkeypatch.setattr(email.smtplib, "SMTP", BrokenSMTP)
    assert email.send_email("tech@example.com", "Hello", "<p>hi</p>") is False

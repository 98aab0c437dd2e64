from __future__ import annotations

import smtplib

import pytest

from bgi_admin.core.exceptions import MailError
from bgi_admin.mail.mailer import LogMailer, SmtpMailer, build_mailer
from bgi_admin.mail.templates import welcome_email


def test_log_mailer_keeps_messages():
    mailer = LogMailer()

    message_id = mailer.send("a@example.com", "Hi", "Body")

    assert message_id.startswith("<")
    assert mailer.sent[0]["To"] == "a@example.com"


@pytest.mark.parametrize("recipient, subject", [("", "Hi"), ("a@example.com", "")])
def test_recipient_and_subject_are_required(recipient, subject):
    with pytest.raises(MailError):
        LogMailer().send(recipient, subject, "Body")


def test_smtp_failures_become_mail_errors(monkeypatch):
    def refuse(*args, **kwargs):
        raise smtplib.SMTPConnectError(421, "busy")

    monkeypatch.setattr(smtplib, "SMTP_SSL", refuse)
    mailer = SmtpMailer(
        host="smtp.example.com", port=465, user="bot@example.com", password="x", secure=True, from_name="BGI"
    )

    with pytest.raises(MailError):
        mailer.send("a@example.com", "Hi", "Body")


def test_build_mailer_providers():
    assert isinstance(build_mailer({"provider": "log"}), LogMailer)
    assert isinstance(build_mailer({"provider": "smtp", "port": 587}), SmtpMailer)
    with pytest.raises(ValueError):
        build_mailer({"provider": "carrier-pigeon"})


def test_welcome_email_escapes_html():
    mail = welcome_email(
        name="<Ali>", its_number="1001", email="a@example.com", password="PW123456", login_url="http://x/login"
    )

    assert "&lt;Ali&gt;" in mail.html
    assert "PW123456" in mail.text

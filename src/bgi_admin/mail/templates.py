from __future__ import annotations

from dataclasses import dataclass
from html import escape

WELCOME_SUBJECT = "Welcome to Burhani Guards International"


@dataclass(frozen=True)
class RenderedMail:
    subject: str
    text: str
    html: str


def welcome_email(*, name: str, its_number: str, email: str, password: str, login_url: str) -> RenderedMail:
    text = (
        f"Dear {name},\n\n"
        "Your Burhani Guards International account has been created.\n\n"
        f"ITS Number: {its_number}\n"
        f"Email: {email}\n"
        f"Temporary password: {password}\n\n"
        f"Sign in at {login_url} and change your password after the first login.\n"
    )
    html = (
        f"<p>Dear {escape(name)},</p>"
        "<p>Your Burhani Guards International account has been created.</p>"
        "<table>"
        f"<tr><td>ITS Number</td><td><b>{escape(its_number)}</b></td></tr>"
        f"<tr><td>Email</td><td>{escape(email)}</td></tr>"
        f"<tr><td>Temporary password</td><td><b>{escape(password)}</b></td></tr>"
        "</table>"
        f'<p><a href="{escape(login_url, quote=True)}">Sign in</a> and change your password after the first login.</p>'
    )
    return RenderedMail(subject=WELCOME_SUBJECT, text=text, html=html)

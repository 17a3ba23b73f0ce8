"""Notification emails for task assignment, task completion, and welcome messages.

Sending is best-effort: failures are logged and never surface to the request
that triggered them. Each message is posted once; there are no retries.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass

import httpx

from volunteer_hub.core.config import settings

logger = logging.getLogger(__name__)

RESEND_SEND_URL = "https://api.resend.com/emails"
RESEND_TIMEOUT_SECONDS = 20.0


@dataclass
class EmailMessage:
    to: str
    subject: str
    html: str
    text: str


def _send_via_resend(message: EmailMessage) -> None:
    headers = {
        "Authorization": f"Bearer {settings.RESEND_API_KEY}",
        "Content-Type": "application/json",
    }
    payload = {
        "from": settings.EMAIL_FROM,
        "to": [message.to],
        "subject": message.subject,
        "html": message.html,
        "text": message.text,
    }
    with httpx.Client(timeout=RESEND_TIMEOUT_SECONDS) as client:
        response = client.post(RESEND_SEND_URL, json=payload, headers=headers)
    response.raise_for_status()


def send_email(message: EmailMessage) -> bool:
    """
    Deliver one email with the configured provider.

    Returns True when the provider accepted the message.
    """
    if settings.EMAIL_PROVIDER == "resend" and settings.RESEND_API_KEY:
        try:
            _send_via_resend(message)
        except httpx.HTTPError as exc:
            logger.warning("Email delivery failed: %s", message.subject, exc_info=exc)
            return False
        logger.info("Email sent via Resend: %s", message.subject)
        return True

    logger.info("Email (log provider) to=%s subject=%s", message.to, message.subject)
    return True


def _render(heading: str, paragraphs: list[str]) -> tuple[str, str]:
    body_html = "".join(f"<p>{html.escape(p)}</p>" for p in paragraphs)
    page = f"<h2>{html.escape(heading)}</h2>{body_html}"
    text = "\n\n".join([heading, *paragraphs])
    return page, text


def notify_task_assigned(
    to_email: str,
    volunteer_name: str,
    task_title: str,
    due_date: str | None,
    org_name: str | None,
) -> bool:
    paragraphs = [
        f"Hi {volunteer_name},",
        f"You have been assigned a new task: {task_title}.",
    ]
    if due_date:
        paragraphs.append(f"Due: {due_date}")
    paragraphs.append(f"View your tasks at {settings.FRONTEND_URL}/dashboard")
    page, text = _render(f"New task from {org_name or 'your organization'}", paragraphs)
    return send_email(EmailMessage(to_email, f"New task assigned: {task_title}", page, text))


def notify_task_completed(
    to_email: str,
    admin_name: str,
    volunteer_name: str,
    task_title: str,
    completion_notes: str | None,
) -> bool:
    paragraphs = [
        f"Hi {admin_name},",
        f"{volunteer_name} completed the task: {task_title}.",
    ]
    if completion_notes:
        paragraphs.append(f"Notes: {completion_notes}")
    page, text = _render("Task completed", paragraphs)
    return send_email(EmailMessage(to_email, f"Task completed: {task_title}", page, text))


def send_welcome(to_email: str, name: str, org_name: str | None, role: str) -> bool:
    role_label = "an administrator" if role == "nonprofit_admin" else "a volunteer"
    paragraphs = [
        f"Hi {name},",
        f"You have been added to {org_name or 'an organization'} as {role_label}.",
        f"Sign in at {settings.FRONTEND_URL}/login with this email address and the "
        "password your organization shared with you.",
    ]
    page, text = _render("Welcome to Volunteer Hub", paragraphs)
    return send_email(EmailMessage(to_email, f"Welcome to {org_name or 'Volunteer Hub'}", page, text))

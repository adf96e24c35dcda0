# Overview: Outbound mail transports; every transport exposes send(to, template, data).

from __future__ import annotations

import logging

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Content, Email, Mail, To

from . import email_templates

logger = logging.getLogger(__name__)


class Mailer:
    """Transport interface used by the notification dispatcher."""

    def send(self, to: str, template: str, data: dict) -> None:
        raise NotImplementedError


class LogMailer(Mailer):
    """Development transport: logs the message instead of delivering it."""

    def __init__(self, *, base_url: str):
        self.base_url = base_url

    def send(self, to: str, template: str, data: dict) -> None:
        subject = email_templates.subject_for(template, data)
        logger.info("[DEV] Mock sending email to %s for type %s (%s)", to, template, subject)


class SendGridMailer(Mailer):
    """Delivers rendered HTML mail through the SendGrid v3 API."""

    def __init__(self, *, api_key: str, from_email: str, from_name: str, base_url: str, reply_to: str = ""):
        if not api_key:
            raise RuntimeError("Missing SENDGRID_API_KEY")
        self.client = SendGridAPIClient(api_key)
        self.from_email = from_email
        self.from_name = from_name
        self.reply_to = reply_to
        self.base_url = base_url

    def send(self, to: str, template: str, data: dict) -> None:
        msg = Mail(
            from_email=Email(self.from_email, self.from_name),
            to_emails=[To(to)],
            subject=email_templates.subject_for(template, data),
            html_content=Content("text/html", email_templates.html_for(template, data, base_url=self.base_url)),
        )
        if self.reply_to:
            msg.reply_to = Email(self.reply_to)

        resp = self.client.send(msg)
        status = getattr(resp, "status_code", None)
        if status is not None and status >= 300:
            raise RuntimeError(f"SendGrid rejected message to {to}: status={status}")
        logger.info("[email] sent %s to %s status=%s", template, to, status)


def build_mailer(config) -> Mailer:
    """Pick the transport from configuration (SendGrid when a key is present)."""
    if config.get("MAILER") is not None:
        return config["MAILER"]
    if config.get("SENDGRID_API_KEY"):
        return SendGridMailer(
            api_key=config["SENDGRID_API_KEY"],
            from_email=config["FROM_EMAIL"],
            from_name=config["FROM_NAME"],
            base_url=config["BASE_URL"],
            reply_to=config.get("REPLY_TO_EMAIL") or "",
        )
    logger.warning("SENDGRID_API_KEY not set; outbound email will only be logged")
    return LogMailer(base_url=config["BASE_URL"])

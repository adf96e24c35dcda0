# Overview: Maps lifecycle events to email deliveries; delivery failures never reach the caller.

"""
Notification dispatch.

Engines publish an event only after their state change has been committed.
The dispatcher turns each event into one or more (recipient, template, data)
deliveries and hands them to the mail transport. A failed delivery is logged
and reported back as False; it never raises into the lifecycle operation that
published the event, so a committed transition is never rolled back or
reported as failed because of email.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from . import email_templates
from .email_service import Mailer

logger = logging.getLogger(__name__)


class NotificationFailure(RuntimeError):
    """A single delivery could not be handed to the transport."""
    reason = "notification_failure"


@dataclass(frozen=True)
class Delivery:
    to: str
    template: str
    data: dict


@dataclass(frozen=True)
class RequestCreated:
    request: dict
    token: str


@dataclass(frozen=True)
class ResponseRecorded:
    request: dict
    action: str
    note: str = ""


@dataclass(frozen=True)
class ReminderDue:
    request: dict
    token: str
    recipient: str


@dataclass(frozen=True)
class AccountRegistered:
    user: dict
    registered_at: str | None = None


@dataclass(frozen=True)
class RoleChanged:
    email: str
    user_name: str
    old_role: str
    new_role: str
    sender: str


@dataclass
class DispatchResult:
    delivered: list[Delivery] = field(default_factory=list)
    failed: list[Delivery] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class NotificationDispatcher:
    def __init__(self, mailer: Mailer, *, admin_email: str = "", rebate_email: str = ""):
        self.mailer = mailer
        self.admin_email = admin_email
        self.rebate_email = rebate_email

    def deliveries_for(self, event) -> list[Delivery]:
        if isinstance(event, RequestCreated):
            request = event.request
            out = []
            recipient = request.get("email") or self.rebate_email
            if recipient:
                out.append(Delivery(recipient, email_templates.PURCHASE_REQUEST,
                                    {"request": request, "token": event.token}))
            confirmation = request.get("publicEmail") or request.get("email")
            if confirmation:
                out.append(Delivery(confirmation, email_templates.PURCHASE_REQUEST_CONFIRMATION,
                                    {"request": request}))
            return out

        if isinstance(event, ResponseRecorded):
            target = self.admin_email or event.request.get("adminEmail")
            if not target:
                return []
            return [Delivery(target, email_templates.RESPONSE_NOTIFICATION,
                             {"request": event.request, "action": event.action, "note": event.note})]

        if isinstance(event, ReminderDue):
            return [Delivery(event.recipient, email_templates.REMINDER,
                             {"request": event.request, "token": event.token})]

        if isinstance(event, AccountRegistered):
            out = []
            if self.admin_email:
                out.append(Delivery(self.admin_email, email_templates.NEW_REGISTRATION_ADMIN,
                                    {"user": event.user, "registeredAt": event.registered_at}))
            if event.user.get("email"):
                out.append(Delivery(event.user["email"], email_templates.REGISTRATION_RECEIVED_USER,
                                    {"user": event.user}))
            return out

        if isinstance(event, RoleChanged):
            if not event.email:
                return []
            return [Delivery(event.email, email_templates.ROLE_UPDATED, {
                "sender": event.sender,
                "userName": event.user_name,
                "role": event.new_role,
                "oldRole": event.old_role,
            })]

        raise TypeError(f"Unknown notification event: {type(event).__name__}")

    def _deliver(self, delivery: Delivery) -> None:
        try:
            self.mailer.send(delivery.to, delivery.template, delivery.data)
        except Exception as exc:
            raise NotificationFailure(f"{delivery.template} to {delivery.to}: {exc}") from exc

    def publish(self, event) -> DispatchResult:
        result = DispatchResult()
        for delivery in self.deliveries_for(event):
            try:
                self._deliver(delivery)
            except NotificationFailure as exc:
                logger.error("Notification failed: %s", exc)
                result.failed.append(delivery)
            else:
                result.delivered.append(delivery)
        return result

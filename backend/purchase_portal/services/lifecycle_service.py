# Overview: Service-layer operations for the purchase request lifecycle; owns every status transition.

"""
Purchase Request Lifecycle Service

================================================================================
PURPOSE: Enforce the Pending -> (Confirmed | Approved | Rejected | Need Info)
lifecycle, driven by a single-use emailed response token.
================================================================================

STATE MACHINE:
    PENDING -> CONFIRMED
    PENDING -> APPROVED
    PENDING -> REJECTED
    PENDING -> NEED INFO

    PENDING:  Initial state. The response token is live.
    others:   Terminal with respect to the token. Reaching any of them retires
              the token permanently (token_used = true).

RULES:
1. Only the response link (token + action) may move a request out of PENDING.
2. A token drives at most one transition. The flip of token_used is a single
   conditional UPDATE in the store, so two near-simultaneous clicks cannot
   both succeed.
3. Admin edits may change submission details but never lifecycle fields.
4. Notifications are published after the transition is committed; a failed
   email leaves the record transitioned but under-notified.

================================================================================
"""

from __future__ import annotations

import logging
from datetime import datetime, time
from enum import Enum
from typing import Callable

from ..models import PurchaseRequest
from ..time_utils import parse_iso_datetime, utcnow
from ..validation import ModelValidationPolicy, NotFoundError, ValidationError, validate_payload
from .notification_service import NotificationDispatcher, RequestCreated, ResponseRecorded
from .request_store import RequestStore
from .token_service import generate_unique_token

logger = logging.getLogger(__name__)


class RequestStatus(str, Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    NEED_INFO = "Need Info"


VALID_STATUSES = {s.value for s in RequestStatus}

ACTION_TO_STATUS = {
    "confirm": RequestStatus.CONFIRMED,
    "approve": RequestStatus.APPROVED,
    "reject": RequestStatus.REJECTED,
    "needinfo": RequestStatus.NEED_INFO,
}

VALID_TRANSITIONS = {
    (RequestStatus.PENDING, RequestStatus.CONFIRMED),
    (RequestStatus.PENDING, RequestStatus.APPROVED),
    (RequestStatus.PENDING, RequestStatus.REJECTED),
    (RequestStatus.PENDING, RequestStatus.NEED_INFO),
}


class LifecycleError(ValidationError):
    """
    Raised when an invalid lifecycle transition is attempted.

    This is a domain error, not a technical error. It indicates
    that the caller attempted an operation that violates business rules.
    """
    reason = "lifecycle_error"


class InvalidActionError(ValidationError):
    """Response action outside confirm / approve / reject / needinfo."""
    reason = "invalid_action"

    def __init__(self, message: str = "Invalid action"):
        super().__init__(message)


class TokenAlreadyUsedError(LifecycleError):
    """The response token has already driven its one transition."""
    reason = "token_already_used"

    def __init__(self, message: str = "This response link has already been used."):
        super().__init__(message)


def validate_status(status: str) -> RequestStatus:
    if status not in VALID_STATUSES:
        raise ValidationError(
            f"Invalid status '{status}'. Must be one of: {', '.join(sorted(VALID_STATUSES))}"
        )
    return RequestStatus(status)


def status_for_action(action: str | None) -> RequestStatus:
    try:
        return ACTION_TO_STATUS[action]
    except KeyError:
        raise InvalidActionError()


def check_transition(from_status: str, to_status: str, *, via_token: bool) -> None:
    """
    Single transition check consulted by every mutating entry point.

    Same-state writes are no-ops and always allowed. Any real move must come
    from a response token and must be one of VALID_TRANSITIONS.
    """
    current = validate_status(from_status)
    target = validate_status(to_status)

    if current == target:
        return
    if not via_token:
        raise LifecycleError("Status can only be changed through the response link")
    if (current, target) not in VALID_TRANSITIONS:
        raise LifecycleError(f"Cannot move request from '{current.value}' to '{target.value}'")


# Submission fields an admin or public submitter may set.
REQUEST_POLICY = ModelValidationPolicy(
    writable_fields={
        "storeName", "employeeName", "orderDate", "invoiceDate", "productModel",
        "serialNumber", "fob", "discount", "rebate", "email", "publicEmail",
    },
    required_on_create={
        "storeName", "employeeName", "orderDate", "invoiceDate", "productModel", "discount",
    },
)

# Fields owned by the lifecycle engine and reminder sweep. Admin updates may
# echo them back unchanged but never alter them.
LIFECYCLE_FIELDS = {
    "status", "responseToken", "tokenUsed", "responseType", "responseNote",
    "responseTimestamp", "reminderCount", "lastReminderSent", "emailSentLog",
}

# Never writable; silently dropped from admin updates.
READ_ONLY_FIELDS = {"id", "createdAt", "updatedAt", "adminEmail", "adminName"}

UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=REQUEST_POLICY.writable_fields,
    required_on_create=REQUEST_POLICY.required_on_create,
    ignored_fields=READ_ONLY_FIELDS | LIFECYCLE_FIELDS,
)


def _parse_bound(value: str | None, *, end_of_day: bool) -> datetime | None:
    if not value:
        return None
    try:
        dt = parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(f"Invalid date: {value}")
    # A bare date as the upper bound covers that whole day.
    if end_of_day and dt is not None and len(value.strip()) == 10:
        dt = datetime.combine(dt.date(), time.max)
    return dt


class LifecycleEngine:
    """
    Owns create / respond / edit / delete for purchase requests.

    The store, dispatcher, clock and token factory are injected so tests can
    drive the engine with fakes and a fixed clock.
    """

    def __init__(
        self,
        store: RequestStore,
        dispatcher: NotificationDispatcher,
        *,
        default_sender_email: str = "",
        default_sender_name: str = "Staff Member",
        clock: Callable[[], datetime] = utcnow,
        token_factory: Callable[[Callable[[str], bool]], str] = generate_unique_token,
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.default_sender_email = default_sender_email
        self.default_sender_name = default_sender_name
        self.clock = clock
        self.token_factory = token_factory

    # ------------------------------------------------------------------ create

    def create(
        self,
        payload: dict,
        *,
        sender_email: str | None = None,
        sender_name: str | None = None,
    ) -> PurchaseRequest:
        patch = validate_payload(model=PurchaseRequest, payload=payload, policy=REQUEST_POLICY, partial=False)

        now = self.clock()
        token = self.token_factory(self.store.token_exists)

        fields = {
            "serial_number": "",
            "fob": "",
            "rebate": "",
            "email": "",
            "public_email": "",
            **{k: v for k, v in patch.items() if v is not None},
            "admin_email": sender_email or self.default_sender_email,
            "admin_name": sender_name or self.default_sender_name,
            "status": RequestStatus.PENDING.value,
            "response_token": token,
            "token_used": False,
            "reminder_count": 0,
            "email_sent_log": [],
            "created_at": now,
            "updated_at": now,
        }
        req = self.store.insert(fields)
        logger.info("Purchase request %s created for %s (%s)", req.id, req.employee_name, req.store_name)

        result = self.dispatcher.publish(RequestCreated(request=req.to_dict(), token=token))
        if not result.ok:
            logger.warning("Purchase request %s created but %d notification(s) failed", req.id, len(result.failed))
        return req

    # ------------------------------------------------------------------ lookup

    def get(self, request_id: str) -> PurchaseRequest:
        req = self.store.get(request_id)
        if req is None:
            raise NotFoundError("Request not found")
        return req

    def resolve_by_token(self, token: str) -> PurchaseRequest:
        req = self.store.find_by_token(token)
        if req is None:
            raise NotFoundError("Invalid token")
        return req

    def get_public_view(self, token: str) -> dict:
        return self.resolve_by_token(token).to_public_dict()

    def list(
        self,
        *,
        status: str | None = None,
        store: str | None = None,
        employee: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> list[PurchaseRequest]:
        return self.store.query(
            status=status or None,
            store=store or None,
            employee=employee or None,
            created_from=_parse_bound(start_date, end_of_day=False),
            created_to=_parse_bound(end_date, end_of_day=True),
        )

    # ----------------------------------------------------------------- respond

    def apply_response(self, token: str, action: str | None, note: str | None = None) -> RequestStatus:
        req = self.resolve_by_token(token)

        if req.token_used:
            raise TokenAlreadyUsedError()

        new_status = status_for_action(action)
        check_transition(req.status, new_status.value, via_token=True)

        now = self.clock()
        updates = {
            "status": new_status.value,
            "response_type": action,
            "response_note": note or "",
            "response_timestamp": now,
            "updated_at": now,
        }
        if not self.store.claim_token(req.id, updates):
            # Another response for the same token committed first.
            logger.info("Response token for request %s was claimed concurrently", req.id)
            raise TokenAlreadyUsedError()

        logger.info("Request %s moved to %s via response link", req.id, new_status.value)

        snapshot = self.store.get(req.id)
        if snapshot is not None:
            self.dispatcher.publish(ResponseRecorded(request=snapshot.to_dict(), action=action, note=note or ""))
        return new_status

    # -------------------------------------------------------------- admin edit

    def update(self, request_id: str, payload: dict) -> PurchaseRequest:
        if not isinstance(payload, dict):
            raise ValidationError("Invalid JSON payload")

        req = self.get(request_id)

        if "status" in payload:
            check_transition(req.status, payload["status"], via_token=False)

        current = req.to_dict()
        for key in LIFECYCLE_FIELDS - {"status"}:
            if key in payload and payload[key] != current.get(key):
                raise ValidationError(f"{key} is managed by the response workflow")

        patch = validate_payload(model=PurchaseRequest, payload=payload, policy=UPDATE_POLICY, partial=True)
        patch["updated_at"] = self.clock()
        self.store.update(req, patch)
        logger.info("Request %s updated (%s)", request_id, ", ".join(sorted(patch)))
        return req

    def delete(self, request_id: str) -> None:
        req = self.get(request_id)
        self.store.delete(req)
        logger.info("Request %s deleted", request_id)


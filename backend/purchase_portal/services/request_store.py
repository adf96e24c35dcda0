# Overview: Store accessor for purchase requests; all SQL touching the purchaseRequests collection lives here.

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, or_

from ..models import PurchaseRequest
from ..time_utils import to_utc_z
from .concurrency import commit_with_retry, run_with_retry


class RequestStore:
    """
    CRUD and filtered query over purchase requests.

    Wraps a SQLAlchemy session so the lifecycle engine and reminder sweep can
    be handed any session (or a test double exposing the same methods).
    """

    def __init__(self, session):
        self.session = session

    # ------------------------------------------------------------------ reads

    def get(self, request_id: str) -> PurchaseRequest | None:
        return run_with_retry(self.session, lambda: self.session.get(PurchaseRequest, request_id))

    def find_by_token(self, token: str) -> PurchaseRequest | None:
        if not token:
            return None
        return run_with_retry(
            self.session,
            lambda: self.session.query(PurchaseRequest).filter_by(response_token=token).first(),
        )

    def token_exists(self, token: str) -> bool:
        return run_with_retry(
            self.session,
            lambda: self.session.query(PurchaseRequest.id).filter_by(response_token=token).first() is not None,
        )

    def query(
        self,
        *,
        status: str | None = None,
        store: str | None = None,
        employee: str | None = None,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
    ) -> list[PurchaseRequest]:
        """
        Filtered listing, most recent first. Every filter is optional; text
        filters are case-insensitive substring matches and the creation
        bounds are inclusive.
        """
        q = self.session.query(PurchaseRequest)
        if status:
            q = q.filter(PurchaseRequest.status == status)
        if store:
            q = q.filter(func.lower(PurchaseRequest.store_name).contains(store.lower(), autoescape=True))
        if employee:
            q = q.filter(func.lower(PurchaseRequest.employee_name).contains(employee.lower(), autoescape=True))
        if created_from is not None:
            q = q.filter(PurchaseRequest.created_at >= created_from)
        if created_to is not None:
            q = q.filter(PurchaseRequest.created_at <= created_to)
        q = q.order_by(PurchaseRequest.created_at.desc(), PurchaseRequest.id.desc())
        return run_with_retry(self.session, q.all)

    def list_by_status(self, status: str) -> list[PurchaseRequest]:
        return self.query(status=status)

    # ----------------------------------------------------------------- writes

    def insert(self, fields: dict) -> PurchaseRequest:
        def _apply():
            req = PurchaseRequest(**fields)
            self.session.add(req)
            return req

        return commit_with_retry(self.session, _apply)

    def update(self, req: PurchaseRequest, patch: dict) -> PurchaseRequest:
        def _apply():
            for attr, value in patch.items():
                setattr(req, attr, value)
            return req

        return commit_with_retry(self.session, _apply)

    def delete(self, req: PurchaseRequest) -> None:
        commit_with_retry(self.session, lambda: self.session.delete(req))

    def claim_token(self, request_id: str, updates: dict) -> bool:
        """
        Atomically retire the response token and apply `updates`.

        Single conditional UPDATE guarded by token_used = false; only one
        caller can ever see rowcount 1 for a given request.
        """
        def _op():
            rowcount = (
                self.session.query(PurchaseRequest)
                .filter(PurchaseRequest.id == request_id, PurchaseRequest.token_used.is_(False))
                .update({**updates, "token_used": True}, synchronize_session=False)
            )
            self.session.commit()
            return rowcount == 1

        claimed = run_with_retry(self.session, _op)
        # Drop cached state so the next read sees the committed row.
        self.session.expire_all()
        return claimed

    def claim_reminder(self, request_id: str, status: str, sent_at: datetime, day_start: datetime) -> bool:
        """
        Reserve today's reminder slot for a request.

        Conditional UPDATE of last_reminder_sent, guarded by the status and by
        no reminder at or after `day_start`. Concurrent sweeps race on the
        same row and only one wins.
        """
        def _op():
            rowcount = (
                self.session.query(PurchaseRequest)
                .filter(
                    PurchaseRequest.id == request_id,
                    PurchaseRequest.status == status,
                    or_(
                        PurchaseRequest.last_reminder_sent.is_(None),
                        PurchaseRequest.last_reminder_sent < day_start,
                    ),
                )
                .update({"last_reminder_sent": sent_at}, synchronize_session=False)
            )
            self.session.commit()
            return rowcount == 1

        claimed = run_with_retry(self.session, _op)
        self.session.expire_all()
        return claimed

    def release_reminder(self, request_id: str, sent_at: datetime, previous: datetime | None) -> None:
        """Give back a slot taken by claim_reminder when the send failed."""
        def _op():
            (
                self.session.query(PurchaseRequest)
                .filter(PurchaseRequest.id == request_id, PurchaseRequest.last_reminder_sent == sent_at)
                .update({"last_reminder_sent": previous}, synchronize_session=False)
            )
            self.session.commit()

        run_with_retry(self.session, _op)
        self.session.expire_all()

    def record_reminder(self, request_id: str, sent_at: datetime) -> PurchaseRequest | None:
        """Append a reminder entry to the email log and bump the counters."""
        def _apply():
            req = self.session.get(PurchaseRequest, request_id)
            if req is None:
                return None
            req.email_sent_log = [*(req.email_sent_log or []), {"sentAt": to_utc_z(sent_at), "type": "reminder"}]
            req.reminder_count = (req.reminder_count or 0) + 1
            req.last_reminder_sent = sent_at
            req.updated_at = sent_at
            return req

        return commit_with_retry(self.session, _apply)

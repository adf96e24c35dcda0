# Overview: Admission and role management for staff accounts backed by verified identities.

"""
Staff Admission Service

Every successful sign-in calls sync_user(). The first identity ever seen
becomes an admin; every later newcomer is admitted as "pending" until an
admin promotes them. Known accounts keep their role (staff if it was never
set) and only have their profile fields refreshed.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from ..models import StaffAccount
from ..models.staff import ASSIGNABLE_ROLES, ROLE_ADMIN, ROLE_PENDING, ROLE_STAFF
from ..time_utils import to_utc_z, utcnow
from ..validation import NotFoundError, ValidationError
from .concurrency import commit_with_retry, run_with_retry
from .identity_service import Identity
from .notification_service import AccountRegistered, NotificationDispatcher, RoleChanged

logger = logging.getLogger(__name__)


def fallback_name(email: str | None) -> str:
    prefix = email.split("@")[0] if email else "User"
    return prefix[:1].upper() + prefix[1:]


class AdmissionService:
    def __init__(
        self,
        session,
        dispatcher: NotificationDispatcher,
        *,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session = session
        self.dispatcher = dispatcher
        self.clock = clock

    def get_account(self, uid: str) -> StaffAccount | None:
        return run_with_retry(self.session, lambda: self.session.get(StaffAccount, uid))

    def _store_is_empty(self) -> bool:
        return self.session.query(StaffAccount.uid).first() is None

    def sync_user(self, identity: Identity) -> str:
        """Create or refresh the account for `identity`; returns its role."""
        is_empty = run_with_retry(self.session, self._store_is_empty)
        now = self.clock()

        def _apply():
            account = self.session.get(StaffAccount, identity.uid)
            is_new = account is None
            if is_empty:
                role = ROLE_ADMIN
            elif account is not None:
                role = account.role or ROLE_STAFF
            else:
                role = ROLE_PENDING

            if account is None:
                account = StaffAccount(uid=identity.uid, created_at=now)
                self.session.add(account)

            account.email = identity.email or account.email or ""
            account.name = identity.name or account.name or fallback_name(identity.email)
            account.photo_url = identity.picture or account.photo_url or ""
            account.last_login = now
            account.role = role
            return account, is_new

        account, is_new = commit_with_retry(self.session, _apply)
        role = account.role

        logger.info("Synced account %s (%s) role=%s new=%s", identity.uid, account.email, role, is_new)

        if is_new and role == ROLE_PENDING:
            user = account.to_dict()
            result = self.dispatcher.publish(AccountRegistered(user=user, registered_at=to_utc_z(account.last_login)))
            if not result.ok:
                logger.warning("Registration notifications for %s partly failed", identity.uid)
        return role

    def list_staff(self) -> list[dict]:
        accounts = run_with_retry(
            self.session,
            lambda: self.session.query(StaffAccount).order_by(StaffAccount.created_at.asc()).all(),
        )
        return [a.to_staff_entry() for a in accounts]

    def update_role(self, uid: str, role, *, actor_uid: str | None = None, actor_email: str = "") -> str:
        if not isinstance(role, str) or role not in ASSIGNABLE_ROLES:
            raise ValidationError("Invalid role")

        account = self.get_account(uid)
        if account is None:
            raise NotFoundError("User not found")

        old_role = account.role

        def _apply():
            account.role = role

        commit_with_retry(self.session, _apply)
        logger.info("Account %s role %s -> %s", uid, old_role, role)

        if old_role != role:
            actor = self.get_account(actor_uid) if actor_uid else None
            sender = (actor.name or actor.email) if actor is not None else actor_email
            self.dispatcher.publish(RoleChanged(
                email=account.email,
                user_name=account.name or account.email,
                old_role=old_role,
                new_role=role,
                sender=sender,
            ))

        return f"Role updated to {role}"

    def delete_account(self, uid: str) -> None:
        account = self.get_account(uid)
        if account is None:
            raise NotFoundError("User not found")
        commit_with_retry(self.session, lambda: self.session.delete(account))
        logger.info("Account %s deleted", uid)

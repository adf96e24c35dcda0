# Overview: Daily reminder sweep over pending purchase requests, plus the wall-clock trigger that runs it.

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable
from zoneinfo import ZoneInfo

from ..time_utils import local_date, local_day_start, utcnow
from .lifecycle_service import RequestStatus
from .notification_service import NotificationDispatcher, ReminderDue
from .request_store import RequestStore

logger = logging.getLogger(__name__)


@dataclass
class SweepSummary:
    pending: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return {"pending": self.pending, "sent": self.sent, "skipped": self.skipped, "failed": self.failed}


class ReminderSweep:
    """
    Re-sends the response link for every request still Pending.

    At most one reminder per request per calendar day (in `tz_name`), however
    often the sweep runs. The sweep only touches the reminder fields; it never
    changes status.
    """

    def __init__(
        self,
        store: RequestStore,
        dispatcher: NotificationDispatcher,
        *,
        tz_name: str = "UTC",
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.tz_name = tz_name
        self.clock = clock

    def already_reminded_today(self, last_sent: datetime | None, now: datetime) -> bool:
        if last_sent is None:
            return False
        return local_date(last_sent, self.tz_name) == local_date(now, self.tz_name)

    def run(self) -> SweepSummary:
        summary = SweepSummary()
        pending = self.store.list_by_status(RequestStatus.PENDING.value)
        summary.pending = len(pending)

        if not pending:
            logger.info("Reminder sweep: no pending requests found")
            return summary

        logger.info("Reminder sweep: %d pending request(s)", len(pending))
        now = self.clock()
        day_start = local_day_start(now, self.tz_name)

        for req in pending:
            if self.already_reminded_today(req.last_reminder_sent, now):
                summary.skipped += 1
                continue

            if not req.email:
                logger.info("Skipping request %s: no submitter email", req.id)
                summary.skipped += 1
                continue

            request_id, previous = req.id, req.last_reminder_sent
            event = ReminderDue(request=req.to_dict(), token=req.response_token, recipient=req.email)

            if not self.store.claim_reminder(request_id, RequestStatus.PENDING.value, now, day_start):
                # Another sweep got there first, or the request was answered meanwhile.
                logger.info("Skipping request %s: reminder already claimed", request_id)
                summary.skipped += 1
                continue

            result = self.dispatcher.publish(event)
            if not result.ok:
                logger.error("Reminder for request %s to %s failed", request_id, event.recipient)
                self.store.release_reminder(request_id, now, previous)
                summary.failed += 1
                continue

            self.store.record_reminder(request_id, now)
            summary.sent += 1
            logger.info("Reminder sent for request %s to %s", request_id, event.recipient)

        logger.info("Reminder sweep finished: %s", summary.to_dict())
        return summary


def seconds_until(hour: int, minute: int, tz_name: str, now: datetime | None = None) -> float:
    """Seconds from `now` (aware) until the next hour:minute wall-clock time in tz_name."""
    tz = ZoneInfo(tz_name)
    now = (now or datetime.now(timezone.utc)).astimezone(tz)
    target = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if target <= now:
        # Aware arithmetic in the same zone is wall-clock arithmetic.
        target = target + timedelta(days=1)
    return (target.astimezone(timezone.utc) - now.astimezone(timezone.utc)).total_seconds()


class DailyTrigger:
    """
    Background thread that calls `job` once a day at hour:minute in tz_name.

    The job is wrapped so a failing run is logged and the next day's run still
    happens.
    """

    def __init__(self, job: Callable[[], object], *, hour: int, minute: int, tz_name: str):
        self.job = job
        self.hour = hour
        self.minute = minute
        self.tz_name = tz_name
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="reminder-trigger", daemon=True)
        self._thread.start()
        logger.info(
            "Daily reminders scheduled at %02d:%02d %s", self.hour, self.minute, self.tz_name
        )

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=5)

    def _loop(self) -> None:
        while not self._stop.is_set():
            delay = seconds_until(self.hour, self.minute, self.tz_name)
            if self._stop.wait(delay):
                return
            try:
                self.job()
            except Exception:
                logger.exception("Daily reminder run failed")

# app/services/reminders.py
"""
Due-reminder scan.

A scan reads every scheduled prescription and reports each active medication
whose reminder times contain the current minute. It never writes: the same
medication is reported again on every tick while the minute still matches.
"""

import asyncio
import logging
from datetime import datetime
from typing import List, Optional, Set

from app.db.document_store import PRESCRIPTIONS, DocumentStore
from app.schemas.models import DueReminder
from app.services.notifications import LoggingNotifier, Notifier, dispatch
from app.utils.clock import current_clock, to_clock_24h

logger = logging.getLogger(__name__)


def scan_due_reminders(store: DocumentStore, now: Optional[datetime] = None) -> List[DueReminder]:
    current_time = current_clock(now)
    logger.debug("Checking for due reminders at %s", current_time)

    prescriptions = store.query(PRESCRIPTIONS, "status", "scheduled")
    logger.debug("Found %d scheduled prescriptions", len(prescriptions))

    due: List[DueReminder] = []
    for doc in prescriptions:
        for schedule in doc.get("medication_schedules") or []:
            if not schedule.get("active"):
                continue
            times = {to_clock_24h(t) for t in (schedule.get("reminder_times") or [])}
            if current_time in times:
                due.append(DueReminder(
                    prescription_id=doc["id"],
                    user_id=doc.get("user_id") or "",
                    medication_name=schedule.get("name") or "",
                    time=current_time,
                ))
    return due


def run_tick(store: DocumentStore, notifier: Notifier, now: Optional[datetime] = None) -> List[DueReminder]:
    """One scan + delivery. A failed scan delivers nothing."""
    try:
        due = scan_due_reminders(store, now)
    except Exception as e:
        logger.error("Error checking reminders: %s", e)
        return []
    dispatch(notifier, due)
    return due


class ReminderScanner:
    """Runs run_tick every `interval_s` seconds on the event loop."""

    def __init__(self, store: DocumentStore, notifier: Optional[Notifier] = None, interval_s: int = 60):
        self.store = store
        self.notifier = notifier or LoggingNotifier()
        self.interval_s = interval_s
        self._task: Optional[asyncio.Task] = None
        self._ticks: Set[asyncio.Task] = set()

    async def _loop(self) -> None:
        while True:
            # not awaited: a slow tick may overlap the next one
            tick = asyncio.create_task(asyncio.to_thread(run_tick, self.store, self.notifier))
            self._ticks.add(tick)
            tick.add_done_callback(self._ticks.discard)
            await asyncio.sleep(self.interval_s)

    def start(self) -> None:
        if self._task is None:
            logger.info("Scheduling reminder check job every %ss", self.interval_s)
            self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        # ticks already running in worker threads finish before shutdown
        if self._ticks:
            await asyncio.gather(*self._ticks, return_exceptions=True)

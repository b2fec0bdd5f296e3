import logging
from typing import List, Protocol

from app.schemas.models import DueReminder

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, reminder: DueReminder) -> None: ...


class LoggingNotifier:
    """Stand-in delivery channel: records the reminder in the log."""

    def notify(self, reminder: DueReminder) -> None:
        logger.info(
            "REMINDER DUE for User: %s, Prescription: %s, Medication: %s at %s",
            reminder.user_id,
            reminder.prescription_id,
            reminder.medication_name or "N/A",
            reminder.time,
        )


class CollectingNotifier:
    """Keeps delivered reminders in memory."""

    def __init__(self):
        self.sent: List[DueReminder] = []

    def notify(self, reminder: DueReminder) -> None:
        self.sent.append(reminder)


def dispatch(notifier: Notifier, reminders: List[DueReminder]) -> int:
    sent = 0
    for r in reminders:
        try:
            notifier.notify(r)
            sent += 1
        except Exception as e:
            logger.error("Failed to deliver reminder %s/%s: %s", r.prescription_id, r.medication_name, e)
    return sent

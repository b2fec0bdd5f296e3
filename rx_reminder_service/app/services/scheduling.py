import logging
import re
from typing import List, Optional

from app.core.errors import DocumentNotFoundError
from app.db.document_store import PRESCRIPTIONS, DocumentStore
from app.schemas.models import MedicationSchedule, StructuredMedication, utcnow
from app.utils.clock import to_clock_24h

logger = logging.getLogger(__name__)

# frequency keyword -> times; separate from the entity time table in extraction.py
DEFAULT_TIME = "08:00"
MORNING_TIME = "08:00"
EVENING_TIME = "20:00"
TWICE_TIMES = ["08:00", "20:00"]
THREE_TIMES = ["08:00", "12:00", "20:00"]
FOUR_TIMES = ["08:00", "12:00", "16:00", "20:00"]
MEAL_TIMES = [
    ("breakfast", "07:30"),
    ("lunch", "12:00"),
    ("dinner", "18:30"),
    ("bedtime", "22:00"),
]
INTERVAL_START_HOUR = 8
INTERVAL_END_HOUR = 20
DEFAULT_INTERVAL_HOURS = 8

_EVERY_N_HOURS_RE = re.compile(r"every\s+(\d+)\s*(?:hours?|hrs?)", re.I)
_AM_RE = re.compile(r"(?<![a-z])am\b|a\.m\.")
_PM_RE = re.compile(r"(?<![a-z])pm\b|p\.m\.")


def _has_any(text: str, *words: str) -> bool:
    return any(w in text for w in words)


def _once_a_day_time(freq: str) -> str:
    if "morning" in freq or _AM_RE.search(freq):
        return MORNING_TIME
    if _has_any(freq, "evening", "night") or _PM_RE.search(freq):
        return EVENING_TIME
    return MORNING_TIME


def _interval_times(freq: str) -> List[str]:
    m = _EVERY_N_HOURS_RE.search(freq)
    step = int(m.group(1)) if m else DEFAULT_INTERVAL_HOURS
    if step <= 0:
        step = DEFAULT_INTERVAL_HOURS
    return [f"{h:02d}:00" for h in range(INTERVAL_START_HOUR, INTERVAL_END_HOUR + 1, step)]


def infer_times_from_frequency(frequency: Optional[str]) -> List[str]:
    """
    Ordered keyword rules, first match wins. Always returns at least one time.
    """
    f = (frequency or "").lower()

    if _has_any(f, "once", "daily", "every day"):
        return [_once_a_day_time(f)]
    if _has_any(f, "twice", "two times", "2 times"):
        return list(TWICE_TIMES)
    if _has_any(f, "three times", "3 times"):
        return list(THREE_TIMES)
    if _has_any(f, "four times", "4 times"):
        return list(FOUR_TIMES)
    if "every" in f and _has_any(f, "hour", "hrs"):
        return _interval_times(f)
    for keyword, hhmm in MEAL_TIMES:
        if keyword in f:
            return [hhmm]
    return [DEFAULT_TIME]


def generate_reminder_times(med: StructuredMedication) -> List[str]:
    """Explicit reminder times win; otherwise infer from the frequency text."""
    if med.reminder_times:
        return list(med.reminder_times)
    return infer_times_from_frequency(med.frequency)


def to_storage_times(times: List[str], med_name: str = "") -> List[str]:
    out = set()
    for t in times:
        hhmm = to_clock_24h(t)
        if hhmm is None:
            logger.warning("Dropping unreadable reminder time %r for %s", t, med_name or "medication")
            continue
        out.add(hhmm)
    return sorted(out)


def build_medication_schedules(
    meds: List[StructuredMedication],
    package_image_url: Optional[str] = None,
    medication_image_url: Optional[str] = None,
) -> List[MedicationSchedule]:
    schedules: List[MedicationSchedule] = []
    for m in meds:
        logger.info("Generating schedule for medication: %s", m.name)
        times = to_storage_times(generate_reminder_times(m), m.name)
        schedules.append(MedicationSchedule(
            name=m.name,
            dosage=m.dosage,
            frequency=m.frequency,
            instructions=m.instructions,
            reminder_times=times,
            active=True,
            package_image_url=m.package_image_url or package_image_url,
            medication_image_url=m.medication_image_url or medication_image_url,
        ))
    return schedules


def create_initial_schedules(
    store: DocumentStore,
    prescription_id: str,
    meds: List[StructuredMedication],
) -> List[MedicationSchedule]:
    """
    Persist one active schedule per medication and mark the prescription scheduled.
    """
    logger.info("Creating initial schedule for prescription: %s", prescription_id)
    doc = store.get(PRESCRIPTIONS, prescription_id)
    if doc is None:
        raise DocumentNotFoundError(PRESCRIPTIONS, prescription_id)

    schedules = build_medication_schedules(
        meds,
        package_image_url=doc.get("package_image_url"),
        medication_image_url=doc.get("medication_image_url"),
    )
    store.update(PRESCRIPTIONS, prescription_id, {
        "medication_schedules": [s.model_dump(mode="json") for s in schedules],
        "status": "scheduled",
        "updated_at": utcnow().isoformat(),
    })
    logger.info("Created %d medication schedules for prescription %s", len(schedules), prescription_id)
    return schedules


def mark_no_meds_found(store: DocumentStore, prescription_id: str) -> None:
    store.update(PRESCRIPTIONS, prescription_id, {
        "status": "no_meds_found",
        "updated_at": utcnow().isoformat(),
    })

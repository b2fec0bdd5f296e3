# app/services/prescriptions.py
"""
Intake entry points (image, voice, manual, test) and prescription CRUD.
"""

import logging
from typing import Any, Dict, List, Optional

from app.agent.graph import build_intake_graph
from app.agent.nodes import IntakeDeps
from app.core.errors import DocumentNotFoundError, EmptyInputError
from app.db.document_store import PRESCRIPTIONS, DocumentStore
from app.schemas.models import (
    FormattedMedication,
    MedicationSchedule,
    ParseResult,
    Prescription,
    StructuredMedication,
    utcnow,
)
from app.services.drug_validator import checked_validation
from app.services.scheduling import create_initial_schedules, to_storage_times
from app.utils.clock import to_display_12h

logger = logging.getLogger(__name__)


class IntakeRejected(Exception):
    """Voice intake refused: nothing usable was extracted or the drug is unknown."""

    def __init__(self, message: str, parse_result: Optional[ParseResult] = None):
        super().__init__(message)
        self.message = message
        self.parse_result = parse_result


def _parse_result(state: Dict[str, Any]) -> Optional[ParseResult]:
    raw = state.get("parse_result")
    return ParseResult(**raw) if raw else None


def submit_prescription_image(
    deps: IntakeDeps,
    image_bytes: bytes,
    user_id: str,
    original_filename: Optional[str] = None,
    prescription_image_url: Optional[str] = None,
    package_image_url: Optional[str] = None,
    medication_image_url: Optional[str] = None,
) -> Dict[str, Any]:
    """
    OCR -> parse -> store -> schedule. An empty OCR read stops before parsing and stores nothing.
    """
    if not image_bytes:
        raise EmptyInputError("No prescription image uploaded.")

    graph = build_intake_graph(deps)
    return graph.invoke({
        "user_id": user_id,
        "source": "ocr",
        "image_bytes": image_bytes,
        "original_filename": original_filename,
        "prescription_image_url": prescription_image_url,
        "package_image_url": package_image_url,
        "medication_image_url": medication_image_url,
        "audit": [],
    })


def submit_voice_text(deps: IntakeDeps, text: str, user_id: str) -> Dict[str, Any]:
    if not text or not text.strip():
        raise EmptyInputError("Missing required field: text")

    logger.info("Processing voice text for reminder: %s", text)
    graph = build_intake_graph(deps)
    state = graph.invoke({
        "user_id": user_id,
        "source": "voice",
        "require_confirmed_drug": True,
        "text": text,
        "audit": [],
    })
    if state.get("rejected"):
        raise IntakeRejected(state.get("message") or "Rejected", _parse_result(state))
    return state


def submit_manual_entry(
    deps: IntakeDeps,
    user_id: str,
    medication_name: str,
    frequency: str,
    dosage: Optional[str] = None,
    instructions: Optional[str] = None,
    package_image_url: Optional[str] = None,
    medication_image_url: Optional[str] = None,
) -> Dict[str, Any]:
    if not (medication_name or "").strip() or not (frequency or "").strip():
        raise EmptyInputError("Missing required fields: medication_name, frequency")

    validation = checked_validation(medication_name, deps.validator)
    if not validation.found:
        logger.warning("Manual entry validation failed for: %s", medication_name)

    med = StructuredMedication(
        name=medication_name,
        dosage=dosage or None,
        frequency=frequency,
        instructions=instructions or None,
        validation=validation,
        package_image_url=package_image_url,
        medication_image_url=medication_image_url,
    )
    prescription = Prescription(
        user_id=user_id,
        source="manual",
        package_image_url=package_image_url,
        medication_image_url=medication_image_url,
        nlp_result=ParseResult(raw_entities=[], structured_medications=[med]),
        status="processing",
    )
    prescription_id = deps.store.add(PRESCRIPTIONS, prescription.to_document())
    logger.info("Manual reminder data saved with ID: %s", prescription_id)

    schedules = create_initial_schedules(deps.store, prescription_id, [med])
    return {"prescription_id": prescription_id, "structured_medication": med, "schedules": schedules}


def create_test_reminder(store: DocumentStore, user_id: str) -> Dict[str, Any]:
    now = utcnow()
    reminder = Prescription(
        user_id=user_id,
        source="test",
        status="scheduled",
        created_at=now,
        updated_at=now,
        medication_schedules=[MedicationSchedule(
            name="Test Medication",
            dosage="1 pill",
            frequency="twice a day",
            instructions="Take with water",
            reminder_times=["08:00", "20:00"],
            active=True,
            created_at=now,
        )],
    )
    prescription_id = store.add(PRESCRIPTIONS, reminder.to_document())
    logger.info("Test reminder created with ID: %s", prescription_id)
    return {"prescription_id": prescription_id, "reminder": reminder}


def format_medication_for_response(
    medication: StructuredMedication,
    schedule: Optional[MedicationSchedule] = None,
) -> FormattedMedication:
    times = list(medication.reminder_times)
    if not times and schedule is not None:
        times = [to_display_12h(t) for t in schedule.reminder_times]

    shown = " and ".join(times) if times else "scheduled times"
    medicine = medication.name or "Unknown"
    return FormattedMedication(
        medicine=medicine,
        dose=medication.dosage or "Not specified",
        times=times,
        time_context=medication.time_context or "",
        instructions=medication.instructions or "Take as directed",
        frequency=medication.frequency or "Not specified",
        confirmation_text=(
            f"I've set reminders for {medicine} at {shown}. "
            "Say 'Edit' to change or 'Confirm' to save."
        ),
    )


# ---- CRUD ----

def list_prescriptions(store: DocumentStore, user_id: str) -> List[Dict[str, Any]]:
    return store.query(PRESCRIPTIONS, "user_id", user_id)


def get_prescription(store: DocumentStore, prescription_id: str) -> Dict[str, Any]:
    doc = store.get(PRESCRIPTIONS, prescription_id)
    if doc is None:
        raise DocumentNotFoundError(PRESCRIPTIONS, prescription_id)
    return doc


def get_owned_prescription(store: DocumentStore, prescription_id: str, user_id: str) -> Dict[str, Any]:
    doc = get_prescription(store, prescription_id)
    if doc.get("user_id") != user_id:
        raise DocumentNotFoundError(PRESCRIPTIONS, prescription_id)
    return doc


def update_prescription(store: DocumentStore, prescription_id: str, user_id: str, fields: Dict[str, Any]) -> None:
    get_owned_prescription(store, prescription_id, user_id)
    if "medication_schedules" in fields:
        fields = {**fields, "medication_schedules": [
            {**s, "reminder_times": to_storage_times(s.get("reminder_times") or [], s.get("name", ""))}
            for s in fields["medication_schedules"]
        ]}
    store.update(PRESCRIPTIONS, prescription_id, {**fields, "updated_at": utcnow().isoformat()})


def delete_prescription(store: DocumentStore, prescription_id: str, user_id: str) -> None:
    get_owned_prescription(store, prescription_id, user_id)
    store.delete(PRESCRIPTIONS, prescription_id)

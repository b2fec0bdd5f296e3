# app/api/routes_reminders.py
import logging
from datetime import datetime
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Response

from app.agent.nodes import IntakeDeps
from app.api.deps import get_intake_deps, get_store
from app.core.errors import DocumentNotFoundError, EmptyInputError
from app.db.document_store import DocumentStore
from app.schemas.models import (
    DueRemindersResponse,
    ManualReminderRequest,
    ManualReminderResponse,
    MedicationSchedule,
    ParseResult,
    ReminderUpdateRequest,
    VoiceReminderRequest,
    VoiceReminderResponse,
)
from app.services.prescriptions import (
    IntakeRejected,
    create_test_reminder,
    delete_prescription,
    format_medication_for_response,
    get_owned_prescription,
    list_prescriptions,
    submit_manual_entry,
    submit_voice_text,
    update_prescription,
)
from app.services.reminders import scan_due_reminders
from app.services.security import current_user_id, verify_internal_service
from app.utils.clock import current_clock

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/reminders",
    tags=["reminders"],
    dependencies=[Depends(verify_internal_service)],
)

VOICE_SUGGESTION = (
    "Try saying something like 'I need to take X-Medicine, two pills daily "
    "- one before breakfast and one before dinner.'"
)


@router.post("/voice", response_model=VoiceReminderResponse, status_code=201)
def add_voice_reminder(
    req: VoiceReminderRequest,
    user_id: str = Depends(current_user_id),
    deps: IntakeDeps = Depends(get_intake_deps),
):
    try:
        state = submit_voice_text(deps, req.text, user_id)
    except EmptyInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except IntakeRejected as e:
        raise HTTPException(status_code=400, detail={
            "message": e.message,
            "nlp_data": e.parse_result.model_dump(mode="json") if e.parse_result else None,
            "suggestion": VOICE_SUGGESTION,
        })

    primary = ParseResult(**state["parse_result"]).structured_medications[0]
    schedules = [MedicationSchedule(**s) for s in state.get("schedules") or []]
    formatted = format_medication_for_response(primary, schedules[0] if schedules else None)
    return VoiceReminderResponse(
        message="Reminder created successfully from voice input",
        prescription_id=state["prescription_id"],
        reminder=formatted,
    )


@router.post("/manual", response_model=ManualReminderResponse, status_code=201)
def add_manual_reminder(
    req: ManualReminderRequest,
    user_id: str = Depends(current_user_id),
    deps: IntakeDeps = Depends(get_intake_deps),
):
    try:
        out = submit_manual_entry(
            deps,
            user_id,
            medication_name=req.medication_name,
            frequency=req.frequency,
            dosage=req.dosage,
            instructions=req.instructions,
            package_image_url=req.package_image_url,
            medication_image_url=req.medication_image_url,
        )
    except EmptyInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ManualReminderResponse(
        message="Reminder created successfully from manual input",
        prescription_id=out["prescription_id"],
        structured_medication=out["structured_medication"],
    )


@router.post("/test", status_code=201)
def add_test_reminder(user_id: str = Depends(current_user_id), store: DocumentStore = Depends(get_store)):
    out = create_test_reminder(store, user_id)
    return {
        "message": "Test reminder created successfully",
        "prescription_id": out["prescription_id"],
        "reminder": out["reminder"].model_dump(mode="json"),
    }


@router.get("/due/now", response_model=DueRemindersResponse)
def due_now(store: DocumentStore = Depends(get_store)):
    now = datetime.now()
    return DueRemindersResponse(time=current_clock(now), due=scan_due_reminders(store, now))


@router.get("")
def get_reminders(
    user_id: str = Depends(current_user_id),
    store: DocumentStore = Depends(get_store),
) -> List[Dict[str, Any]]:
    return list_prescriptions(store, user_id)


@router.get("/{prescription_id}")
def get_reminder(
    prescription_id: str,
    user_id: str = Depends(current_user_id),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    try:
        return get_owned_prescription(store, prescription_id, user_id)
    except DocumentNotFoundError:
        raise HTTPException(status_code=404, detail="Reminder (Prescription) not found")


@router.put("/{prescription_id}")
def update_reminder(
    prescription_id: str,
    req: ReminderUpdateRequest,
    user_id: str = Depends(current_user_id),
    store: DocumentStore = Depends(get_store),
):
    fields = req.model_dump(mode="json", exclude_none=True)
    try:
        update_prescription(store, prescription_id, user_id, fields)
    except DocumentNotFoundError:
        raise HTTPException(status_code=404, detail="Reminder not found")
    return {"message": "Reminder updated successfully"}


@router.delete("/{prescription_id}", status_code=204)
def delete_reminder(
    prescription_id: str,
    user_id: str = Depends(current_user_id),
    store: DocumentStore = Depends(get_store),
):
    try:
        delete_prescription(store, prescription_id, user_id)
    except DocumentNotFoundError:
        raise HTTPException(status_code=404, detail="Reminder not found")
    return Response(status_code=204)

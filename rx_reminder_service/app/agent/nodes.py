# app/agent/nodes.py
import logging
from dataclasses import dataclass
from typing import Any, Dict

from app.core.errors import EmptyInputError
from app.db.document_store import PRESCRIPTIONS, DocumentStore
from app.schemas.models import ParseResult, Prescription, StructuredMedication
from app.services.drug_validator import DrugValidator, validate_drug_name
from app.services.extraction import parse_prescription_text
from app.services.ocr import OCR_FAILED_MESSAGE, OcrEngine, ocr_text_is_empty, tesseract_extract_text
from app.services.scheduling import create_initial_schedules, mark_no_meds_found
from app.agent.state import IntakeState

logger = logging.getLogger(__name__)


@dataclass
class IntakeDeps:
    store: DocumentStore
    ocr: OcrEngine = tesseract_extract_text
    validator: DrugValidator = validate_drug_name


def _audit(state: IntakeState, event: str, extra: Dict[str, Any] | None = None) -> Dict[str, Any]:
    audit = list(state.get("audit") or [])
    audit.append({"event": event, **(extra or {})})
    return {"audit": audit}


def _meds(state: IntakeState):
    result = ParseResult(**(state.get("parse_result") or {}))
    return result.structured_medications


def ocr_node(state: IntakeState, deps: IntakeDeps) -> Dict[str, Any]:
    image = state.get("image_bytes")
    if not image:
        if not (state.get("text") or "").strip():
            raise EmptyInputError("Neither text nor image supplied")
        return _audit(state, "ocr.skip", {"reason": "text supplied"})

    text = deps.ocr(image)
    logger.info("OCR result: %r", text)
    if ocr_text_is_empty(text):
        return {
            "ocr_failed": True,
            "message": OCR_FAILED_MESSAGE,
            **_audit(state, "ocr.empty"),
        }
    return {"text": text, "ocr_failed": False, **_audit(state, "ocr.done", {"chars": len(text)})}


def route_after_ocr(state: IntakeState) -> str:
    return "end" if state.get("ocr_failed") else "parse"


def parse_node(state: IntakeState, deps: IntakeDeps) -> Dict[str, Any]:
    result = parse_prescription_text(state["text"], validator=deps.validator)
    return {
        "parse_result": result.model_dump(mode="json"),
        **_audit(state, "parse.done", {"count": len(result.structured_medications)}),
    }


def review_node(state: IntakeState) -> Dict[str, Any]:
    """Voice intake only: refuse empty extractions and names the vocabulary rejected."""
    meds = _meds(state)
    if not meds:
        return {
            "rejected": True,
            "message": "Could not extract medication details from the provided text.",
            **_audit(state, "review.rejected", {"reason": "no_meds"}),
        }
    primary = meds[0]
    if primary.validation is not None and primary.validation.status == "NOT_FOUND":
        return {
            "rejected": True,
            "message": f'Medication "{primary.name}" not found or validated. '
                       "Please check spelling or enter manually.",
            **_audit(state, "review.rejected", {"reason": "not_found"}),
        }
    return {"rejected": False, **_audit(state, "review.passed")}


def route_after_parse(state: IntakeState) -> str:
    return "review" if state.get("require_confirmed_drug") else "save"


def route_after_review(state: IntakeState) -> str:
    return "end" if state.get("rejected") else "save"


def save_node(state: IntakeState, deps: IntakeDeps) -> Dict[str, Any]:
    source = state.get("source") or "ocr"
    text = state.get("text")
    prescription = Prescription(
        user_id=state["user_id"],
        source=source,
        ocr_text=text if source == "ocr" else None,
        input_text=text if source != "ocr" else None,
        original_filename=state.get("original_filename"),
        prescription_image_url=state.get("prescription_image_url"),
        package_image_url=state.get("package_image_url"),
        medication_image_url=state.get("medication_image_url"),
        nlp_result=ParseResult(**state["parse_result"]),
        status="processing",
    )
    prescription_id = deps.store.add(PRESCRIPTIONS, prescription.to_document())
    logger.info("Initial prescription data saved with ID: %s", prescription_id)
    return {
        "prescription_id": prescription_id,
        "status": "processing",
        **_audit(state, "save.done", {"prescription_id": prescription_id}),
    }


def route_after_save(state: IntakeState) -> str:
    return "schedule" if _meds(state) else "no_meds"


def schedule_node(state: IntakeState, deps: IntakeDeps) -> Dict[str, Any]:
    meds = [
        StructuredMedication(**{
            **m.model_dump(),
            "package_image_url": m.package_image_url or state.get("package_image_url"),
            "medication_image_url": m.medication_image_url or state.get("medication_image_url"),
        })
        for m in _meds(state)
    ]
    schedules = create_initial_schedules(deps.store, state["prescription_id"], meds)
    return {
        "schedules": [s.model_dump(mode="json") for s in schedules],
        "status": "scheduled",
        **_audit(state, "schedule.done", {"count": len(schedules)}),
    }


def no_meds_node(state: IntakeState, deps: IntakeDeps) -> Dict[str, Any]:
    mark_no_meds_found(deps.store, state["prescription_id"])
    return {"status": "no_meds_found", **_audit(state, "schedule.skip", {"reason": "no_meds_found"})}

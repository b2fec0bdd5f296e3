# app/api/routes_prescriptions.py
import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from app.agent.nodes import IntakeDeps
from app.api.deps import get_intake_deps
from app.core.errors import EmptyInputError
from app.schemas.models import ParseResult, ParseTextRequest, UploadResponse
from app.services.extraction import parse_prescription_text
from app.services.ocr import OcrError
from app.services.prescriptions import submit_prescription_image
from app.services.security import current_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/prescriptions", tags=["prescriptions"])


@router.post("/upload", response_model=UploadResponse)
async def upload_prescription(
    prescription_image: UploadFile = File(...),
    package_image_url: Optional[str] = Form(default=None),
    medication_image_url: Optional[str] = Form(default=None),
    user_id: str = Depends(current_user_id),
    deps: IntakeDeps = Depends(get_intake_deps),
):
    image_bytes = await prescription_image.read()
    if not image_bytes:
        raise HTTPException(status_code=400, detail="No prescription image file uploaded.")

    try:
        # OCR and the drug lookup block; keep them off the event loop
        state = await asyncio.to_thread(
            submit_prescription_image,
            deps,
            image_bytes,
            user_id,
            original_filename=prescription_image.filename,
            package_image_url=package_image_url,
            medication_image_url=medication_image_url,
        )
    except ImportError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except OcrError as e:
        raise HTTPException(status_code=500, detail=str(e))

    image_urls = {"package_image_url": package_image_url, "medication_image_url": medication_image_url}
    if state.get("ocr_failed"):
        return UploadResponse(ocr_text=state.get("message") or "", image_urls=image_urls)

    return UploadResponse(
        ocr_text=state.get("text") or "",
        nlp_data=ParseResult(**state["parse_result"]),
        prescription_id=state.get("prescription_id"),
        image_urls=image_urls,
    )


@router.post("/parse", response_model=ParseResult)
def parse_text(req: ParseTextRequest, deps: IntakeDeps = Depends(get_intake_deps)):
    """Run extraction only; nothing is stored."""
    try:
        return parse_prescription_text(req.text, validator=deps.validator)
    except EmptyInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

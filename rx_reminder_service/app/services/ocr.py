# app/services/ocr.py
"""
OCR collaborator: image bytes in, text out. Empty text means nothing was read.
"""

import io
import logging
from typing import Callable

logger = logging.getLogger(__name__)

OcrEngine = Callable[[bytes], str]

OCR_FAILED_MESSAGE = "No text detected or OCR failed."


class OcrError(RuntimeError):
    pass


def tesseract_extract_text(image_bytes: bytes) -> str:
    """Tesseract via pytesseract (install the `ocr` extra and the tesseract binary)."""
    try:
        import pytesseract
        from PIL import Image
    except ImportError as e:
        raise ImportError("pytesseract/Pillow not installed. Install with: pip install '.[ocr]'") from e

    try:
        logger.info("Performing OCR...")
        image = Image.open(io.BytesIO(image_bytes))
        text = pytesseract.image_to_string(image)
        logger.info("OCR finished.")
        return text
    except Exception as e:
        logger.error("Tesseract OCR error: %s", e)
        raise OcrError("Failed to perform OCR on the image.") from e


def ocr_text_is_empty(text: str) -> bool:
    return not (text or "").strip()

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI

from app.agent.nodes import IntakeDeps
from app.api.routes_prescriptions import router as prescriptions_router
from app.api.routes_reminders import router as reminders_router
from app.core.logging_config import setup_logging
from app.core.settings import (
    ENABLE_REMINDER_SCANNER,
    LOG_FILE,
    LOG_JSON,
    LOG_LEVEL,
    REMINDER_TICK_SECONDS,
    STORAGE_BACKEND,
)
from app.db.document_store import DocumentStore, create_document_store
from app.services.drug_validator import DrugValidator, validate_drug_name
from app.services.notifications import Notifier
from app.services.ocr import OcrEngine, tesseract_extract_text
from app.services.reminders import ReminderScanner

SERVICE_NAME = "Medication Reminder Service"


def create_app(
    store: Optional[DocumentStore] = None,
    validator: DrugValidator = validate_drug_name,
    ocr: OcrEngine = tesseract_extract_text,
    notifier: Optional[Notifier] = None,
    enable_scanner: bool = ENABLE_REMINDER_SCANNER,
) -> FastAPI:
    store = store or create_document_store(STORAGE_BACKEND)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        scanner = None
        if enable_scanner:
            scanner = ReminderScanner(store, notifier, interval_s=REMINDER_TICK_SECONDS)
            scanner.start()
        yield
        if scanner is not None:
            await scanner.stop()

    app = FastAPI(title=SERVICE_NAME, version="1.0", lifespan=lifespan)
    app.state.store = store
    app.state.intake_deps = IntakeDeps(store=store, ocr=ocr, validator=validator)

    app.include_router(prescriptions_router)
    app.include_router(reminders_router)

    @app.get("/health")
    def health():
        return {"ok": True}

    @app.get("/")
    def root():
        return {"ok": True, "service": SERVICE_NAME}

    return app


setup_logging(LOG_LEVEL, Path(LOG_FILE) if LOG_FILE else None, LOG_JSON)
app = create_app()

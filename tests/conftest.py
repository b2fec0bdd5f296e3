# ============================================================================
# FILE: tests/conftest.py
# ============================================================================
"""
Pytest configuration and shared fixtures.
"""

import pytest

from app.agent.nodes import IntakeDeps
from app.db.document_store import InMemoryDocumentStore
from app.schemas.models import DrugValidation
from app.services.openfda_client import DrugLookupError


def _found(name):
    return DrugValidation(
        status="FOUND",
        name_used=name,
        brand_names=[name.upper()],
        generic_names=[name.lower()],
    )


@pytest.fixture
def found_validator():
    """Validator that confirms every name"""
    return _found


@pytest.fixture
def not_found_validator():
    """Validator that denies every name"""
    return lambda name: DrugValidation(status="NOT_FOUND", name_used=name)


@pytest.fixture
def unreachable_validator():
    """Validator whose backing service is down"""
    def _validate(name):
        raise DrugLookupError("openFDA request failed: connection refused")
    return _validate


@pytest.fixture
def memory_store():
    return InMemoryDocumentStore()


@pytest.fixture
def fake_ocr():
    """OCR engine returning fixed text"""
    def _make(text):
        return lambda image_bytes: text
    return _make


@pytest.fixture
def intake_deps(memory_store, found_validator, fake_ocr):
    return IntakeDeps(
        store=memory_store,
        ocr=fake_ocr("Take Aspirin 75 mg daily"),
        validator=found_validator,
    )


@pytest.fixture
def metformin_text():
    return "Take Metformin 500 mg twice a day with food"

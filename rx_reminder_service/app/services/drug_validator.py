# app/services/drug_validator.py
import logging
from typing import Any, Callable, Dict, Optional

from app.schemas.models import DrugValidation
from app.services.openfda_client import DrugLookupError, find_drug_label

logger = logging.getLogger(__name__)

# name -> label dict, None for "no match"; raises DrugLookupError on failure
DrugLookup = Callable[[str], Optional[Dict[str, Any]]]
DrugValidator = Callable[[str], Optional[DrugValidation]]


def validation_from_label(name: str, label: Optional[Dict[str, Any]]) -> DrugValidation:
    if not label:
        return DrugValidation(status="NOT_FOUND", name_used=name)

    openfda = label.get("openfda") or {}
    return DrugValidation(
        status="FOUND",
        name_used=name,
        brand_names=list(openfda.get("brand_name") or []),
        generic_names=list(openfda.get("generic_name") or []),
        manufacturer_names=list(openfda.get("manufacturer_name") or []),
        ndc=list(openfda.get("product_ndc") or openfda.get("package_ndc") or []),
        spl_id=list(openfda.get("spl_id") or []),
    )


def validate_drug_name(name: str, lookup: DrugLookup = find_drug_label) -> Optional[DrugValidation]:
    """
    FOUND / NOT_FOUND when the vocabulary answered; None when it could not be asked.
    """
    if not name or not name.strip():
        return None

    try:
        label = lookup(name)
    except DrugLookupError as e:
        logger.error("Drug lookup failed for %s: %s", name, e)
        return None

    result = validation_from_label(name, label)
    if result.found:
        logger.info("Found match for %s in drug vocabulary", name)
    else:
        logger.info("No exact match found for %s in drug vocabulary", name)
    return result


def indeterminate(name: Optional[str], error: str) -> DrugValidation:
    return DrugValidation(status="INDETERMINATE", name_used=name, error=error)


def checked_validation(name: str, validator: DrugValidator = validate_drug_name) -> DrugValidation:
    """Run a validator without letting it fail the caller: errors become INDETERMINATE."""
    try:
        result = validator(name)
    except Exception as e:
        logger.error("Error validating medication %s: %s", name, e)
        return indeterminate(name, str(e))
    return result if result is not None else indeterminate(name, "Drug vocabulary lookup failed")

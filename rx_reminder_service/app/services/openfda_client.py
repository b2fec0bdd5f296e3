import logging
from typing import Any, Dict, Optional

import requests

from app.core.settings import (
    OPENFDA_API_KEY,
    OPENFDA_BASE_URL,
    OPENFDA_TIMEOUT_S,
)

logger = logging.getLogger(__name__)


class DrugLookupError(RuntimeError):
    pass


def _search_query(drug_name: str) -> str:
    # exact phrase match on brand or generic name
    return f'(openfda.brand_name:"{drug_name}" OR openfda.generic_name:"{drug_name}")'


def find_drug_label(
    drug_name: str,
    base_url: Optional[str] = None,
    timeout_s: Optional[int] = None,
    session: Optional[requests.Session] = None,
) -> Optional[Dict[str, Any]]:
    """
    Calls openFDA /drug/label.json and returns the first matching label.
    Returns None when openFDA has no match (empty results or HTTP 404).
    Raises DrugLookupError on network errors, other HTTP errors or bad JSON.
    """
    url = f"{base_url or OPENFDA_BASE_URL}/drug/label.json"
    params: Dict[str, Any] = {"search": _search_query(drug_name), "limit": 1}
    if OPENFDA_API_KEY:
        params["api_key"] = OPENFDA_API_KEY

    http = session or requests
    logger.info("Querying openFDA for drug: %s", drug_name)
    try:
        r = http.get(url, params=params, timeout=timeout_s or OPENFDA_TIMEOUT_S)
    except requests.RequestException as e:
        raise DrugLookupError(f"openFDA request failed: {e}") from e

    if r.status_code == 404:
        return None
    if r.status_code >= 400:
        raise DrugLookupError(f"openFDA {r.status_code}: {r.text[:200]}")

    try:
        data = r.json()
    except ValueError as e:
        raise DrugLookupError(f"Invalid JSON from openFDA: {r.text[:200]}...") from e

    results = data.get("results") or []
    return results[0] if results else None

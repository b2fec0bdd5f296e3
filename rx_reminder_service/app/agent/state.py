from typing import Any, Dict, List, Optional, TypedDict

class IntakeState(TypedDict, total=False):
    # who / where from
    user_id: str
    source: str                    # ocr | voice
    require_confirmed_drug: bool   # voice intake refuses names the vocabulary rejects

    # inputs
    image_bytes: Optional[bytes]
    original_filename: Optional[str]
    prescription_image_url: Optional[str]
    package_image_url: Optional[str]
    medication_image_url: Optional[str]
    text: str

    # outputs
    ocr_failed: bool
    rejected: bool
    message: str
    parse_result: Dict[str, Any]   # ParseResult dict
    prescription_id: str
    schedules: List[Dict[str, Any]]
    status: str
    audit: List[Dict[str, Any]]

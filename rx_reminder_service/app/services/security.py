import logging
import os
from typing import Optional

from fastapi import Header, HTTPException

from app.core.settings import DEFAULT_USER_ID

logger = logging.getLogger(__name__)


def verify_internal_service(x_internal_key: str = Header(...)):
    secret = os.getenv("INTERNAL_SERVICE_SECRET")

    if not secret:
        raise HTTPException(
            status_code=500,
            detail="Internal service secret not configured."
        )

    if x_internal_key != secret:
        logger.warning("Rejected call with invalid internal key")
        raise HTTPException(
            status_code=401,
            detail="Unauthorized service call."
        )


def current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    # identity is asserted by the calling gateway
    return (x_user_id or "").strip() or DEFAULT_USER_ID

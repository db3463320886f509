"""Eligibility check endpoint for businesses about to send a transfer."""

import logging

from fastapi import APIRouter, HTTPException, Request

from safetransfer.eligibility.engine import EligibilityEngine
from safetransfer.exceptions import DataSourceUnavailableError
from safetransfer.models import EligibilityRequest, EligibilityResponse

router = APIRouter(prefix="/api")
logger = logging.getLogger(__name__)


def _get_engine(request: Request) -> EligibilityEngine:
    """Retrieve the eligibility engine from application state."""
    return request.app.state.engine


@router.post("/eligibility", response_model=EligibilityResponse)
def check_eligibility(
    check: EligibilityRequest,
    request: Request,
) -> EligibilityResponse:
    """Check whether a client may send ``requested_amount`` now.

    The verdict accounts for transfers recorded by every business, but
    only the headroom, days remaining and reason code are returned.
    """
    engine = _get_engine(request)
    try:
        verdict = engine.check(
            business_id=check.business_id,
            document_number=check.document_number,
            requested_amount=check.requested_amount,
        )
    except DataSourceUnavailableError as e:
        logger.error("Eligibility check failed closed", extra={"error": str(e)})
        raise HTTPException(status_code=503, detail="Eligibility service unavailable")

    return EligibilityResponse.from_verdict(verdict)

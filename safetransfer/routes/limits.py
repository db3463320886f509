"""Regulatory limits endpoints for reading and replacing the caps."""

import logging

from fastapi import APIRouter, Request

from safetransfer.models import RegulatoryLimits

router = APIRouter(prefix="/api")
logger = logging.getLogger(__name__)


@router.get("/limits", response_model=RegulatoryLimits)
async def get_limits(request: Request) -> RegulatoryLimits:
    """Return the regulatory limits currently enforced."""
    return request.app.state.engine.limits


@router.put("/limits", response_model=RegulatoryLimits)
async def update_limits(
    new_limits: RegulatoryLimits,
    request: Request,
) -> RegulatoryLimits:
    """Replace the regulatory limits.

    Takes effect on the next check or write; windows are never cached so
    no recomputation is needed.
    """
    request.app.state.engine.limits = new_limits
    logger.warning(
        "Regulatory limits replaced",
        extra={
            "max_amount_per_transfer": str(new_limits.max_amount_per_transfer),
            "max_window_amount": str(new_limits.max_window_amount),
            "period_days": new_limits.period_days,
        },
    )
    return new_limits

"""Transfer recording and tenant-scoped history endpoints."""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from safetransfer.eligibility.engine import EligibilityEngine
from safetransfer.exceptions import (
    ClientNotFoundError,
    DataSourceUnavailableError,
    InvalidStatusTransitionError,
    InvalidTransferDateError,
    TransferBlockedError,
    TransferNotFoundError,
)
from safetransfer.models import (
    CancelRequest,
    EligibilityResponse,
    StoredTransfer,
    TransferRequest,
    TransferResponse,
    TransferStatus,
)
from safetransfer.storage.memory import MemoryStore

router = APIRouter(prefix="/api")
logger = logging.getLogger(__name__)


def _get_engine(request: Request) -> EligibilityEngine:
    """Retrieve the eligibility engine from application state."""
    return request.app.state.engine


def _get_store(request: Request) -> MemoryStore:
    """Retrieve the memory store from application state."""
    return request.app.state.store


def _blocked(error: TransferBlockedError) -> JSONResponse:
    """409 carrying only the privacy-safe verdict fields."""
    body = EligibilityResponse.from_verdict(error.verdict)
    return JSONResponse(status_code=409, content=body.model_dump(mode="json"))


def _unavailable(e: DataSourceUnavailableError) -> HTTPException:
    logger.error("Transfer write failed closed", extra={"error": str(e)})
    return HTTPException(status_code=503, detail="Eligibility service unavailable")


@router.post("/transfers", response_model=TransferResponse, status_code=201)
def create_transfer(
    transfer: TransferRequest,
    request: Request,
):
    """Record a transfer after re-checking the client's rolling window.

    Returns 409 with the privacy-safe verdict if the cap would be breached.
    """
    engine = _get_engine(request)
    try:
        return engine.record_transfer(transfer)
    except TransferBlockedError as e:
        return _blocked(e)
    except InvalidTransferDateError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ClientNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DataSourceUnavailableError as e:
        raise _unavailable(e)


@router.get("/businesses/{business_id}/transfers", response_model=List[StoredTransfer])
async def list_transfers(
    business_id: str,
    request: Request,
    status: Optional[TransferStatus] = Query(default=None),
    from_date: Optional[datetime] = Query(default=None),
    to_date: Optional[datetime] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1, le=500),
) -> List[StoredTransfer]:
    """List the business's own transfers, newest first.

    Filters:
      - status: completed / pending / cancelled
      - from_date: transfers with transfer_date >= this value
      - to_date: transfers with transfer_date <= this value
    """
    store = _get_store(request)
    return store.ledger(business_id).list(
        status=status,
        since=from_date,
        until=to_date,
        limit=limit,
    )


@router.get("/businesses/{business_id}/transfers/{transfer_id}", response_model=StoredTransfer)
async def get_transfer(business_id: str, transfer_id: str, request: Request) -> StoredTransfer:
    store = _get_store(request)
    try:
        return store.ledger(business_id).get(transfer_id)
    except TransferNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post(
    "/businesses/{business_id}/transfers/{transfer_id}/complete",
    response_model=StoredTransfer,
)
def complete_transfer(business_id: str, transfer_id: str, request: Request):
    """Mark a pending transfer completed if it still fits the window."""
    engine = _get_engine(request)
    try:
        return engine.complete_transfer(business_id, transfer_id)
    except TransferBlockedError as e:
        return _blocked(e)
    except InvalidTransferDateError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except TransferNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStatusTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except DataSourceUnavailableError as e:
        raise _unavailable(e)


@router.post(
    "/businesses/{business_id}/transfers/{transfer_id}/cancel",
    response_model=StoredTransfer,
)
def cancel_transfer(
    business_id: str,
    transfer_id: str,
    request: Request,
    body: Optional[CancelRequest] = None,
) -> StoredTransfer:
    """Cancel a transfer. The record is kept for retention."""
    engine = _get_engine(request)
    try:
        return engine.cancel_transfer(
            business_id,
            transfer_id,
            reason=body.reason if body else None,
        )
    except TransferNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStatusTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except DataSourceUnavailableError as e:
        raise _unavailable(e)

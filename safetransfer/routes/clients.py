"""Client registration and search endpoints, scoped to one business."""

from typing import List

from fastapi import APIRouter, HTTPException, Query, Request

from safetransfer.clients.search import search_clients
from safetransfer.exceptions import ClientAlreadyExistsError, ClientNotFoundError
from safetransfer.models import Client, ClientCreate
from safetransfer.storage.memory import MemoryStore

router = APIRouter(prefix="/api")


def _get_store(request: Request) -> MemoryStore:
    """Retrieve the memory store from application state."""
    return request.app.state.store


@router.post("/clients", response_model=Client, status_code=201)
async def register_client(client: ClientCreate, request: Request) -> Client:
    """Register a client with a business.

    The same document number may already be known to other businesses;
    that is expected and is what links their transfer windows.
    """
    store = _get_store(request)
    try:
        return store.ledger(client.business_id).register_client(client)
    except ClientAlreadyExistsError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/businesses/{business_id}/clients/{document_number}", response_model=Client)
async def get_client(business_id: str, document_number: str, request: Request) -> Client:
    store = _get_store(request)
    try:
        return store.ledger(business_id).get_client(document_number)
    except ClientNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/businesses/{business_id}/clients", response_model=List[Client])
async def find_clients(
    business_id: str,
    request: Request,
    q: str = Query(default="", max_length=150),
) -> List[Client]:
    """List the business's clients, or search them by name / document prefix."""
    store = _get_store(request)
    ledger = store.ledger(business_id)
    if not q.strip():
        return ledger.clients()
    return search_clients(
        ledger,
        q,
        threshold=request.app.state.settings.client_search_threshold,
    )

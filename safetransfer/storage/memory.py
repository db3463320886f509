"""In-memory storage for clients and transfers.

Transfers are indexed by normalized document number so the eligibility
window for a person can be read across every business that knows them.
Access is split into two capabilities:

  - ``HistoryReader``: read-only, keyed by document number, any tenant.
    Returns only amounts and dates, never tenant or recipient details.
  - ``TenantLedger``: bound to one business; registers clients and
    records, lists and updates that business's own transfers.

Each document number also has an advisory lock used to serialize the
aggregate-evaluate-write sequence. All data lives in memory and is lost
on restart.
"""

import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional, Protocol

from safetransfer.exceptions import (
    ClientAlreadyExistsError,
    ClientNotFoundError,
    LockTimeoutError,
    TransferNotFoundError,
)
from safetransfer.models import (
    _as_utc,
    Client,
    ClientCreate,
    StoredTransfer,
    TransferStatus,
    WindowEntry,
)


def _normalize_key(document_number: str) -> str:
    """Normalize a document number to a consistent dict key (uppercase, stripped)."""
    return document_number.strip().upper()


class HistoryReader(Protocol):
    """Cross-tenant read capability used by the window aggregator."""

    def completed_since(self, document_number: str, since: datetime) -> List[WindowEntry]:
        ...


class MemoryStore:
    """Thread-safe in-memory store for clients and transfers."""

    def __init__(self) -> None:
        self._mutex = threading.RLock()
        # Transfers indexed by normalized document number
        self._transfers: Dict[str, List[StoredTransfer]] = {}
        # Transfer id -> document key, for tenant lookups by id
        self._transfer_index: Dict[str, str] = {}
        # Clients indexed by (business_id, document key)
        self._clients: Dict[tuple, Client] = {}
        self._document_locks: Dict[str, threading.Lock] = {}

    # -- capabilities -------------------------------------------------

    def reader(self) -> "DocumentHistoryReader":
        """Return the cross-tenant history reader."""
        return DocumentHistoryReader(self)

    def ledger(self, business_id: str) -> "TenantLedger":
        """Return a ledger scoped to a single business."""
        return TenantLedger(self, business_id)

    @contextmanager
    def document_lock(self, document_number: str, timeout: float = 5.0) -> Iterator[None]:
        """Hold the advisory lock for a document number.

        Raises:
            LockTimeoutError: if the lock is not acquired within ``timeout``.
        """
        key = _normalize_key(document_number)
        with self._mutex:
            lock = self._document_locks.setdefault(key, threading.Lock())
        if not lock.acquire(timeout=timeout):
            raise LockTimeoutError(
                f"Could not lock client history within {timeout}s"
            )
        try:
            yield
        finally:
            lock.release()

    # -- raw access used by the capabilities ---------------------------

    def _add_transfer(self, tx: StoredTransfer) -> None:
        key = _normalize_key(tx.document_number)
        with self._mutex:
            self._transfers.setdefault(key, []).append(tx)
            self._transfer_index[tx.transfer_id] = key

    def _get_transfer(self, transfer_id: str) -> Optional[StoredTransfer]:
        with self._mutex:
            key = self._transfer_index.get(transfer_id)
            if key is None:
                return None
            for tx in self._transfers[key]:
                if tx.transfer_id == transfer_id:
                    return tx
        return None

    def _replace_transfer(self, updated: StoredTransfer) -> None:
        key = _normalize_key(updated.document_number)
        with self._mutex:
            txns = self._transfers[key]
            for i, tx in enumerate(txns):
                if tx.transfer_id == updated.transfer_id:
                    txns[i] = updated
                    return
        raise TransferNotFoundError(updated.transfer_id)

    def _by_document(self, document_number: str) -> List[StoredTransfer]:
        with self._mutex:
            return list(self._transfers.get(_normalize_key(document_number), []))

    def _all_transfers(self) -> List[StoredTransfer]:
        with self._mutex:
            return [t for txns in self._transfers.values() for t in txns]


class DocumentHistoryReader:
    """Reads a person's completed transfers across all tenants."""

    def __init__(self, store: MemoryStore) -> None:
        self._store = store

    def completed_since(self, document_number: str, since: datetime) -> List[WindowEntry]:
        """Completed transfers with ``transfer_date >= since``, oldest first."""
        entries = [
            WindowEntry(amount=t.amount, transfer_date=t.transfer_date)
            for t in self._store._by_document(document_number)
            if t.status == "completed" and t.transfer_date >= since
        ]
        entries.sort(key=lambda e: e.transfer_date)
        return entries


class TenantLedger:
    """Write and read access restricted to one business's own records."""

    def __init__(self, store: MemoryStore, business_id: str) -> None:
        self._store = store
        self.business_id = business_id

    # -- clients --------------------------------------------------------

    def register_client(self, data: ClientCreate) -> Client:
        """Register a client with this business.

        Raises:
            ClientAlreadyExistsError: if the document number is already
                registered here. Other businesses may register it too.
        """
        if data.business_id != self.business_id:
            raise ClientNotFoundError("Client belongs to another business")
        key = (self.business_id, _normalize_key(data.document_number))
        with self._store._mutex:
            if key in self._store._clients:
                raise ClientAlreadyExistsError("CLIENT_ALREADY_EXISTS")
            client = Client(
                **data.model_dump(),
                client_id=str(uuid.uuid4()),
                created_at=datetime.now(timezone.utc),
            )
            self._store._clients[key] = client
        return client

    def get_client(self, document_number: str) -> Client:
        """Return this business's record for a document number."""
        key = (self.business_id, _normalize_key(document_number))
        with self._store._mutex:
            client = self._store._clients.get(key)
        if client is None:
            raise ClientNotFoundError("Client not registered with this business")
        return client

    def clients(self) -> List[Client]:
        """All clients registered with this business, sorted by name."""
        with self._store._mutex:
            own = [c for (biz, _), c in self._store._clients.items() if biz == self.business_id]
        return sorted(own, key=lambda c: c.full_name.lower())

    # -- transfers ------------------------------------------------------

    def add(self, tx: StoredTransfer) -> None:
        """Store a transfer recorded by this business."""
        if tx.business_id != self.business_id:
            raise TransferNotFoundError("Transfer belongs to another business")
        self._store._add_transfer(tx)

    def get(self, transfer_id: str) -> StoredTransfer:
        """Return one of this business's transfers by id."""
        tx = self._store._get_transfer(transfer_id)
        if tx is None or tx.business_id != self.business_id:
            raise TransferNotFoundError("Transfer not found")
        return tx

    def set_status(
        self,
        transfer_id: str,
        status: TransferStatus,
        notes: Optional[str] = None,
    ) -> StoredTransfer:
        """Replace a transfer's status (and optionally its notes)."""
        tx = self.get(transfer_id)
        changes: dict = {"status": status}
        if notes is not None:
            changes["notes"] = notes
        updated = tx.model_copy(update=changes)
        self._store._replace_transfer(updated)
        return updated

    def list(
        self,
        status: Optional[TransferStatus] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[StoredTransfer]:
        """Return this business's transfers, newest first, optionally filtered."""
        since = _as_utc(since) if since is not None else None
        until = _as_utc(until) if until is not None else None
        results: List[StoredTransfer] = []
        for t in self._store._all_transfers():
            if t.business_id != self.business_id:
                continue
            if status is not None and t.status != status:
                continue
            if since is not None and t.transfer_date < since:
                continue
            if until is not None and t.transfer_date > until:
                continue
            results.append(t)
        results.sort(key=lambda t: t.transfer_date, reverse=True)
        if limit is not None:
            results = results[:limit]
        return results

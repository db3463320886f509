"""Shared fixtures for the test suite."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from safetransfer.eligibility.engine import EligibilityEngine
from safetransfer.exceptions import DataSourceUnavailableError
from safetransfer.main import app
from safetransfer.models import ClientCreate, RegulatoryLimits, StoredTransfer, TransferRequest
from safetransfer.storage.memory import MemoryStore

# Fixed evaluation instant for deterministic window arithmetic
AS_OF = datetime(2026, 2, 22, 12, 0, tzinfo=timezone.utc)

DOC = "YA1234567"
OTHER_DOC = "AB7654321"


class FailingReader:
    """History reader whose backing store is down."""

    def __init__(self, error: Exception = None):
        self.error = error or ConnectionError("connection refused by db-primary:5432")

    def completed_since(self, document_number, since):
        raise self.error


class UnavailableReader(FailingReader):
    def __init__(self):
        super().__init__(DataSourceUnavailableError("read timeout"))


@pytest.fixture
def limits():
    return RegulatoryLimits()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def engine(store, limits):
    return EligibilityEngine(store=store, limits=limits, lock_timeout=1.0)


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def days_ago(days: float, as_of: datetime = AS_OF) -> datetime:
    return as_of - timedelta(days=days)


def make_stored(
    document_number=DOC,
    amount="150",
    transfer_date=None,
    business_id="biz-a",
    status="completed",
    tx_id="test-id",
) -> StoredTransfer:
    return StoredTransfer(
        transfer_id=tx_id,
        business_id=business_id,
        document_number=document_number,
        amount=Decimal(amount),
        currency="EUR",
        recipient_name="Rosa Delgado",
        destination_country="PE",
        transfer_date=transfer_date or AS_OF,
        status=status,
        created_at=transfer_date or AS_OF,
    )


def add_stored(store: MemoryStore, **kwargs) -> StoredTransfer:
    tx = make_stored(**kwargs)
    store.ledger(tx.business_id).add(tx)
    return tx


def make_client(
    business_id="biz-a",
    document_number=DOC,
    full_name="Maria Garcia",
) -> ClientCreate:
    return ClientCreate(
        business_id=business_id,
        document_number=document_number,
        full_name=full_name,
        nationality="PE",
        date_of_birth=date(1985, 4, 12),
    )


def make_request(
    business_id="biz-a",
    document_number=DOC,
    amount="150",
    status="completed",
    transfer_date=None,
) -> TransferRequest:
    return TransferRequest(
        business_id=business_id,
        document_number=document_number,
        amount=Decimal(amount),
        recipient_name="Rosa Delgado",
        destination_country="PE",
        status=status,
        transfer_date=transfer_date,
    )

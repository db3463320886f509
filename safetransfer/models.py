"""Pydantic models for the transfer eligibility service."""

import re
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, Field, field_validator

# Regulatory constants (D.Lgs. 231/2007). The per-transfer and rolling-window
# caps are numerically identical in Italy but are separate limits.
MAX_AMOUNT_PER_TRANSFER = Decimal("999")
MAX_WINDOW_AMOUNT = Decimal("999")
PERIOD_DAYS = 8

DOCUMENT_NUMBER_PATTERN = re.compile(r"^[A-Z0-9\-]{5,30}$")
FISCAL_CODE_PATTERN = re.compile(r"^[A-Z]{6}[0-9]{2}[A-Z][0-9]{2}[A-Z][0-9]{3}[A-Z]$")

Money = Annotated[Decimal, Field(max_digits=10, decimal_places=2)]
TransferStatus = Literal["completed", "pending", "cancelled"]


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so window comparisons never mix kinds."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def normalize_document_number(value: str) -> str:
    """Uppercase and strip a document number; raise ValueError if malformed."""
    normalized = value.strip().upper()
    if not DOCUMENT_NUMBER_PATTERN.match(normalized):
        raise ValueError(
            "document number must be 5-30 letters, digits or hyphens"
        )
    return normalized


class RegulatoryLimits(BaseModel):
    """Tunable regulatory constants injected into the evaluator."""
    max_amount_per_transfer: Decimal = Field(default=MAX_AMOUNT_PER_TRANSFER, gt=0)
    max_window_amount: Decimal = Field(default=MAX_WINDOW_AMOUNT, gt=0)
    period_days: int = Field(default=PERIOD_DAYS, gt=0)


class ClientCreate(BaseModel):
    """A client registration submitted by a business."""
    business_id: str
    document_number: str
    full_name: str = Field(min_length=2, max_length=150)
    nationality: str
    date_of_birth: date
    document_type: Literal["passport", "id_card", "residence_permit"] = "passport"
    document_country: Optional[str] = None
    fiscal_code: Optional[str] = None

    @field_validator("document_number")
    @classmethod
    def _check_document_number(cls, value: str) -> str:
        return normalize_document_number(value)

    @field_validator("fiscal_code")
    @classmethod
    def _check_fiscal_code(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip().upper()
        if not FISCAL_CODE_PATTERN.match(value):
            raise ValueError("fiscal code must be a 16-character Italian codice fiscale")
        return value


class Client(ClientCreate):
    """A client as registered with one business tenant."""
    client_id: str
    created_at: datetime


class TransferRequest(BaseModel):
    """Incoming transfer to be recorded by a business."""
    business_id: str
    document_number: str
    amount: Annotated[Decimal, Field(gt=0, max_digits=10, decimal_places=2)]
    currency: str = "EUR"
    recipient_name: str
    destination_country: str
    transfer_date: Optional[datetime] = None
    status: Literal["completed", "pending"] = "completed"
    notes: Optional[str] = None

    @field_validator("document_number")
    @classmethod
    def _check_document_number(cls, value: str) -> str:
        return normalize_document_number(value)

    @field_validator("transfer_date")
    @classmethod
    def _check_transfer_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value) if value is not None else None


class StoredTransfer(BaseModel):
    """A transfer persisted in the store. Only ``status`` ever changes."""
    transfer_id: str
    business_id: str
    document_number: str
    amount: Money
    currency: str
    recipient_name: str
    destination_country: str
    transfer_date: datetime
    status: TransferStatus
    notes: Optional[str] = None
    created_at: datetime


class WindowEntry(BaseModel):
    """The only fields of a foreign transfer the aggregator ever sees."""
    amount: Decimal
    transfer_date: datetime


class WindowAggregate(BaseModel):
    """Reduction of a client's completed transfers inside the rolling window."""
    amount_used: Decimal
    oldest_transfer_date: Optional[datetime] = None
    transfer_count: int = 0


class EligibilityVerdict(BaseModel):
    """Full verdict produced by the evaluator. Never persisted."""
    allowed: bool
    amount_used: Decimal
    amount_available: Decimal
    days_remaining: int
    oldest_transfer_date: Optional[datetime] = None
    reset_date: Optional[datetime] = None
    reason_code: str


class EligibilityRequest(BaseModel):
    """Eligibility check submitted by a business before a send."""
    business_id: str
    document_number: str
    requested_amount: Annotated[Decimal, Field(gt=0, max_digits=10, decimal_places=2)]

    @field_validator("document_number")
    @classmethod
    def _check_document_number(cls, value: str) -> str:
        return normalize_document_number(value)


class EligibilityResponse(BaseModel):
    """Privacy-safe view of a verdict for business users.

    Exposes whether the client can send, how much headroom is left and
    when capacity is next released. Never the contributing transfers.
    """
    can_transfer: bool
    amount_available: Decimal
    days_remaining: int
    reason_code: str

    @classmethod
    def from_verdict(cls, verdict: EligibilityVerdict) -> "EligibilityResponse":
        return cls(
            can_transfer=verdict.allowed,
            amount_available=verdict.amount_available,
            days_remaining=verdict.days_remaining,
            reason_code=verdict.reason_code,
        )


class AmountValidation(BaseModel):
    """Outcome of a synchronous amount check against the caps."""
    is_valid: bool
    amount_available: Decimal
    error: Optional[str] = None


class TransferResponse(BaseModel):
    """Result of recording a transfer, with the post-write headroom."""
    transfer: StoredTransfer
    amount_available: Decimal
    days_remaining: int


class CancelRequest(BaseModel):
    reason: Optional[str] = None

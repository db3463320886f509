"""Eligibility decision logic.

The verdict is DETERMINISTIC: a pure function of the amount already used
in the window, the requested amount, the oldest contributing transfer and
the evaluation instant. All money is compared as Decimal so a sum that
lands exactly on the cap is allowed and one cent over is not.

Reason codes:
  - eligible               -> the transfer may proceed
  - blocked_wait_N_days    -> capacity is next released in N days
  - limit_exceeded         -> blocked and waiting will not help now
                              (single amount over the per-transfer cap,
                              or no pending release)
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from safetransfer.eligibility.rolling import days_until, reset_date
from safetransfer.exceptions import InvalidAmountError
from safetransfer.models import AmountValidation, EligibilityVerdict, RegulatoryLimits

ELIGIBLE = "eligible"
LIMIT_EXCEEDED = "limit_exceeded"

Amount = Union[Decimal, int, float, str]


def blocked_wait(days: int) -> str:
    return f"blocked_wait_{days}_days"


def to_decimal(value: Amount) -> Decimal:
    """Convert an amount to Decimal without binary float drift.

    Floats go through ``str`` so 999.99 becomes Decimal("999.99").
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise InvalidAmountError("Amount must be a number")
    try:
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise InvalidAmountError(f"Amount is not a number: {value!r}") from e


def _check_requested(value: Amount) -> Decimal:
    amount = to_decimal(value)
    if not amount.is_finite():
        raise InvalidAmountError("Amount must be finite")
    if amount <= 0:
        raise InvalidAmountError("Amount must be greater than 0")
    return amount


def _check_used(value: Amount) -> Decimal:
    used = to_decimal(value)
    if not used.is_finite() or used < 0:
        raise InvalidAmountError("Amount used must be a non-negative finite number")
    return used


def evaluate(
    amount_used: Amount,
    requested_amount: Amount,
    oldest_transfer_date: Optional[datetime],
    as_of: datetime,
    limits: Optional[RegulatoryLimits] = None,
) -> EligibilityVerdict:
    """Decide whether ``requested_amount`` fits in the rolling window.

    Raises:
        InvalidAmountError: if the requested amount is not a positive
            finite number, or the amount used is negative.
    """
    limits = limits or RegulatoryLimits()
    used = _check_used(amount_used)
    requested = _check_requested(requested_amount)

    amount_available = max(limits.max_window_amount - used, Decimal("0"))
    over_single_cap = requested > limits.max_amount_per_transfer
    allowed = not over_single_cap and (used + requested) <= limits.max_window_amount

    if oldest_transfer_date is not None:
        reset = reset_date(oldest_transfer_date, limits.period_days)
        days_remaining = days_until(reset, as_of)
    else:
        reset = None
        days_remaining = 0

    if allowed:
        reason_code = ELIGIBLE
    elif over_single_cap or days_remaining == 0:
        reason_code = LIMIT_EXCEEDED
    else:
        reason_code = blocked_wait(days_remaining)

    return EligibilityVerdict(
        allowed=allowed,
        amount_used=used,
        amount_available=amount_available,
        days_remaining=days_remaining,
        oldest_transfer_date=oldest_transfer_date,
        reset_date=reset,
        reason_code=reason_code,
    )


def validate_transfer_amount(
    amount: Amount,
    current_used: Amount,
    limits: Optional[RegulatoryLimits] = None,
) -> AmountValidation:
    """Check an amount against both caps without touching any history.

    Raises:
        InvalidAmountError: if ``current_used`` is negative or not a number.
    """
    limits = limits or RegulatoryLimits()
    used = _check_used(current_used)
    available = max(limits.max_window_amount - used, Decimal("0"))
    try:
        requested = _check_requested(amount)
    except InvalidAmountError:
        return AmountValidation(
            is_valid=False,
            amount_available=available,
            error="Amount must be greater than 0",
        )

    if requested > limits.max_amount_per_transfer:
        return AmountValidation(
            is_valid=False,
            amount_available=available,
            error=f"Amount exceeds legal limit of €{limits.max_amount_per_transfer}",
        )

    if used + requested > limits.max_window_amount:
        return AmountValidation(
            is_valid=False,
            amount_available=available,
            error=(
                f"This transfer exceeds the rolling limit of "
                f"€{limits.max_window_amount} over {limits.period_days} days"
            ),
        )

    return AmountValidation(is_valid=True, amount_available=available)

"""Rolling-window aggregation of a client's completed transfers.

Reads the history of a document number across every business tenant
and reduces it to the amount used and the oldest contributing transfer.
Always recomputed from raw records: the window's composition changes as
soon as its oldest transfer ages out.
"""

from datetime import datetime
from decimal import Decimal
from typing import List

from safetransfer.eligibility.rolling import window_start
from safetransfer.exceptions import DataSourceUnavailableError
from safetransfer.models import PERIOD_DAYS, WindowAggregate, WindowEntry
from safetransfer.storage.memory import HistoryReader


def _read(reader: HistoryReader, document_number: str, since: datetime) -> List[WindowEntry]:
    try:
        return list(reader.completed_since(document_number, since))
    except DataSourceUnavailableError:
        raise
    except Exception as e:
        raise DataSourceUnavailableError(f"Transfer history unavailable: {e}") from e


def _reduce(entries: List[WindowEntry]) -> WindowAggregate:
    return WindowAggregate(
        amount_used=sum((Decimal(e.amount) for e in entries), Decimal("0")),
        oldest_transfer_date=min((e.transfer_date for e in entries), default=None),
        transfer_count=len(entries),
    )


def aggregate(
    reader: HistoryReader,
    document_number: str,
    as_of: datetime,
    period_days: int = PERIOD_DAYS,
) -> WindowAggregate:
    """Sum completed transfers with ``transfer_date >= as_of - period_days``.

    A transfer dated exactly ``period_days`` before ``as_of`` is inside
    the window.

    Raises:
        DataSourceUnavailableError: if the history cannot be read. Any
            other failure from the reader is wrapped so callers have a
            single error to fail closed on.
    """
    return _reduce(_read(reader, document_number, window_start(as_of, period_days)))


def peak_aggregate(
    reader: HistoryReader,
    document_number: str,
    transfer_date: datetime,
    as_of: datetime,
    period_days: int = PERIOD_DAYS,
) -> WindowAggregate:
    """Busiest window that contains ``transfer_date`` and ends by ``as_of``.

    A transfer dated before ``as_of`` lands in every window ending between
    its date and ``as_of``, not only the current one. A window's sum only
    grows when its end reaches another transfer, so the candidate ends are
    ``transfer_date`` itself and each later transfer up to ``as_of``.

    Raises:
        DataSourceUnavailableError: as for :func:`aggregate`.
    """
    if transfer_date >= as_of:
        return aggregate(reader, document_number, as_of, period_days)

    entries = [
        e
        for e in _read(reader, document_number, window_start(transfer_date, period_days))
        if e.transfer_date <= as_of
    ]
    ends = [transfer_date] + [e.transfer_date for e in entries if e.transfer_date >= transfer_date]

    peak = None
    for end in ends:
        start = window_start(end, period_days)
        window = _reduce([e for e in entries if start <= e.transfer_date <= end])
        if peak is None or window.amount_used > peak.amount_used:
            peak = window
    return peak

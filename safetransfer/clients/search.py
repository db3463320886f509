"""Client lookup within a single business.

Operators look clients up by name or by the start of a document number.
Names are matched with thefuzz so transliteration variants such as
"Mohammad Ahmad" / "Mohammed Ahmed" still find the record:

  - fuzz.ratio(): overall character-level similarity
  - fuzz.token_sort_ratio(): handles name reordering
  - fuzz.partial_ratio(): finds "Rossi" inside "Mario Rossi"

The best of the three is used. Only the business's own clients are
searched; clients registered elsewhere are never returned.
"""

import re

from thefuzz import fuzz

from safetransfer.models import Client
from safetransfer.storage.memory import TenantLedger

# partial_ratio matches any single letter, so short queries only hit documents
MIN_NAME_QUERY = 3


def _normalize_name(name: str) -> str:
    """Lowercase, strip, and collapse multiple spaces."""
    return re.sub(r"\s+", " ", name.strip().lower())


def name_similarity(query: str, full_name: str) -> int:
    """Best similarity score (0-100) between a query and a client name."""
    q = _normalize_name(query)
    n = _normalize_name(full_name)
    return max(
        fuzz.ratio(q, n),
        fuzz.token_sort_ratio(q, n),
        fuzz.partial_ratio(q, n),
    )


def search_clients(
    ledger: TenantLedger,
    query: str,
    threshold: int = 80,
    limit: int = 20,
) -> list[Client]:
    """Return the business's clients matching ``query``, best match first.

    A query that prefixes a document number is an exact hit and ranks
    above any name match.
    """
    query = query.strip()
    if not query:
        return []

    doc_prefix = query.upper()
    scored: list[tuple[int, Client]] = []
    for client in ledger.clients():
        if client.document_number.startswith(doc_prefix):
            scored.append((101, client))
            continue
        if len(query) < MIN_NAME_QUERY:
            continue
        score = name_similarity(query, client.full_name)
        if score >= threshold:
            scored.append((score, client))

    scored.sort(key=lambda pair: (-pair[0], pair[1].full_name.lower()))
    return [client for _, client in scored[:limit]]

"""Tests for tenant-scoped client search."""

from safetransfer.clients.search import _normalize_name, name_similarity, search_clients
from tests.conftest import make_client


def _seed(store, business_id="biz-a"):
    ledger = store.ledger(business_id)
    ledger.register_client(make_client(business_id, "YA1234567", "Mario Rossi"))
    ledger.register_client(make_client(business_id, "YB7654321", "Giulia Bianchi"))
    ledger.register_client(make_client(business_id, "CA0000001", "Mohammad Ahmad"))
    return ledger


class TestNormalizeName:
    def test_lowercase_and_strip(self):
        assert _normalize_name("  Mario ROSSI ") == "mario rossi"

    def test_collapse_spaces(self):
        assert _normalize_name("Mario    Rossi") == "mario rossi"


class TestNameSimilarity:
    def test_exact(self):
        assert name_similarity("Mario Rossi", "mario rossi") == 100

    def test_reordered(self):
        assert name_similarity("Rossi Mario", "Mario Rossi") == 100

    def test_surname_only(self):
        assert name_similarity("Rossi", "Mario Rossi") == 100

    def test_unrelated_low(self):
        assert name_similarity("Giulia Bianchi", "Mario Rossi") < 80


class TestSearchClients:
    def test_by_surname(self, store):
        ledger = _seed(store)
        results = search_clients(ledger, "rossi")
        assert [c.full_name for c in results] == ["Mario Rossi"]

    def test_transliteration_variant(self, store):
        ledger = _seed(store)
        results = search_clients(ledger, "Mohammed Ahmed")
        assert [c.full_name for c in results] == ["Mohammad Ahmad"]

    def test_by_document_prefix(self, store):
        ledger = _seed(store)
        results = search_clients(ledger, "yb76")
        assert [c.document_number for c in results] == ["YB7654321"]

    def test_document_prefix_matches_several(self, store):
        ledger = _seed(store)
        results = search_clients(ledger, "Y")
        assert {c.document_number for c in results} == {"YA1234567", "YB7654321"}

    def test_short_query_skips_names(self, store):
        ledger = _seed(store)
        assert search_clients(ledger, "ro") == []

    def test_empty_query(self, store):
        ledger = _seed(store)
        assert search_clients(ledger, "   ") == []

    def test_other_business_clients_never_returned(self, store):
        _seed(store, "biz-a")
        assert search_clients(store.ledger("biz-b"), "Mario Rossi") == []

    def test_limit(self, store):
        ledger = _seed(store)
        assert len(search_clients(ledger, "Y", limit=1)) == 1

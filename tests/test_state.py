"""Tests for the caller-owned insights state holder."""

import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from customer_insights.foundation.transactions import TransactionRecord
from customer_insights.state import CustomerInsightsState

AS_OF = datetime(2024, 6, 30, tzinfo=timezone.utc)


def _batch(prefix, customer_count):
    return [
        TransactionRecord(
            customer_id=f"{prefix}{i:02d}",
            customer_name=f"{prefix} customer {i}",
            transaction_date=AS_OF - timedelta(days=i * 9),
            amount=Decimal(100 + i * 25),
        )
        for i in range(customer_count)
    ]


class TestCustomerInsightsState:
    """Test import, replacement and accessors."""

    def test_initial_state_is_empty(self):
        state = CustomerInsightsState()

        assert state.customers == []
        assert state.segment_stats == []
        assert state.last_import_at is None
        assert state.imported_record_count == 0
        assert state.is_using_imported_data is False
        assert state.total_customers() == 0
        assert state.average_clv() == 0

    def test_import_populates_state(self):
        state = CustomerInsightsState()
        batch = _batch("A", 12)

        result = state.import_transactions(batch, as_of=AS_OF)

        assert state.customers == result.customers
        assert state.segment_stats == result.segment_stats
        assert state.imported_record_count == 12
        assert state.is_using_imported_data is True
        assert state.last_import_at is not None
        assert state.total_customers() == 12
        assert state.total_revenue() == sum(t.amount for t in batch)

    def test_import_replaces_previous_results(self):
        state = CustomerInsightsState()
        state.import_transactions(_batch("A", 10), as_of=AS_OF)
        state.import_transactions(_batch("B", 4), as_of=AS_OF)

        assert state.total_customers() == 4
        assert {c.customer_id[0] for c in state.customers} == {"B"}
        assert state.imported_record_count == 4
        assert state.snapshot().transactions == tuple(_batch("B", 4))

    def test_clear(self):
        state = CustomerInsightsState()
        state.import_transactions(_batch("A", 5), as_of=AS_OF)

        state.clear()

        assert state.customers == []
        assert state.is_using_imported_data is False
        assert state.weighted_retention_rate() == Decimal("0")

    def test_top_customers(self):
        state = CustomerInsightsState()
        state.import_transactions(_batch("A", 15), as_of=AS_OF)

        top = state.top_customers(3)
        assert top == state.customers[:3]
        assert len(state.top_customers()) == 10
        assert state.top_customers(0) == []

    def test_top_customers_negative_limit_raises_error(self):
        with pytest.raises(ValueError, match="limit cannot be negative"):
            CustomerInsightsState().top_customers(-1)

    def test_customers_by_segment(self):
        state = CustomerInsightsState()
        state.import_transactions(_batch("A", 15), as_of=AS_OF)

        for stats in state.segment_stats:
            members = state.customers_by_segment(stats.name)
            assert len(members) == stats.customer_count
            assert all(c.segment_name == stats.name for c in members)
        assert state.customers_by_segment("Unknown") == []

    def test_accessors_return_copies(self):
        state = CustomerInsightsState()
        state.import_transactions(_batch("A", 5), as_of=AS_OF)

        state.customers.clear()
        assert state.total_customers() == 5

    def test_concurrent_imports_never_interleave(self):
        state = CustomerInsightsState()
        batches = [_batch(prefix, 5 + n) for n, prefix in enumerate("ABCDEF")]

        threads = [
            threading.Thread(target=state.import_transactions, args=(batch, AS_OF))
            for batch in batches
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        snapshot = state.snapshot()
        prefixes = {t.customer_id[0] for t in snapshot.transactions}
        assert len(prefixes) == 1
        assert {c.customer_id[0] for c in snapshot.result.customers} == prefixes
        assert snapshot.imported_record_count == len(snapshot.transactions)

"""Tests for RFM aggregation, quintile scoring and customer scoring."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from customer_insights.foundation.rfm import (
    CustomerAggregate,
    CustomerRFM,
    aggregate_customers,
    calculate_customer_rfm,
    quintile_boundaries,
    quintile_score,
    score_customers,
    score_metric,
)
from customer_insights.foundation.transactions import TransactionRecord

AS_OF = datetime(2024, 6, 30, tzinfo=timezone.utc)


def _txn(customer_id, days_ago, amount, name=None):
    return TransactionRecord(
        customer_id=customer_id,
        customer_name=name or f"Customer {customer_id}",
        transaction_date=AS_OF - timedelta(days=days_ago),
        amount=Decimal(str(amount)),
    )


def _cohort(size):
    """Customers whose recency, frequency and spend all vary with their index."""
    transactions = []
    for i in range(size):
        customer_id = f"C{i:03d}"
        for order in range(1 + i % 6):
            transactions.append(
                _txn(customer_id, days_ago=(i * 7) % 200 + order, amount=10 + i * 3)
            )
    return transactions


class TestCustomerAggregate:
    """Test CustomerAggregate validation."""

    def test_negative_recency_raises_error(self):
        with pytest.raises(ValueError, match="Recency cannot be negative"):
            CustomerAggregate("C1", "Ada", AS_OF, -1, 1, Decimal("10"))

    def test_zero_frequency_raises_error(self):
        with pytest.raises(ValueError, match="Frequency must be positive"):
            CustomerAggregate("C1", "Ada", AS_OF, 0, 0, Decimal("10"))

    def test_zero_monetary_raises_error(self):
        with pytest.raises(ValueError, match="Monetary total must be positive"):
            CustomerAggregate("C1", "Ada", AS_OF, 0, 1, Decimal("0"))


class TestAggregateCustomers:
    """Test aggregate_customers()."""

    def test_empty_input(self):
        assert aggregate_customers([], as_of=AS_OF) == []

    def test_groups_by_customer(self):
        aggregates = aggregate_customers(
            [
                _txn("C1", 30, "100"),
                _txn("C2", 5, "50"),
                _txn("C1", 10, "200"),
                _txn("C1", 1, "300"),
            ],
            as_of=AS_OF,
        )

        assert [a.customer_id for a in aggregates] == ["C1", "C2"]
        c1 = aggregates[0]
        assert c1.frequency == 3
        assert c1.monetary_total == Decimal("600")
        assert c1.recency_days == 1
        assert c1.last_purchase_date == AS_OF - timedelta(days=1)

    def test_first_name_wins(self):
        aggregates = aggregate_customers(
            [
                _txn("C1", 10, "10", name="Acme Corp"),
                _txn("C1", 5, "10", name="ACME Corporation"),
            ],
            as_of=AS_OF,
        )
        assert aggregates[0].customer_name == "Acme Corp"

    def test_partial_days_are_floored(self):
        txn = TransactionRecord(
            "C1", "Ada", AS_OF - timedelta(hours=47), Decimal("10")
        )
        assert aggregate_customers([txn], as_of=AS_OF)[0].recency_days == 1

    def test_future_dated_transaction_clamps_to_zero(self):
        txn = TransactionRecord("C1", "Ada", AS_OF + timedelta(days=3), Decimal("10"))
        assert aggregate_customers([txn], as_of=AS_OF)[0].recency_days == 0

    def test_naive_and_aware_datetimes_mix(self):
        txn = TransactionRecord("C1", "Ada", datetime(2024, 6, 20), Decimal("10"))
        aggregates = aggregate_customers([txn], as_of=AS_OF)
        assert aggregates[0].recency_days == 10

    def test_defaults_to_now(self):
        txn = TransactionRecord(
            "C1", "Ada", datetime.now(timezone.utc) - timedelta(days=3, hours=1),
            Decimal("10"),
        )
        assert aggregate_customers([txn])[0].recency_days == 3

    def test_one_aggregate_per_distinct_customer(self):
        transactions = _cohort(40)
        aggregates = aggregate_customers(transactions, as_of=AS_OF)

        assert len(aggregates) == len({t.customer_id for t in transactions})
        assert sum(a.frequency for a in aggregates) == len(transactions)
        assert sum(a.monetary_total for a in aggregates) == sum(
            t.amount for t in transactions
        )


class TestQuintiles:
    """Test quintile boundaries and scoring."""

    def test_boundaries_use_floor_index(self):
        assert quintile_boundaries([10, 20, 30, 40, 50]) == (20.0, 30.0, 40.0, 50.0)
        # n=2: indices 0, 0, 1, 1
        assert quintile_boundaries([30, 3]) == (3.0, 3.0, 30.0, 30.0)

    def test_boundaries_of_empty_cohort_raise_error(self):
        with pytest.raises(ValueError, match="empty cohort"):
            quintile_boundaries([])

    @pytest.mark.parametrize(
        "value, expected",
        [(10, 1), (20, 1), (25, 2), (30, 2), (45, 4), (50, 4), (60, 5)],
    )
    def test_score_is_first_boundary_not_exceeded(self, value, expected):
        assert quintile_score(value, (20, 30, 40, 50)) == expected

    def test_inverted_score(self):
        assert quintile_score(10, (20, 30, 40, 50), invert=True) == 5
        assert quintile_score(60, (20, 30, 40, 50), invert=True) == 1

    def test_single_member_cohort(self):
        assert score_metric([42]).tolist() == [1]
        assert score_metric([42], invert=True).tolist() == [5]

    def test_identical_values_score_alike(self):
        assert score_metric([7, 7, 7, 7]).tolist() == [1, 1, 1, 1]

    def test_empty_metric(self):
        assert score_metric([]).tolist() == []

    def test_vectorised_scores_match_scalar_scoring(self):
        values = [3, 17, 17, 2, 90, 45, 8, 8, 61, 33, 12]
        boundaries = quintile_boundaries(values)
        for invert in (False, True):
            expected = [quintile_score(v, boundaries, invert=invert) for v in values]
            assert score_metric(values, invert=invert).tolist() == expected

    def test_scores_are_monotonic(self):
        values = [5, 1, 9, 3, 7, 2, 8, 4, 6, 10]
        scores = score_metric(values).tolist()
        pairs = sorted(zip(values, scores))
        assert [s for _, s in pairs] == sorted(s for _, s in pairs)


class TestCustomerRFM:
    """Test CustomerRFM validation."""

    def _make(self, **overrides):
        fields = dict(
            customer_id="C1",
            customer_name="Ada",
            recency_days=1,
            frequency=3,
            monetary_total=Decimal("600.00"),
            r_score=5,
            f_score=3,
            m_score=3,
            rfm_score=533,
            segment_name="Loyal Customers",
            clv=657000,
            total_orders=3,
            last_order_date=date(2024, 6, 29),
            avg_order_value=Decimal("200.00"),
        )
        fields.update(overrides)
        return CustomerRFM(**fields)

    def test_valid_record(self):
        assert self._make().score_code == "533"

    def test_score_out_of_range_raises_error(self):
        with pytest.raises(ValueError, match="r_score must be between 1 and 5"):
            self._make(r_score=6, rfm_score=633)

    def test_mismatched_rfm_score_raises_error(self):
        with pytest.raises(ValueError, match="does not match"):
            self._make(rfm_score=535)

    def test_negative_clv_raises_error(self):
        with pytest.raises(ValueError, match="clv cannot be negative"):
            self._make(clv=-1)


class TestCalculateCustomerRFM:
    """Test the full per-customer pipeline."""

    def test_empty_input(self):
        assert calculate_customer_rfm([], as_of=AS_OF) == []
        assert score_customers([]) == []

    def test_two_customer_example(self):
        customers = calculate_customer_rfm(
            [
                _txn("C1", 30, "100"),
                _txn("C1", 10, "200"),
                _txn("C1", 1, "300"),
                _txn("C2", 5, "50"),
            ],
            as_of=AS_OF,
        )
        c1, c2 = customers

        assert (c1.customer_id, c1.frequency, c1.monetary_total) == (
            "C1",
            3,
            Decimal("600.00"),
        )
        assert (c1.r_score, c1.f_score, c1.m_score, c1.rfm_score) == (5, 3, 3, 533)
        assert c1.segment_name == "Loyal Customers"
        assert c1.clv == 657000
        assert c1.avg_order_value == Decimal("200.00")
        assert c1.total_orders == 3
        assert c1.last_order_date == date(2024, 6, 29)

        assert (c2.r_score, c2.f_score, c2.m_score, c2.rfm_score) == (3, 1, 1, 311)
        assert c2.segment_name == "Lost Customers"
        assert c2.clv == 10950
        assert c2.avg_order_value == Decimal("50.00")

        assert c1.r_score >= c2.r_score
        assert c1.f_score >= c2.f_score
        assert c1.m_score >= c2.m_score

    def test_single_customer_cohort(self):
        customers = calculate_customer_rfm([_txn("C1", 3, "80")], as_of=AS_OF)

        assert len(customers) == 1
        only = customers[0]
        assert (only.r_score, only.f_score, only.m_score) == (5, 1, 1)
        # Matches Potential Loyalists before New Customers
        assert only.segment_name == "Potential Loyalists"

    def test_equal_scores_keep_customer_id_order(self):
        transactions = [_txn(cid, 10, "100") for cid in ("C3", "C1", "C2")]
        customers = calculate_customer_rfm(transactions, as_of=AS_OF)

        assert [c.customer_id for c in customers] == ["C1", "C2", "C3"]
        assert len({c.rfm_score for c in customers}) == 1

    def test_scores_in_range_and_combined_correctly(self):
        for customer in calculate_customer_rfm(_cohort(60), as_of=AS_OF):
            for score in (customer.r_score, customer.f_score, customer.m_score):
                assert 1 <= score <= 5
            assert customer.rfm_score == (
                customer.r_score * 100 + customer.f_score * 10 + customer.m_score
            )
            assert customer.total_orders == customer.frequency
            assert customer.clv >= 0

    def test_sorted_by_rfm_score_descending(self):
        customers = calculate_customer_rfm(_cohort(60), as_of=AS_OF)
        scores = [c.rfm_score for c in customers]
        assert scores == sorted(scores, reverse=True)

    def test_deterministic(self):
        transactions = _cohort(30)
        first = calculate_customer_rfm(transactions, as_of=AS_OF)
        second = calculate_customer_rfm(list(reversed(transactions)), as_of=AS_OF)
        assert first == second

    def test_more_recent_customer_never_scores_lower_recency(self):
        customers = calculate_customer_rfm(_cohort(50), as_of=AS_OF)
        for a in customers:
            for b in customers:
                if a.recency_days < b.recency_days:
                    assert a.r_score >= b.r_score
                if a.frequency > b.frequency:
                    assert a.f_score >= b.f_score
                if a.monetary_total > b.monetary_total:
                    assert a.m_score >= b.m_score

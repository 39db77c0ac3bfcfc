"""Portfolio-level scalars derived from scored customers and segments."""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence

from customer_insights.analyses.segments import SegmentStats
from customer_insights.foundation.rfm import CustomerRFM

# Retention is reported with one decimal place (e.g., 68.4%)
RETENTION_PRECISION = Decimal("0.1")


def total_revenue(customers: Sequence[CustomerRFM]) -> Decimal:
    """Sum of monetary totals across all customers."""
    return sum((c.monetary_total for c in customers), Decimal("0"))


def total_customers(customers: Sequence[CustomerRFM]) -> int:
    return len(customers)


def average_clv(customers: Sequence[CustomerRFM]) -> int:
    """Mean CLV across all customers, rounded to whole units (0 if empty)."""
    if not customers:
        return 0
    mean = Decimal(sum(c.clv for c in customers)) / len(customers)
    return int(mean.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def weighted_retention_rate(segment_stats: Sequence[SegmentStats]) -> Decimal:
    """Customer-weighted mean of the segments' nominal retention rates.

    Examples
    --------
    >>> weighted_retention_rate([])
    Decimal('0')
    """

    count = sum(s.customer_count for s in segment_stats)
    if count == 0:
        return Decimal("0")
    weighted = sum(Decimal(s.retention_rate) * s.customer_count for s in segment_stats)
    return (weighted / count).quantize(RETENTION_PRECISION, rounding=ROUND_HALF_UP)

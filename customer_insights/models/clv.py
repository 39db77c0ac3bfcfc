"""Simplified customer lifetime value (CLV) heuristic.

The estimate annualises a customer's observed spend by how recently they
purchased and projects it over a fixed horizon:

    avg_order_value   = monetary_total / frequency
    annual_projection = avg_order_value × frequency × (365 / max(recency_days, 1))
    clv               = round(annual_projection × 3)

This is a heuristic, not a fitted probabilistic model. The recency floor of
one day only prevents division by zero: a single large purchase made
yesterday still projects to an extreme value.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

DAYS_PER_YEAR = Decimal("365")
PROJECTION_YEARS = Decimal("3")
MIN_RECENCY_DAYS = 1
CURRENCY_QUANTUM = Decimal("0.01")


@dataclass(frozen=True)
class CLVEstimate:
    """CLV heuristic output for a single customer.

    Attributes
    ----------
    avg_order_value:
        Mean order value, rounded to cents.
    annual_projection:
        Projected spend over one year, rounded to cents.
    clv:
        Projected value over :data:`PROJECTION_YEARS`, rounded to whole units.
    """

    avg_order_value: Decimal
    annual_projection: Decimal
    clv: int

    def __post_init__(self) -> None:
        if self.avg_order_value < 0:
            raise ValueError(f"avg_order_value cannot be negative: {self.avg_order_value}")
        if self.annual_projection < 0:
            raise ValueError(
                f"annual_projection cannot be negative: {self.annual_projection}"
            )
        if self.clv < 0:
            raise ValueError(f"clv cannot be negative: {self.clv}")


def estimate_clv(
    monetary_total: Decimal, frequency: int, recency_days: int
) -> CLVEstimate:
    """Estimate CLV from a customer's RFM aggregate.

    Parameters
    ----------
    monetary_total:
        Total spend of the customer.
    frequency:
        Number of purchases, at least 1.
    recency_days:
        Days since the last purchase. Values below one day are treated as
        one day.

    Examples
    --------
    >>> from decimal import Decimal
    >>> estimate = estimate_clv(Decimal("600"), 3, 1)
    >>> estimate.avg_order_value
    Decimal('200.00')
    >>> estimate.clv
    657000
    >>> estimate_clv(Decimal("50"), 1, 5).clv
    10950
    """

    if frequency <= 0:
        raise ValueError(f"Frequency must be positive: {frequency}")
    if monetary_total < 0:
        raise ValueError(f"Monetary total cannot be negative: {monetary_total}")

    avg_order_value = Decimal(monetary_total) / frequency
    days = Decimal(max(recency_days, MIN_RECENCY_DAYS))
    annual_projection = avg_order_value * frequency * (DAYS_PER_YEAR / days)
    clv = (annual_projection * PROJECTION_YEARS).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )

    return CLVEstimate(
        avg_order_value=avg_order_value.quantize(CURRENCY_QUANTUM, rounding=ROUND_HALF_UP),
        annual_projection=annual_projection.quantize(
            CURRENCY_QUANTUM, rounding=ROUND_HALF_UP
        ),
        clv=int(clv),
    )

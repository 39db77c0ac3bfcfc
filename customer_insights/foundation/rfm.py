"""RFM (Recency-Frequency-Monetary) aggregation and quintile scoring.

RFM analysis scores customers on three dimensions:
- Recency: How recently did the customer make a purchase?
- Frequency: How often do they purchase?
- Monetary: How much do they spend?

Scores are relative to the cohort being analysed: every run derives its own
20/40/60/80th percentile boundaries from the customers in the batch, so the
same customer can score differently in a different cohort.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Sequence

import numpy as np
import pandas as pd

from customer_insights.foundation.segments import MAX_SCORE, MIN_SCORE, classify_segment
from customer_insights.foundation.transactions import TransactionRecord, to_utc
from customer_insights.models.clv import estimate_clv

logger = logging.getLogger(__name__)

# Percentile positions of the four quintile boundaries
QUINTILE_POSITIONS = (0.2, 0.4, 0.6, 0.8)


@dataclass(frozen=True)
class CustomerAggregate:
    """Raw RFM values for a single customer.

    Attributes
    ----------
    customer_id:
        Unique customer identifier
    customer_name:
        Name from the first transaction seen for this customer
    last_purchase_date:
        Most recent transaction timestamp
    recency_days:
        Whole days between the analysis date and last_purchase_date
    frequency:
        Number of transactions
    monetary_total:
        Sum of transaction amounts
    """

    customer_id: str
    customer_name: str
    last_purchase_date: datetime
    recency_days: int
    frequency: int
    monetary_total: Decimal

    def __post_init__(self) -> None:
        """Validate aggregate values."""
        if self.recency_days < 0:
            raise ValueError(
                f"Recency cannot be negative: {self.recency_days} (customer_id={self.customer_id})"
            )
        if self.frequency <= 0:
            raise ValueError(
                f"Frequency must be positive: {self.frequency} (customer_id={self.customer_id})"
            )
        if self.monetary_total <= 0:
            raise ValueError(
                f"Monetary total must be positive: {self.monetary_total} (customer_id={self.customer_id})"
            )


def aggregate_customers(
    transactions: Iterable[TransactionRecord],
    as_of: Optional[datetime] = None,
) -> list[CustomerAggregate]:
    """Reduce transactions to one RFM aggregate per customer.

    **Analysis date**: recency is measured from ``as_of``, which defaults to
    the current wall-clock time. Scoring the same transactions on a
    different day therefore yields different recency values; pass an
    explicit ``as_of`` for reproducible results.

    Recency is the floor of the elapsed whole days, clamped to 0 for
    transactions dated after ``as_of``.

    Parameters
    ----------
    transactions:
        Validated transactions. The first name seen for a customer id wins.
    as_of:
        Analysis date. Naive datetimes are treated as UTC.

    Returns
    -------
    list[CustomerAggregate]
        One aggregate per customer, sorted by customer_id

    Examples
    --------
    >>> from datetime import datetime
    >>> from decimal import Decimal
    >>> txns = [
    ...     TransactionRecord("C1", "Ada", datetime(2024, 1, 1), Decimal("100")),
    ...     TransactionRecord("C1", "Ada L.", datetime(2024, 1, 21), Decimal("50")),
    ... ]
    >>> aggregates = aggregate_customers(txns, as_of=datetime(2024, 1, 31))
    >>> aggregates[0].customer_name, aggregates[0].recency_days, aggregates[0].frequency
    ('Ada', 10, 2)
    """

    analysis_date = to_utc(as_of) if as_of is not None else datetime.now(timezone.utc)

    # Group by customer_id
    customer_data: dict[str, dict] = {}
    for txn in transactions:
        txn_date = to_utc(txn.transaction_date)
        data = customer_data.get(txn.customer_id)
        if data is None:
            customer_data[txn.customer_id] = {
                "name": txn.customer_name,
                "last_purchase": txn_date,
                "frequency": 1,
                "monetary": Decimal(txn.amount),
            }
            continue

        if txn_date > data["last_purchase"]:
            data["last_purchase"] = txn_date
        data["frequency"] += 1
        data["monetary"] += Decimal(txn.amount)

    aggregates: list[CustomerAggregate] = []
    for customer_id in sorted(customer_data):
        data = customer_data[customer_id]
        # timedelta.days floors, so partial days never round up
        recency_days = max((analysis_date - data["last_purchase"]).days, 0)
        aggregates.append(
            CustomerAggregate(
                customer_id=customer_id,
                customer_name=data["name"],
                last_purchase_date=data["last_purchase"],
                recency_days=recency_days,
                frequency=data["frequency"],
                monetary_total=data["monetary"],
            )
        )
    return aggregates


def quintile_boundaries(values: Sequence[float]) -> tuple[float, float, float, float]:
    """Return the 20/40/60/80th percentile boundaries of a cohort.

    Boundaries are elements of the sorted values taken at indices
    ``floor(n * p)``; no interpolation is performed.

    Examples
    --------
    >>> quintile_boundaries([50, 10, 40, 20, 30])
    (20.0, 30.0, 40.0, 50.0)
    >>> quintile_boundaries([7])
    (7.0, 7.0, 7.0, 7.0)
    """

    sorted_values = np.sort(np.asarray(values, dtype=float))
    n = len(sorted_values)
    if n == 0:
        raise ValueError("Cannot compute quintile boundaries for an empty cohort")
    b0, b1, b2, b3 = (
        float(sorted_values[math.floor(n * position)]) for position in QUINTILE_POSITIONS
    )
    return (b0, b1, b2, b3)


def quintile_score(
    value: float, boundaries: Sequence[float], invert: bool = False
) -> int:
    """Score a single value against quintile boundaries.

    Returns 1 if ``value <= boundaries[0]``, 2 if ``<= boundaries[1]`` and so
    on up to 5. With ``invert=True`` (recency) the score is ``6 - score`` so
    that smaller values score higher.
    """

    score = MAX_SCORE
    for idx, boundary in enumerate(boundaries):
        if value <= boundary:
            score = idx + 1
            break
    return (MAX_SCORE + 1 - score) if invert else score


def score_metric(values: Sequence[float], invert: bool = False) -> np.ndarray:
    """Score every value of a cohort metric into 1-5 quintiles.

    Equivalent to :func:`quintile_score` applied to each value with the
    boundaries of the whole cohort. A single-member cohort always scores 1
    (5 when inverted).

    Examples
    --------
    >>> score_metric([10, 20, 30, 40, 50]).tolist()
    [1, 1, 2, 3, 4]
    >>> score_metric([3, 30], invert=True).tolist()
    [5, 3]
    """

    array = np.asarray(values, dtype=float)
    if array.size == 0:
        return np.array([], dtype=int)
    boundaries = np.asarray(quintile_boundaries(array))
    # Number of boundaries strictly below the value, plus one
    scores = np.searchsorted(boundaries, array, side="left") + 1
    if invert:
        scores = (MAX_SCORE + 1) - scores
    return scores.astype(int)


@dataclass(frozen=True)
class CustomerRFM:
    """Scored and segmented customer record.

    Attributes
    ----------
    customer_id:
        Unique customer identifier
    customer_name:
        Customer display name
    recency_days:
        Days since last purchase
    frequency:
        Number of purchases
    monetary_total:
        Total spend
    r_score:
        Recency score (1-5, where 5 = most recent)
    f_score:
        Frequency score (1-5, where 5 = most frequent)
    m_score:
        Monetary score (1-5, where 5 = highest spend)
    rfm_score:
        Combined score ``100 * r + 10 * f + m`` (111-555)
    segment_name:
        Segment assigned from the score triple
    clv:
        Heuristic three-year lifetime value
    total_orders:
        Number of orders (equal to frequency)
    last_order_date:
        Calendar date of the last purchase (UTC)
    avg_order_value:
        Mean order value, rounded to cents
    """

    customer_id: str
    customer_name: str
    recency_days: int
    frequency: int
    monetary_total: Decimal
    r_score: int
    f_score: int
    m_score: int
    rfm_score: int
    segment_name: str
    clv: int
    total_orders: int
    last_order_date: date
    avg_order_value: Decimal

    def __post_init__(self) -> None:
        """Validate RFM scores."""
        for score_name, score_value in [
            ("r_score", self.r_score),
            ("f_score", self.f_score),
            ("m_score", self.m_score),
        ]:
            if not MIN_SCORE <= score_value <= MAX_SCORE:
                raise ValueError(
                    f"{score_name} must be between 1 and 5: {score_value} (customer_id={self.customer_id})"
                )
        expected_rfm = self.r_score * 100 + self.f_score * 10 + self.m_score
        if self.rfm_score != expected_rfm:
            raise ValueError(
                f"rfm_score ({self.rfm_score}) does not match r/f/m scores ({expected_rfm}) (customer_id={self.customer_id})"
            )
        if self.clv < 0:
            raise ValueError(
                f"clv cannot be negative: {self.clv} (customer_id={self.customer_id})"
            )

    @property
    def score_code(self) -> str:
        """Score triple as a string, e.g. ``"545"``."""
        return f"{self.r_score}{self.f_score}{self.m_score}"


def score_customers(aggregates: Sequence[CustomerAggregate]) -> list[CustomerRFM]:
    """Score, segment and value a cohort of customer aggregates.

    Quintile boundaries are derived from ``aggregates`` itself. The result
    is sorted by ``rfm_score`` descending; customers with equal scores keep
    customer_id order.
    """

    if not aggregates:
        return []

    ordered = sorted(aggregates, key=lambda a: a.customer_id)
    df = pd.DataFrame(
        {
            "customer_id": [a.customer_id for a in ordered],
            "recency_days": [a.recency_days for a in ordered],
            "frequency": [a.frequency for a in ordered],
            "monetary": [float(a.monetary_total) for a in ordered],
        }
    )

    # Recency: lower is better, so the score is inverted (5 = most recent)
    df["r_score"] = score_metric(df["recency_days"], invert=True)
    df["f_score"] = score_metric(df["frequency"])
    df["m_score"] = score_metric(df["monetary"])

    customers: list[CustomerRFM] = []
    for aggregate, r_score, f_score, m_score in zip(
        ordered, df["r_score"], df["f_score"], df["m_score"]
    ):
        r_score, f_score, m_score = int(r_score), int(f_score), int(m_score)
        estimate = estimate_clv(
            aggregate.monetary_total, aggregate.frequency, aggregate.recency_days
        )
        customers.append(
            CustomerRFM(
                customer_id=aggregate.customer_id,
                customer_name=aggregate.customer_name,
                recency_days=aggregate.recency_days,
                frequency=aggregate.frequency,
                monetary_total=aggregate.monetary_total.quantize(
                    Decimal("0.01"), rounding=ROUND_HALF_UP
                ),
                r_score=r_score,
                f_score=f_score,
                m_score=m_score,
                rfm_score=r_score * 100 + f_score * 10 + m_score,
                segment_name=classify_segment(r_score, f_score, m_score),
                clv=estimate.clv,
                total_orders=aggregate.frequency,
                last_order_date=aggregate.last_purchase_date.date(),
                avg_order_value=estimate.avg_order_value,
            )
        )

    # list.sort is stable, also with reverse=True
    customers.sort(key=lambda c: c.rfm_score, reverse=True)
    return customers


def calculate_customer_rfm(
    transactions: Sequence[TransactionRecord],
    as_of: Optional[datetime] = None,
) -> list[CustomerRFM]:
    """Run aggregation, scoring, segmentation and CLV for a transaction batch.

    Parameters
    ----------
    transactions:
        Validated transactions for one scoring run. An empty batch returns
        an empty list.
    as_of:
        Analysis date for recency; defaults to now (see
        :func:`aggregate_customers`).

    Returns
    -------
    list[CustomerRFM]
        One record per distinct customer, sorted by rfm_score descending

    Examples
    --------
    >>> from datetime import datetime
    >>> from decimal import Decimal
    >>> txns = [
    ...     TransactionRecord("C1", "Ada", datetime(2024, 1, 30), Decimal("300")),
    ...     TransactionRecord("C2", "Bob", datetime(2023, 6, 1), Decimal("20")),
    ... ]
    >>> customers = calculate_customer_rfm(txns, as_of=datetime(2024, 1, 31))
    >>> [c.customer_id for c in customers]
    ['C1', 'C2']
    >>> customers[0].r_score >= customers[1].r_score
    True
    """

    if not transactions:
        return []

    aggregates = aggregate_customers(transactions, as_of=as_of)
    customers = score_customers(aggregates)
    logger.info(
        f"Scored {len(customers)} customers from {len(transactions)} transactions"
    )
    return customers

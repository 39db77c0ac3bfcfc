"""Segment-level rollup of scored customers.

Answers "how big is each segment, what is it worth and how should we treat
it" by grouping :class:`CustomerRFM` records by their segment name.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence

from customer_insights.foundation.rfm import CustomerRFM
from customer_insights.foundation.segments import (
    SEGMENT_DEFINITIONS,
    ScoreRange,
    SegmentDefinition,
)

CURRENCY_PRECISION = Decimal("0.01")


@dataclass(frozen=True)
class SegmentStats:
    """Summary statistics for one non-empty segment.

    Attributes
    ----------
    name:
        Segment name
    customer_count:
        Number of customers assigned to the segment
    total_revenue:
        Sum of monetary totals of the segment's customers
    avg_clv:
        Mean CLV of the segment's customers, rounded to whole units
    retention_rate:
        Nominal retention percentage from the segment definition
    r_score_range, f_score_range, m_score_range:
        Observed (min, max) scores among the segment's customers
    color:
        Presentation color token from the definition
    treatment:
        Recommended treatment from the definition
    actions:
        Recommended actions from the definition
    """

    name: str
    customer_count: int
    total_revenue: Decimal
    avg_clv: int
    retention_rate: int
    r_score_range: ScoreRange
    f_score_range: ScoreRange
    m_score_range: ScoreRange
    color: str
    treatment: str
    actions: tuple[str, ...]

    def __post_init__(self) -> None:
        """Validate segment statistics."""
        if self.customer_count < 0:
            raise ValueError(
                f"Customer count cannot be negative: {self.customer_count} (segment={self.name})"
            )
        if self.total_revenue < 0:
            raise ValueError(
                f"Total revenue cannot be negative: {self.total_revenue} (segment={self.name})"
            )
        if self.avg_clv < 0:
            raise ValueError(
                f"Average CLV cannot be negative: {self.avg_clv} (segment={self.name})"
            )


def _observed_range(scores: Sequence[int], configured: ScoreRange) -> ScoreRange:
    if not scores:
        return configured
    return (min(scores), max(scores))


def _rounded_mean(values: Sequence[int]) -> int:
    if not values:
        return 0
    mean = Decimal(sum(values)) / len(values)
    return int(mean.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def build_segment_stats(
    definition: SegmentDefinition, members: Sequence[CustomerRFM]
) -> SegmentStats:
    """Compute statistics for one segment from its member customers."""

    revenue = sum((c.monetary_total for c in members), Decimal("0"))
    return SegmentStats(
        name=definition.name,
        customer_count=len(members),
        total_revenue=revenue.quantize(CURRENCY_PRECISION, rounding=ROUND_HALF_UP),
        avg_clv=_rounded_mean([c.clv for c in members]),
        retention_rate=definition.retention_rate,
        r_score_range=_observed_range([c.r_score for c in members], definition.r_range),
        f_score_range=_observed_range([c.f_score for c in members], definition.f_range),
        m_score_range=_observed_range([c.m_score for c in members], definition.m_range),
        color=definition.color,
        treatment=definition.treatment,
        actions=definition.actions,
    )


def generate_segment_stats(
    customers: Sequence[CustomerRFM],
    definitions: Sequence[SegmentDefinition] = SEGMENT_DEFINITIONS,
) -> list[SegmentStats]:
    """Roll scored customers up into per-segment statistics.

    Segments are emitted in definition-table order and segments without
    customers are omitted, so the customer counts of the result always sum
    to ``len(customers)``.

    Examples
    --------
    >>> generate_segment_stats([])
    []
    """

    groups: dict[str, list[CustomerRFM]] = defaultdict(list)
    for customer in customers:
        groups[customer.segment_name].append(customer)

    stats: list[SegmentStats] = []
    for definition in definitions:
        members = groups.get(definition.name, [])
        if not members:
            continue
        stats.append(build_segment_stats(definition, members))
    return stats

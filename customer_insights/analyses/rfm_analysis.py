"""End-to-end RFM scoring run over one batch of transactions.

The run is a pure function of the transactions and the analysis date: it
keeps no state between calls, and every call recomputes customers and
segment statistics from scratch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from customer_insights.analyses import summary
from customer_insights.analyses.segments import SegmentStats, generate_segment_stats
from customer_insights.foundation.rfm import CustomerRFM, calculate_customer_rfm
from customer_insights.foundation.transactions import TransactionRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RFMAnalysisResult:
    """Output of one scoring run.

    Attributes
    ----------
    customers:
        Scored customers sorted by rfm_score descending
    segment_stats:
        Statistics of non-empty segments in definition-table order
    """

    customers: list[CustomerRFM] = field(default_factory=list)
    segment_stats: list[SegmentStats] = field(default_factory=list)

    @property
    def total_revenue(self) -> Decimal:
        return summary.total_revenue(self.customers)

    @property
    def total_customers(self) -> int:
        return summary.total_customers(self.customers)

    @property
    def average_clv(self) -> int:
        return summary.average_clv(self.customers)

    @property
    def weighted_retention_rate(self) -> Decimal:
        return summary.weighted_retention_rate(self.segment_stats)


def run_rfm_analysis(
    transactions: Sequence[TransactionRecord],
    as_of: Optional[datetime] = None,
) -> RFMAnalysisResult:
    """Score customers and roll them up into segments.

    Parameters
    ----------
    transactions:
        Validated transactions. An empty batch produces an empty result.
    as_of:
        Analysis date used for recency; defaults to now.

    Examples
    --------
    >>> result = run_rfm_analysis([])
    >>> result.customers, result.segment_stats, result.average_clv
    ([], [], 0)
    """

    customers = calculate_customer_rfm(transactions, as_of=as_of)
    segment_stats = generate_segment_stats(customers)
    logger.info(
        f"RFM analysis complete: {len(customers)} customers in "
        f"{len(segment_stats)} segments"
    )
    return RFMAnalysisResult(customers=customers, segment_stats=segment_stats)

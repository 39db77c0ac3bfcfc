"""Caller-owned state holder for imported transactions and their RFM results.

The scoring pipeline itself is stateless. Applications that keep the latest
import around (a dashboard backend, a notebook session) create a
:class:`CustomerInsightsState` and pass it wherever the results are read.
Each import replaces the previous results wholesale under a lock, so
concurrent imports never interleave.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Sequence

import structlog

from customer_insights.analyses.rfm_analysis import RFMAnalysisResult, run_rfm_analysis
from customer_insights.analyses.segments import SegmentStats
from customer_insights.foundation.rfm import CustomerRFM
from customer_insights.foundation.transactions import TransactionRecord

logger = structlog.get_logger(__name__)

DEFAULT_TOP_CUSTOMERS = 10


@dataclass(frozen=True)
class StateSnapshot:
    """Consistent point-in-time copy of the state."""

    transactions: tuple[TransactionRecord, ...] = ()
    result: RFMAnalysisResult = field(default_factory=RFMAnalysisResult)
    last_import_at: datetime | None = None
    imported_record_count: int = 0
    is_using_imported_data: bool = False


class CustomerInsightsState:
    """Thread-safe holder of the most recent import.

    Uses threading.RLock so that an import (pipeline run plus replacement of
    every field) is atomic with respect to readers and other imports.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._snapshot = StateSnapshot()

    def import_transactions(
        self,
        transactions: Sequence[TransactionRecord],
        as_of: Optional[datetime] = None,
    ) -> RFMAnalysisResult:
        """Score a transaction batch and replace the held results with it.

        Args:
            transactions: Validated transactions for the new import
            as_of: Analysis date for recency (defaults to now)

        Returns:
            The analysis result now held by the state
        """
        with self._lock:
            result = run_rfm_analysis(transactions, as_of=as_of)
            self._snapshot = StateSnapshot(
                transactions=tuple(transactions),
                result=result,
                last_import_at=datetime.now(timezone.utc),
                imported_record_count=len(transactions),
                is_using_imported_data=True,
            )

        logger.info(
            "transactions_imported",
            record_count=len(transactions),
            customer_count=result.total_customers,
            segment_count=len(result.segment_stats),
        )
        return result

    def clear(self) -> None:
        """Drop the imported data and results."""
        with self._lock:
            self._snapshot = StateSnapshot()
        logger.info("state_cleared")

    def snapshot(self) -> StateSnapshot:
        with self._lock:
            return self._snapshot

    @property
    def customers(self) -> list[CustomerRFM]:
        return list(self.snapshot().result.customers)

    @property
    def segment_stats(self) -> list[SegmentStats]:
        return list(self.snapshot().result.segment_stats)

    @property
    def last_import_at(self) -> datetime | None:
        return self.snapshot().last_import_at

    @property
    def imported_record_count(self) -> int:
        return self.snapshot().imported_record_count

    @property
    def is_using_imported_data(self) -> bool:
        return self.snapshot().is_using_imported_data

    def top_customers(self, limit: int = DEFAULT_TOP_CUSTOMERS) -> list[CustomerRFM]:
        """Highest-scoring customers (customers are held in rfm_score order)."""
        if limit < 0:
            raise ValueError(f"limit cannot be negative: {limit}")
        return self.snapshot().result.customers[:limit]

    def customers_by_segment(self, segment_name: str) -> list[CustomerRFM]:
        return [
            c
            for c in self.snapshot().result.customers
            if c.segment_name == segment_name
        ]

    def total_revenue(self) -> Decimal:
        return self.snapshot().result.total_revenue

    def total_customers(self) -> int:
        return self.snapshot().result.total_customers

    def average_clv(self) -> int:
        return self.snapshot().result.average_clv

    def weighted_retention_rate(self) -> Decimal:
        return self.snapshot().result.weighted_retention_rate

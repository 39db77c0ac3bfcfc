"""Foundational building blocks for customer RFM insights.

This package exposes the transaction ingestion contract, the ordered
segment rule table and the RFM aggregation and scoring utilities.
"""

from .rfm import (
    CustomerAggregate,
    CustomerRFM,
    aggregate_customers,
    calculate_customer_rfm,
    quintile_boundaries,
    quintile_score,
    score_customers,
    score_metric,
)
from .segments import (
    SEGMENT_DEFINITIONS,
    SegmentDefinition,
    classify_segment,
    fallback_segment,
    get_segment_definition,
)
from .transactions import (
    SAMPLE_TRANSACTIONS_CSV,
    ColumnMapping,
    ParseResult,
    TransactionRecord,
    detect_column_mapping,
    parse_transaction_rows,
)

__all__ = [
    "CustomerAggregate",
    "CustomerRFM",
    "aggregate_customers",
    "calculate_customer_rfm",
    "quintile_boundaries",
    "quintile_score",
    "score_customers",
    "score_metric",
    "SEGMENT_DEFINITIONS",
    "SegmentDefinition",
    "classify_segment",
    "fallback_segment",
    "get_segment_definition",
    "SAMPLE_TRANSACTIONS_CSV",
    "ColumnMapping",
    "ParseResult",
    "TransactionRecord",
    "detect_column_mapping",
    "parse_transaction_rows",
]

"""Pandas DataFrame adapters for customer insights components."""

from .transactions import (
    read_transactions_csv,
    dataframe_to_transactions,
)
from .rfm import (
    customers_to_dataframe,
    segment_stats_to_dataframe,
)

__all__ = [
    # Ingestion adapters
    "read_transactions_csv",
    "dataframe_to_transactions",
    # Output adapters
    "customers_to_dataframe",
    "segment_stats_to_dataframe",
]

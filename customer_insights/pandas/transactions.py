"""Pandas DataFrame adapters for transaction ingestion."""

from pathlib import Path
from typing import Optional, Union

import pandas as pd  # type: ignore

from customer_insights.config import MAX_INPUT_BYTES
from customer_insights.foundation.transactions import (
    ColumnMapping,
    ParseResult,
    detect_column_mapping,
    parse_transaction_rows,
)


def read_transactions_csv(
    path: Union[str, Path], max_input_bytes: int = MAX_INPUT_BYTES
) -> pd.DataFrame:
    """Load a transaction CSV with every cell kept as text.

    Blank cells become empty strings rather than NaN, and empty lines are
    skipped, so that row validation sees exactly what the file contains.

    Args:
        path: CSV file with a header row
        max_input_bytes: Largest file size accepted

    Returns:
        DataFrame of string columns named after the CSV header

    Raises:
        ValueError: If the file exceeds max_input_bytes

    Example:
        >>> df = read_transactions_csv("transactions.csv")
        >>> result = dataframe_to_transactions(df)
    """
    resolved = Path(path).resolve()
    size = resolved.stat().st_size
    if size > max_input_bytes:
        raise ValueError(
            f"Input file {resolved} is {size} bytes; exceeds limit of {max_input_bytes} bytes"
        )
    return pd.read_csv(
        resolved,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        encoding="utf-8",
    )


def dataframe_to_transactions(
    df: pd.DataFrame, mapping: Optional[ColumnMapping] = None
) -> ParseResult:
    """Validate DataFrame rows as transactions.

    Args:
        df: Raw transaction rows, one per purchase
        mapping: Column mapping. If None, it is detected from the column
            names with detect_column_mapping()

    Returns:
        ParseResult with the valid transactions and per-row error messages

    Raises:
        ValueError: If a required field cannot be mapped to a column

    Example with custom column names:
        >>> result = dataframe_to_transactions(
        ...     df,
        ...     ColumnMapping(
        ...         customer_id="client",
        ...         customer_name="client_name",
        ...         transaction_date="booked_on",
        ...         amount="net",
        ...     ),
        ... )
    """
    if mapping is None:
        mapping = detect_column_mapping([str(col) for col in df.columns])

    missing_cols = {
        col
        for col in mapping.as_dict().values()
        if col is not None and col not in df.columns
    }
    if missing_cols:
        raise ValueError(f"DataFrame missing mapped columns: {missing_cols}")

    return parse_transaction_rows(df.to_dict("records"), mapping)

"""Transaction ingestion contract and row-level validation.

Raw transaction exports arrive with arbitrary column names. This module maps
those columns onto the fixed transaction schema and validates each row
independently, so that a handful of malformed rows never aborts an import.
Invalid rows are reported as ``"Row <n>: <reason>"`` diagnostics (1-based
row numbers) alongside the valid :class:`TransactionRecord` objects.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Sequence

import pandas as pd

logger = logging.getLogger(__name__)

MISSING_CUSTOMER_ID = "Missing customer ID"
MISSING_CUSTOMER_NAME = "Missing customer name"
INVALID_DATE = "Invalid date format"
INVALID_AMOUNT = "Invalid amount"

# Largest single transaction amount accepted. Keeps customer totals and CLV
# projections within the precision of the default decimal context.
MAX_AMOUNT = Decimal("1000000000000")

# Characters kept when cleaning an amount cell ("$1,250.00" -> "1250.00")
_AMOUNT_STRIP_PATTERN = re.compile(r"[^0-9.\-]")

# Auto-detection patterns, most specific first
COLUMN_PATTERNS: dict[str, tuple[str, ...]] = {
    "customer_id": (r"customer.?id", r"cust.?id", r"client.?id", r"id"),
    "customer_name": (
        r"customer.?name",
        r"cust.?name",
        r"client.?name",
        r"name",
        r"customer",
    ),
    "transaction_date": (
        r"trans.?date",
        r"order.?date",
        r"purchase.?date",
        r"date",
    ),
    "amount": (r"amount", r"total", r"value", r"price", r"revenue", r"spend"),
    "order_id": (r"order.?id", r"trans.?id", r"invoice"),
}

SAMPLE_TRANSACTIONS_CSV = """customer_id,customer_name,transaction_date,amount,order_id
C001,Acme Corporation,2026-01-15,1250.00,ORD001
C001,Acme Corporation,2025-12-20,890.50,ORD002
C002,TechFlow Inc.,2026-01-18,2340.00,ORD003
C002,TechFlow Inc.,2026-01-05,1120.00,ORD004
C003,Global Dynamics,2025-11-30,3500.00,ORD005
C004,Innovate Labs,2026-01-10,780.00,ORD006
C005,NextGen Solutions,2025-10-15,450.00,ORD007
"""


def to_utc(value: datetime) -> datetime:
    """Return ``value`` as a timezone-aware UTC datetime.

    Naive datetimes are assumed to already be expressed in UTC.
    """

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class TransactionRecord:
    """A single validated purchase.

    Attributes
    ----------
    customer_id:
        Identifier used to group purchases into customers.
    customer_name:
        Display name of the customer.
    transaction_date:
        When the purchase happened (normalised to UTC).
    amount:
        Purchase value, strictly positive.
    order_id:
        Optional source order identifier, carried through for lineage.
    """

    customer_id: str
    customer_name: str
    transaction_date: datetime
    amount: Decimal
    order_id: str | None = None

    def __post_init__(self) -> None:
        if not self.customer_id or not self.customer_id.strip():
            raise ValueError("customer_id must be a non-empty string")
        if not self.customer_name or not self.customer_name.strip():
            raise ValueError(
                f"customer_name must be a non-empty string (customer_id={self.customer_id})"
            )
        if not isinstance(self.transaction_date, datetime):
            raise TypeError(
                "transaction_date must be a datetime instance",
                {"customer_id": self.customer_id, "value": self.transaction_date},
            )
        if self.amount <= 0:
            raise ValueError(
                f"Amount must be positive: {self.amount} (customer_id={self.customer_id})"
            )
        if self.amount > MAX_AMOUNT:
            raise ValueError(
                f"Amount exceeds maximum of {MAX_AMOUNT}: {self.amount} (customer_id={self.customer_id})"
            )


@dataclass(frozen=True)
class ColumnMapping:
    """Maps the semantic transaction fields onto source column names."""

    customer_id: str | None = None
    customer_name: str | None = None
    transaction_date: str | None = None
    amount: str | None = None
    order_id: str | None = None

    #: Fields that must be mapped before rows can be parsed.
    REQUIRED_FIELDS = ("customer_id", "customer_name", "transaction_date", "amount")

    def missing_fields(self) -> list[str]:
        return [name for name in self.REQUIRED_FIELDS if not getattr(self, name)]

    def is_complete(self) -> bool:
        return not self.missing_fields()

    def as_dict(self) -> dict[str, str | None]:
        return {
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "transaction_date": self.transaction_date,
            "amount": self.amount,
            "order_id": self.order_id,
        }


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing a batch of raw rows."""

    transactions: list[TransactionRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def valid_count(self) -> int:
        return len(self.transactions)

    @property
    def error_count(self) -> int:
        return len(self.errors)


def detect_column_mapping(columns: Sequence[str]) -> ColumnMapping:
    """Guess a column mapping from header names.

    Each field is matched against :data:`COLUMN_PATTERNS` in priority order
    (case-insensitive search) and a column is never assigned to two fields.
    Fields without a matching column stay ``None``.

    Examples
    --------
    >>> mapping = detect_column_mapping(
    ...     ["customer_id", "customer_name", "transaction_date", "amount", "order_id"]
    ... )
    >>> mapping.customer_name
    'customer_name'
    >>> mapping.order_id
    'order_id'
    """

    taken: set[str] = set()
    detected: dict[str, str | None] = {}
    for field_name, patterns in COLUMN_PATTERNS.items():
        detected[field_name] = None
        for pattern in patterns:
            regex = re.compile(pattern, re.IGNORECASE)
            match = next(
                (col for col in columns if col not in taken and regex.search(col)),
                None,
            )
            if match is not None:
                detected[field_name] = match
                taken.add(match)
                break
    return ColumnMapping(**detected)


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return ""
    return str(value).strip()


def _parse_date(value: Any) -> datetime | None:
    text = _cell_text(value)
    if not text:
        return None
    # pandas accepts keywords such as "now" and "today"; a date needs digits
    if not any(ch.isdigit() for ch in text):
        return None
    parsed = pd.to_datetime(text, errors="coerce", utc=True)
    if pd.isna(parsed):
        return None
    return parsed.to_pydatetime()


def _parse_amount(value: Any) -> Decimal | None:
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        cleaned = str(value)
    else:
        cleaned = _AMOUNT_STRIP_PATTERN.sub("", _cell_text(value))
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount <= 0 or amount > MAX_AMOUNT:
        return None
    return amount


def parse_transaction_rows(
    rows: Iterable[Mapping[str, Any]], mapping: ColumnMapping
) -> ParseResult:
    """Validate raw rows and convert them into transaction records.

    Checks run in order (customer id, customer name, date, amount) and only
    the first failure of a row is reported. Failures never raise; a batch
    where every row is invalid yields an empty transaction list.

    Parameters
    ----------
    rows:
        Raw key/value rows, e.g. from ``csv.DictReader`` or
        ``DataFrame.to_dict("records")``.
    mapping:
        Source column for each semantic field. All required fields must be
        mapped.

    Raises
    ------
    ValueError
        If ``mapping`` leaves a required field unmapped.

    Examples
    --------
    >>> mapping = ColumnMapping("id", "name", "date", "amount")
    >>> result = parse_transaction_rows(
    ...     [
    ...         {"id": "C1", "name": "Ada", "date": "2024-01-05", "amount": "$120.50"},
    ...         {"id": "C2", "name": "Bob", "date": "2024-01-06", "amount": "0"},
    ...     ],
    ...     mapping,
    ... )
    >>> result.transactions[0].amount
    Decimal('120.50')
    >>> result.errors
    ['Row 2: Invalid amount']
    """

    missing = mapping.missing_fields()
    if missing:
        raise ValueError(
            "Column mapping missing required fields",
            {"missing_fields": missing},
        )

    transactions: list[TransactionRecord] = []
    errors: list[str] = []
    for idx, row in enumerate(rows):
        row_number = idx + 1

        customer_id = _cell_text(row.get(mapping.customer_id))
        if not customer_id:
            errors.append(f"Row {row_number}: {MISSING_CUSTOMER_ID}")
            continue

        customer_name = _cell_text(row.get(mapping.customer_name))
        if not customer_name:
            errors.append(f"Row {row_number}: {MISSING_CUSTOMER_NAME}")
            continue

        transaction_date = _parse_date(row.get(mapping.transaction_date))
        if transaction_date is None:
            errors.append(f"Row {row_number}: {INVALID_DATE}")
            continue

        amount = _parse_amount(row.get(mapping.amount))
        if amount is None:
            errors.append(f"Row {row_number}: {INVALID_AMOUNT}")
            continue

        order_id = None
        if mapping.order_id:
            order_id = _cell_text(row.get(mapping.order_id)) or None

        transactions.append(
            TransactionRecord(
                customer_id=customer_id,
                customer_name=customer_name,
                transaction_date=transaction_date,
                amount=amount,
                order_id=order_id,
            )
        )

    if errors:
        logger.warning(
            f"Skipped {len(errors)} invalid rows; {len(transactions)} rows accepted"
        )
    return ParseResult(transactions=transactions, errors=errors)

"""Shared utilities for pandas conversion operations."""

from decimal import Decimal


def decimal_to_float(value: Decimal) -> float:
    """Convert Decimal to float for pandas compatibility."""
    return float(value)


def format_score_range(score_range: tuple[int, int]) -> str:
    """Render an inclusive score range as ``"low-high"``.

    Example:
        >>> format_score_range((4, 5))
        '4-5'
    """
    low, high = score_range
    return f"{low}-{high}"

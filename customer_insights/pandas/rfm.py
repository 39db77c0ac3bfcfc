"""Pandas DataFrame adapters for scored customers and segment statistics."""

from typing import Sequence

import pandas as pd  # type: ignore

from customer_insights.analyses.segments import SegmentStats
from customer_insights.foundation.rfm import CustomerRFM
from ._utils import decimal_to_float, format_score_range

CUSTOMER_COLUMNS = [
    "customer_id",
    "customer_name",
    "recency_days",
    "frequency",
    "monetary_total",
    "r_score",
    "f_score",
    "m_score",
    "rfm_score",
    "segment",
    "clv",
    "total_orders",
    "last_order_date",
    "avg_order_value",
]

SEGMENT_COLUMNS = [
    "segment",
    "customers",
    "revenue",
    "avg_clv",
    "retention_rate",
    "r_score_range",
    "f_score_range",
    "m_score_range",
    "color",
    "treatment",
    "actions",
]


def customers_to_dataframe(customers: Sequence[CustomerRFM]) -> pd.DataFrame:
    """Convert scored customers to a DataFrame.

    Row order is preserved (rfm_score descending when the input comes from
    calculate_customer_rfm()).

    Args:
        customers: Sequence of CustomerRFM records

    Returns:
        DataFrame with the columns in CUSTOMER_COLUMNS

    Example:
        >>> customers = calculate_customer_rfm(transactions)
        >>> customers_to_dataframe(customers).head()
    """
    if not customers:
        return pd.DataFrame(columns=CUSTOMER_COLUMNS)

    rows = [
        {
            "customer_id": c.customer_id,
            "customer_name": c.customer_name,
            "recency_days": c.recency_days,
            "frequency": c.frequency,
            "monetary_total": decimal_to_float(c.monetary_total),
            "r_score": c.r_score,
            "f_score": c.f_score,
            "m_score": c.m_score,
            "rfm_score": c.rfm_score,
            "segment": c.segment_name,
            "clv": c.clv,
            "total_orders": c.total_orders,
            "last_order_date": c.last_order_date.isoformat(),
            "avg_order_value": decimal_to_float(c.avg_order_value),
        }
        for c in customers
    ]
    return pd.DataFrame(rows, columns=CUSTOMER_COLUMNS)


def segment_stats_to_dataframe(segment_stats: Sequence[SegmentStats]) -> pd.DataFrame:
    """Convert segment statistics to a DataFrame.

    Score ranges are rendered as "low-high" strings and actions are joined
    with "; ".

    Args:
        segment_stats: Sequence of SegmentStats records

    Returns:
        DataFrame with the columns in SEGMENT_COLUMNS
    """
    if not segment_stats:
        return pd.DataFrame(columns=SEGMENT_COLUMNS)

    rows = [
        {
            "segment": s.name,
            "customers": s.customer_count,
            "revenue": decimal_to_float(s.total_revenue),
            "avg_clv": s.avg_clv,
            "retention_rate": s.retention_rate,
            "r_score_range": format_score_range(s.r_score_range),
            "f_score_range": format_score_range(s.f_score_range),
            "m_score_range": format_score_range(s.m_score_range),
            "color": s.color,
            "treatment": s.treatment,
            "actions": "; ".join(s.actions),
        }
        for s in segment_stats
    ]
    return pd.DataFrame(rows, columns=SEGMENT_COLUMNS)

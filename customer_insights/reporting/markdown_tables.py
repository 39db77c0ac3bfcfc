"""Markdown table formatters for RFM analysis results.

Formats scoring results as clean markdown tables suitable for terminals,
reports and other markdown renderers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from customer_insights.pandas._utils import format_score_range

if TYPE_CHECKING:
    from customer_insights.analyses.rfm_analysis import RFMAnalysisResult
    from customer_insights.analyses.segments import SegmentStats
    from customer_insights.foundation.rfm import CustomerRFM


def format_summary_table(result: RFMAnalysisResult) -> str:
    """Format portfolio-level figures as a markdown table.

    Parameters
    ----------
    result:
        Output of run_rfm_analysis()

    Returns
    -------
    str:
        Markdown-formatted table with key metrics
    """
    return f"""## Customer Portfolio

| Metric | Value |
|--------|-------|
| Total Customers | {result.total_customers:,} |
| Total Revenue | ${result.total_revenue:,.2f} |
| Average CLV | ${result.average_clv:,} |
| Weighted Retention Rate | {result.weighted_retention_rate}% |
"""


def format_segment_table(segment_stats: Sequence[SegmentStats]) -> str:
    """Format segment statistics as a markdown table.

    Parameters
    ----------
    segment_stats:
        Statistics from generate_segment_stats()

    Returns
    -------
    str:
        Markdown table, one row per segment, followed by recommended actions
    """
    table = "## RFM Segments\n\n"
    if not segment_stats:
        return table + "_No customers scored._\n"

    table += "| Segment | Customers | Revenue | Avg CLV | Retention | R | F | M | Treatment |\n"
    table += "|---------|-----------|---------|---------|-----------|---|---|---|-----------|\n"
    for stats in segment_stats:
        table += (
            f"| {stats.name} | {stats.customer_count:,} | ${stats.total_revenue:,.2f} "
            f"| ${stats.avg_clv:,} | {stats.retention_rate}% "
            f"| {format_score_range(stats.r_score_range)} "
            f"| {format_score_range(stats.f_score_range)} "
            f"| {format_score_range(stats.m_score_range)} | {stats.treatment} |\n"
        )

    table += "\n### Recommended Actions\n\n"
    for stats in segment_stats:
        table += f"- **{stats.name}:** {', '.join(stats.actions)}\n"
    return table


def format_top_customers_table(customers: Sequence[CustomerRFM], limit: int = 10) -> str:
    """Format the highest-scoring customers as a markdown table.

    Parameters
    ----------
    customers:
        Scored customers, already sorted by rfm_score descending
    limit:
        Maximum number of customers to display (default: 10)
    """
    table = "## Top Customers\n\n"
    if not customers:
        return table + "_No customers scored._\n"

    table += "| Customer | Segment | RFM | CLV | Orders | Avg Order | Last Order |\n"
    table += "|----------|---------|-----|-----|--------|-----------|------------|\n"
    for customer in customers[:limit]:
        table += (
            f"| {customer.customer_name} ({customer.customer_id}) "
            f"| {customer.segment_name} | {customer.score_code} "
            f"| ${customer.clv:,} | {customer.total_orders:,} "
            f"| ${customer.avg_order_value:,.2f} "
            f"| {customer.last_order_date.isoformat()} |\n"
        )
    if len(customers) > limit:
        table += f"\n_Showing {limit} of {len(customers):,} customers._\n"
    return table

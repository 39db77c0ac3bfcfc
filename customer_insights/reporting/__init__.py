"""Presentation-ready output for RFM analysis results.

- Markdown tables for readable text output
- CSV and JSON exports for spreadsheets and dashboards
"""

from customer_insights.reporting.exports import (
    export_customers_csv,
    export_segment_report_json,
    segment_report,
)
from customer_insights.reporting.markdown_tables import (
    format_segment_table,
    format_summary_table,
    format_top_customers_table,
)

__all__ = [
    # Markdown tables
    "format_segment_table",
    "format_summary_table",
    "format_top_customers_table",
    # Exports
    "export_customers_csv",
    "export_segment_report_json",
    "segment_report",
]

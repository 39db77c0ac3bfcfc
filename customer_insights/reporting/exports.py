"""Export RFM analysis results to files.

CSV exports feed spreadsheets and BI tools; the JSON report carries segment
statistics and portfolio figures for dashboards.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from customer_insights.analyses.rfm_analysis import RFMAnalysisResult
from customer_insights.pandas.rfm import customers_to_dataframe

logger = logging.getLogger(__name__)


def export_customers_csv(result: RFMAnalysisResult, output_path: str | Path) -> None:
    """Export scored customers to CSV, in rfm_score order.

    Parameters
    ----------
    result:
        Output of run_rfm_analysis()
    output_path:
        Path where the CSV file will be saved
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    df = customers_to_dataframe(result.customers)
    df.to_csv(output_path, index=False)

    logger.info(f"Exported {len(df)} customers to {output_path}")


def segment_report(
    result: RFMAnalysisResult, metadata: dict[str, Any] | None = None
) -> dict[str, Any]:
    """Build a JSON-serialisable report of segments and portfolio figures."""
    return {
        "metadata": metadata or {},
        "timestamp": datetime.now().isoformat(),
        "summary": {
            "total_customers": result.total_customers,
            "total_revenue": float(result.total_revenue),
            "average_clv": result.average_clv,
            "weighted_retention_rate": float(result.weighted_retention_rate),
        },
        "segments": [
            {
                "name": stats.name,
                "customers": stats.customer_count,
                "revenue": float(stats.total_revenue),
                "avg_clv": stats.avg_clv,
                "retention_rate": stats.retention_rate,
                "r_score_range": list(stats.r_score_range),
                "f_score_range": list(stats.f_score_range),
                "m_score_range": list(stats.m_score_range),
                "color": stats.color,
                "treatment": stats.treatment,
                "actions": list(stats.actions),
            }
            for stats in result.segment_stats
        ],
    }


def export_segment_report_json(
    result: RFMAnalysisResult,
    output_path: str | Path,
    metadata: dict[str, Any] | None = None,
) -> None:
    """Export segment statistics and portfolio figures to JSON.

    Parameters
    ----------
    result:
        Output of run_rfm_analysis()
    output_path:
        Path where the JSON file will be saved
    metadata:
        Optional metadata to include in the report (e.g., source file, as-of date)

    Examples
    --------
    >>> export_segment_report_json(
    ...     result,
    ...     "segments_2024-01-15.json",
    ...     metadata={"source": "transactions.csv"}
    ... )
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(segment_report(result, metadata), f, indent=2)

    logger.info(f"Segment report exported to {output_path}")

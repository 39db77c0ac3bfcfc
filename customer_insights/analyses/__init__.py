"""Customer-base analyses built on RFM scores.

1. Segment rollup - size, revenue, value and treatment per segment
2. Portfolio summary - revenue, customer count, average CLV, retention
3. Scoring run - the full pipeline from transactions to segment statistics
"""

from .segments import SegmentStats, build_segment_stats, generate_segment_stats
from .summary import average_clv, total_customers, total_revenue, weighted_retention_rate
from .rfm_analysis import RFMAnalysisResult, run_rfm_analysis

__all__ = [
    # Segment rollup
    "SegmentStats",
    "build_segment_stats",
    "generate_segment_stats",
    # Portfolio summary
    "average_clv",
    "total_customers",
    "total_revenue",
    "weighted_retention_rate",
    # Scoring run
    "RFMAnalysisResult",
    "run_rfm_analysis",
]

"""Customer value models."""

from customer_insights.models.clv import CLVEstimate, estimate_clv

__all__ = ["CLVEstimate", "estimate_clv"]

"""Runtime configuration for RFM scoring runs."""

from __future__ import annotations

import os
from datetime import datetime

from pydantic import BaseModel, Field

MAX_INPUT_BYTES = 25 * 1024 * 1024  # 25 MiB cap to avoid accidental OOM

ENV_PREFIX = "CUSTOMER_INSIGHTS_"


class AnalysisConfig(BaseModel):
    """Settings shared by the CLI and programmatic callers."""

    as_of: datetime | None = Field(
        default=None,
        description="Analysis date for recency. None means the current time, "
        "so repeated runs on different days can score the same data differently.",
    )
    top_customers_limit: int = Field(
        default=10, ge=1, description="Number of customers reported as top customers"
    )
    max_input_bytes: int = Field(
        default=MAX_INPUT_BYTES, gt=0, description="Largest input file accepted"
    )
    log_level: str = Field(default="INFO", description="Log level for entry points")

    @classmethod
    def from_env(cls) -> AnalysisConfig:
        """Build a config from ``CUSTOMER_INSIGHTS_*`` environment variables.

        Unset variables keep their defaults.
        """
        values: dict[str, str] = {}
        for field_name, env_name in [
            ("as_of", "AS_OF"),
            ("top_customers_limit", "TOP_CUSTOMERS"),
            ("max_input_bytes", "MAX_INPUT_BYTES"),
            ("log_level", "LOG_LEVEL"),
        ]:
            value = os.getenv(ENV_PREFIX + env_name)
            if value:
                values[field_name] = value
        return cls(**values)

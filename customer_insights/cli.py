"""Command line entry points for the customer insights toolkit."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from datetime import datetime
from pathlib import Path

from customer_insights.analyses.rfm_analysis import run_rfm_analysis
from customer_insights.config import AnalysisConfig
from customer_insights.foundation.transactions import (
    SAMPLE_TRANSACTIONS_CSV,
    detect_column_mapping,
    to_utc,
)
from customer_insights.logging_config import configure_logging
from customer_insights.pandas.transactions import (
    dataframe_to_transactions,
    read_transactions_csv,
)
from customer_insights.reporting.exports import (
    export_customers_csv,
    export_segment_report_json,
)
from customer_insights.reporting.markdown_tables import (
    format_segment_table,
    format_summary_table,
    format_top_customers_table,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_REPORTED_ERRORS = 10


def _resolve_output_path(path: Path) -> Path:
    output_path = path.resolve()
    cwd = Path.cwd().resolve()
    try:
        output_path.relative_to(cwd)
    except ValueError:
        raise ValueError(
            f"Output path {output_path} must reside within the current working directory"
        )
    return output_path


def _parse_as_of(value: str) -> datetime:
    return to_utc(datetime.fromisoformat(value))


def score_customers_cli(argv: list[str] | None = None) -> int:
    """Score customers from a transaction CSV and report RFM segments.

    This command runs the complete RFM pipeline:
    1. Loads the CSV and maps its columns (auto-detected unless overridden)
    2. Validates every row, skipping and reporting invalid ones
    3. Scores recency, frequency and monetary value into 1-5 quintiles
    4. Assigns segments and estimates CLV per customer
    5. Rolls customers up into segment statistics

    Args:
        argv: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(
        description="Score customers with RFM analysis from a transaction CSV"
    )
    parser.add_argument("input", type=Path, help="Path to CSV file with transactions")
    parser.add_argument("--customer-id-column", help="Column holding customer IDs")
    parser.add_argument("--customer-name-column", help="Column holding customer names")
    parser.add_argument("--date-column", help="Column holding transaction dates")
    parser.add_argument("--amount-column", help="Column holding transaction amounts")
    parser.add_argument("--order-id-column", help="Optional column holding order IDs")
    parser.add_argument(
        "--as-of",
        type=str,
        help=(
            "Analysis date for recency (ISO format: YYYY-MM-DD, optionally with "
            "time and UTC offset; naive values are UTC). Defaults to now."
        ),
    )
    parser.add_argument(
        "--customers-output",
        type=Path,
        help="Optional path for writing scored customers as CSV.",
    )
    parser.add_argument(
        "--report-output",
        type=Path,
        help="Optional path for writing the segment report as JSON.",
    )
    parser.add_argument(
        "--markdown-output",
        type=Path,
        help="Optional path for the Markdown summary (printed to stdout otherwise).",
    )
    parser.add_argument(
        "--top",
        type=int,
        help="Number of top customers in the Markdown summary (default: 10)",
    )
    parser.add_argument(
        "--max-errors",
        type=int,
        default=DEFAULT_MAX_REPORTED_ERRORS,
        help="Maximum number of row errors to log (default: 10)",
    )

    args = parser.parse_args(argv)
    try:
        config = AnalysisConfig.from_env()
        as_of = _parse_as_of(args.as_of) if args.as_of else config.as_of
    except ValueError as exc:
        logger.error(f"Invalid configuration: {exc}")
        return 1
    top_limit = args.top if args.top is not None else config.top_customers_limit

    # Load transactions
    logger.info(f"Loading transactions from {args.input}")
    try:
        df = read_transactions_csv(args.input, max_input_bytes=config.max_input_bytes)
    except (OSError, ValueError) as exc:
        logger.error(f"Could not read {args.input}: {exc}")
        return 1

    # Map columns
    mapping = detect_column_mapping([str(col) for col in df.columns])
    overrides = {
        field_name: value
        for field_name, value in [
            ("customer_id", args.customer_id_column),
            ("customer_name", args.customer_name_column),
            ("transaction_date", args.date_column),
            ("amount", args.amount_column),
            ("order_id", args.order_id_column),
        ]
        if value
    }
    mapping = dataclasses.replace(mapping, **overrides)
    if not mapping.is_complete():
        logger.error(
            f"Could not map required columns {mapping.missing_fields()}; "
            f"available columns: {list(df.columns)}"
        )
        return 1
    logger.info(f"Column mapping: {mapping.as_dict()}")

    # Validate rows
    try:
        parsed = dataframe_to_transactions(df, mapping)
    except ValueError as exc:
        logger.error(str(exc))
        return 1

    for error in parsed.errors[: args.max_errors]:
        logger.warning(error)
    if parsed.error_count > args.max_errors:
        logger.warning(f"... and {parsed.error_count - args.max_errors} more row errors")

    if not parsed.transactions:
        logger.error("No valid transactions found in input file")
        return 1

    logger.info(
        f"Accepted {parsed.valid_count} transactions, skipped {parsed.error_count} rows"
    )

    # Score
    if as_of is not None:
        logger.info(f"Analysis date: {as_of.date()}")
    result = run_rfm_analysis(parsed.transactions, as_of=as_of)

    # Export
    try:
        if args.customers_output:
            export_customers_csv(result, _resolve_output_path(args.customers_output))
        if args.report_output:
            export_segment_report_json(
                result,
                _resolve_output_path(args.report_output),
                metadata={
                    "source": str(args.input),
                    "as_of": as_of.isoformat() if as_of is not None else None,
                    "transactions": parsed.valid_count,
                    "skipped_rows": parsed.error_count,
                },
            )

        report = "\n".join(
            [
                format_summary_table(result),
                format_segment_table(result.segment_stats),
                format_top_customers_table(result.customers, limit=top_limit),
            ]
        )
        if args.markdown_output:
            output_path = _resolve_output_path(args.markdown_output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with output_path.open("w", encoding="utf-8") as fh:
                fh.write(report)
            logger.info(f"Markdown summary written to {output_path}")
        else:
            sys.stdout.write(report)
    except (OSError, ValueError) as exc:
        logger.error(f"Could not write output: {exc}")
        return 1

    logger.info(
        f"Scored {result.total_customers} customers: "
        f"revenue ${result.total_revenue:,.2f}, average CLV ${result.average_clv:,}"
    )
    return 0


def write_sample_csv_cli(argv: list[str] | None = None) -> int:
    """Write a small sample transaction CSV showing the expected layout."""

    parser = argparse.ArgumentParser(description=write_sample_csv_cli.__doc__)
    parser.add_argument(
        "output",
        type=Path,
        nargs="?",
        default=Path("sample_transactions.csv"),
        help="Destination file (default: sample_transactions.csv)",
    )
    args = parser.parse_args(argv)

    try:
        output_path = _resolve_output_path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(SAMPLE_TRANSACTIONS_CSV, encoding="utf-8")
    except (OSError, ValueError) as exc:
        logger.error(f"Could not write sample: {exc}")
        return 1
    logger.info(f"Sample transactions written to {output_path}")
    return 0


def _configure_logging_from_env() -> bool:
    """Configure logging from the environment; False if the config is invalid."""
    try:
        configure_logging(AnalysisConfig.from_env().log_level)
    except ValueError as exc:
        configure_logging()
        logger.error(f"Invalid configuration: {exc}")
        return False
    return True


def main() -> None:
    if not _configure_logging_from_env():
        raise SystemExit(1)
    raise SystemExit(score_customers_cli())


def sample_main() -> None:
    if not _configure_logging_from_env():
        raise SystemExit(1)
    raise SystemExit(write_sample_csv_cli())


if __name__ == "__main__":  # pragma: no cover
    main()

"""Command-line interface for the creator analytics dashboard.

Provides one subcommand per metric set (`summary`, `growth`, `revenue`,
`breakdown`, `engagement`, `products`, `churn`, `cohorts`, `ltv`, `ltv-stats`)
that prints or writes it as JSON/CSV, plus `gold`, which materializes every
metric set into MongoDB. Each command is implemented as a `cmd_*` function
that accepts an argparse namespace.
"""
from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from pydantic import BaseModel

from creator_analytics.config import get_settings
from creator_analytics.logging_config import configure_logging
from creator_analytics.db import get_db
from creator_analytics.date_ranges import PRESET_LOOKBACK, resolve_date_range
from creator_analytics.export import write_export
from creator_analytics.models import (
    CohortRetentionPoint,
    CohortValuePoint,
    DateRangeFilter,
    EngagementRecord,
    Member,
    ProductPerformance,
    Purchase,
)

# FETCH + VALIDATE
from creator_analytics.ingest.fetch_records import fetch_company_records
from creator_analytics.clean.validate import validate_ddf

# METRICS
from creator_analytics.aggregate.build_metrics import (
    compute_churn_by_month,
    compute_cohort_retention,
    compute_daily_growth,
    compute_daily_revenue,
    compute_ltv_by_cohort,
    compute_ltv_stats,
    compute_metrics_summary,
    compute_product_performance,
    compute_revenue_breakdown,
    purchases_in_range,
    top_products,
)
from creator_analytics.aggregate.engagement import compute_engagement_summary
from creator_analytics.aggregate.load_gold import build_dashboard_snapshot, load_snapshot

log = logging.getLogger(__name__)


# --------------------------------------------------
# Helpers
# --------------------------------------------------
@dataclass(frozen=True)
class DashboardInputs:
    """Validated rows for one tenant plus the resolved reporting window."""
    company_id: str
    members: list[dict[str, Any]]
    purchases: list[dict[str, Any]]
    engagement: list[dict[str, Any]]
    date_range: DateRangeFilter
    as_of: datetime


def _parse_as_of(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _in_range(records: list[dict[str, Any]], date_range: DateRangeFilter) -> list[dict[str, Any]]:
    """Keep engagement rows whose day falls inside ``date_range``."""
    start = date_range.start_date.date()
    end = date_range.end_date.date()
    return [r for r in records if start <= r["date"] <= end]


def _load_inputs(args: argparse.Namespace) -> DashboardInputs:
    """Fetch and validate a tenant's rows and resolve the requested window."""
    s = get_settings()
    db = get_db(s)

    as_of = _parse_as_of(args.as_of) or datetime.now().astimezone()
    date_range = resolve_date_range(args.range or s.default_date_range, as_of)
    log.info(
        "Date range: %s to %s",
        date_range.start_date.isoformat(),
        date_range.end_date.isoformat(),
    )

    records = fetch_company_records(db, args.company_id)
    members, _ = validate_ddf(records.members, Member)
    purchases, _ = validate_ddf(records.purchases, Purchase)
    engagement, _ = validate_ddf(records.engagement, EngagementRecord)

    return DashboardInputs(
        company_id=args.company_id,
        members=members,
        purchases=purchases,
        engagement=engagement,
        date_range=date_range,
        as_of=as_of,
    )


def _emit(
    records: BaseModel | list[Any],
    args: argparse.Namespace,
    model: type[BaseModel] | None = None,
) -> None:
    out_path = Path(args.output) if args.output else None
    text = write_export(records, args.format, out_path, model)
    if out_path is None:
        print(text)
    else:
        log.info("Wrote %s export to %s", args.format, out_path)


# --------------------------------------------------
# METRIC COMMANDS
# --------------------------------------------------
def cmd_summary(args: argparse.Namespace) -> None:
    """Print the KPI summary (members, revenue, MRR, churn, growth)."""
    i = _load_inputs(args)
    _emit(compute_metrics_summary(i.members, i.purchases, as_of=i.as_of), args)


def cmd_growth(args: argparse.Namespace) -> None:
    i = _load_inputs(args)
    _emit(compute_daily_growth(i.members, i.date_range), args)


def cmd_revenue(args: argparse.Namespace) -> None:
    i = _load_inputs(args)
    _emit(compute_daily_revenue(i.purchases, i.date_range), args)


def cmd_engagement(args: argparse.Namespace) -> None:
    """Print the engagement summary for rows inside the reporting window.

    With `--daily` only the per-day series is printed.
    """
    i = _load_inputs(args)
    engagement = _in_range(i.engagement, i.date_range)
    if not engagement:
        log.info("No engagement data found for the specified period")

    summary = compute_engagement_summary(engagement, i.date_range)
    log.info("Engagement score: %.1f, trend: %s", summary.engagement_score, summary.trend)
    _emit(summary.heatmap_data if args.daily else summary, args)


def cmd_products(args: argparse.Namespace) -> None:
    """Print product rollups for purchases inside the reporting window."""
    i = _load_inputs(args)
    windowed = purchases_in_range(i.purchases, i.date_range)
    if args.top is not None:
        _emit(top_products(windowed, args.top), args, ProductPerformance)
    else:
        _emit(compute_product_performance(windowed), args, ProductPerformance)


def cmd_breakdown(args: argparse.Namespace) -> None:
    i = _load_inputs(args)
    breakdown = compute_revenue_breakdown(i.purchases, i.date_range)
    log.info(
        "Revenue breakdown: %d products, total %.2f",
        len(breakdown.by_product),
        breakdown.total_revenue,
    )
    if args.by_product:
        _emit(breakdown.by_product, args, ProductPerformance)
    else:
        _emit(breakdown, args)


def cmd_churn(args: argparse.Namespace) -> None:
    i = _load_inputs(args)
    _emit(compute_churn_by_month(i.members, i.date_range), args)


def cmd_cohorts(args: argparse.Namespace) -> None:
    i = _load_inputs(args)
    _emit(compute_cohort_retention(i.members), args, CohortRetentionPoint)


def cmd_ltv(args: argparse.Namespace) -> None:
    i = _load_inputs(args)
    _emit(compute_ltv_by_cohort(i.members, i.purchases), args, CohortValuePoint)


def cmd_ltv_stats(args: argparse.Namespace) -> None:
    i = _load_inputs(args)
    _emit(compute_ltv_stats(i.members), args)


# --------------------------------------------------
# GOLD
# --------------------------------------------------
def cmd_gold(args: argparse.Namespace) -> None:
    """Compute every metric set for a tenant and upsert it into Gold collections."""
    i = _load_inputs(args)
    snapshot = build_dashboard_snapshot(
        i.members,
        i.purchases,
        _in_range(i.engagement, i.date_range),
        i.date_range,
        as_of=i.as_of,
    )
    written = load_snapshot(get_db(get_settings()), i.company_id, snapshot)
    log.info("Gold layer generated for company=%s (%d rows).", i.company_id, sum(written.values()))


COMMANDS: dict[str, Callable[[argparse.Namespace], None]] = {
    "summary": cmd_summary,
    "growth": cmd_growth,
    "revenue": cmd_revenue,
    "engagement": cmd_engagement,
    "products": cmd_products,
    "breakdown": cmd_breakdown,
    "churn": cmd_churn,
    "cohorts": cmd_cohorts,
    "ltv": cmd_ltv,
    "ltv-stats": cmd_ltv_stats,
    "gold": cmd_gold,
}


# --------------------------------------------------
# CLI
# --------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level argument parser for the CLI.

    Every subcommand takes `--company-id`, `--range` and `--as-of`; metric
    subcommands also take `--format` and `--output`.

    Returns:
        Configured argparse.ArgumentParser instance.
    """
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--company-id", required=True)
    common.add_argument("--range", choices=sorted(PRESET_LOOKBACK), default=None)
    common.add_argument("--as-of", default=None, help="ISO reference instant (default: now)")

    output = argparse.ArgumentParser(add_help=False)
    output.add_argument("--format", choices=["json", "csv"], default="json")
    output.add_argument("--output", default=None, help="Write to this file instead of stdout")

    p = argparse.ArgumentParser(prog="creator_analytics")
    sub = p.add_subparsers(dest="cmd", required=True)

    for name in ("summary", "growth", "revenue", "churn", "cohorts", "ltv", "ltv-stats"):
        sub.add_parser(name, parents=[common, output])

    p_eng = sub.add_parser("engagement", parents=[common, output])
    p_eng.add_argument("--daily", action="store_true")

    p_prod = sub.add_parser("products", parents=[common, output])
    p_prod.add_argument("--top", type=int, default=None)

    p_brk = sub.add_parser("breakdown", parents=[common, output])
    p_brk.add_argument("--by-product", action="store_true")

    sub.add_parser("gold", parents=[common])

    return p


def main() -> None:
    """CLI entry point: parse args, configure logging and dispatch commands."""
    args = build_parser().parse_args()

    s = get_settings()
    configure_logging(s.log_path, s.log_level)

    COMMANDS[args.cmd](args)


if __name__ == "__main__":
    main()

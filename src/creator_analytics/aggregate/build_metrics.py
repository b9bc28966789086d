"""Member and revenue aggregation functions.

Functions in this module turn tenant-scoped member and purchase rows into
dashboard records. They are pure: no I/O, no shared state, and the only
notion of "now" is the ``as_of`` argument.

Expectations:
- Input: iterables of `Member` / `Purchase` rows (models or mappings) or
  DataFrames with the same columns. See `frames` for the coercion rules.
- Outputs: lists of pydantic records documented on each function.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import pandas as pd

from creator_analytics.aggregate.frames import (
    day_index,
    member_frame,
    month_index,
    purchase_frame,
    utc_instant,
)
from creator_analytics.models import (
    ChurnPeriod,
    CohortRetentionPoint,
    CohortValuePoint,
    DailyGrowthPoint,
    DailyRevenuePoint,
    DateRangeFilter,
    LtvStats,
    MetricsSummary,
    ProductPerformance,
    RevenueBreakdown,
)
from creator_analytics.numeric import percent, percentage_change, ratio

log = logging.getLogger(__name__)

MRR_WINDOW = pd.Timedelta(days=30)


# =========================================================
# SUMMARY
# =========================================================

def compute_metrics_summary(
    members: Any,
    purchases: Any,
    as_of: datetime | None = None,
) -> MetricsSummary:
    """Return the headline KPIs for a tenant.

    Args:
        members: Member rows.
        purchases: Purchase rows.
        as_of: Reference instant for the trailing 30/60-day windows. Defaults
            to the current UTC time, read once.

    Returns:
        `MetricsSummary`. All ratios are 0 for an empty member set.
    """
    now = utc_instant(as_of)
    m = member_frame(members)
    p = purchase_frame(purchases)

    total = len(m)
    active = int((m["status"] == "active").sum())
    churned = int((m["status"] == "churned").sum())

    window_start = now - MRR_WINDOW
    previous_start = window_start - MRR_WINDOW

    mrr = float(p.loc[p["purchased_at"] >= window_start, "amount"].sum())

    joined = m["joined_at"]
    current_joins = int(((joined >= window_start) & (joined < now)).sum())
    previous_joins = int(((joined >= previous_start) & (joined < window_start)).sum())

    return MetricsSummary(
        total_members=total,
        active_members=active,
        churned_members=churned,
        total_revenue=float(p["amount"].sum()),
        average_lifetime_value=ratio(float(m["lifetime_value"].sum()), total),
        monthly_recurring_revenue=mrr,
        churn_rate=percent(churned, total),
        growth_rate=percentage_change(current_joins, previous_joins),
    )


# =========================================================
# DAILY SERIES
# =========================================================

def compute_daily_growth(members: Any, date_range: DateRangeFilter) -> list[DailyGrowthPoint]:
    """Return one member-count point per day of ``date_range``.

    Totals are cumulative by join day. Active/churned counts read each
    member's current status; there is no status history to replay.
    """
    m = member_frame(members)
    join_day = m["joined_at"].dt.normalize()
    is_active = m["status"] == "active"
    is_churned = m["status"] == "churned"

    points = []
    for day in day_index(date_range):
        joined_by_day = join_day <= day
        points.append(
            DailyGrowthPoint(
                date=day.date(),
                new_members=int((join_day == day).sum()),
                total_members=int(joined_by_day.sum()),
                active_members=int((joined_by_day & is_active).sum()),
                churned_members=int((joined_by_day & is_churned).sum()),
            )
        )

    log.debug("Computed %d daily growth points from %d members", len(points), len(m))
    return points


def compute_daily_revenue(purchases: Any, date_range: DateRangeFilter) -> list[DailyRevenuePoint]:
    """Return one revenue point per day of ``date_range``.

    ``member_count`` is the number of distinct purchasers that day.
    """
    p = purchase_frame(purchases)
    purchase_day = p["purchased_at"].dt.normalize()

    points = []
    for day in day_index(date_range):
        todays = p[purchase_day == day]
        revenue = float(todays["amount"].sum())
        buyers = int(todays["member_id"].nunique())
        points.append(
            DailyRevenuePoint(
                date=day.date(),
                revenue=revenue,
                member_count=buyers,
                average_revenue_per_user=ratio(revenue, buyers),
            )
        )

    log.debug("Computed %d daily revenue points from %d purchases", len(points), len(p))
    return points


# =========================================================
# PRODUCTS
# =========================================================

def compute_product_performance(purchases: Any) -> list[ProductPerformance]:
    """Return sales per product, highest revenue first.

    Products appear only if they have at least one purchase. The product name
    is taken from the first purchase seen for that product.
    """
    p = purchase_frame(purchases)

    rows = []
    for product_id, group in p.groupby("product_id", sort=False, dropna=False):
        revenue = float(group["amount"].sum())
        count = len(group)
        name = group["product_name"].iloc[0]
        rows.append(
            ProductPerformance(
                product_id=str(product_id),
                product_name=name if isinstance(name, str) else None,
                total_revenue=revenue,
                total_purchases=count,
                unique_customers=int(group["member_id"].nunique()),
                average_order_value=ratio(revenue, count),
            )
        )

    # stable: equal revenues keep first-seen order
    rows.sort(key=lambda r: r.total_revenue, reverse=True)
    return rows


def top_products(purchases: Any, limit: int = 5) -> list[ProductPerformance]:
    """Return the ``limit`` best-selling products by revenue."""
    return compute_product_performance(purchases)[:limit]


def purchases_in_range(purchases: Any, date_range: DateRangeFilter) -> pd.DataFrame:
    """Return the purchases made inside ``date_range`` (both ends included)."""
    p = purchase_frame(purchases)
    start = utc_instant(date_range.start_date)
    end = utc_instant(date_range.end_date)
    return p[(p["purchased_at"] >= start) & (p["purchased_at"] <= end)].reset_index(drop=True)


def compute_revenue_breakdown(purchases: Any, date_range: DateRangeFilter) -> RevenueBreakdown:
    """Return revenue per product plus totals for purchases inside ``date_range``."""
    p = purchases_in_range(purchases, date_range)
    total = float(p["amount"].sum())
    return RevenueBreakdown(
        by_product=compute_product_performance(p),
        total_revenue=total,
        avg_order_value=ratio(total, len(p)),
        purchase_count=len(p),
    )


def compute_average_order_value(purchases: Any) -> float:
    """Return mean purchase amount, or 0 with no purchases."""
    p = purchase_frame(purchases)
    return ratio(float(p["amount"].sum()), len(p))


def compute_cac(total_marketing_spend: float, new_customers: int) -> float:
    """Customer acquisition cost; marketing spend is supplied by the caller."""
    return ratio(total_marketing_spend, new_customers)


def compute_ltv_cac_ratio(average_ltv: float, cac: float) -> float:
    return ratio(average_ltv, cac)


# =========================================================
# CHURN + COHORTS
# =========================================================

def compute_churn_by_month(members: Any, date_range: DateRangeFilter) -> list[ChurnPeriod]:
    """Return churn for every calendar month overlapping ``date_range``.

    For month m the base is members joined at or before the start of m;
    churned members are those in the base whose status is ``churned`` and
    whose ``updated_at`` falls inside m. Only the latest status change is
    visible, so earlier churn/return cycles are not counted.
    """
    m = member_frame(members)
    is_churned = m["status"] == "churned"

    periods = []
    for month in month_index(date_range):
        start = month.start_time
        end = (month + 1).start_time
        base = m["joined_at"] <= start
        churned_in_month = (
            base
            & is_churned
            & (m["updated_at"] >= start)
            & (m["updated_at"] < end)
        )

        total = int(base.sum())
        churned = int(churned_in_month.sum())
        churn_rate = percent(churned, total)
        periods.append(
            ChurnPeriod(
                period=month.strftime("%b %Y"),
                month=month.strftime("%Y-%m"),
                total_members=total,
                churned_members=churned,
                churn_rate=churn_rate,
                retention_rate=100.0 - churn_rate,
            )
        )

    log.debug("Computed churn for %d months", len(periods))
    return periods


def _cohort_groups(m: pd.DataFrame) -> list[tuple[str, pd.DataFrame]]:
    """Group members by join month (``YYYY-MM``), oldest cohort first."""
    m = m[m["joined_at"].notna()]
    cohort = m["joined_at"].dt.strftime("%Y-%m")
    groups = [(str(key), group) for key, group in m.groupby(cohort, sort=False)]
    # zero-padded keys sort chronologically as strings
    return sorted(groups, key=lambda kv: kv[0])


def compute_cohort_retention(members: Any) -> list[CohortRetentionPoint]:
    """Return the share of each join-month cohort that is currently active."""
    out = []
    for cohort, group in _cohort_groups(member_frame(members)):
        total = len(group)
        active = int((group["status"] == "active").sum())
        out.append(
            CohortRetentionPoint(
                cohort=cohort,
                total_members=total,
                active_members=active,
                retention_rate=percent(active, total),
            )
        )
    return out


def compute_ltv_by_cohort(members: Any, purchases: Any) -> list[CohortValuePoint]:
    """Return purchase revenue per join-month cohort and per cohort member."""
    p = purchase_frame(purchases)

    out = []
    for cohort, group in _cohort_groups(member_frame(members)):
        size = len(group)
        revenue = float(p.loc[p["member_id"].isin(group["id"].dropna()), "amount"].sum())
        out.append(
            CohortValuePoint(
                cohort=cohort,
                member_count=size,
                total_revenue=revenue,
                average_ltv=ratio(revenue, size),
            )
        )
    return out


def compute_ltv_stats(members: Any) -> LtvStats:
    """Return average, median and max member lifetime value."""
    values = member_frame(members)["lifetime_value"]
    if values.empty:
        return LtvStats(average=0.0, median=0.0, max=0.0)
    return LtvStats(
        average=float(values.mean()),
        median=float(values.median()),
        max=float(values.max()),
    )

"""Build every dashboard metric for a tenant and load it into MongoDB.

Gold collections are small, read-optimized copies of the engine output
that the dashboard can serve without recomputing. Each row is upserted on
``company_id`` plus the record's own key fields.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Sequence

from pydantic import BaseModel
from pymongo import UpdateOne

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
)
from creator_analytics.aggregate.engagement import compute_daily_engagement, compute_engagement_summary
from creator_analytics.aggregate.frames import utc_instant
from creator_analytics.models import DateRangeFilter

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class GoldTable:
    """A Gold collection name and the fields that identify one of its rows."""
    collection: str
    key_fields: tuple[str, ...]


GOLD_TABLES: dict[str, GoldTable] = {
    "summary": GoldTable("gold_metrics_summary", ()),
    "growth": GoldTable("gold_daily_growth", ("date",)),
    "revenue": GoldTable("gold_daily_revenue", ("date",)),
    "engagement": GoldTable("gold_daily_engagement", ("date",)),
    "engagement_summary": GoldTable("gold_engagement_summary", ()),
    "products": GoldTable("gold_product_performance", ("product_id",)),
    "revenue_breakdown": GoldTable("gold_revenue_breakdown", ()),
    "ltv_stats": GoldTable("gold_ltv_stats", ()),
    "churn": GoldTable("gold_churn_by_month", ("month",)),
    "cohorts": GoldTable("gold_cohort_retention", ("cohort",)),
    "ltv": GoldTable("gold_ltv_by_cohort", ("cohort",)),
}


def build_dashboard_snapshot(
    members: Any,
    purchases: Any,
    engagement: Any,
    date_range: DateRangeFilter,
    as_of: datetime | None = None,
) -> dict[str, list[BaseModel]]:
    """Compute every metric set the dashboard shows.

    Args:
        members: Member rows.
        purchases: Purchase rows.
        engagement: Engagement rows, already limited to the reporting window
            by the caller when window-bounded totals are wanted.
        date_range: Reporting window for the daily and monthly series and
            for the product rollups.
        as_of: Reference instant for the KPI summary.

    Returns:
        Mapping of `GOLD_TABLES` key to a list of records.
    """
    now = utc_instant(as_of).to_pydatetime()
    windowed = purchases_in_range(purchases, date_range)
    return {
        "summary": [compute_metrics_summary(members, purchases, as_of=now)],
        "growth": compute_daily_growth(members, date_range),
        "revenue": compute_daily_revenue(purchases, date_range),
        "engagement": compute_daily_engagement(engagement, date_range),
        "engagement_summary": [compute_engagement_summary(engagement, date_range)],
        "products": compute_product_performance(windowed),
        "revenue_breakdown": [compute_revenue_breakdown(purchases, date_range)],
        "ltv_stats": [compute_ltv_stats(members)],
        "churn": compute_churn_by_month(members, date_range),
        "cohorts": compute_cohort_retention(members),
        "ltv": compute_ltv_by_cohort(members, purchases),
    }


def load_gold(
    records: Sequence[BaseModel],
    collection: Any,
    key_fields: Sequence[str],
    company_id: str,
) -> int:
    """Upsert one metric set into a Gold collection.

    Rows are dumped in JSON mode (camelCase keys, ISO dates) and tagged with
    ``company_id``. The upsert selector is ``company_id`` plus ``key_fields``
    (snake_case field names).

    Args:
        records: Engine output records.
        collection: Target PyMongo collection.
        key_fields: Record fields that identify a row within a tenant.
        company_id: Tenant identifier.

    Returns:
        Number of upsert operations written.

    Raises:
        pymongo.errors.PyMongoError: if the bulk write fails.
    """
    if not records:
        log.warning("No rows to load for %s", collection.name)
        return 0

    ops = []
    for rec in records:
        row = rec.model_dump(mode="json", by_alias=True)
        keys = rec.model_dump(mode="json", include=set(key_fields))
        query = {"company_id": company_id, **keys}
        ops.append(UpdateOne(query, {"$set": {**row, "company_id": company_id}}, upsert=True))

    collection.bulk_write(ops, ordered=False)
    log.info("Gold load complete for %s: %d rows", collection.name, len(ops))
    return len(ops)


def load_snapshot(db: Any, company_id: str, snapshot: dict[str, list[BaseModel]]) -> dict[str, int]:
    """Load every metric set of ``snapshot`` into its Gold collection."""
    written = {}
    for name, records in snapshot.items():
        table = GOLD_TABLES[name]
        log.info("Generating gold collection: %s", table.collection)
        written[name] = load_gold(records, db[table.collection], table.key_fields, company_id)
    return written

"""Pydantic models for input rows and derived dashboard records.

Input rows mirror the tenant tables the dashboard reads (members, purchases,
member engagement). Numeric fields are safe-parsed: malformed amounts become
0 rather than failing validation.

Derived records are plain data handed to the export and Gold loaders. Their
fields are snake_case in Python and camelCase when dumped ``by_alias``.
"""

from __future__ import annotations

import datetime as dt
from datetime import date, datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from creator_analytics.numeric import safe_float, safe_int

MemberStatus = Literal["active", "churned", "paused"]
Trend = Literal["up", "down", "flat"]


# =========================================================
# INPUT ROWS
# =========================================================

class Member(BaseModel):
    """Schema for a community member row.

    Attributes:
        id: Member identifier.
        joined_at: Timestamp the member joined.
        status: Current status; not historized.
        lifetime_value: Cumulative value attributed to the member.
        updated_at: Last status change, used to date churn events.
    """
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)
    id: str
    joined_at: datetime
    status: MemberStatus
    lifetime_value: float = 0.0
    updated_at: datetime | None = None

    @field_validator("lifetime_value", mode="before")
    @classmethod
    def _parse_lifetime_value(cls, v: Any) -> float:
        return safe_float(v)


class Purchase(BaseModel):
    """Schema for a single purchase row."""
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)
    id: str
    member_id: str
    product_id: str
    product_name: str | None = None
    amount: float = 0.0
    purchased_at: datetime

    @field_validator("amount", mode="before")
    @classmethod
    def _parse_amount(cls, v: Any) -> float:
        return safe_float(v)


class EngagementRecord(BaseModel):
    """Schema for one member's activity on one calendar day."""
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)
    member_id: str
    date: dt.date
    messages_sent: int = Field(0, ge=0)
    messages_received: int = Field(0, ge=0)
    interactions: int = Field(0, ge=0)

    @field_validator("messages_sent", "messages_received", "interactions", mode="before")
    @classmethod
    def _parse_count(cls, v: Any) -> int:
        return safe_int(v)


class DateRangeFilter(BaseModel):
    """Inclusive reporting window.

    Naive datetimes are read as UTC and plain dates as midnight UTC, so the
    bounds are always timezone-aware and comparable.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)
    start_date: datetime
    end_date: datetime

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _as_utc(cls, v: Any) -> Any:
        if isinstance(v, date) and not isinstance(v, datetime):
            v = datetime.combine(v, datetime.min.time())
        if isinstance(v, datetime):
            if v.tzinfo is None:
                return v.replace(tzinfo=timezone.utc)
            return v.astimezone(timezone.utc)
        return v

    @field_validator("start_date", "end_date")
    @classmethod
    def _ensure_aware(cls, v: datetime) -> datetime:
        # strings parsed by pydantic may still be naive
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @model_validator(mode="after")
    def _check_order(self) -> DateRangeFilter:
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


# =========================================================
# DERIVED RECORDS
# =========================================================

class _Record(BaseModel):
    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)


class MetricsSummary(_Record):
    """Headline KPIs for a tenant.

    Attributes:
        monthly_recurring_revenue: Purchase sum over the 30 days before the
            reference instant.
        churn_rate: Churned members as a percentage of all members.
        growth_rate: Percent change of joins in the last 30 days against the
            30 days before that.
    """
    total_members: int = Field(..., ge=0)
    active_members: int = Field(..., ge=0)
    churned_members: int = Field(..., ge=0)
    total_revenue: float
    average_lifetime_value: float
    monthly_recurring_revenue: float
    churn_rate: float
    growth_rate: float


class DailyGrowthPoint(_Record):
    """Member counts for one calendar day.

    ``active_members`` and ``churned_members`` use each member's current
    status, not the status held on ``date``.
    """
    date: dt.date
    new_members: int = Field(..., ge=0)
    total_members: int = Field(..., ge=0)
    active_members: int = Field(..., ge=0)
    churned_members: int = Field(..., ge=0)


class DailyRevenuePoint(_Record):
    """Revenue for one calendar day."""
    date: dt.date
    revenue: float
    member_count: int = Field(..., ge=0)
    average_revenue_per_user: float


class DailyEngagementPoint(_Record):
    """Engagement for one calendar day.

    ``active_users`` is the number of engagement rows on that day (one row
    per member per day), not a distinct-member count.
    """
    date: dt.date
    total_messages: int = Field(..., ge=0)
    total_interactions: int = Field(..., ge=0)
    active_users: int = Field(..., ge=0)
    average_engagement_per_user: float


class ProductPerformance(_Record):
    """Sales rollup for one product."""
    product_id: str = Field(..., alias="product_id")
    product_name: str | None = Field(None, alias="product_name")
    total_revenue: float
    total_purchases: int = Field(..., ge=0)
    unique_customers: int = Field(..., ge=0)
    average_order_value: float


class RevenueBreakdown(_Record):
    """Revenue inside the reporting window, split by product.

    Attributes:
        by_product: Product rollups, highest revenue first.
        avg_order_value: Mean purchase amount in the window.
        purchase_count: Purchases in the window.
    """
    by_product: list[ProductPerformance]
    total_revenue: float
    avg_order_value: float
    purchase_count: int = Field(..., ge=0)


class LtvStats(_Record):
    """Distribution of member lifetime values; all 0 with no members."""
    average: float
    median: float
    max: float


class ChurnPeriod(_Record):
    """Churn for one calendar month.

    Attributes:
        period: Display label such as ``"Jan 2026"``.
        month: Sortable ``YYYY-MM`` key.
    """
    period: str
    month: str
    total_members: int = Field(..., ge=0)
    churned_members: int = Field(..., ge=0)
    churn_rate: float
    retention_rate: float


class CohortRetentionPoint(_Record):
    """Share of a join-month cohort that is still active."""
    cohort: str
    total_members: int = Field(..., ge=0)
    active_members: int = Field(..., ge=0)
    retention_rate: float


class CohortValuePoint(_Record):
    """Revenue attributed to a join-month cohort."""
    cohort: str
    member_count: int = Field(..., ge=0)
    total_revenue: float
    average_ltv: float = Field(..., alias="averageLTV")


class EngagementSummary(_Record):
    """Whole-input engagement totals plus the per-day series.

    Attributes:
        engagement_score: 0-100 heuristic of per-user activity.
        trend: Direction of daily activity across the reporting window.
        distinct_active_users: Distinct members with any engagement row in
            the whole input (exported as ``activeUsers``).
        heatmap_data: Daily series over the reporting window.
    """
    engagement_score: float = Field(..., ge=0, le=100)
    trend: Trend
    total_messages: int = Field(..., ge=0)
    total_interactions: int = Field(..., ge=0)
    distinct_active_users: int = Field(..., ge=0, alias="activeUsers")
    heatmap_data: list[DailyEngagementPoint]

"""Normalize input records into pandas DataFrames for aggregation.

The engine accepts rows as pydantic models, plain mappings, pandas DataFrames
or Dask DataFrames (computed eagerly; tenant-scoped inputs are small). Every
frame leaves this module with a stable schema:

- numeric columns safe-parsed with `numeric.safe_float` (no leading number -> 0)
- timestamp columns parsed to naive UTC (unparseable -> NaT)
- identifier columns as strings (missing stays missing)
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

import pandas as pd
import dask.dataframe as dd
from pydantic import BaseModel

from creator_analytics.models import DateRangeFilter
from creator_analytics.numeric import safe_float, safe_int

MEMBER_COLUMNS = ["id", "joined_at", "status", "lifetime_value", "updated_at"]
PURCHASE_COLUMNS = ["id", "member_id", "product_id", "product_name", "amount", "purchased_at"]
ENGAGEMENT_COLUMNS = ["member_id", "date", "messages_sent", "messages_received", "interactions"]


def to_frame(records: Any, columns: list[str]) -> pd.DataFrame:
    """Return a pandas DataFrame holding exactly ``columns``.

    Args:
        records: Iterable of pydantic models / mappings, or a pandas or Dask
            DataFrame.
        columns: Columns to keep; missing ones are added as empty.

    Returns:
        A new DataFrame with a fresh RangeIndex.
    """
    if isinstance(records, dd.DataFrame):
        pdf = records.compute()
    elif isinstance(records, pd.DataFrame):
        pdf = records.copy()
    else:
        rows = [
            r.model_dump(mode="python") if isinstance(r, BaseModel) else dict(r)
            for r in records
        ]
        pdf = pd.DataFrame(rows)

    for col in columns:
        if col not in pdf.columns:
            pdf[col] = None
    return pdf[columns].reset_index(drop=True)


def safe_numeric(values: pd.Series) -> pd.Series:
    """Coerce a column to float with `safe_float`."""
    return values.astype(object).map(safe_float).astype(float)


def safe_counts(values: pd.Series) -> pd.Series:
    """Coerce a count column to int with `safe_int`."""
    return values.astype(object).map(safe_int).astype(int)


def to_utc_naive(values: pd.Series) -> pd.Series:
    """Parse timestamps as UTC and drop the tz so they compare with day bounds."""
    parsed = pd.to_datetime(values, errors="coerce", utc=True, format="mixed")
    return parsed.dt.tz_convert(None)


def to_day(values: pd.Series) -> pd.Series:
    """Parse timestamps and truncate them to their UTC calendar day."""
    return to_utc_naive(values).dt.normalize()


def as_key(values: pd.Series) -> pd.Series:
    """Stringify identifiers so ``1`` and ``"1"`` group together; keep missing."""
    return values.where(values.isna(), values.astype(str))


# -----------------------------
# Typed frames
# -----------------------------
def member_frame(members: Any) -> pd.DataFrame:
    pdf = to_frame(members, MEMBER_COLUMNS)
    pdf["id"] = as_key(pdf["id"])
    pdf["joined_at"] = to_utc_naive(pdf["joined_at"])
    pdf["updated_at"] = to_utc_naive(pdf["updated_at"])
    pdf["status"] = pdf["status"].fillna("").astype(str)
    pdf["lifetime_value"] = safe_numeric(pdf["lifetime_value"])
    return pdf


def purchase_frame(purchases: Any) -> pd.DataFrame:
    pdf = to_frame(purchases, PURCHASE_COLUMNS)
    pdf["member_id"] = as_key(pdf["member_id"])
    pdf["product_id"] = as_key(pdf["product_id"])
    pdf["amount"] = safe_numeric(pdf["amount"])
    pdf["purchased_at"] = to_utc_naive(pdf["purchased_at"])
    return pdf


def engagement_frame(records: Any) -> pd.DataFrame:
    pdf = to_frame(records, ENGAGEMENT_COLUMNS)
    pdf["member_id"] = as_key(pdf["member_id"])
    pdf["date"] = to_day(pdf["date"])
    for col in ("messages_sent", "messages_received", "interactions"):
        pdf[col] = safe_counts(pdf[col])
    return pdf


# -----------------------------
# Calendar
# -----------------------------
def _utc_day(value: datetime) -> pd.Timestamp:
    return pd.Timestamp(value).tz_convert(None).normalize()


def day_index(date_range: DateRangeFilter) -> pd.DatetimeIndex:
    """Every calendar day in the range, both ends included."""
    return pd.date_range(_utc_day(date_range.start_date), _utc_day(date_range.end_date), freq="D")


def month_index(date_range: DateRangeFilter) -> pd.PeriodIndex:
    """Every calendar month overlapping the range, in order."""
    return pd.period_range(
        _utc_day(date_range.start_date).to_period("M"),
        _utc_day(date_range.end_date).to_period("M"),
        freq="M",
    )


def utc_instant(value: datetime | None) -> pd.Timestamp:
    """Return ``value`` (or now, when omitted) as a naive UTC timestamp."""
    if value is None:
        return pd.Timestamp.now(tz="UTC").tz_convert(None)
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        return ts
    return ts.tz_convert(None)

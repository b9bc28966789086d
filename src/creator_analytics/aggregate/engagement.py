"""Engagement aggregation: daily series, score and trend.

Two "active users" counts exist here and are kept apart on purpose:

- `DailyEngagementPoint.active_users` counts engagement rows on a day
  (one row per member per day).
- `EngagementSummary.distinct_active_users` counts distinct members across
  the whole input, which is not restricted to the reporting window.
"""
from __future__ import annotations

import logging
from typing import Any

from creator_analytics.aggregate.frames import day_index, engagement_frame
from creator_analytics.models import (
    DailyEngagementPoint,
    DateRangeFilter,
    EngagementSummary,
    Trend,
)
from creator_analytics.numeric import ratio

log = logging.getLogger(__name__)

# Per-user activity that maps to a score of 100. Heuristic, not fitted.
ENGAGEMENT_SCORE_SCALE = 20.0
# Half-over-half change (percent) needed to call a trend.
TREND_THRESHOLD_PERCENT = 5.0


def compute_daily_engagement(records: Any, date_range: DateRangeFilter) -> list[DailyEngagementPoint]:
    """Return one engagement point per day of ``date_range``.

    Args:
        records: Engagement rows (models, mappings or a DataFrame).
        date_range: Reporting window.

    Returns:
        List of `DailyEngagementPoint`, zero-filled on days without rows.
    """
    e = engagement_frame(records)
    messages = e["messages_sent"] + e["messages_received"]

    points = []
    for day in day_index(date_range):
        on_day = e["date"] == day
        total_messages = int(messages[on_day].sum())
        total_interactions = int(e.loc[on_day, "interactions"].sum())
        rows = int(on_day.sum())
        points.append(
            DailyEngagementPoint(
                date=day.date(),
                total_messages=total_messages,
                total_interactions=total_interactions,
                active_users=rows,
                average_engagement_per_user=ratio(total_messages + total_interactions, rows),
            )
        )

    log.debug("Computed %d daily engagement points from %d rows", len(points), len(e))
    return points


def engagement_score(total_messages: int, total_interactions: int, users: int) -> float:
    """Map per-user messages + interactions onto 0-100."""
    per_user = ratio(total_messages, users) + ratio(total_interactions, users)
    return min(100.0, per_user / ENGAGEMENT_SCORE_SCALE * 100.0)


def engagement_trend(daily: list[DailyEngagementPoint]) -> Trend:
    """Compare mean daily activity of the second half of ``daily`` with the first.

    The series is split at ``len(daily) // 2``. A change strictly above
    +5% is ``"up"``, strictly below -5% is ``"down"``. A first half with no
    activity gives ``"flat"``.
    """
    activity = [pt.total_messages + pt.total_interactions for pt in daily]
    mid = len(activity) // 2
    first, second = activity[:mid], activity[mid:]

    first_avg = ratio(sum(first), len(first))
    second_avg = ratio(sum(second), len(second))
    if first_avg == 0:
        return "flat"

    change = (second_avg - first_avg) / first_avg * 100.0
    if change > TREND_THRESHOLD_PERCENT:
        return "up"
    if change < -TREND_THRESHOLD_PERCENT:
        return "down"
    return "flat"


def compute_engagement_summary(records: Any, date_range: DateRangeFilter) -> EngagementSummary:
    """Return engagement totals, score and trend.

    Totals and the distinct user count cover every row passed in; only the
    daily series (and therefore the trend) is bounded by ``date_range``.
    """
    e = engagement_frame(records)
    daily = compute_daily_engagement(e, date_range)

    total_messages = int((e["messages_sent"] + e["messages_received"]).sum())
    total_interactions = int(e["interactions"].sum())
    distinct_users = int(e["member_id"].nunique())

    summary = EngagementSummary(
        engagement_score=engagement_score(total_messages, total_interactions, distinct_users),
        trend=engagement_trend(daily),
        total_messages=total_messages,
        total_interactions=total_interactions,
        distinct_active_users=distinct_users,
        heatmap_data=daily,
    )
    log.debug(
        "Engagement score=%.1f trend=%s users=%d",
        summary.engagement_score,
        summary.trend,
        distinct_users,
    )
    return summary

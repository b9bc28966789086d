"""Resolve dashboard date-range presets into concrete windows.

Presets match the dashboard selector: ``7d``, ``30d``, ``90d``, ``1y`` and
``all``. ``all`` is a bounded ten-year lookback.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Literal

import pandas as pd

from creator_analytics.aggregate.frames import utc_instant
from creator_analytics.models import DateRangeFilter

log = logging.getLogger(__name__)

DateRangePreset = Literal["7d", "30d", "90d", "1y", "all"]

DEFAULT_PRESET = "30d"

PRESET_LOOKBACK: dict[str, pd.DateOffset] = {
    "7d": pd.DateOffset(days=7),
    "30d": pd.DateOffset(days=30),
    "90d": pd.DateOffset(days=90),
    "1y": pd.DateOffset(years=1),
    "all": pd.DateOffset(years=10),
}


def resolve_date_range(preset: str, as_of: datetime | None = None) -> DateRangeFilter:
    """Return the window for ``preset`` ending on the day of ``as_of``.

    The window ends at the last instant of the reference day and starts at
    midnight of the day reached by stepping the preset back from that end.
    Unknown presets fall back to ``30d``.

    Args:
        preset: One of `PRESET_LOOKBACK`'s keys.
        as_of: Reference instant (UTC); defaults to now.

    Returns:
        A `DateRangeFilter` with UTC bounds.
    """
    if preset not in PRESET_LOOKBACK:
        log.warning("Unknown date range preset %r; using %s", preset, DEFAULT_PRESET)
        preset = DEFAULT_PRESET

    day = utc_instant(as_of).normalize()
    end = day + pd.Timedelta(days=1) - pd.Timedelta(microseconds=1)
    start = (end - PRESET_LOOKBACK[preset]).normalize()

    return DateRangeFilter(
        start_date=start.tz_localize("UTC").to_pydatetime(),
        end_date=end.tz_localize("UTC").to_pydatetime(),
    )

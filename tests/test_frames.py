from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pandas as pd
import dask.dataframe as dd

from creator_analytics.aggregate.frames import (
    PURCHASE_COLUMNS,
    day_index,
    month_index,
    purchase_frame,
    to_frame,
    utc_instant,
)
from creator_analytics.models import DateRangeFilter, Purchase

UTC = timezone.utc


def test_to_frame_accepts_models_dicts_and_frames() -> None:
    model = Purchase(
        id="p1",
        member_id="m1",
        product_id="x",
        amount=5,
        purchased_at=datetime(2026, 3, 1, tzinfo=UTC),
    )
    as_dict = {"id": "p2", "member_id": "m2", "amount": "7"}

    from_rows = to_frame([model, as_dict], PURCHASE_COLUMNS)
    assert list(from_rows.columns) == PURCHASE_COLUMNS
    assert len(from_rows) == 2

    pdf = pd.DataFrame([as_dict])
    from_dask = to_frame(dd.from_pandas(pdf, npartitions=1), PURCHASE_COLUMNS)
    assert from_dask.loc[0, "id"] == "p2"
    assert from_dask["purchased_at"].isna().all()


def test_to_frame_empty_input_has_schema() -> None:
    out = to_frame([], PURCHASE_COLUMNS)
    assert out.empty
    assert list(out.columns) == PURCHASE_COLUMNS


def test_purchase_frame_coerces_amounts_and_timestamps() -> None:
    out = purchase_frame([
        {"member_id": 1, "amount": "12.5", "purchased_at": "2026-03-01T23:30:00-05:00"},
        {"member_id": "1", "amount": "oops", "purchased_at": "not a date"},
    ])
    assert out["amount"].tolist() == [12.5, 0.0]
    assert out.loc[0, "purchased_at"] == pd.Timestamp("2026-03-02 04:30:00")
    assert pd.isna(out.loc[1, "purchased_at"])
    assert out["member_id"].nunique() == 1


def test_day_index_is_inclusive() -> None:
    r = DateRangeFilter(
        start_date=datetime(2026, 3, 1, 18, 0, tzinfo=UTC),
        end_date=datetime(2026, 3, 3, 1, 0, tzinfo=UTC),
    )
    days = day_index(r)
    assert [d.day for d in days] == [1, 2, 3]


def test_month_index_covers_overlapping_months() -> None:
    r = DateRangeFilter(
        start_date=datetime(2025, 12, 20, tzinfo=UTC),
        end_date=datetime(2026, 2, 1, tzinfo=UTC),
    )
    assert [p.strftime("%Y-%m") for p in month_index(r)] == ["2025-12", "2026-01", "2026-02"]


def test_utc_instant() -> None:
    aware = datetime(2026, 3, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
    assert utc_instant(aware) == pd.Timestamp("2026-03-01 10:00:00")
    assert utc_instant(datetime(2026, 3, 1, 12, 0)) == pd.Timestamp("2026-03-01 12:00:00")
    assert utc_instant(None).tzinfo is None


def test_frame_amounts_parse_like_the_models() -> None:
    raw = ["12abc", True, "  4.5 USD", None, "n/a"]
    rows = [
        {"id": str(i), "member_id": "m1", "product_id": "x", "amount": v,
         "purchased_at": datetime(2026, 3, 1, tzinfo=UTC)}
        for i, v in enumerate(raw)
    ]
    out = purchase_frame(rows)
    assert out["amount"].tolist() == [12.0, 0.0, 4.5, 0.0, 0.0]
    assert out["amount"].tolist() == [Purchase.model_validate(r).amount for r in rows]

from __future__ import annotations

from datetime import datetime, timezone

from creator_analytics.aggregate.build_metrics import compute_metrics_summary
from creator_analytics.ingest.fetch_records import (
    ENGAGEMENT_COLLECTION,
    MEMBERS_COLLECTION,
    PURCHASES_COLLECTION,
    fetch_company_records,
    load_collection_to_ddf,
)

from fakes import FakeCollection, FakeDB

UTC = timezone.utc


def _member(i: int, company: str) -> dict:
    return {
        "_id": f"oid-{i}",
        "id": f"m{i}",
        "company_id": company,
        "joined_at": datetime(2026, 3, i, tzinfo=UTC),
        "status": "active",
        "lifetime_value": 10,
    }


def test_load_collection_batches_and_drops_object_ids() -> None:
    coll = FakeCollection("members", [_member(i, "c1") for i in range(1, 6)])
    pdf = load_collection_to_ddf(coll, {"company_id": "c1"}, batch_size=2).compute()
    assert len(pdf) == 5
    assert "_id" not in pdf.columns


def test_load_collection_empty() -> None:
    pdf = load_collection_to_ddf(FakeCollection("members"), {"company_id": "c1"}).compute()
    assert pdf.empty


def test_fetch_is_scoped_to_company_and_feeds_the_engine() -> None:
    db = FakeDB()
    db[MEMBERS_COLLECTION] = FakeCollection(
        MEMBERS_COLLECTION,
        [_member(1, "c1"), _member(2, "c1"), _member(3, "other")],
    )
    db[PURCHASES_COLLECTION] = FakeCollection(PURCHASES_COLLECTION, [
        {"id": "p1", "company_id": "c1", "member_id": "m1", "product_id": "x",
         "amount": "9.5", "purchased_at": datetime(2026, 3, 2, tzinfo=UTC)},
    ])
    db[ENGAGEMENT_COLLECTION] = FakeCollection(ENGAGEMENT_COLLECTION)

    records = fetch_company_records(db, "c1")
    assert records.company_id == "c1"

    summary = compute_metrics_summary(
        records.members, records.purchases, as_of=datetime(2026, 3, 10, tzinfo=UTC)
    )
    assert summary.total_members == 2
    assert summary.total_revenue == 9.5
    assert records.engagement.compute().empty

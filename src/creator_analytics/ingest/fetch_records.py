"""Read a tenant's member, purchase and engagement rows from MongoDB.

Every read is scoped by ``company_id`` and returns the full set (no
pagination); the aggregation engine assumes it sees every relevant row.
Rows land in Dask DataFrames built from batched cursor reads.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List
from typing import cast, Any as TypingAny

import pandas as pd
import dask.dataframe as dd

log = logging.getLogger(__name__)

MEMBERS_COLLECTION = "members"
PURCHASES_COLLECTION = "purchases"
ENGAGEMENT_COLLECTION = "member_engagement"

PARTITION_ROWS = 200_000


@dataclass(frozen=True)
class CompanyRecords:
    """All rows the dashboard needs for one tenant.

    Attributes:
        company_id: Tenant identifier the rows were scoped to.
        members: Dask DataFrame of member rows.
        purchases: Dask DataFrame of purchase rows.
        engagement: Dask DataFrame of engagement rows.
    """
    company_id: str
    members: Any
    purchases: Any
    engagement: Any


def load_collection_to_ddf(
    collection: Any,
    query: dict[str, Any],
    batch_size: int = 50_000,
) -> Any:
    """Load matching documents into a Dask DataFrame using batched reads.

    Args:
        collection: PyMongo collection (or anything with a compatible `find`).
        query: Filter document.
        batch_size: Cursor batch size and pandas buffer size.

    Returns:
        Dask DataFrame; a single empty partition when nothing matches.
    """
    cursor = collection.find(query, {"_id": False}).batch_size(batch_size)

    pdf_batches: List[pd.DataFrame] = []
    buffer: List[dict[str, Any]] = []

    for doc in cursor:
        buffer.append(doc)
        if len(buffer) >= batch_size:
            pdf_batches.append(pd.DataFrame(buffer))
            buffer.clear()

    if buffer:
        pdf_batches.append(pd.DataFrame(buffer))

    dd_mod = cast(TypingAny, dd)
    if not pdf_batches:
        return dd_mod.from_pandas(pd.DataFrame(), npartitions=1)

    pdf = pd.concat(pdf_batches, ignore_index=True)
    nparts = max(1, len(pdf) // PARTITION_ROWS)

    log.info("Loaded %d documents from %s into %d partitions", len(pdf), collection.name, nparts)
    return dd_mod.from_pandas(pdf, npartitions=nparts)


def fetch_company_records(db: Any, company_id: str) -> CompanyRecords:
    """Read members, purchases and engagement rows for ``company_id``.

    Args:
        db: PyMongo Database (or a mapping of collection name to collection).
        company_id: Tenant identifier.

    Returns:
        `CompanyRecords` with one Dask DataFrame per table.
    """
    query = {"company_id": company_id}
    log.info("Fetching dashboard records for company=%s", company_id)

    return CompanyRecords(
        company_id=company_id,
        members=load_collection_to_ddf(db[MEMBERS_COLLECTION], query),
        purchases=load_collection_to_ddf(db[PURCHASES_COLLECTION], query),
        engagement=load_collection_to_ddf(db[ENGAGEMENT_COLLECTION], query),
    )

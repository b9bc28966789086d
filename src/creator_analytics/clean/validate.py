"""Validation utilities for fetched tenant rows.

Each Dask partition is validated independently against a Pydantic input
model (`Member`, `Purchase`, `EngagementRecord`). Numeric fields are
safe-parsed by the models; anything else that fails validation counts as a
bad row.
"""
from __future__ import annotations

import logging
from typing import Any, cast

import pandas as pd
from dask import delayed, compute  # type: ignore[attr-defined]
from pydantic import BaseModel, ValidationError

log = logging.getLogger(__name__)


def _clean_value(value: Any) -> Any:
    # pandas uses NaN/NaT for missing cells; pydantic expects None
    if value is None:
        return None
    try:
        return None if pd.isna(value) else value
    except (TypeError, ValueError):
        return value


def validate_partition(pdf: pd.DataFrame, model: type[BaseModel]) -> tuple[list[dict[str, Any]], int]:
    """Validate a pandas partition of records using Pydantic.

    Args:
        pdf: Pandas DataFrame for the partition.
        model: Pydantic model the rows must satisfy.

    Returns:
        A tuple of (list_of_validated_records, bad_count).
    """
    good: list[dict[str, Any]] = []
    bad = 0

    if pdf is None or len(pdf) == 0:
        return good, bad

    for rec in pdf.to_dict(orient="records"):
        rec = {k: _clean_value(v) for k, v in rec.items()}
        try:
            m = model.model_validate(rec)
            good.append(m.model_dump(mode="python"))
        except ValidationError:
            bad += 1

    return good, bad


def validate_ddf(ddf: Any, model: type[BaseModel]) -> tuple[list[dict[str, Any]], int]:
    """Validate every partition of a Dask DataFrame.

    Uses `to_delayed()` so each partition is validated as its own task.

    Returns:
        A tuple of (validated_records, bad_count) across all partitions.
    """
    tasks = [delayed(validate_partition)(part, model) for part in ddf.to_delayed()]
    results = cast(Any, compute)(*tasks)

    good: list[dict[str, Any]] = []
    bad = 0
    for part_good, part_bad in results:
        good.extend(part_good)
        bad += part_bad

    if bad:
        log.warning("%s validation dropped %d of %d rows", model.__name__, bad, bad + len(good))
    else:
        log.info("%s validation passed: %d rows", model.__name__, len(good))
    return good, bad

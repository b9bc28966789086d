"""Serialize dashboard records to JSON or CSV.

One output row per record; columns are the records' camelCase field names.
Nested lists (the engagement summary's daily series) are dropped from CSV
output, which is a flat table. An empty metric set still exports its header
when the record model is known.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal, Sequence, get_origin

import pandas as pd
from pydantic import BaseModel

ExportFormat = Literal["json", "csv"]


def _as_list(records: BaseModel | Sequence[BaseModel]) -> list[BaseModel]:
    if isinstance(records, BaseModel):
        return [records]
    return list(records)


def flat_columns(model: type[BaseModel]) -> list[str]:
    """Return the exported (aliased) names of ``model``'s non-list fields."""
    return [
        field.alias or name
        for name, field in model.model_fields.items()
        if get_origin(field.annotation) is not list
    ]


def records_to_frame(
    records: BaseModel | Sequence[BaseModel],
    model: type[BaseModel] | None = None,
) -> pd.DataFrame:
    """Return records as a DataFrame of JSON-ready values (ISO dates).

    Args:
        records: One record or a sequence of records of the same model.
        model: Record model; inferred from the first record when omitted.
    """
    items = _as_list(records)
    if model is None and items:
        model = type(items[0])
    rows = [r.model_dump(mode="json", by_alias=True) for r in items]
    if model is None:
        return pd.DataFrame(rows)
    return pd.DataFrame(rows, columns=flat_columns(model))


def records_to_csv(
    records: BaseModel | Sequence[BaseModel],
    model: type[BaseModel] | None = None,
) -> str:
    return records_to_frame(records, model).to_csv(index=False)


def records_to_json(records: BaseModel | Sequence[BaseModel]) -> str:
    """JSON text; a single record is emitted as an object, sequences as arrays."""
    if isinstance(records, BaseModel):
        return records.model_dump_json(by_alias=True, indent=2)
    return json.dumps([r.model_dump(mode="json", by_alias=True) for r in records], indent=2)


def write_export(
    records: BaseModel | Sequence[BaseModel],
    fmt: ExportFormat,
    out_path: Path | None = None,
    model: type[BaseModel] | None = None,
) -> str:
    """Render records in ``fmt`` and optionally write them to ``out_path``.

    Returns:
        The rendered text.

    Raises:
        ValueError: for an unsupported format.
    """
    if fmt == "json":
        text = records_to_json(records)
    elif fmt == "csv":
        text = records_to_csv(records, model)
    else:
        raise ValueError(f"Unsupported export format: {fmt}")

    if out_path is not None:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text, encoding="utf-8")
    return text

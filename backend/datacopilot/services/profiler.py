"""
Column Profiler

Builds one ColumnProfile per header position (inferred type + missing
count) and a dataset-level summary. Runs entirely locally, in a single
pass over each column.
"""

import logging
from typing import List, Optional, Sequence

import pandas as pd

from ..core.types import ColumnProfile, ColumnType, DatasetProfile, DatasetSummary, Row
from .type_inference import DEFAULT_SAMPLE_SIZE, infer_column_type

logger = logging.getLogger("datacopilot.profiler")


def column_values(rows: Sequence[Row], index: int) -> List[str]:
    """Values at ``index`` across all rows; absent cells become empty text."""
    return [str(row[index]) if index < len(row) and row[index] is not None else "" for row in rows]


def profile(
    headers: Sequence[str],
    rows: Sequence[Row],
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> DatasetProfile:
    """
    Profile every column of a parsed table.

    For each header position produces the inferred type and the number of
    blank cells, then aggregates per-type column counts and total missing.
    """
    logger.info("profile: %d columns x %d rows", len(headers), len(rows))

    columns: List[ColumnProfile] = []
    type_counts = {t: 0 for t in ColumnType}
    total_missing = 0

    for col, header in enumerate(headers):
        values = column_values(rows, col)
        series = pd.Series(values, dtype="object")
        missing = int(series.str.strip().eq("").sum()) if len(series) else 0
        total_missing += missing

        inferred = infer_column_type(values, sample_size)
        type_counts[inferred] += 1

        name = header if header is not None else f"Column {col + 1}"
        columns.append(ColumnProfile(name=name, inferred_type=inferred, missing_count=missing))
        logger.debug("  profiled '%s' -> type=%s, missing=%d", name, inferred.value, missing)

    summary = DatasetSummary(
        row_count=len(rows),
        column_count=len(headers),
        numeric_columns=type_counts[ColumnType.NUMBER],
        categorical_columns=type_counts[ColumnType.STRING],
        date_columns=type_counts[ColumnType.DATE],
        total_missing=total_missing,
    )
    return DatasetProfile(columns=tuple(columns), summary=summary)


def categorical_column_names(dataset_profile: DatasetProfile) -> List[str]:
    """Names of the string columns, in header order (the chart choices)."""
    return [c.name for c in dataset_profile.columns if c.inferred_type is ColumnType.STRING]


def default_category_column(dataset_profile: DatasetProfile) -> Optional[str]:
    names = categorical_column_names(dataset_profile)
    return names[0] if names else None

"""
Column Type Inference

Classifies a column as number, date or string by inspecting a sample of
its non-blank values. Runs entirely locally.
"""

import re
from typing import List, Sequence

import pandas as pd

from ..core.types import ColumnType

DEFAULT_SAMPLE_SIZE = 50

_NUMBER_PATTERN = re.compile(r"-?\d+(\.\d+)?", re.ASCII)

# Relative words pandas resolves to the current time; not calendar dates
_RELATIVE_DATE_WORDS = frozenset({"now", "today"})


def is_blank(value: str) -> bool:
    return value.strip() == ""


def sample_values(values: Sequence[str], sample_size: int = DEFAULT_SAMPLE_SIZE) -> List[str]:
    """First ``sample_size`` non-blank values, untrimmed."""
    sample: List[str] = []
    for value in values:
        if is_blank(value):
            continue
        sample.append(value)
        if len(sample) >= sample_size:
            break
    return sample


def looks_numeric(value: str) -> bool:
    # A single decimal comma counts as a decimal point
    return _NUMBER_PATTERN.fullmatch(value.replace(",", ".", 1)) is not None


def all_dates(values: Sequence[str]) -> bool:
    """True when every value parses under the lenient mixed-format date parser."""
    if not values:
        return False
    if any(v.strip().lower() in _RELATIVE_DATE_WORDS for v in values):
        return False
    parsed = pd.to_datetime(
        pd.Series(list(values), dtype="object"),
        errors="coerce",
        format="mixed",
        utc=True,
    )
    return bool(parsed.notna().all())


def infer_column_type(values: Sequence[str], sample_size: int = DEFAULT_SAMPLE_SIZE) -> ColumnType:
    """
    Infer the type of a column from its raw text values.

    Only the first ``sample_size`` non-blank values are inspected, so a
    column whose later values stop being numeric is still classified as a
    number. Numeric matching runs on the untrimmed text.
    """
    sample = sample_values(values, sample_size)
    if not sample:
        return ColumnType.STRING

    if all(looks_numeric(v) for v in sample):
        return ColumnType.NUMBER

    if all_dates(sample):
        return ColumnType.DATE

    return ColumnType.STRING

"""
Core data model shared by the profiler, aggregator and insight service.

Everything here is an immutable snapshot: a new upload produces new
objects rather than mutating old ones.
"""

import enum
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

# Header names and rows as parsed from the delimited file
Row = Sequence[str]


class ColumnType(str, enum.Enum):
    """Inferred type of a column."""
    NUMBER = "number"
    DATE = "date"
    STRING = "string"


@dataclass(frozen=True)
class ColumnProfile:
    """Per-column inferred type plus missing-value count."""
    name: str
    inferred_type: ColumnType
    missing_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.inferred_type.value,
            "missing": self.missing_count,
        }


@dataclass(frozen=True)
class DatasetSummary:
    """Whole-table aggregate derived from all column profiles."""
    row_count: int
    column_count: int
    numeric_columns: int
    categorical_columns: int
    date_columns: int
    total_missing: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "rowCount": self.row_count,
            "columnCount": self.column_count,
            "numericColumns": self.numeric_columns,
            "categoricalColumns": self.categorical_columns,
            "dateColumns": self.date_columns,
            "totalMissing": self.total_missing,
        }


@dataclass(frozen=True)
class DatasetProfile:
    columns: Tuple[ColumnProfile, ...]
    summary: DatasetSummary

    def column_dicts(self) -> List[Dict[str, Any]]:
        return [c.to_dict() for c in self.columns]


@dataclass(frozen=True)
class CategoryTally:
    """Frequency of one distinct value within a column."""
    category: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"category": self.category, "count": self.count}

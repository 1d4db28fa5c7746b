"""
Category Aggregator

Counts occurrences of each distinct value in one column and keeps the
largest entries, ready to be drawn as a bar chart.
"""

import logging
from collections import Counter
from typing import List, Sequence

from ..core.types import CategoryTally, Row

logger = logging.getLogger("datacopilot.aggregation")

EMPTY_CATEGORY = "(empty)"
DEFAULT_TOP_N = 15


def aggregate_category(
    headers: Sequence[str],
    rows: Sequence[Row],
    column_name: str,
    top_n: int = DEFAULT_TOP_N,
) -> List[CategoryTally]:
    """
    Tally the values of ``column_name`` across all rows.

    Blank cells fold into the ``(empty)`` bucket. Results are sorted by
    count descending; ties keep the order in which values were first seen.
    An unknown column yields an empty list.
    """
    try:
        index = list(headers).index(column_name)
    except ValueError:
        logger.debug("aggregate_category: column '%s' not in headers", column_name)
        return []

    counts: Counter = Counter()
    for row in rows:
        raw = row[index] if index < len(row) and row[index] is not None else ""
        counts[str(raw).strip() or EMPTY_CATEGORY] += 1

    # Counter.most_common is a stable sort over insertion order
    return [CategoryTally(category=k, count=v) for k, v in counts.most_common(max(top_n, 0))]

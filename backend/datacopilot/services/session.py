"""
Analysis Session

Holds the derived state of one user's current upload: parsed table,
profile, chart selection and AI insights. Each upload swaps in a fresh
snapshot in one step, so nothing computed for an older file leaks into
the new one. ``build_snapshot`` is the single upload pipeline shared by
the session and the upload endpoint.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..core.config import Settings, settings as default_settings
from ..core.types import CategoryTally, DatasetProfile
from .aggregation import aggregate_category
from .ingestion import ParsedTable, parse_table
from .insights import InsightError, InsightResult, InsightService
from .profiler import categorical_column_names, default_category_column, profile

logger = logging.getLogger("datacopilot.session")


class InsightsPendingError(RuntimeError):
    """An insight request is already in flight for this session."""


@dataclass(frozen=True)
class DatasetSnapshot:
    file_name: str
    table: ParsedTable
    profile: DatasetProfile
    selected_column: str = ""
    chart_data: List[CategoryTally] = field(default_factory=list)

    @property
    def categorical_columns(self) -> List[str]:
        return categorical_column_names(self.profile)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fileName": self.file_name,
            "headers": self.table.headers,
            "rows": self.table.rows,
            "preview": self.table.preview,
            "delimiter": self.table.delimiter,
            "totalDataRows": self.table.total_data_rows,
            "truncated": self.table.truncated,
            "columnSummaries": self.profile.column_dicts(),
            "datasetSummary": self.profile.summary.to_dict(),
            "categoricalColumns": self.categorical_columns,
            "selectedCategoryColumn": self.selected_column or None,
            "chartData": [t.to_dict() for t in self.chart_data],
        }


def build_snapshot(file_name: str, raw: bytes, settings: Settings = default_settings) -> DatasetSnapshot:
    """
    Parse, profile and chart an upload.

    The first string column is pre-selected for the chart. Raises
    EmptyFileError when the file holds no rows.
    """
    table = parse_table(raw, settings.MAX_DATA_ROWS, settings.PREVIEW_ROWS)
    dataset_profile = profile(table.headers, table.rows, settings.TYPE_SAMPLE_SIZE)
    column = default_category_column(dataset_profile) or ""
    chart = (
        aggregate_category(table.headers, table.rows, column, settings.CATEGORY_TOP_N)
        if column else []
    )
    logger.info("Loaded '%s': %d rows, %d columns", file_name,
                dataset_profile.summary.row_count, dataset_profile.summary.column_count)
    return DatasetSnapshot(
        file_name=file_name,
        table=table,
        profile=dataset_profile,
        selected_column=column,
        chart_data=chart,
    )


@dataclass
class AnalysisSession:
    insight_service: Optional[InsightService] = None
    settings: Settings = field(default_factory=lambda: default_settings)

    snapshot: Optional[DatasetSnapshot] = None
    selected_column: str = ""
    chart_data: List[CategoryTally] = field(default_factory=list)
    insights: Optional[InsightResult] = None
    insights_error: Optional[str] = None
    insights_pending: bool = False

    def load_file(self, file_name: str, raw: bytes) -> DatasetSnapshot:
        """Parse and profile an upload, replacing all derived state."""
        snapshot = build_snapshot(file_name, raw, self.settings)

        self.snapshot = snapshot
        self.selected_column = snapshot.selected_column
        self.chart_data = list(snapshot.chart_data)
        self.insights = None
        self.insights_error = None
        return snapshot

    def select_category_column(self, column: str) -> List[CategoryTally]:
        self.selected_column = column
        if not column or self.snapshot is None or not self.snapshot.table.rows:
            self.chart_data = []
        else:
            self.chart_data = self._tally(self.snapshot, column)
        return self.chart_data

    def _tally(self, snapshot: DatasetSnapshot, column: str) -> List[CategoryTally]:
        return aggregate_category(
            snapshot.table.headers, snapshot.table.rows, column, self.settings.CATEGORY_TOP_N
        )

    async def generate_insights(self) -> Optional[InsightResult]:
        """
        Ask the model for a summary of the current snapshot.

        Returns None when no data is loaded. A second call while one is in
        flight raises InsightsPendingError; the first request is not
        cancelled.
        """
        snapshot = self.snapshot
        if snapshot is None or not snapshot.profile.columns:
            return None
        if self.insights_pending:
            raise InsightsPendingError("Insight generation already in progress")
        if self.insight_service is None:
            raise RuntimeError("No insight service configured")

        self.insights_pending = True
        self.insights_error = None
        self.insights = None
        try:
            result = await self.insight_service.generate(
                snapshot.profile.summary,
                snapshot.profile.columns,
                snapshot.table.preview,
            )
        except InsightError as exc:
            if self.snapshot is snapshot:
                self.insights_error = exc.message
            raise
        finally:
            self.insights_pending = False

        if self.snapshot is not snapshot:
            logger.info("Discarding insights for superseded upload '%s'", snapshot.file_name)
            return None
        self.insights = result
        return result

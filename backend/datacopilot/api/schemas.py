"""
Request bodies for the DataCopilot API.

Field names follow the camelCase wire format used by the browser client.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.types import ColumnProfile, ColumnType, DatasetSummary


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ColumnSummaryIn(_WireModel):
    name: str
    type: ColumnType
    missing: int = Field(..., ge=0)

    def to_profile(self) -> ColumnProfile:
        return ColumnProfile(name=self.name, inferred_type=self.type, missing_count=self.missing)


class DatasetSummaryIn(_WireModel):
    row_count: int = Field(..., alias="rowCount", ge=0)
    column_count: int = Field(..., alias="columnCount", ge=0)
    numeric_columns: int = Field(..., alias="numericColumns", ge=0)
    categorical_columns: int = Field(..., alias="categoricalColumns", ge=0)
    date_columns: int = Field(..., alias="dateColumns", ge=0)
    total_missing: int = Field(..., alias="totalMissing", ge=0)

    def to_summary(self) -> DatasetSummary:
        return DatasetSummary(**self.model_dump())


class AnalyzeRequest(_WireModel):
    # Optional so that a missing section is reported as an input error
    # by the insight service rather than a generic validation failure
    dataset_summary: Optional[DatasetSummaryIn] = Field(None, alias="datasetSummary")
    column_summaries: Optional[List[ColumnSummaryIn]] = Field(None, alias="columnSummaries")
    sample_rows: Optional[List[List[str]]] = Field(None, alias="sampleRows")


class TableIn(_WireModel):
    headers: List[str]
    rows: List[List[str]] = Field(default_factory=list)


class CategoryTallyRequest(TableIn):
    column: str

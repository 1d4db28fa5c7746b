"""
Analyze API

Forwards the dataset statistics to the language model and returns its
overview, key findings and recommendations.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..services.insights import InsightError, InsightService
from .deps import get_insight_service
from .schemas import AnalyzeRequest

logger = logging.getLogger("datacopilot.api.analyze")

router = APIRouter(tags=["Analyze"])


@router.post("/analyze")
async def analyze_dataset(
    payload: AnalyzeRequest,
    service: InsightService = Depends(get_insight_service),
):
    """Generate an AI summary from a dataset summary, column summaries and sample rows."""
    summary = payload.dataset_summary.to_summary() if payload.dataset_summary else None
    columns = (
        [c.to_profile() for c in payload.column_summaries]
        if payload.column_summaries is not None else None
    )

    try:
        result = await service.generate(summary, columns, payload.sample_rows)
    except InsightError as exc:
        logger.warning("Analyze failed (%s): %s", exc.kind, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    return result.to_dict()

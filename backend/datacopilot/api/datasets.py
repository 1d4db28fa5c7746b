"""
Datasets API

Upload a delimited file to get its preview, column profile, dataset
summary and a default category chart. Profiling and tallying are also
exposed on their own for clients that already hold the parsed rows.
Nothing is stored server-side.
"""

from pathlib import PurePath

from fastapi import APIRouter, File, HTTPException, UploadFile

from ..core.config import settings
from ..services.aggregation import aggregate_category
from ..services.ingestion import EmptyFileError
from ..services.profiler import profile
from ..services.session import build_snapshot
from .schemas import CategoryTallyRequest, TableIn

router = APIRouter(tags=["Datasets"])


def _check_extension(filename: str) -> None:
    suffix = PurePath(filename or "").suffix.lower().lstrip(".")
    if suffix not in settings.ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type '.{suffix}'. Allowed: {', '.join(settings.ALLOWED_EXTENSIONS)}",
        )


@router.post("/datasets")
async def upload_dataset(file: UploadFile = File(...)):
    """Parse and profile an uploaded CSV/TSV file."""
    _check_extension(file.filename)

    max_bytes = settings.MAX_UPLOAD_MB * 1024 * 1024
    raw = await file.read(max_bytes + 1)
    if len(raw) > max_bytes:
        raise HTTPException(status_code=413, detail=f"File exceeds {settings.MAX_UPLOAD_MB} MB limit")

    try:
        snapshot = build_snapshot(file.filename, raw, settings)
    except EmptyFileError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    return snapshot.to_dict()


@router.post("/profile")
async def profile_table(table: TableIn):
    """Profile already-parsed rows."""
    dataset_profile = profile(table.headers, table.rows, settings.TYPE_SAMPLE_SIZE)
    return {
        "columnSummaries": dataset_profile.column_dicts(),
        "datasetSummary": dataset_profile.summary.to_dict(),
    }


@router.post("/category-tally")
async def category_tally(request: CategoryTallyRequest):
    """Top category counts for one column; unknown columns give an empty list."""
    tallies = aggregate_category(request.headers, request.rows, request.column, settings.CATEGORY_TOP_N)
    return {
        "column": request.column,
        "tallies": [t.to_dict() for t in tallies],
    }

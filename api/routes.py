"""
FastAPI routes for server content comparison.

Thin routes that delegate to the classifier and the comparison store.
"""

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException
import structlog

from config import settings
from api.schemas import (
    CompareRequest,
    ComparisonDetailResponse,
    ComparisonResultResponse,
    DiffResponse,
    HealthResponse,
    SavedComparisonResponse,
)
from diffing.directory_classifier import DirectoryClassifier
from diffing.exceptions import ClassificationError, DirectoryNotFoundError
from diffing.report import diff_title, unified_diff
from storage.comparison_store import ComparisonStore

logger = structlog.get_logger()

router = APIRouter()


def get_store() -> ComparisonStore:
    """Comparison store dependency."""
    return ComparisonStore()


def _classification_failed(e: ClassificationError) -> HTTPException:
    status_code = 404 if isinstance(e, DirectoryNotFoundError) else 500
    logger.error("Classification failed", path=str(e.path), error=str(e))
    return HTTPException(status_code=status_code, detail=str(e))


@router.get("/health", response_model=HealthResponse)
async def health():
    """Liveness check."""
    return HealthResponse(status="ok", version=settings.APP_VERSION)


@router.post("/compare", response_model=ComparisonResultResponse)
def compare(request: CompareRequest, store: ComparisonStore = Depends(get_store)):
    """
    Classify a pair of directories.

    If a label is given the comparison is also saved.
    """
    try:
        result = DirectoryClassifier().classify(
            Path(request.left_dir),
            Path(request.right_dir),
            check_comments_only=request.check_comments_only,
            skip_created_scan=request.skip_created_scan
        )
    except ClassificationError as e:
        raise _classification_failed(e)

    if request.label:
        store.add(request.label, Path(request.left_dir), Path(request.right_dir), request.check_comments_only)

    return ComparisonResultResponse(**result.to_dict())


@router.get("/comparisons", response_model=list[SavedComparisonResponse])
def list_comparisons(store: ComparisonStore = Depends(get_store)):
    """List saved comparisons."""
    return [SavedComparisonResponse(**entry.to_dict()) for entry in store.list_all()]


@router.get("/comparisons/{label}", response_model=ComparisonDetailResponse)
def get_comparison(label: str, store: ComparisonStore = Depends(get_store)):
    """Re-classify a saved comparison."""
    entry = store.get(label)
    if not entry:
        raise HTTPException(status_code=404, detail="Comparison not found")

    try:
        result = store.refresh(label)
    except ClassificationError as e:
        raise _classification_failed(e)

    return ComparisonDetailResponse(
        comparison=SavedComparisonResponse(**entry.to_dict()),
        result=ComparisonResultResponse(**result.to_dict())
    )


@router.get("/comparisons/{label}/diff", response_model=DiffResponse)
def get_comparison_diff(label: str, name: str, store: ComparisonStore = Depends(get_store)):
    """Unified diff of one object of a saved comparison."""
    if not store.get(label):
        raise HTTPException(status_code=404, detail="Comparison not found")

    try:
        result = store.refresh(label)
    except ClassificationError as e:
        raise _classification_failed(e)

    found = result.find(name)
    if not found:
        raise HTTPException(status_code=404, detail="Object not found")

    bucket, record = found
    return DiffResponse(
        name=record.name,
        bucket=bucket,
        title=diff_title(record),
        diff=unified_diff(record)
    )


@router.delete("/comparisons/{label}")
def delete_comparison(label: str, store: ComparisonStore = Depends(get_store)):
    """Delete a saved comparison. The directories are left in place."""
    if not store.remove(label):
        raise HTTPException(status_code=404, detail="Comparison not found")

    return {"message": "Comparison deleted", "label": label}

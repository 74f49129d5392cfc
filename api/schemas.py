"""
Pydantic schemas for API request/response models.
"""

from typing import Optional
from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Schema for health check."""
    status: str
    version: str


class CompareRequest(BaseModel):
    """Schema for classifying a directory pair."""
    left_dir: str
    right_dir: str
    check_comments_only: bool = False
    skip_created_scan: bool = False
    # When set, the comparison is saved under this label
    label: Optional[str] = None


class MatchRecordResponse(BaseModel):
    """Schema for one classified object."""
    name: str
    path: str
    left_path: Optional[str] = None
    right_path: Optional[str] = None


class ComparisonResultResponse(BaseModel):
    """Schema for the four classification buckets."""
    missing: list[MatchRecordResponse]
    modified: list[MatchRecordResponse]
    created: list[MatchRecordResponse]
    unchanged: list[MatchRecordResponse]
    counts: dict[str, int]


class SavedComparisonResponse(BaseModel):
    """Schema for a saved comparison."""
    label: str
    left_dir: str
    right_dir: str
    check_comments_only: bool = False
    created_at: str


class ComparisonDetailResponse(BaseModel):
    """Schema for a saved comparison with a fresh classification."""
    comparison: SavedComparisonResponse
    result: ComparisonResultResponse


class DiffResponse(BaseModel):
    """Schema for the unified diff of one object."""
    name: str
    bucket: str
    title: str
    diff: list[str]

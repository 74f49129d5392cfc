"""Diffing module for export directory classification."""

from diffing.comment_classifier import CommentOnlyClassifier, DiffOperation, DiffSpan, is_comment_only
from diffing.directory_classifier import (
    ComparisonResult,
    DirectoryClassifier,
    MatchRecord,
    classify,
)
from diffing.exceptions import ClassificationError, DirectoryNotFoundError, FileReadError

__all__ = [
    "CommentOnlyClassifier",
    "DiffOperation",
    "DiffSpan",
    "is_comment_only",
    "ComparisonResult",
    "DirectoryClassifier",
    "MatchRecord",
    "classify",
    "ClassificationError",
    "DirectoryNotFoundError",
    "FileReadError",
]

"""Storage module for saved comparisons."""

from storage.comparison_store import ComparisonStore, SavedComparison

__all__ = [
    "ComparisonStore",
    "SavedComparison",
]

"""
Persistent store of named comparisons.

A comparison remembers which two directories were compared and whether
comment-only differences were folded into "unchanged", so it can be
re-classified later. Entries are kept in a single JSON file:

{
    "<label>": {
        "label": "...",
        "left_dir": "...",
        "right_dir": "...",
        "check_comments_only": false,
        "created_at": "2024-01-01T00:00:00"
    }
}
"""

import json
import threading
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional
import structlog

from config import settings
from diffing.directory_classifier import ComparisonResult, DirectoryClassifier

logger = structlog.get_logger()


@dataclass
class SavedComparison:
    """One named comparison between two directories."""
    label: str
    left_dir: str
    right_dir: str
    check_comments_only: bool = False
    created_at: str = field(default_factory=lambda: datetime.now().isoformat(timespec="seconds"))

    def directories_exist(self) -> bool:
        return Path(self.left_dir).is_dir() and Path(self.right_dir).is_dir()

    def to_dict(self) -> dict:
        return asdict(self)


class ComparisonStore:
    """JSON-file backed store of SavedComparison entries."""

    def __init__(self, path: Optional[Path] = None, classifier: Optional[DirectoryClassifier] = None):
        """
        Initialize comparison store.

        Args:
            path: JSON file holding the entries. Uses config default if not provided.
            classifier: Classifier used by refresh(). Creates one if not provided.
        """
        self.path = Path(path or settings.COMPARISONS_FILE)
        self.classifier = classifier or DirectoryClassifier()
        self._lock = threading.Lock()

    def _load(self) -> dict[str, SavedComparison]:
        if not self.path.exists():
            return {}

        with open(self.path, "r", encoding="utf-8") as f:
            raw = json.load(f)

        return {label: SavedComparison(**entry) for label, entry in raw.items()}

    def _save(self, entries: dict[str, SavedComparison]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({label: entry.to_dict() for label, entry in entries.items()}, f, indent=2)

    def add(
        self,
        label: str,
        left_dir: Path,
        right_dir: Path,
        check_comments_only: bool = False
    ) -> SavedComparison:
        """
        Save a comparison, replacing any existing entry with the same label.

        Returns:
            The stored SavedComparison
        """
        entry = SavedComparison(
            label=label,
            left_dir=str(left_dir),
            right_dir=str(right_dir),
            check_comments_only=check_comments_only,
        )

        with self._lock:
            entries = self._load()
            entries[label] = entry
            self._save(entries)

        logger.info("Comparison saved", label=label, left_dir=entry.left_dir, right_dir=entry.right_dir)
        return entry

    def get(self, label: str) -> Optional[SavedComparison]:
        with self._lock:
            return self._load().get(label)

    def list_all(self) -> list[SavedComparison]:
        """All saved comparisons, ordered by label."""
        with self._lock:
            entries = self._load()
        return [entries[label] for label in sorted(entries)]

    def remove(self, label: str) -> bool:
        """
        Delete a comparison.

        Returns:
            True if an entry was removed
        """
        with self._lock:
            entries = self._load()
            if label not in entries:
                return False
            del entries[label]
            self._save(entries)

        logger.info("Comparison removed", label=label)
        return True

    def prune(self) -> list[str]:
        """
        Drop comparisons whose directories no longer exist.

        Returns:
            Labels of the removed entries
        """
        with self._lock:
            entries = self._load()
            stale = [label for label, entry in entries.items() if not entry.directories_exist()]
            for label in stale:
                del entries[label]
            if stale:
                self._save(entries)

        if stale:
            logger.info("Pruned stale comparisons", labels=stale)
        return stale

    def refresh(self, label: str) -> Optional[ComparisonResult]:
        """
        Re-classify a saved comparison.

        Returns:
            ComparisonResult, or None if no comparison has that label

        Raises:
            DirectoryNotFoundError: A directory of the comparison is gone
            FileReadError: A file could not be read
        """
        entry = self.get(label)
        if entry is None:
            return None

        return self.classifier.classify(
            Path(entry.left_dir),
            Path(entry.right_dir),
            check_comments_only=entry.check_comments_only,
        )

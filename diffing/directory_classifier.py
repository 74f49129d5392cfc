"""
Directory comparison for exported configuration objects.

Partitions two flat directories of "<name>.json" files into four buckets:
- missing: present on the left, absent on the right
- created: present on the right, absent on the left
- modified: present on both sides with a structural content difference
- unchanged: byte-identical, or different only in comments when the
  comment-only check is enabled
"""

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union
import structlog

from diffing.comment_classifier import CommentOnlyClassifier
from diffing.exceptions import DirectoryNotFoundError, FileReadError
from diffing.paths import join_composite, object_name, split_composite

logger = structlog.get_logger()

PathLike = Union[str, Path]

BUCKETS = ("missing", "modified", "created", "unchanged")


@dataclass(frozen=True)
class MatchRecord:
    """One exported object and where it lives on each side."""
    name: str
    left_path: Optional[Path] = None
    right_path: Optional[Path] = None

    @property
    def path(self) -> str:
        """Composite "<left>~~<right>" encoding (right path only for created objects)."""
        return join_composite(self.left_path, self.right_path)

    @classmethod
    def from_composite(cls, name: str, composite: str) -> "MatchRecord":
        left_path, right_path = split_composite(composite)
        return cls(name=name, left_path=left_path, right_path=right_path)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "path": self.path,
            "left_path": str(self.left_path) if self.left_path else None,
            "right_path": str(self.right_path) if self.right_path else None,
        }


@dataclass
class ComparisonResult:
    """Result of classifying one (left, right) directory pair."""
    missing: list[MatchRecord] = field(default_factory=list)
    modified: list[MatchRecord] = field(default_factory=list)
    created: list[MatchRecord] = field(default_factory=list)
    unchanged: list[MatchRecord] = field(default_factory=list)

    @property
    def counts(self) -> dict[str, int]:
        return {bucket: len(getattr(self, bucket)) for bucket in BUCKETS}

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def names(self, bucket: str) -> set[str]:
        """Names recorded in one bucket."""
        if bucket not in BUCKETS:
            raise ValueError(f"Unknown bucket: {bucket}")
        return {record.name for record in getattr(self, bucket)}

    def find(self, name: str) -> Optional[tuple[str, MatchRecord]]:
        """Locate a record by name. Returns (bucket, record) or None."""
        for bucket in BUCKETS:
            for record in getattr(self, bucket):
                if record.name == name:
                    return bucket, record
        return None

    def extend(self, other: "ComparisonResult") -> None:
        """Append the buckets of another result (e.g. a sibling subdirectory)."""
        for bucket in BUCKETS:
            getattr(self, bucket).extend(getattr(other, bucket))

    def to_dict(self) -> dict:
        result = {bucket: [r.to_dict() for r in getattr(self, bucket)] for bucket in BUCKETS}
        result["counts"] = self.counts
        return result


class DirectoryClassifier:
    """
    Classifies the contents of two export directories.

    Stateless apart from the comment classifier it delegates to, so one
    instance can be shared and reused.
    """

    def __init__(self, comment_classifier: Optional[CommentOnlyClassifier] = None):
        """
        Initialize directory classifier.

        Args:
            comment_classifier: Policy used when check_comments_only is set.
                Creates one from settings if not provided.
        """
        self.comment_classifier = comment_classifier or CommentOnlyClassifier()

    @staticmethod
    def _list_files(directory: Path) -> list[str]:
        """Flat, sorted listing of the regular files in a directory."""
        try:
            return sorted(entry.name for entry in directory.iterdir() if entry.is_file())
        except OSError as e:
            raise DirectoryNotFoundError(f"Cannot list directory {directory}: {e}", directory) from e

    @staticmethod
    def _read_bytes(path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as e:
            raise FileReadError(f"Cannot read {path}: {e}", path) from e

    @staticmethod
    def _decode(content: bytes, path: Path) -> str:
        try:
            return content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise FileReadError(f"Cannot decode {path} as UTF-8: {e}", path) from e

    def _is_comment_only(self, left_path: Path, left: bytes, right_path: Path, right: bytes) -> bool:
        return self.comment_classifier.is_comment_only(
            self._decode(left, left_path),
            self._decode(right, right_path)
        )

    def classify(
        self,
        left_dir: PathLike,
        right_dir: PathLike,
        check_comments_only: bool = False,
        skip_created_scan: bool = False
    ) -> ComparisonResult:
        """
        Classify every object file of a directory pair.

        Args:
            left_dir: Baseline/source directory
            right_dir: Target/destination directory
            check_comments_only: Treat comment-only differences as unchanged
            skip_created_scan: Do not list the right directory for right-only files

        Returns:
            ComparisonResult with the four buckets

        Raises:
            DirectoryNotFoundError: A directory cannot be listed
            FileReadError: A file cannot be read or decoded
        """
        left_dir = Path(left_dir)
        right_dir = Path(right_dir)
        result = ComparisonResult()

        logger.debug(
            "Classifying directories",
            left_dir=str(left_dir),
            right_dir=str(right_dir),
            check_comments_only=check_comments_only,
            skip_created_scan=skip_created_scan
        )

        left_files = self._list_files(left_dir)

        for file_name in left_files:
            left_path = left_dir / file_name
            right_path = right_dir / file_name
            record = MatchRecord(object_name(file_name), left_path, right_path)

            if not right_path.exists():
                result.missing.append(record)
                continue

            left_content = self._read_bytes(left_path)
            right_content = self._read_bytes(right_path)

            if left_content == right_content:
                result.unchanged.append(record)
            elif check_comments_only and self._is_comment_only(left_path, left_content, right_path, right_content):
                result.unchanged.append(record)
            else:
                result.modified.append(record)

        if not skip_created_scan:
            visited = set(left_files)
            for file_name in self._list_files(right_dir):
                if file_name not in visited:
                    result.created.append(MatchRecord(object_name(file_name), None, right_dir / file_name))

        logger.info(
            "Classification complete",
            left_dir=str(left_dir),
            right_dir=str(right_dir),
            **result.counts
        )

        return result

    def extract_comment_only(
        self,
        left_dir: PathLike,
        right_dir: PathLike,
        comment_left_dir: PathLike,
        comment_right_dir: PathLike
    ) -> list[MatchRecord]:
        """
        Move pairs that differ only in comments out of the way.

        After this runs, the left/right directories only hold pairs with
        structural differences (plus identical and one-sided files), which
        keeps review queues short.

        A pair that cannot be read or decoded is logged and left in place;
        the remaining pairs are still processed.

        Args:
            left_dir: Baseline/source directory
            right_dir: Target/destination directory
            comment_left_dir: Destination for the left file of each moved pair
            comment_right_dir: Destination for the right file of each moved pair

        Returns:
            Records of the moved pairs, pointing at their new locations

        Raises:
            DirectoryNotFoundError: The left directory cannot be listed
        """
        left_dir = Path(left_dir)
        right_dir = Path(right_dir)
        comment_left_dir = Path(comment_left_dir)
        comment_right_dir = Path(comment_right_dir)

        comment_left_dir.mkdir(parents=True, exist_ok=True)
        comment_right_dir.mkdir(parents=True, exist_ok=True)

        moved = []
        failed = 0
        for file_name in self._list_files(left_dir):
            left_path = left_dir / file_name
            right_path = right_dir / file_name

            if not right_path.exists():
                continue

            try:
                left_content = self._read_bytes(left_path)
                right_content = self._read_bytes(right_path)
                if left_content == right_content:
                    continue
                if not self._is_comment_only(left_path, left_content, right_path, right_content):
                    continue
            except FileReadError as e:
                logger.error("Skipping pair", file=file_name, error=str(e))
                failed += 1
                continue

            new_left = comment_left_dir / file_name
            new_right = comment_right_dir / file_name
            shutil.move(str(left_path), str(new_left))
            shutil.move(str(right_path), str(new_right))
            moved.append(MatchRecord(object_name(file_name), new_left, new_right))

        logger.info("Comment-only pairs extracted", count=len(moved), failed=failed)
        return moved


def classify(
    left_dir: PathLike,
    right_dir: PathLike,
    check_comments_only: bool = False,
    skip_created_scan: bool = False
) -> ComparisonResult:
    """Classify a directory pair with a default DirectoryClassifier."""
    return DirectoryClassifier().classify(left_dir, right_dir, check_comments_only, skip_created_scan)

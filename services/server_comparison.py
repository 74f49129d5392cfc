"""
Server-to-server comparison.

Exports one object type from two servers into side-by-side directories
under the workspace, classifies the pair and saves the comparison so it
can be refreshed later.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Optional
import structlog

from config import settings
from diffing.directory_classifier import ComparisonResult, DirectoryClassifier
from diffing.paths import side_directory
from fetcher.exporter import ExportSummary, ObjectExporter
from fetcher.object_types import ObjectType
from fetcher.session import ServerInfo
from storage.comparison_store import ComparisonStore

logger = structlog.get_logger()


def comparison_label(object_type: ObjectType, left: ServerInfo, right: ServerInfo) -> str:
    """Default label of a saved comparison, e.g. "Sensors: dev.example.com -> prod.example.com"."""
    return f"{object_type.label}: {left.label} -> {right.label}"


class ServerComparison:
    """Runs export + classification for a pair of servers."""

    def __init__(
        self,
        exporter: Optional[ObjectExporter] = None,
        classifier: Optional[DirectoryClassifier] = None,
        store: Optional[ComparisonStore] = None,
        workspace: Optional[Path] = None
    ):
        """
        Initialize server comparison.

        Args:
            exporter: Object exporter. Creates one if not provided.
            classifier: Directory classifier. Creates one if not provided.
            store: Where comparisons are saved. Creates one if not provided.
            workspace: Root of the export directories. Uses config default if not provided.
        """
        self.exporter = exporter or ObjectExporter()
        self.classifier = classifier or DirectoryClassifier()
        self.store = store or ComparisonStore(classifier=self.classifier)
        self.workspace = Path(workspace or settings.WORKSPACE_PATH)

    def directories_for(self, object_type: ObjectType, left: ServerInfo, right: ServerInfo) -> tuple[Path, Path]:
        """Left and right export directories for an object type."""
        return (
            self.workspace / side_directory(1, left.label, object_type.folder_label),
            self.workspace / side_directory(2, right.label, object_type.folder_label),
        )

    def _export_both(
        self,
        object_type: ObjectType,
        left: ServerInfo,
        right: ServerInfo,
        left_dir: Path,
        right_dir: Path
    ) -> dict[str, ExportSummary]:
        """Export both sides concurrently. A failure on either side is re-raised."""
        summaries = {}

        with ThreadPoolExecutor(max_workers=2) as executor:
            future_to_side = {
                executor.submit(self.exporter.export, object_type, left, left_dir): "left",
                executor.submit(self.exporter.export, object_type, right, right_dir): "right",
            }

            for future in as_completed(future_to_side):
                side = future_to_side[future]
                try:
                    summaries[side] = future.result()
                except Exception as e:
                    logger.error(
                        "Export failed",
                        side=side,
                        object_type=object_type.key,
                        error=str(e)
                    )
                    raise

        return summaries

    def run(
        self,
        object_type: ObjectType,
        left: ServerInfo,
        right: ServerInfo,
        label: Optional[str] = None,
        check_comments_only: Optional[bool] = None
    ) -> ComparisonResult:
        """
        Export an object type from both servers and classify the result.

        Args:
            object_type: What to compare
            left: Source server
            right: Destination server
            label: Saved comparison label. Defaults to comparison_label().
            check_comments_only: Fold comment-only differences into unchanged.
                Defaults to whether the type is listed in CHECK_COMMENTS_ONLY_TYPES.

        Returns:
            ComparisonResult for the pair (merged across subdirectories)
        """
        label = label or comparison_label(object_type, left, right)
        if check_comments_only is None:
            check_comments_only = object_type.key in settings.CHECK_COMMENTS_ONLY_TYPES

        left_dir, right_dir = self.directories_for(object_type, left, right)
        left_dir.mkdir(parents=True, exist_ok=True)
        right_dir.mkdir(parents=True, exist_ok=True)

        logger.info(
            "Server comparison started",
            label=label,
            object_type=object_type.key,
            left=left.label,
            right=right.label
        )

        summaries = self._export_both(object_type, left, right, left_dir, right_dir)

        result = ComparisonResult()
        pairs = [(left_dir / sub, right_dir / sub, f"{label} - {sub}") for sub in object_type.subdirectories]
        if not pairs:
            pairs = [(left_dir, right_dir, label)]

        for pair_left, pair_right, pair_label in pairs:
            pair_left.mkdir(parents=True, exist_ok=True)
            pair_right.mkdir(parents=True, exist_ok=True)
            result.extend(self.classifier.classify(pair_left, pair_right, check_comments_only=check_comments_only))
            self.store.add(pair_label, pair_left, pair_right, check_comments_only=check_comments_only)

        logger.info(
            "Server comparison complete",
            label=label,
            left_failed=summaries["left"].failed,
            right_failed=summaries["right"].failed,
            **result.counts
        )

        return result

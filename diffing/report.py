"""
Human-readable diffs for classified object pairs.
"""

import difflib
from pathlib import Path
from typing import Optional

from diffing.directory_classifier import MatchRecord
from diffing.paths import parent_label


def _read_lines(path: Optional[Path]) -> list[str]:
    if path is None or not path.exists():
        return []
    return path.read_text(encoding="utf-8").splitlines()


def diff_title(record: MatchRecord) -> str:
    """Title for a side-by-side view, e.g. "Foo.json (1 - left ↔ 2 - right)"."""
    if record.left_path is None:
        return f"{record.name}.json ({parent_label(record.right_path)})"
    return f"{record.name}.json ({parent_label(record.left_path)} ↔ {parent_label(record.right_path)})"


def unified_diff(record: MatchRecord, context: int = 3) -> list[str]:
    """
    Unified diff of the two files behind a record.

    A missing side is treated as an empty file.

    Args:
        record: Record from a ComparisonResult
        context: Number of context lines

    Returns:
        List of diff lines (no trailing newlines)
    """
    return list(difflib.unified_diff(
        _read_lines(record.left_path),
        _read_lines(record.right_path),
        fromfile=str(record.left_path) if record.left_path else "/dev/null",
        tofile=str(record.right_path) if record.right_path else "/dev/null",
        n=context,
        lineterm=''
    ))


def diff_summary(record: MatchRecord, max_lines: int = 20) -> str:
    """
    Short summary of what changed between the two files of a record.

    Args:
        record: Record from a ComparisonResult
        max_lines: Maximum diff lines to include

    Returns:
        Summary string
    """
    diff = unified_diff(record)

    if not diff:
        return "No line changes"

    additions = sum(1 for line in diff if line.startswith('+') and not line.startswith('+++'))
    deletions = sum(1 for line in diff if line.startswith('-') and not line.startswith('---'))

    summary_lines = [
        f"Lines added: {additions}, removed: {deletions}",
        "",
        "Diff preview:"
    ]

    diff_lines = [line for line in diff if not line.startswith(('---', '+++', '@@'))]
    summary_lines.extend(diff_lines[:max_lines])

    if len(diff_lines) > max_lines:
        summary_lines.append(f"... and {len(diff_lines) - max_lines} more lines")

    return '\n'.join(summary_lines)

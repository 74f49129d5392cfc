"""
Comment-only change detection for exported object files.

Decides whether every difference between two texts is a comment, a quoting
artifact or list punctuation, as opposed to a change that alters how the
object behaves on the server.

Policy, applied to each non-equal span of a diff-match-patch diff after
semantic cleanup:
1. Trim surrounding whitespace; empty spans are ignored
2. Look at the first character, skipping one leading double quote
3. "#", "'" and "," mark a comment/punctuation span
4. Otherwise strip all double quotes and commas; anything left is a real change
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional
from diff_match_patch import diff_match_patch

from config import settings

COMMENT_MARKERS = ("#", "'", ",")


class DiffOperation(int, Enum):
    DELETE = diff_match_patch.DIFF_DELETE
    EQUAL = diff_match_patch.DIFF_EQUAL
    INSERT = diff_match_patch.DIFF_INSERT


@dataclass(frozen=True)
class DiffSpan:
    """One contiguous run of equal, inserted or deleted text."""
    operation: DiffOperation
    text: str


class CommentOnlyClassifier:
    """
    Classifies a text difference as comment-only or structural.

    Two granularities are supported:
    - "line": whole lines are compared (diff-match-patch line mode), so each
      span is a complete line such as '"# comment",' from an exported script
    - "char": plain character diff
    """

    GRANULARITIES = ("line", "char")

    def __init__(self, granularity: Optional[str] = None, timeout: Optional[float] = None):
        """
        Initialize classifier.

        Args:
            granularity: "line" or "char". Uses DIFF_GRANULARITY if not provided.
            timeout: Seconds allowed per diff. Uses DIFF_TIMEOUT_SECONDS if not provided.
        """
        self.granularity = granularity or settings.DIFF_GRANULARITY
        if self.granularity not in self.GRANULARITIES:
            raise ValueError(f"Unknown diff granularity: {self.granularity}")

        self.timeout = settings.DIFF_TIMEOUT_SECONDS if timeout is None else timeout

    def _engine(self) -> diff_match_patch:
        dmp = diff_match_patch()
        dmp.Diff_Timeout = self.timeout
        return dmp

    def diff(self, left_text: str, right_text: str) -> list[DiffSpan]:
        """
        Diff two texts and coalesce the result for readability.

        Args:
            left_text: Baseline text
            right_text: Target text

        Returns:
            Ordered list of DiffSpan
        """
        dmp = self._engine()

        if self.granularity == "line":
            left_chars, right_chars, line_array = dmp.diff_linesToChars(left_text, right_text)
            diffs = dmp.diff_main(left_chars, right_chars, False)
            dmp.diff_charsToLines(diffs, line_array)
        else:
            diffs = dmp.diff_main(left_text, right_text)

        dmp.diff_cleanupSemantic(diffs)

        return [DiffSpan(DiffOperation(op), text) for op, text in diffs]

    @staticmethod
    def span_is_comment(text: str) -> bool:
        """Whether a single non-equal span only touches comments or punctuation."""
        test = text.strip()
        if not test:
            return True

        first = test[0]
        if first == '"':
            first = test[1:2]

        if first in COMMENT_MARKERS:
            return True

        return not test.replace('"', "").replace(",", "")

    def is_comment_only(self, left_text: str, right_text: str) -> bool:
        """
        Check whether the texts differ only in comments/punctuation.

        Identical texts are NOT a comment-only change: at least one
        non-equal span is required.

        Args:
            left_text: Baseline text
            right_text: Target text

        Returns:
            True if every non-equal span passes the comment policy
        """
        all_equal = True
        only_comments = True

        for span in self.diff(left_text, right_text):
            if span.operation == DiffOperation.EQUAL:
                continue

            all_equal = False
            if not self.span_is_comment(span.text):
                only_comments = False

        return only_comments and not all_equal


def is_comment_only(left_text: str, right_text: str, granularity: Optional[str] = None) -> bool:
    """Convenience wrapper around CommentOnlyClassifier.is_comment_only."""
    return CommentOnlyClassifier(granularity=granularity).is_comment_only(left_text, right_text)

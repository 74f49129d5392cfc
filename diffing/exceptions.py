"""Errors raised while classifying a pair of export directories."""

from pathlib import Path
from typing import Union


class ClassificationError(Exception):
    """Base error for a classification run. No partial result is returned."""

    def __init__(self, message: str, path: Union[str, Path]):
        super().__init__(message)
        self.path = Path(path)


class DirectoryNotFoundError(ClassificationError):
    """One side of the comparison cannot be listed."""


class FileReadError(ClassificationError):
    """A file exists but cannot be read or decoded."""

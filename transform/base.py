"""
Shared helpers for normalizing exported objects before they are written.

Exports are normalized so that two servers holding the same object produce
byte-identical files: server-specific ids and timestamps are dropped and
multi-line text is split into one JSON string per line.
"""

from typing import Any, Iterable


def convert_whitespace(value: Any) -> Any:
    """
    Split multi-line text into a list of lines.

    Carriage returns are dropped and a single trailing empty line is
    removed. Non-string values are returned unchanged.
    """
    if not isinstance(value, str):
        return value

    lines = value.replace("\r", "").split("\n")
    if lines[-1] == "":
        lines.pop()

    return lines


def delete_properties(source: dict, names: Iterable[str]) -> dict:
    """Remove the named keys from `source` in place. Returns `source`."""
    for name in names:
        source.pop(name, None)
    return source


def delete_if_empty(source: dict, name: str) -> dict:
    """Remove `name` from `source` when its value is empty ("", None, [], {})."""
    if name in source and not source[name]:
        del source[name]
    return source


def keep_properties(source: dict, names: Iterable[str]) -> dict:
    """New dict holding only the named keys that exist in `source`."""
    return {name: source[name] for name in names if name in source}

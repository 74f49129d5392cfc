"""
Path and name helpers for exported object files.

Each exported object lives in "<directory>/<sanitized name>.json". A
comparison record can also be written as a single composite string
"<left file>~~<right file>" for consumers that still expect it.
"""

import re
from pathlib import Path
from typing import Optional, Union

OBJECT_SUFFIX = ".json"
COMPOSITE_SEPARATOR = "~~"

MAX_FILENAME_BYTES = 255

_ILLEGAL_RE = re.compile(r'[/?<>\\:*|"]')
_CONTROL_RE = re.compile(r"[\x00-\x1f\x80-\x9f]")
_RESERVED_RE = re.compile(r"^\.+$")
_WINDOWS_RESERVED_RE = re.compile(r"^(con|prn|aux|nul|com[0-9]|lpt[0-9])(\..*)?$", re.IGNORECASE)
_WINDOWS_TRAILING_RE = re.compile(r"[. ]+$")


def sanitize_filename(name: str, replacement: str = "") -> str:
    """
    Render a logical object name as a filesystem-safe file name.

    Removes characters that are illegal on common filesystems, control
    characters, reserved names and trailing dots/spaces, then truncates the
    result to 255 UTF-8 bytes.

    Args:
        name: Logical object name (e.g. a sensor name)
        replacement: Text substituted for every removed character

    Returns:
        Sanitized file name (may be empty if nothing usable remains)
    """
    sanitized = _ILLEGAL_RE.sub(replacement, name)
    sanitized = _CONTROL_RE.sub(replacement, sanitized)
    sanitized = _RESERVED_RE.sub(replacement, sanitized)
    sanitized = _WINDOWS_RESERVED_RE.sub(replacement, sanitized)
    sanitized = _WINDOWS_TRAILING_RE.sub(replacement, sanitized)

    encoded = sanitized.encode("utf-8")
    if len(encoded) > MAX_FILENAME_BYTES:
        sanitized = encoded[:MAX_FILENAME_BYTES].decode("utf-8", errors="ignore")

    return sanitized


def object_file_name(name: str) -> str:
    """File name used to store the object called `name`."""
    return sanitize_filename(name) + OBJECT_SUFFIX


def object_name(file_name: str) -> str:
    """
    Logical name of an exported object file.

    Removes the first literal ".json" substring; names containing ".json"
    elsewhere are not special-cased.
    """
    return file_name.replace(OBJECT_SUFFIX, "", 1)


def parent_label(path: Union[str, Path]) -> str:
    """Directory part of a file path, used when titling a side-by-side diff."""
    return str(Path(path).parent)


def join_composite(left_path: Optional[Union[str, Path]], right_path: Optional[Union[str, Path]]) -> str:
    """Encode a pair of paths as "<left>~~<right>" (or just the present side)."""
    if left_path is None:
        return str(right_path)
    if right_path is None:
        return str(left_path)
    return f"{left_path}{COMPOSITE_SEPARATOR}{right_path}"


def split_composite(composite: str) -> tuple[Optional[Path], Optional[Path]]:
    """
    Decode a composite path string.

    A string without the separator is a one-sided record and is returned
    as the right-hand path, matching how created objects are encoded.
    """
    if COMPOSITE_SEPARATOR not in composite:
        return None, Path(composite)

    left, right = composite.split(COMPOSITE_SEPARATOR, 1)
    return Path(left), Path(right)


def side_directory(index: int, label: str, folder_label: str = "") -> str:
    """
    Directory name for one side of a server comparison.

    Args:
        index: 1 for the left/source side, 2 for the right/destination side
        label: Server label or FQDN
        folder_label: Object type label appended after "%" (e.g. "Sensors")
    """
    base = f"{index} - {sanitize_filename(label)}"
    if folder_label:
        base = f"{base}%{folder_label}"
    return base

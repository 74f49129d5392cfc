"""Normalization of server exports before they are written to disk."""

from transform.base import convert_whitespace, delete_if_empty, delete_properties, keep_properties

__all__ = [
    "convert_whitespace",
    "delete_if_empty",
    "delete_properties",
    "keep_properties",
]

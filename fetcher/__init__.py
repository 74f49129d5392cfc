"""Fetcher module for exporting configuration objects from servers."""

from fetcher.exporter import ExportSummary, ObjectExporter
from fetcher.object_types import OBJECT_TYPES, ObjectType, RetrievalMode, get_object_type
from fetcher.rest_client import RestClient
from fetcher.session import ServerInfo, login

__all__ = [
    "ExportSummary",
    "ObjectExporter",
    "OBJECT_TYPES",
    "ObjectType",
    "RetrievalMode",
    "get_object_type",
    "RestClient",
    "ServerInfo",
    "login",
]

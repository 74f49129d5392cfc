"""
Exports configuration objects from a server into a directory of JSON files.

Each object is written to "<directory>/<sanitized name>.json" as indented
JSON, which is the layout the directory classifier compares.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Optional
import httpx
import structlog

from diffing.paths import object_file_name
from fetcher.object_types import (
    CONNECT_CONNECTIONS_DIR,
    CONNECT_SETTINGS_DIR,
    ObjectType,
    RetrievalMode,
)
from fetcher.rest_client import RestClient
from fetcher.session import ServerInfo, login
from transform.objects import (
    resolve_role_membership,
    resolve_role_privilege,
    role_membership_name,
    role_privilege_name,
    transform_connect_settings,
)

logger = structlog.get_logger()

PROGRESS_EVERY = 30


@dataclass
class ExportSummary:
    """Counts for one export run."""
    object_type: str
    server: str
    directory: Path
    written: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.written + self.skipped + self.failed


def write_object(directory: Path, name: str, obj: Any) -> Path:
    """Write one object as "<directory>/<sanitized name>.json"."""
    directory.mkdir(parents=True, exist_ok=True)
    file_path = directory / object_file_name(name)
    file_path.write_text(json.dumps(obj, indent=2), encoding="utf-8")
    return file_path


class ObjectExporter:
    """
    Pulls objects of one type from a server and writes them to disk.

    A failure to log in or to list the objects aborts the export. A failure
    on a single object is logged and counted, and the export continues.
    """

    def __init__(self, client: Optional[RestClient] = None):
        """
        Initialize exporter.

        Args:
            client: REST client. Creates one from settings if not provided.
        """
        self.client = client or RestClient()

    def export(self, object_type: ObjectType, server: ServerInfo, directory: Path) -> ExportSummary:
        """
        Export every object of a type from a server.

        Args:
            object_type: What to export
            server: Server to export from
            directory: Destination directory (created if needed)

        Returns:
            ExportSummary with written/skipped/failed counts
        """
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)

        logger.info(
            "Export started",
            object_type=object_type.key,
            server=server.label,
            directory=str(directory)
        )

        session = login(self.client, server)
        summary = ExportSummary(object_type=object_type.key, server=server.label, directory=directory)

        if object_type.mode == RetrievalMode.CONNECT:
            self._export_connect(server, session, directory, summary)
        else:
            self._write_all(object_type, self._collect(object_type, server, session, summary), directory, summary)

        logger.info(
            "Export complete",
            object_type=object_type.key,
            server=server.label,
            written=summary.written,
            skipped=summary.skipped,
            failed=summary.failed
        )

        return summary

    def _write_all(
        self,
        object_type: ObjectType,
        items: Iterator[tuple[Optional[str], Any]],
        directory: Path,
        summary: ExportSummary
    ) -> None:
        """Write (name, object) pairs; a None name marks a skipped object."""
        for name, obj in items:
            if name is None:
                summary.skipped += 1
                continue

            try:
                write_object(directory, name, obj)
                summary.written += 1
            except (OSError, TypeError, ValueError) as e:
                logger.error(
                    "Could not write object",
                    object_type=object_type.key,
                    name=name,
                    error=str(e)
                )
                summary.failed += 1

            if summary.total % PROGRESS_EVERY == 0:
                logger.info("Export progress", object_type=object_type.key, processed=summary.total)

    def _collect(
        self,
        object_type: ObjectType,
        server: ServerInfo,
        session: str,
        summary: ExportSummary
    ) -> Iterator[tuple[Optional[str], Any]]:
        if object_type.mode == RetrievalMode.EXPORT_ALL:
            return self._collect_export_all(object_type, server, session)
        if object_type.mode == RetrievalMode.LIST_THEN_EXPORT:
            return self._collect_list_then_export(object_type, server, session, summary)
        if object_type.mode == RetrievalMode.LIST:
            return self._collect_list(object_type, server, session)
        if object_type.mode == RetrievalMode.ROLE_PRIVILEGES:
            return self._collect_role_privileges(object_type, server, session)
        if object_type.mode == RetrievalMode.ROLE_MEMBERSHIPS:
            return self._collect_role_memberships(object_type, server, session)
        raise ValueError(f"Unsupported retrieval mode: {object_type.mode}")

    def _list(self, server: ServerInfo, session: str, endpoint: str) -> list[dict]:
        return self.client.get(f"{server.rest_base}/{endpoint}", session=session)["data"]

    def _name_map(self, server: ServerInfo, session: str, endpoint: str) -> dict:
        return {item["id"]: item["name"] for item in self._list(server, session, endpoint)}

    def export_named(self, object_type: ObjectType, server: ServerInfo, session: str, names: list[str]) -> dict:
        """POST /export for specific objects. Returns the "data" payload."""
        body = self.client.post(
            f"{server.rest_base}/export",
            json={object_type.export_key: {"include": names}},
            session=session
        )
        return body["data"]

    def _collect_export_all(self, object_type: ObjectType, server: ServerInfo, session: str):
        body = self.client.post(
            f"{server.rest_base}/export",
            json={object_type.export_key: {"include_all": True}},
            session=session
        )
        objects = body["data"]["object_list"].get(object_type.export_key) or []
        logger.info("Objects retrieved", object_type=object_type.key, server=server.label, count=len(objects))

        for obj in objects:
            if object_type.skip(obj):
                yield None, None
                continue
            yield object_type.name_of(obj), object_type.transform(obj)

    def _collect_list_then_export(self, object_type: ObjectType, server: ServerInfo, session: str, summary: ExportSummary):
        objects = self._list(server, session, object_type.list_endpoint)
        logger.info("Objects listed", object_type=object_type.key, server=server.label, count=len(objects))

        for obj in objects:
            if object_type.skip(obj):
                yield None, None
                continue

            try:
                object_list = self.export_named(object_type, server, session, [obj["name"]])["object_list"]
            except (httpx.HTTPError, KeyError) as e:
                logger.error(
                    "Could not export object",
                    object_type=object_type.key,
                    name=obj.get("name"),
                    server=server.label,
                    error=str(e)
                )
                summary.failed += 1
                continue

            exported = object_list.get(object_type.export_key) or []
            if not exported:
                logger.warning("Export returned no object", object_type=object_type.key, name=obj.get("name"))
                summary.failed += 1
                continue

            object_list[object_type.export_key] = [object_type.transform(item) for item in exported]
            yield object_type.name_of(exported[0]), object_list

    def _collect_list(self, object_type: ObjectType, server: ServerInfo, session: str):
        objects = self._list(server, session, object_type.list_endpoint)
        logger.info("Objects listed", object_type=object_type.key, server=server.label, count=len(objects))

        for obj in objects:
            if object_type.skip(obj):
                yield None, None
                continue
            yield object_type.name_of(obj), object_type.transform(obj)

    def _collect_role_privileges(self, object_type: ObjectType, server: ServerInfo, session: str):
        content_sets = self._name_map(server, session, "content_sets")
        roles = self._name_map(server, session, "content_set_roles")
        privileges = self._name_map(server, session, "content_set_privileges")

        for role_privilege in self._list(server, session, object_type.list_endpoint):
            if role_privilege.get("deleted_flag"):
                yield None, None
                continue
            resolved = resolve_role_privilege(role_privilege, content_sets, roles, privileges)
            yield role_privilege_name(resolved), resolved

    def _collect_role_memberships(self, object_type: ObjectType, server: ServerInfo, session: str):
        users = self._name_map(server, session, "users")
        roles = self._name_map(server, session, "content_set_roles")

        for membership in self._list(server, session, object_type.list_endpoint):
            if membership.get("deleted_flag"):
                yield None, None
                continue
            resolved = resolve_role_membership(membership, users, roles)
            yield role_membership_name(resolved), resolved

    def _export_connect(self, server: ServerInfo, session: str, directory: Path, summary: ExportSummary) -> None:
        """Connect settings go to Settings/settings.json, connections to Connections/<name>.json."""
        connect_base = f"https://{server.fqdn}/plugin/products/connect"

        settings_obj = self.client.get(f"{connect_base}/v1/settings", session=session)
        write_object(directory / CONNECT_SETTINGS_DIR, "settings", transform_connect_settings(settings_obj))
        summary.written += 1

        connections = self.client.get(
            f"{connect_base}/private/connections",
            session=session,
            params={"skipComponentHydration": "true"}
        )["data"]

        for connection in connections:
            try:
                exported = self.client.post(f"{connect_base}/v1/export", json=[connection["id"]], session=session)
                write_object(directory / CONNECT_CONNECTIONS_DIR, connection["name"], exported[0])
                summary.written += 1
            except (httpx.HTTPError, OSError, IndexError, KeyError) as e:
                logger.error(
                    "Could not export connection",
                    name=connection.get("name"),
                    server=server.label,
                    error=str(e)
                )
                summary.failed += 1

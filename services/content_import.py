"""
Import of signed content into a server.

Flow:
1. POST the signed text with import_analyze_conflicts_only=1
2. Build conflict options from the reported conflicts
3. POST again with the options as an async import
4. Poll the import status until it has an end time
"""

import json
import time
from dataclasses import dataclass
from typing import Optional
import httpx
import structlog

from config import settings
from fetcher.rest_client import RestClient
from fetcher.session import ServerInfo, login

logger = structlog.get_logger()

# Conflict options understood by the import endpoint
IMPORT_CONFLICT_OVERWRITE = 1
IMPORT_CONFLICT_SKIP = 3


class ContentImportError(Exception):
    """An import could not be started or did not finish."""


@dataclass
class ImportStatus:
    """Final status of an asynchronous import."""
    id: int
    start_time: str = ""
    end_time: str = ""
    result: str = ""
    success: bool = False
    exception: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "ImportStatus":
        return cls(
            id=data.get("id", 0),
            start_time=data.get("start_time", ""),
            end_time=data.get("end_time", ""),
            result=data.get("result", ""),
            success=bool(data.get("success", False)),
            exception=data.get("exception"),
        )


def build_conflict_options(conflicts: list[dict]) -> dict:
    """
    Import options for the reported conflicts.

    Existing groups are only overwritten when their diff touches "flag";
    everything else falls back to the default option (skip).
    """
    by_type_and_name: dict[str, dict[str, int]] = {}

    for conflict in conflicts:
        if conflict.get("type") != "group" or conflict.get("is_new"):
            continue

        option = IMPORT_CONFLICT_OVERWRITE if "flag" in (conflict.get("diff") or "") else IMPORT_CONFLICT_SKIP
        by_type_and_name.setdefault("group", {})[conflict["name"]] = option

    return {
        "import_existing_ignore_content_set": 1,
        "default_import_conflict_option": IMPORT_CONFLICT_SKIP,
        "import_conflict_options_by_type_and_name": by_type_and_name,
    }


class ContentImporter:
    """Imports signed content into a destination server."""

    def __init__(
        self,
        client: Optional[RestClient] = None,
        poll_interval: Optional[float] = None,
        max_polls: Optional[int] = None
    ):
        """
        Initialize content importer.

        Args:
            client: REST client. Creates one from settings if not provided.
            poll_interval: Seconds between status polls. Uses config default if not provided.
            max_polls: Status polls before giving up. Uses config default if not provided.
        """
        self.client = client or RestClient()
        self.poll_interval = settings.IMPORT_STATUS_POLL_INTERVAL if poll_interval is None else poll_interval
        self.max_polls = max_polls or settings.IMPORT_STATUS_MAX_POLLS

    def import_signed(self, server: ServerInfo, content: str, session: Optional[str] = None) -> ImportStatus:
        """
        Import signed content.

        Args:
            server: Destination server
            content: Signed export text
            session: Existing session token. Logs in if not provided.

        Returns:
            ImportStatus of the finished import

        Raises:
            ContentImportError: The import request failed or never finished
        """
        session = session or login(self.client, server)
        import_url = f"{server.rest_base}/import"

        try:
            analysis = self.client.post_text(
                f"{import_url}?import_analyze_conflicts_only=1",
                content,
                session=session
            )
            conflicts = analysis["data"]["object_list"].get("import_conflict_details") or []
            options = build_conflict_options(conflicts)

            logger.info(
                "Import conflicts analyzed",
                server=server.label,
                conflicts=len(conflicts),
                overrides=options["import_conflict_options_by_type_and_name"]
            )

            started = self.client.post_text(
                import_url,
                content,
                session=session,
                headers={
                    "tanium_options": json.dumps(options),
                    "Prefer": "respond-async",
                }
            )
            import_id = started["data"]["id"]
        except (httpx.HTTPError, KeyError, TypeError) as e:
            logger.error("Import request failed", server=server.label, error=str(e))
            raise ContentImportError(f"Import into {server.label} failed: {e}") from e

        logger.info("Import started", server=server.label, import_id=import_id)
        return self.wait_for_import(server, session, import_id)

    def wait_for_import(self, server: ServerInfo, session: str, import_id: int) -> ImportStatus:
        """Poll an import until its status carries an end time."""
        status_url = f"{server.rest_base}/import/{import_id}"

        for poll in range(self.max_polls):
            try:
                data = self.client.get(status_url, session=session)["data"]
            except (httpx.HTTPError, KeyError) as e:
                raise ContentImportError(f"Could not read status of import {import_id}: {e}") from e

            if data.get("end_time") is not None:
                status = ImportStatus.from_dict(data)
                logger.info(
                    "Import finished",
                    server=server.label,
                    import_id=import_id,
                    success=status.success,
                    result=status.result
                )
                return status

            logger.debug("Import running", import_id=import_id, poll=poll + 1)
            time.sleep(self.poll_interval)

        raise ContentImportError(f"Import {import_id} did not finish after {self.max_polls} polls")

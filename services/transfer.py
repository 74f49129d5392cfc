"""
Transfer of selected objects from one server to another.

Objects are exported from the source by name, signed and imported into
the destination. build_export_file() writes the same export to disk for
manual review or signing.
"""

import json
from pathlib import Path
from typing import Iterable, Optional
import structlog

from diffing.directory_classifier import MatchRecord
from fetcher.exporter import ObjectExporter
from fetcher.object_types import ObjectType
from fetcher.session import ServerInfo, login
from services.content_import import ContentImporter, ImportStatus
from services.signing import ContentSigner

logger = structlog.get_logger()


class ItemTransfer:
    """Moves named objects of one type between servers."""

    def __init__(
        self,
        exporter: Optional[ObjectExporter] = None,
        signer: Optional[ContentSigner] = None,
        importer: Optional[ContentImporter] = None
    ):
        self.exporter = exporter or ObjectExporter()
        self.signer = signer or ContentSigner()
        self.importer = importer or ContentImporter(client=self.exporter.client)

    @staticmethod
    def _require_export_key(object_type: ObjectType) -> None:
        if not object_type.export_key:
            raise ValueError(f"{object_type.label} cannot be exported by name")

    def export_payload(self, object_type: ObjectType, names: list[str], source: ServerInfo) -> dict:
        """Raw export of the named objects from the source server."""
        self._require_export_key(object_type)
        session = login(self.exporter.client, source)
        return self.exporter.export_named(object_type, source, session, names)

    def transfer(
        self,
        object_type: ObjectType,
        names: list[str],
        source: ServerInfo,
        dest: ServerInfo
    ) -> ImportStatus:
        """
        Export, sign and import named objects.

        Args:
            object_type: Type of the objects
            names: Object names to transfer
            source: Server to export from
            dest: Server to import into

        Returns:
            ImportStatus reported by the destination

        Raises:
            ValueError: The type has no export key or no names were given
            SigningError: Signing failed
            ContentImportError: Import failed
        """
        if not names:
            raise ValueError("No objects to transfer")

        logger.info(
            "Transfer started",
            object_type=object_type.key,
            count=len(names),
            source=source.label,
            dest=dest.label
        )

        payload = self.export_payload(object_type, names, source)
        signed = self.signer.sign_payload(payload)

        try:
            status = self.importer.import_signed(dest, signed.content)
        finally:
            signed.path.unlink(missing_ok=True)

        logger.info(
            "Transfer complete",
            object_type=object_type.key,
            dest=dest.label,
            success=status.success
        )
        return status

    @staticmethod
    def object_name(object_type: ObjectType, record: MatchRecord) -> str:
        """
        Logical name of the object behind a record.

        File names are sanitized, so the name is read back from the exported
        JSON (left side first). Falls back to the record name when the file
        carries no name.
        """
        path = record.left_path or record.right_path
        if path is None:
            return record.name

        with open(path, "r", encoding="utf-8") as f:
            obj = json.load(f)

        try:
            return object_type.name_of(obj)
        except (KeyError, TypeError):
            return record.name

    def build_export_file(
        self,
        object_type: ObjectType,
        records: Iterable[MatchRecord],
        source: ServerInfo,
        output_path: Path
    ) -> Path:
        """
        Write the source export of a set of records (e.g. missing + modified) to a file.

        Returns:
            output_path
        """
        names = sorted({self.object_name(object_type, record) for record in records})
        if not names:
            raise ValueError("No objects to export")

        payload = self.export_payload(object_type, names, source)

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

        logger.info("Export file written", object_type=object_type.key, count=len(names), path=str(output_path))
        return output_path

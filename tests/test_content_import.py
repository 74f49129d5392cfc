"""
Tests for importing signed content and transferring objects.
"""

import json
from unittest.mock import patch, MagicMock

import httpx
import pytest

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


@pytest.fixture
def server():
    from fetcher.session import ServerInfo
    return ServerInfo(fqdn="prod.example.com", username="admin", password="pw")


def make_client(handler):
    from fetcher.rest_client import RestClient
    return RestClient(transport=httpx.MockTransport(handler), max_retries=0, timeout=5)


class TestConflictOptions:
    """Tests for build_conflict_options."""

    def test_existing_groups_only(self):
        """Test that only existing groups get per-name options."""
        from services.content_import import build_conflict_options

        options = build_conflict_options([
            {"type": "group", "name": "Linux", "is_new": False, "diff": "filter flag changed"},
            {"type": "group", "name": "Windows", "is_new": False, "diff": "text changed"},
            {"type": "group", "name": "New", "is_new": True, "diff": "flag"},
            {"type": "sensor", "name": "Hostname", "is_new": False, "diff": "flag"},
        ])

        assert options == {
            "import_existing_ignore_content_set": 1,
            "default_import_conflict_option": 3,
            "import_conflict_options_by_type_and_name": {"group": {"Linux": 1, "Windows": 3}},
        }

    def test_no_conflicts(self):
        """Test options with nothing to override."""
        from services.content_import import build_conflict_options

        assert build_conflict_options([])["import_conflict_options_by_type_and_name"] == {}


class TestContentImporter:
    """Tests for ContentImporter.import_signed."""

    def test_analyze_import_and_poll(self, server):
        """Test the full import flow."""
        from services.content_import import ContentImporter

        seen = []
        polls = [{"id": 42}, {"id": 42, "end_time": "2024-01-01T00:00:00", "success": True, "result": "done"}]

        def handler(request):
            seen.append(request)
            if request.url.path == "/api/v2/import" and request.url.params.get("import_analyze_conflicts_only") == "1":
                return httpx.Response(200, json={"data": {"object_list": {"import_conflict_details": [
                    {"type": "group", "name": "Linux", "is_new": False, "diff": "flag"},
                ]}}})
            if request.url.path == "/api/v2/import":
                return httpx.Response(200, json={"data": {"id": 42}})
            if request.url.path == "/api/v2/import/42":
                return httpx.Response(200, json={"data": polls.pop(0)})
            return httpx.Response(404)

        importer = ContentImporter(client=make_client(handler), poll_interval=0, max_polls=5)

        with patch("services.content_import.time.sleep"):
            status = importer.import_signed(server, "signed", session="tok")

        assert status.id == 42
        assert status.success is True
        assert status.result == "done"

        start = seen[1]
        assert start.headers["prefer"] == "respond-async"
        assert start.headers["content-type"] == "text/plain"
        assert json.loads(start.headers["tanium_options"])["import_conflict_options_by_type_and_name"] == {
            "group": {"Linux": 1}
        }
        assert all(r.headers["session"] == "tok" for r in seen)
        assert len(seen) == 4

    def test_import_request_failure(self, server):
        """Test that a rejected import raises ContentImportError."""
        from services.content_import import ContentImporter, ContentImportError

        importer = ContentImporter(client=make_client(lambda request: httpx.Response(400, text="bad content")))

        with pytest.raises(ContentImportError):
            importer.import_signed(server, "signed", session="tok")

    def test_import_never_finishes(self, server):
        """Test giving up after the configured number of polls."""
        from services.content_import import ContentImporter, ContentImportError

        importer = ContentImporter(
            client=make_client(lambda request: httpx.Response(200, json={"data": {"id": 7}})),
            poll_interval=0,
            max_polls=3
        )

        with patch("services.content_import.time.sleep"):
            with pytest.raises(ContentImportError, match="3 polls"):
                importer.wait_for_import(server, "tok", 7)


class TestItemTransfer:
    """Tests for ItemTransfer."""

    def _transfer(self, tmp_path):
        from fetcher.exporter import ObjectExporter
        from services.signing import SignedContent
        from services.transfer import ItemTransfer

        exported = []

        def handler(request):
            if request.url.path == "/api/v2/session/login":
                return httpx.Response(200, json={"data": {"session": "tok"}})
            if request.url.path == "/api/v2/export":
                exported.append(json.loads(request.content))
                return httpx.Response(200, json={"data": {"object_list": {"sensors": [{"name": "Hostname"}]}}})
            return httpx.Response(404)

        signed_path = tmp_path / "signed"
        signed_path.write_text("signed")

        signer = MagicMock()
        signer.sign_payload.return_value = SignedContent(content="signed", path=signed_path)
        importer = MagicMock()

        transfer = ItemTransfer(exporter=ObjectExporter(client=make_client(handler)), signer=signer, importer=importer)
        return transfer, exported, signer, importer, signed_path

    def test_transfer(self, tmp_path, server):
        """Test export by name, signing and import."""
        from fetcher.object_types import OBJECT_TYPES
        from fetcher.session import ServerInfo

        transfer, exported, signer, importer, signed_path = self._transfer(tmp_path)
        source = ServerInfo(fqdn="dev.example.com", username="admin", password="pw")

        transfer.transfer(OBJECT_TYPES["sensors"], ["Hostname"], source, server)

        assert exported == [{"sensors": {"include": ["Hostname"]}}]
        signer.sign_payload.assert_called_once_with({"object_list": {"sensors": [{"name": "Hostname"}]}})
        importer.import_signed.assert_called_once_with(server, "signed")
        assert not signed_path.exists()

    def test_transfer_requires_names(self, tmp_path, server):
        """Test that an empty selection is rejected."""
        from fetcher.object_types import OBJECT_TYPES

        transfer, _, _, _, _ = self._transfer(tmp_path)

        with pytest.raises(ValueError):
            transfer.transfer(OBJECT_TYPES["sensors"], [], server, server)

    def test_type_without_export_key(self, tmp_path, server):
        """Test that list-only types cannot be transferred."""
        from fetcher.object_types import OBJECT_TYPES

        transfer, _, _, _, _ = self._transfer(tmp_path)

        with pytest.raises(ValueError):
            transfer.transfer(OBJECT_TYPES["users"], ["jdoe"], server, server)

    def test_build_export_file(self, tmp_path, server):
        """Test writing the export of classified records."""
        from diffing.directory_classifier import MatchRecord
        from fetcher.object_types import OBJECT_TYPES

        transfer, exported, _, _, _ = self._transfer(tmp_path)
        records = [MatchRecord("Hostname"), MatchRecord("Hostname")]

        path = transfer.build_export_file(OBJECT_TYPES["sensors"], records, server, tmp_path / "out" / "export.json")

        assert exported == [{"sensors": {"include": ["Hostname"]}}]
        assert json.loads(path.read_text()) == {"object_list": {"sensors": [{"name": "Hostname"}]}}

    def test_build_export_file_uses_object_names(self, tmp_path, server, export_dirs, write_json):
        """Test that exports use the name stored in the file, not the sanitized file name."""
        from diffing.directory_classifier import MatchRecord
        from fetcher.object_types import OBJECT_TYPES

        transfer, exported, _, _, _ = self._transfer(tmp_path)
        left, right = export_dirs
        record = MatchRecord(
            "Disk CD",
            write_json(left, "Disk CD.json", {"name": "Disk: C/D"}),
            write_json(right, "Disk CD.json", {"name": "Disk: C/D", "script": "new"}),
        )

        transfer.build_export_file(OBJECT_TYPES["sensors"], [record], server, tmp_path / "export.json")

        assert exported == [{"sensors": {"include": ["Disk: C/D"]}}]

    def test_object_name_without_name_field(self, tmp_path, export_dirs, write_json):
        """Test falling back to the record name."""
        from diffing.directory_classifier import MatchRecord
        from fetcher.object_types import OBJECT_TYPES
        from services.transfer import ItemTransfer

        left, _ = export_dirs
        record = MatchRecord("Nameless", write_json(left, "Nameless.json", {"id": 1}))

        assert ItemTransfer.object_name(OBJECT_TYPES["sensors"], record) == "Nameless"

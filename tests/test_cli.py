"""
Tests for the command-line interface.
"""

import json
from unittest.mock import patch

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


class TestCompareCommand:
    """Tests for 'compare' and 'diff'."""

    def test_compare_json(self, export_dirs, write_file, capsys):
        """Test printing a classification as JSON."""
        from cli import main

        left, right = export_dirs
        write_file(left, "A.json", "1")
        write_file(right, "A.json", "2")

        assert main(["compare", "--left", str(left), "--right", str(right), "--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["counts"]["modified"] == 1

    def test_compare_table(self, export_dirs, write_file, capsys):
        """Test the table output lists names outside 'unchanged'."""
        from cli import main

        left, right = export_dirs
        write_file(left, "Gone.json", "1")

        main(["compare", "--left", str(left), "--right", str(right)])

        out = capsys.readouterr().out
        assert "Missing:" in out
        assert "  Gone" in out

    def test_compare_missing_directory(self, tmp_path):
        """Test that a classification error gives exit code 1."""
        from cli import main

        assert main(["compare", "--left", str(tmp_path / "nope"), "--right", str(tmp_path)]) == 1

    def test_diff(self, export_dirs, write_file, capsys):
        """Test printing the diff of one object."""
        from cli import main

        left, right = export_dirs
        write_file(left, "A.json", "value: 1\n")
        write_file(right, "A.json", "value: 2\n")

        main(["diff", "--left", str(left), "--right", str(right), "--name", "A"])

        out = capsys.readouterr().out
        assert "[modified]" in out
        assert "+value: 2" in out


class TestExtractCommentsCommand:
    """Tests for 'extract-comments'."""

    def test_default_destinations(self, export_dirs, write_file):
        """Test that comment-only pairs move next to the compared directories."""
        from cli import main

        left, right = export_dirs
        write_file(left, "A.json", "# old\nx")
        write_file(right, "A.json", "# new\nx")

        main(["extract-comments", "--left", str(left), "--right", str(right)])

        assert (left.parent / f"{left.name} - Comments Only" / "A.json").exists()
        assert (right.parent / f"{right.name} - Comments Only" / "A.json").exists()


class TestComparisonsCommand:
    """Tests for 'comparisons'."""

    def test_list_and_remove(self, tmp_path, export_dirs, capsys):
        """Test listing and removing saved comparisons."""
        from cli import main
        from storage.comparison_store import ComparisonStore

        store = ComparisonStore(path=tmp_path / "comparisons.json")
        left, right = export_dirs
        store.add("Sensors", left, right)
        capsys.readouterr()

        with patch("cli.ComparisonStore", return_value=store):
            main(["comparisons", "--json"])
            listed = json.loads(capsys.readouterr().out)
            main(["comparisons", "--action", "remove", "--label", "Sensors"])

        assert listed[0]["label"] == "Sensors"
        assert store.list_all() == []


class TestExportFileCommand:
    """Tests for 'export-file'."""

    def test_exports_missing_and_modified(self, tmp_path, export_dirs, write_json, capsys, monkeypatch):
        """Test that missing and modified objects are exported from the left server."""
        from cli import main

        left, right = export_dirs
        write_json(left, "Gone.json", {"name": "Gone"})
        write_json(left, "Disk CD.json", {"name": "Disk: C/D", "value": 1})
        write_json(right, "Disk CD.json", {"name": "Disk: C/D", "value": 2})
        write_json(left, "Same.json", {"name": "Same"})
        write_json(right, "Same.json", {"name": "Same"})
        monkeypatch.setenv("LEFT_PASSWORD", "pw")
        out_file = tmp_path / "export.json"

        with patch("cli.ItemTransfer") as mock_transfer:
            mock_transfer.return_value.build_export_file.return_value = out_file
            code = main([
                "export-file", "--type", "sensors",
                "--left", str(left), "--right", str(right), "--file", str(out_file),
                "--left-fqdn", "dev.example.com", "--left-username", "admin",
            ])

        assert code == 0
        object_type, records, source, path = mock_transfer.return_value.build_export_file.call_args.args
        assert object_type.key == "sensors"
        assert sorted(record.name for record in records) == ["Disk CD", "Gone"]
        assert source.fqdn == "dev.example.com"
        assert source.password == "pw"
        assert path == out_file
        assert "Exported 2 object(s)" in capsys.readouterr().out


class TestDiffSummary:
    """Tests for the summary printed by 'diff'."""

    def test_json_includes_summary(self, export_dirs, write_file, capsys):
        """Test the JSON output carries the change counts."""
        from cli import main

        left, right = export_dirs
        write_file(left, "A.json", "value: 1\n")
        write_file(right, "A.json", "value: 2\n")

        main(["diff", "--left", str(left), "--right", str(right), "--name", "A", "--json"])

        data = json.loads(capsys.readouterr().out)
        assert data["bucket"] == "modified"
        assert data["summary"].startswith("Lines added: 1, removed: 1")


class TestLogging:
    """Tests for CLI logging setup."""

    def test_import_does_not_configure_logging(self):
        """Test that logging is configured by main(), not on import."""
        import importlib
        import structlog
        import cli

        structlog.reset_defaults()
        importlib.reload(cli)

        assert not structlog.is_configured()

    def test_main_logs_to_stderr(self, tmp_path, capsys):
        """Test that log lines stay off stdout."""
        from cli import main

        assert main(["compare", "--left", str(tmp_path / "nope"), "--right", str(tmp_path)]) == 1

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Classification failed" in captured.err

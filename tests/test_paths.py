"""
Tests for object file naming and composite paths.
"""

from pathlib import Path

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


class TestSanitizeFilename:
    """Tests for filesystem-safe names."""

    def test_removes_illegal_characters(self):
        """Test removing characters illegal on common filesystems."""
        from diffing.paths import sanitize_filename

        assert sanitize_filename('Get: <Disk> "Usage" / C:\\*?|') == "Get Disk Usage  C"

    def test_replacement(self):
        """Test substituting removed characters."""
        from diffing.paths import sanitize_filename

        assert sanitize_filename("a/b", replacement="_") == "a_b"

    def test_control_characters(self):
        """Test removing control characters."""
        from diffing.paths import sanitize_filename

        assert sanitize_filename("tab\there\n") == "tabhere"

    def test_reserved_names(self):
        """Test dot-only and Windows reserved names."""
        from diffing.paths import sanitize_filename

        assert sanitize_filename("..") == ""
        assert sanitize_filename("CON") == ""
        assert sanitize_filename("lpt1.txt") == ""
        assert sanitize_filename("Console") == "Console"

    def test_trailing_dots_and_spaces(self):
        """Test removing trailing dots and spaces."""
        from diffing.paths import sanitize_filename

        assert sanitize_filename("Sensor name. ") == "Sensor name"

    def test_truncates_to_255_bytes(self):
        """Test truncation without splitting a multi-byte character."""
        from diffing.paths import sanitize_filename

        result = sanitize_filename("é" * 200)

        assert len(result.encode("utf-8")) <= 255
        assert result == "é" * 127


class TestObjectNames:
    """Tests for object file name helpers."""

    def test_object_file_name(self):
        """Test the stored file name of an object."""
        from diffing.paths import object_file_name

        assert object_file_name("Computer Name") == "Computer Name.json"
        assert object_file_name("Folder/Name") == "FolderName.json"

    def test_object_name(self):
        """Test that only the first '.json' is removed."""
        from diffing.paths import object_name

        assert object_name("Computer Name.json") == "Computer Name"
        assert object_name("a.json.json") == "a.json"
        assert object_name("notes.txt") == "notes.txt"

    def test_side_directory(self):
        """Test directory names of a server comparison."""
        from diffing.paths import side_directory

        assert side_directory(1, "dev.example.com", "Sensors") == "1 - dev.example.com%Sensors"
        assert side_directory(2, "prod:8443") == "2 - prod8443"


class TestCompositePaths:
    """Tests for the "<left>~~<right>" encoding."""

    def test_join(self):
        """Test joining both sides and one side."""
        from diffing.paths import join_composite

        assert join_composite("/l/a.json", "/r/a.json") == "/l/a.json~~/r/a.json"
        assert join_composite(None, "/r/a.json") == "/r/a.json"
        assert join_composite("/l/a.json", None) == "/l/a.json"

    def test_split(self):
        """Test splitting a composite string."""
        from diffing.paths import split_composite

        assert split_composite("/l/a.json~~/r/a.json") == (Path("/l/a.json"), Path("/r/a.json"))
        assert split_composite("/r/a.json") == (None, Path("/r/a.json"))

    def test_parent_label(self):
        """Test the directory part of a path."""
        from diffing.paths import parent_label

        assert parent_label("/ws/1 - dev%Sensors/a.json") == "/ws/1 - dev%Sensors"

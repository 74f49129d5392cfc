"""Shared fixtures."""

import json
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
import structlog


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop logging configuration made by entry points, which binds the captured stderr."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def export_dirs(tmp_path):
    """Empty left/right export directories."""
    left = tmp_path / "1 - dev%Sensors"
    right = tmp_path / "2 - prod%Sensors"
    left.mkdir()
    right.mkdir()
    return left, right


@pytest.fixture
def write_file():
    """Write text to a file and return its path."""
    def _write(directory, name, text):
        path = directory / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def write_json():
    """Write an object as indented JSON and return its path."""
    def _write(directory, name, obj):
        path = directory / name
        path.write_text(json.dumps(obj, indent=2), encoding="utf-8")
        return path
    return _write

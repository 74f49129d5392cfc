"""
Tests for content signing.
"""

import subprocess
from unittest.mock import patch

import pytest

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestContentSigner:
    """Tests for ContentSigner."""

    def test_not_configured(self, tmp_path):
        """Test that signing without a key utility fails."""
        from services.signing import ContentSigner, SigningError

        signer = ContentSigner(key_utility_path="", private_key_file_path="")
        signer.key_utility_path = ""

        with pytest.raises(SigningError):
            signer.sign_file(tmp_path / "content.json")

    def test_sign_file_command(self, tmp_path):
        """Test the key utility command line."""
        from services.signing import ContentSigner

        signer = ContentSigner(key_utility_path="/opt/KeyUtility", private_key_file_path="/keys/private.pem")
        target = tmp_path / "content file.json"

        with patch("services.signing.subprocess.run", return_value=completed(stdout="ok")) as mock_run:
            assert signer.sign_file(target) == target

        cmd = mock_run.call_args.args[0]
        assert cmd == ["/opt/KeyUtility", "signcontent", "/keys/private.pem", str(target)]

    def test_nonzero_exit(self, tmp_path):
        """Test that a failing utility raises SigningError."""
        from services.signing import ContentSigner, SigningError

        signer = ContentSigner(key_utility_path="ku", private_key_file_path="key")

        with patch("services.signing.subprocess.run", return_value=completed(returncode=2, stderr="bad key")):
            with pytest.raises(SigningError, match="bad key"):
                signer.sign_file(tmp_path / "f")

    def test_stderr_output_is_failure(self, tmp_path):
        """Test that stderr output fails even with a zero exit code."""
        from services.signing import ContentSigner, SigningError

        signer = ContentSigner(key_utility_path="ku", private_key_file_path="key")

        with patch("services.signing.subprocess.run", return_value=completed(stderr="warning")):
            with pytest.raises(SigningError):
                signer.sign_file(tmp_path / "f")

    def test_timeout(self, tmp_path):
        """Test that a hung utility raises SigningError."""
        from services.signing import ContentSigner, SigningError

        signer = ContentSigner(key_utility_path="ku", private_key_file_path="key")

        with patch("services.signing.subprocess.run", side_effect=subprocess.TimeoutExpired("ku", 120)):
            with pytest.raises(SigningError, match="timed out"):
                signer.sign_file(tmp_path / "f")

    def test_sign_payload(self, tmp_path):
        """Test that payloads are written as JSON plus CRLF and read back after signing."""
        from services.signing import ContentSigner

        signer = ContentSigner(key_utility_path="ku", private_key_file_path="key")

        def fake_sign(cmd, **kwargs):
            path = cmd[-1]
            with open(path, "r", encoding="utf-8", newline="") as f:
                assert f.read() == '{"sensors": []}\r\n'
            with open(path, "a", encoding="utf-8", newline="") as f:
                f.write("-----SIGNATURE-----\r\n")
            return completed()

        with patch("services.signing.subprocess.run", side_effect=fake_sign):
            signed = signer.sign_payload({"sensors": []}, directory=tmp_path)

        assert signed.path.parent == tmp_path
        assert signed.content == '{"sensors": []}\r\n-----SIGNATURE-----\r\n'

    def test_sign_payload_failure_removes_file(self, tmp_path):
        """Test that the payload file is deleted when signing fails."""
        from services.signing import ContentSigner, SigningError

        signer = ContentSigner(key_utility_path="ku", private_key_file_path="key")

        with patch("services.signing.subprocess.run", return_value=completed(returncode=1, stderr="bad key")):
            with pytest.raises(SigningError):
                signer.sign_payload({"sensors": []}, directory=tmp_path)

        assert list(tmp_path.iterdir()) == []

"""
Content signing with an external key utility.

The utility signs a file in place:

    <key utility> signcontent <private key> <file>

Signed content is what the import endpoint accepts.
"""

import json
import subprocess
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional
import structlog

from config import settings

logger = structlog.get_logger()

SIGN_TIMEOUT_SECONDS = 120


class SigningError(Exception):
    """The key utility could not sign a file."""


@dataclass
class SignedContent:
    """Signed file text and where it was written."""
    content: str
    path: Path


class ContentSigner:
    """Signs files and JSON payloads with the configured key utility."""

    def __init__(self, key_utility_path: Optional[str] = None, private_key_file_path: Optional[str] = None):
        """
        Initialize content signer.

        Args:
            key_utility_path: Signing executable. Uses config default if not provided.
            private_key_file_path: Private key file. Uses config default if not provided.
        """
        self.key_utility_path = key_utility_path or settings.KEY_UTILITY_PATH
        self.private_key_file_path = private_key_file_path or settings.PRIVATE_KEY_FILE_PATH

    def is_configured(self) -> bool:
        return bool(self.key_utility_path and self.private_key_file_path)

    def sign_file(self, path: Path) -> Path:
        """
        Sign a file in place.

        Args:
            path: File to sign

        Returns:
            The signed file's path

        Raises:
            SigningError: Signing is not configured, or the utility failed
        """
        if not self.is_configured():
            raise SigningError("Signing requires KEY_UTILITY_PATH and PRIVATE_KEY_FILE_PATH")

        cmd = [self.key_utility_path, "signcontent", self.private_key_file_path, str(path)]
        logger.info("Signing content", path=str(path), key_utility=self.key_utility_path)

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=SIGN_TIMEOUT_SECONDS
            )
        except subprocess.TimeoutExpired as e:
            raise SigningError(f"Signing timed out (>{SIGN_TIMEOUT_SECONDS} seconds)") from e
        except (OSError, subprocess.SubprocessError) as e:
            raise SigningError(f"Failed to run key utility: {e}") from e

        # The utility reports some failures on stderr with a zero exit code
        if result.returncode != 0 or result.stderr:
            error_msg = result.stderr or result.stdout or "Unknown error"
            logger.error("Signing failed", path=str(path), returncode=result.returncode, error=error_msg)
            raise SigningError(f"Signing failed: {error_msg}")

        logger.debug("Content signed", path=str(path), output=result.stdout)
        return Path(path)

    def sign_payload(self, payload: Any, directory: Optional[Path] = None) -> SignedContent:
        """
        Write a JSON payload to a uuid-named file, sign it and read it back.

        Args:
            payload: JSON-serializable export payload
            directory: Where the file is written. Uses the system temp dir if not provided.

        Returns:
            SignedContent with the signed text and file path

        Raises:
            SigningError: Signing failed; the payload file is removed
        """
        directory = Path(directory or tempfile.gettempdir())
        path = directory / str(uuid.uuid4())

        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(f"{json.dumps(payload)}\r\n")

        try:
            self.sign_file(path)
            with open(path, "r", encoding="utf-8", newline="") as f:
                content = f.read()
        except (SigningError, OSError):
            path.unlink(missing_ok=True)
            raise

        return SignedContent(content=content, path=path)

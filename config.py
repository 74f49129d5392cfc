"""
Configuration management for the server content comparison toolkit.
Loads settings from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _as_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    """Application settings loaded from environment."""

    # Workspace
    # Exported objects land in "<WORKSPACE_PATH>/1 - <left>%<Label>" and "2 - <right>%<Label>"
    WORKSPACE_PATH: Path = Path(os.getenv("WORKSPACE_PATH", "./workspace"))
    COMPARISONS_FILE: Path = Path(os.getenv("COMPARISONS_FILE", "./data/comparisons.json"))

    # HTTP
    ALLOW_SELF_SIGNED_CERTS: bool = _as_bool(os.getenv("ALLOW_SELF_SIGNED_CERTS", "False"))
    HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))
    HTTP_MAX_RETRIES: int = int(os.getenv("HTTP_MAX_RETRIES", "2"))

    # ==========================================================================
    # Diff classification
    # ==========================================================================

    # Object types whose byte differences are checked for comment-only changes
    CHECK_COMMENTS_ONLY_TYPES: list[str] = _as_list(os.getenv("CHECK_COMMENTS_ONLY_TYPES", "sensors"))
    # "line" diffs whole lines, "char" diffs characters
    DIFF_GRANULARITY: str = os.getenv("DIFF_GRANULARITY", "line")
    # Seconds diff-match-patch may spend on one diff (0 = unlimited)
    DIFF_TIMEOUT_SECONDS: float = float(os.getenv("DIFF_TIMEOUT_SECONDS", "1.0"))

    # Signing
    KEY_UTILITY_PATH: str = os.getenv("KEY_UTILITY_PATH", "")
    PRIVATE_KEY_FILE_PATH: str = os.getenv("PRIVATE_KEY_FILE_PATH", "")

    # Import status polling
    IMPORT_STATUS_POLL_INTERVAL: float = float(os.getenv("IMPORT_STATUS_POLL_INTERVAL", "2.0"))
    IMPORT_STATUS_MAX_POLLS: int = int(os.getenv("IMPORT_STATUS_MAX_POLLS", "150"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Application
    APP_NAME: str = "Server Content Compare"
    APP_VERSION: str = "1.0.0"

    @classmethod
    def ensure_directories(cls) -> None:
        """Create required directories if they don't exist."""
        cls.WORKSPACE_PATH.mkdir(parents=True, exist_ok=True)
        cls.COMPARISONS_FILE.parent.mkdir(parents=True, exist_ok=True)

    @classmethod
    def validate(cls) -> list[str]:
        """Validate settings. Returns list of missing/invalid settings."""
        issues = []

        # Signing needs both the utility and the key
        signing_vars = [cls.KEY_UTILITY_PATH, cls.PRIVATE_KEY_FILE_PATH]
        if any(signing_vars) and not all(signing_vars):
            issues.append("Signing partially configured - need both KEY_UTILITY_PATH and PRIVATE_KEY_FILE_PATH")

        if cls.DIFF_GRANULARITY not in ("line", "char"):
            issues.append(f"DIFF_GRANULARITY must be 'line' or 'char', got '{cls.DIFF_GRANULARITY}'")

        if cls.HTTP_TIMEOUT_SECONDS <= 0:
            issues.append("HTTP_TIMEOUT_SECONDS must be positive")

        return issues


settings = Settings()

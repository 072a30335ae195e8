"""Core constants used across Stash modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".stash")
DEFAULT_SCOPE_NAME = "default"
SCOPES_DIR_NAME = "scopes"
INDEX_BLOB_NAME = "info.dat"
TEMP_BLOB_SUFFIX = ".tmp"
DEFAULT_CODEC_NAME = "json"
SUPPORTED_CODEC_NAMES = ("json", "pickle")
TEXT_ENCODING = "utf-8"

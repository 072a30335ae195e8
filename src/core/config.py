"""Runtime configuration model for Stash.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    DEFAULT_CODEC_NAME,
    DEFAULT_DATA_ROOT,
    DEFAULT_SCOPE_NAME,
    SCOPES_DIR_NAME,
    SUPPORTED_CODEC_NAMES,
)
from core.errors import StashConfigError


@dataclass(frozen=True)
class StashConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local root directory holding every storage scope.
        scope: Name of the logical storage area owned by one store.
        codec_name: Value codec used for entries and the index.
    """

    data_root: Path
    scope: str
    codec_name: str

    def __post_init__(self) -> None:
        """Validate fields, including overrides applied with dataclasses.replace.

        Raises:
            StashConfigError: If scope or codec name is invalid.
        """
        if _parse_scope(self.scope) != self.scope:
            raise StashConfigError(
                f"Invalid scope '{self.scope}': surrounding whitespace is not allowed."
            )
        if _parse_codec_name(self.codec_name) != self.codec_name:
            raise StashConfigError(
                f"Invalid codec name '{self.codec_name}': use the lowercase codec name."
            )

    @classmethod
    def from_env(cls) -> "StashConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            StashConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("STASH_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        scope = _parse_scope(os.getenv("STASH_SCOPE", DEFAULT_SCOPE_NAME))
        codec_name = _parse_codec_name(os.getenv("STASH_CODEC", DEFAULT_CODEC_NAME))
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            scope=scope,
            codec_name=codec_name,
        )

    @property
    def storage_dir(self) -> Path:
        """Directory holding the blobs of the configured scope."""
        return self.data_root / SCOPES_DIR_NAME / self.scope


def _parse_scope(raw_value: str) -> str:
    """Validate the storage scope name.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Scope name usable as a directory name.

    Raises:
        StashConfigError: If the scope is empty or contains path separators.
    """
    scope = raw_value.strip()
    if not scope or scope in (".", "..") or "/" in scope or "\\" in scope:
        raise StashConfigError(
            "Invalid storage scope (STASH_SCOPE or --scope): "
            f"expected a plain directory name, got '{raw_value}'. "
            "Use a scope name without path separators."
        )
    return scope


def _parse_codec_name(raw_value: str) -> str:
    """Validate the value codec name.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Normalized codec name.

    Raises:
        StashConfigError: If the codec is not supported.
    """
    codec_name = raw_value.strip().lower()
    if codec_name not in SUPPORTED_CODEC_NAMES:
        raise StashConfigError(
            "Invalid STASH_CODEC value: "
            f"expected one of {', '.join(SUPPORTED_CODEC_NAMES)}, got '{raw_value}'. "
            "Set STASH_CODEC to a supported codec name."
        )
    return codec_name

"""Public SDK surface for Stash.

This module provides a stable import path for application code.
It re-exports the settings store, its collaborators, and typed models,
and builds a store for a runtime configuration.
"""

from __future__ import annotations

from core.config import StashConfig
from core.errors import (
    StashArgumentError,
    StashBlobError,
    StashCodecError,
    StashError,
    StashNotificationError,
    StashReentrancyError,
    StashStoreError,
)
from core.types import ChangeAction, ChangeEvent, EntryId
from store.blob_store import BlobStore, FileBlobStore, MemoryBlobStore
from store.change_notifier import ChangeNotifier, Subscription
from store.settings_store import SettingsStore
from store.value_codec import JsonCodec, PickleCodec, ValueCodec, build_codec


def open_settings_store(
    config: StashConfig | None = None,
    notifier: ChangeNotifier | None = None,
) -> SettingsStore:
    """Open the file-backed settings store for a configured scope.

    Call once from the application's composition root and pass the
    returned store to its consumers.

    Args:
        config: Optional runtime configuration; read from env when omitted.
        notifier: Optional change notifier shared with other components.

    Returns:
        Restored settings store.
    """
    resolved_config = config or StashConfig.from_env()
    blob_store = FileBlobStore(resolved_config.storage_dir)
    return SettingsStore(blob_store, build_codec(resolved_config.codec_name), notifier)


__all__ = [
    "BlobStore",
    "ChangeAction",
    "ChangeEvent",
    "ChangeNotifier",
    "EntryId",
    "FileBlobStore",
    "JsonCodec",
    "MemoryBlobStore",
    "PickleCodec",
    "SettingsStore",
    "StashArgumentError",
    "StashBlobError",
    "StashCodecError",
    "StashConfig",
    "StashError",
    "StashNotificationError",
    "StashReentrancyError",
    "StashStoreError",
    "Subscription",
    "ValueCodec",
    "build_codec",
    "open_settings_store",
]

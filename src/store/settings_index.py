"""Durable key to entry identifier index.

This module persists the settings key set as a single blob and rebuilds
cache entries from it during recovery. The index is the recovery anchor:
a key not present in the last persisted index is not restored.
"""

from __future__ import annotations

from typing import Any, Mapping

from core.constants import INDEX_BLOB_NAME
from core.errors import StashBlobError, StashCodecError
from core.logging_config import get_logger
from core.types import EntryId
from store.blob_store import BlobStore, blob_name_for
from store.value_codec import ValueCodec

_LOGGER = get_logger(__name__)


class SettingsIndex:
    """Reads and writes the persisted key -> identifier mapping."""

    def __init__(self, blob_store: BlobStore, codec: ValueCodec) -> None:
        self._blob_store = blob_store
        self._codec = codec

    def persist(self, mapping: Mapping[str, EntryId]) -> None:
        """Overwrite the index blob with the given mapping.

        A failed first write removes the index blob it created, so the
        blob store is left as it was.

        Args:
            mapping: Complete current key -> identifier mapping.

        Raises:
            StashCodecError: If the mapping cannot be encoded.
            StashBlobError: If the index blob cannot be written.
        """
        payload = {key: str(entry_id) for key, entry_id in mapping.items()}
        data = self._codec.serialize(payload)
        existed = self._blob_store.exists(INDEX_BLOB_NAME)
        handle = self._blob_store.open_or_create(INDEX_BLOB_NAME)
        try:
            self._blob_store.write(handle, data)
        except StashBlobError:
            if not existed:
                self._discard_created_index()
            raise
        _LOGGER.debug("settings_index_persisted", entry_count=len(payload))

    def _discard_created_index(self) -> None:
        try:
            self._blob_store.delete(INDEX_BLOB_NAME)
        except StashBlobError as error:
            _LOGGER.warning("settings_index_discard_failed", index_blob=INDEX_BLOB_NAME, error=str(error))

    def restore(self) -> dict[str, EntryId]:
        """Read the persisted mapping, treating any failure as empty.

        Returns:
            Recovered key -> identifier mapping.
        """
        if not self._blob_store.exists(INDEX_BLOB_NAME):
            _LOGGER.info("settings_index_missing", index_blob=INDEX_BLOB_NAME)
            return {}
        try:
            data = self._blob_store.read(self._blob_store.open_or_create(INDEX_BLOB_NAME))
            payload = self._codec.deserialize(data)
        except (StashBlobError, StashCodecError) as error:
            _LOGGER.warning("settings_index_unreadable", index_blob=INDEX_BLOB_NAME, error=str(error))
            return {}
        if not isinstance(payload, dict):
            _LOGGER.warning(
                "settings_index_invalid",
                index_blob=INDEX_BLOB_NAME,
                payload_type=type(payload).__name__,
            )
            return {}
        return _parse_mapping(payload)

    def load_entries(self, mapping: Mapping[str, EntryId]) -> dict[str, tuple[EntryId, Any]]:
        """Read and decode the backing blob of every indexed key.

        Entries whose blob cannot be read or decoded are skipped and logged,
        so the remaining entries still recover.

        Args:
            mapping: Key -> identifier mapping recovered from the index.

        Returns:
            Key -> (identifier, value) pairs for every readable entry.
        """
        entries: dict[str, tuple[EntryId, Any]] = {}
        for key, entry_id in mapping.items():
            blob_name = blob_name_for(entry_id)
            if not self._blob_store.exists(blob_name):
                _LOGGER.warning("settings_entry_skipped", key=key, blob=blob_name, error="missing blob")
                continue
            try:
                data = self._blob_store.read(self._blob_store.open_or_create(blob_name))
                value = self._codec.deserialize(data)
            except (StashBlobError, StashCodecError) as error:
                _LOGGER.warning("settings_entry_skipped", key=key, blob=blob_name, error=str(error))
                continue
            if value is None:
                _LOGGER.warning("settings_entry_skipped", key=key, blob=blob_name, error="empty value")
                continue
            entries[key] = (entry_id, value)
        return entries


def _parse_mapping(payload: dict[Any, Any]) -> dict[str, EntryId]:
    """Validate raw index payload pairs, skipping malformed ones."""
    mapping: dict[str, EntryId] = {}
    for key, raw_id in payload.items():
        if not isinstance(key, str) or not key or key == INDEX_BLOB_NAME:
            _LOGGER.warning("settings_index_key_skipped", key=repr(key))
            continue
        try:
            mapping[key] = EntryId.parse(str(raw_id))
        except ValueError:
            _LOGGER.warning("settings_index_key_skipped", key=key, entry_id=repr(raw_id))
    return mapping

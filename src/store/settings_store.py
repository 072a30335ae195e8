"""Durable settings store with change notifications.

This module owns the in-memory settings cache and its durable layout:
one blob per entry named by the entry identifier, plus one index blob
mapping keys to identifiers. Every mutation writes durable state first,
then updates the cache, then notifies subscribers.
"""

from __future__ import annotations

from dataclasses import dataclass
import threading
from typing import Any, Iterator

from core.constants import INDEX_BLOB_NAME
from core.errors import (
    StashArgumentError,
    StashBlobError,
    StashCodecError,
    StashReentrancyError,
    StashStoreError,
)
from core.logging_config import get_logger
from core.types import ChangeEvent, EntryId
from store.blob_store import BlobStore, blob_name_for
from store.change_notifier import ChangeHandler, ChangeNotifier, Subscription
from store.settings_index import SettingsIndex
from store.settings_snapshot import SettingsSnapshot
from store.value_codec import ValueCodec

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class _CachedEntry:
    entry_id: EntryId
    value: Any


class SettingsStore:
    """Key/value settings store whose entries are individually durable.

    The store restores its contents from the blob store on construction.
    All operations, reads included, are serialized by one store-wide lock
    that is also held while change events are delivered. Handlers may read
    the store but must not mutate it; a mutation attempted from inside a
    handler raises StashReentrancyError.
    """

    def __init__(
        self,
        blob_store: BlobStore,
        codec: ValueCodec,
        notifier: ChangeNotifier | None = None,
    ) -> None:
        """Create the store and restore persisted entries.

        Args:
            blob_store: Durable blob storage for one scope.
            codec: Codec used for entry values and the index.
            notifier: Optional shared change notifier.
        """
        self._blob_store = blob_store
        self._codec = codec
        self._index = SettingsIndex(blob_store, codec)
        self._notifier = notifier or ChangeNotifier()
        self._cache: dict[str, _CachedEntry] = {}
        self._lock = threading.RLock()
        self._notifying_thread: int | None = None
        self.restore()

    def restore(self) -> None:
        """Rebuild the cache from the persisted index and entry blobs.

        Entries that fail to load are left out of the cache; the index is
        rewritten without them on the next key-set mutation.
        """
        with self._lock:
            self._reject_reentrant_mutation("restore")
            mapping = self._index.restore()
            entries = self._index.load_entries(mapping)
            self._cache = {
                key: _CachedEntry(entry_id, value) for key, (entry_id, value) in entries.items()
            }
            _LOGGER.info(
                "settings_restored",
                restored_count=len(self._cache),
                skipped_count=len(mapping) - len(self._cache),
            )

    @property
    def notifier(self) -> ChangeNotifier:
        return self._notifier

    def subscribe(self, handler: ChangeHandler) -> Subscription:
        """Register a change handler.

        Handlers run synchronously after each mutation commits, while the
        store lock is held, and must not mutate this store.
        """
        return self._notifier.subscribe(handler)

    def unsubscribe(self, handler: ChangeHandler) -> None:
        self._notifier.unsubscribe(handler)

    def contains_key(self, key: str) -> bool:
        """Return whether a live entry exists for key."""
        _require_str_key(key)
        with self._lock:
            return key in self._cache

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.contains_key(key)

    def try_get(self, key: str) -> Any | None:
        """Return the value stored for key, or None if absent."""
        _require_str_key(key)
        with self._lock:
            entry = self._cache.get(key)
            return None if entry is None else entry.value

    def get(self, key: str, default: Any = None) -> Any:
        value = self.try_get(key)
        return default if value is None else value

    def entry_id(self, key: str) -> EntryId | None:
        """Return the identifier of the blob backing key, if present."""
        _require_str_key(key)
        with self._lock:
            entry = self._cache.get(key)
            return None if entry is None else entry.entry_id

    def count(self) -> int:
        with self._lock:
            return len(self._cache)

    def __len__(self) -> int:
        return self.count()

    def keys(self) -> SettingsSnapshot[str]:
        return SettingsSnapshot(self._snapshot_entries(), lambda entry: entry[0])

    def values(self) -> SettingsSnapshot[Any]:
        return SettingsSnapshot(self._snapshot_entries(), lambda entry: entry[1])

    def items(self) -> SettingsSnapshot[tuple[str, Any]]:
        return SettingsSnapshot(self._snapshot_entries(), lambda entry: entry)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def try_add_or_update(self, key: str, value: Any) -> bool:
        """Insert a new entry or update the value of an existing one.

        Args:
            key: Non-empty settings key other than the reserved index name.
            value: Non-None value accepted by the store codec.

        Returns:
            True if the value was durably written and committed; False if a
            durable write failed, in which case nothing changed.

        Raises:
            StashArgumentError: If key or value is rejected.
            StashCodecError: If value cannot be serialized or read back.
            StashReentrancyError: If called from inside a change handler.
        """
        _validate_key(key)
        if value is None:
            raise StashArgumentError(
                f"Cannot store None for key '{key}'. Use try_remove to delete a setting."
            )
        data = self._codec.serialize(value)
        # Cache the decoded payload so reads match what a restore would see.
        committed_value = self._codec.deserialize(data)
        with self._lock:
            self._reject_reentrant_mutation("try_add_or_update")
            current = self._cache.get(key)
            if current is None:
                return self._add_entry(key, committed_value, data)
            return self._replace_entry(key, current, committed_value, data)

    def try_remove(self, key: str) -> bool:
        """Remove the entry for key.

        Returns:
            True if an entry was removed; False if key was absent or the
            index could not be rewritten, in which case nothing changed.

        Raises:
            StashReentrancyError: If called from inside a change handler.
        """
        _require_str_key(key)
        with self._lock:
            self._reject_reentrant_mutation("try_remove")
            current = self._cache.get(key)
            if current is None:
                return False
            mapping = self._index_mapping()
            del mapping[key]
            if not self._persist_index(mapping, key=key):
                return False
            del self._cache[key]
            self._delete_blob(key, current.entry_id)
            _LOGGER.info("settings_entry_removed", key=key)
            self._notify(ChangeEvent.remove(key, current.value))
            return True

    def clear(self) -> None:
        """Remove every entry and emit a single reset event.

        Raises:
            StashStoreError: If the empty index cannot be written.
            StashReentrancyError: If called from inside a change handler.
        """
        with self._lock:
            self._reject_reentrant_mutation("clear")
            try:
                self._index.persist({})
            except (StashBlobError, StashCodecError) as error:
                raise StashStoreError(
                    f"Failed to clear settings: index could not be written: {error}. "
                    "No settings were removed."
                ) from error
            entries = list(self._cache.items())
            self._cache.clear()
            for key, entry in entries:
                self._delete_blob(key, entry.entry_id)
            _LOGGER.info("settings_cleared", removed_count=len(entries))
            self._notify(ChangeEvent.reset())

    def purge_orphaned_blobs(self) -> list[str]:
        """Delete blobs referenced by neither the index nor a live entry.

        Orphans are left behind when a best-effort delete fails or when an
        entry is skipped during restore.

        Returns:
            Names of blobs that were deleted.
        """
        with self._lock:
            self._reject_reentrant_mutation("purge_orphaned_blobs")
            live_names = {blob_name_for(entry.entry_id) for entry in self._cache.values()}
            live_names.add(INDEX_BLOB_NAME)
            purged: list[str] = []
            for name in self._blob_store.names():
                if name in live_names:
                    continue
                try:
                    self._blob_store.delete(name)
                except StashBlobError as error:
                    _LOGGER.warning("settings_orphan_purge_failed", blob=name, error=str(error))
                    continue
                purged.append(name)
            _LOGGER.info("settings_orphans_purged", purged_count=len(purged))
            return purged

    def _add_entry(self, key: str, value: Any, data: bytes) -> bool:
        entry_id = EntryId.new()
        blob_name = blob_name_for(entry_id)
        try:
            self._blob_store.write(self._blob_store.open_or_create(blob_name), data)
        except StashBlobError as error:
            _LOGGER.error("settings_entry_write_failed", key=key, blob=blob_name, error=str(error))
            self._discard_blob(blob_name)
            return False
        mapping = self._index_mapping()
        mapping[key] = entry_id
        if not self._persist_index(mapping, key=key):
            self._discard_blob(blob_name)
            return False
        self._cache[key] = _CachedEntry(entry_id, value)
        _LOGGER.info("settings_entry_added", key=key, blob=blob_name)
        self._notify(ChangeEvent.add(key, value))
        return True

    def _replace_entry(self, key: str, current: _CachedEntry, value: Any, data: bytes) -> bool:
        blob_name = blob_name_for(current.entry_id)
        try:
            self._blob_store.write(self._blob_store.open_or_create(blob_name), data)
        except StashBlobError as error:
            _LOGGER.error("settings_entry_write_failed", key=key, blob=blob_name, error=str(error))
            return False
        self._cache[key] = _CachedEntry(current.entry_id, value)
        _LOGGER.info("settings_entry_updated", key=key, blob=blob_name)
        self._notify(ChangeEvent.replace(key, value, current.value))
        return True

    def _index_mapping(self) -> dict[str, EntryId]:
        return {key: entry.entry_id for key, entry in self._cache.items()}

    def _persist_index(self, mapping: dict[str, EntryId], key: str) -> bool:
        try:
            self._index.persist(mapping)
        except (StashBlobError, StashCodecError) as error:
            _LOGGER.error("settings_index_write_failed", key=key, error=str(error))
            return False
        return True

    def _delete_blob(self, key: str, entry_id: EntryId) -> None:
        blob_name = blob_name_for(entry_id)
        try:
            self._blob_store.delete(blob_name)
        except StashBlobError as error:
            _LOGGER.warning("settings_blob_delete_failed", key=key, blob=blob_name, error=str(error))

    def _discard_blob(self, blob_name: str) -> None:
        try:
            self._blob_store.delete(blob_name)
        except StashBlobError as error:
            _LOGGER.warning("settings_blob_delete_failed", blob=blob_name, error=str(error))

    def _snapshot_entries(self) -> tuple[tuple[str, Any], ...]:
        with self._lock:
            return tuple((key, entry.value) for key, entry in self._cache.items())

    def _notify(self, event: ChangeEvent) -> None:
        self._notifying_thread = threading.get_ident()
        try:
            self._notifier.publish(event)
        finally:
            self._notifying_thread = None

    def _reject_reentrant_mutation(self, operation: str) -> None:
        if self._notifying_thread == threading.get_ident():
            raise StashReentrancyError(
                f"Cannot call {operation} from inside a settings change handler. "
                "Defer the mutation until the handler has returned."
            )


def _require_str_key(key: object) -> None:
    if not isinstance(key, str):
        raise StashArgumentError(f"Settings keys must be strings, got {type(key).__name__}.")


def _validate_key(key: object) -> None:
    _require_str_key(key)
    if not key:
        raise StashArgumentError("Settings key must not be empty.")
    if key == INDEX_BLOB_NAME:
        raise StashArgumentError(
            f"Settings key '{INDEX_BLOB_NAME}' is reserved for the settings index. "
            "Choose a different key."
        )

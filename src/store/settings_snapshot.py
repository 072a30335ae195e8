"""Point-in-time views over settings store contents."""

from __future__ import annotations

from typing import Any, Callable, Generic, Iterator, TypeVar

_ItemT = TypeVar("_ItemT")


class SettingsSnapshot(Generic[_ItemT]):
    """Lazy, restartable sequence over entries copied at one instant.

    Each iteration starts from the beginning of the copied entries and
    never reflects mutations made after the snapshot was taken.
    """

    def __init__(
        self,
        entries: tuple[tuple[str, Any], ...],
        project: Callable[[tuple[str, Any]], _ItemT],
    ) -> None:
        self._entries = entries
        self._project = project

    def __iter__(self) -> Iterator[_ItemT]:
        for entry in self._entries:
            yield self._project(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"SettingsSnapshot({list(self)!r})"

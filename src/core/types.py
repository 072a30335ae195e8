"""Shared typed models.

This module defines immutable data models used by the index, store,
notifier, and CLI layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any
import uuid


@dataclass(frozen=True)
class EntryId:
    """Opaque identifier naming the backing blob of one settings entry.

    Identifiers are minted by the store when a key is first added and stay
    stable across value updates. Callers never choose them.

    Attributes:
        value: Underlying 128-bit random token.
    """

    value: uuid.UUID

    @classmethod
    def new(cls) -> "EntryId":
        """Mint a fresh, globally unique identifier."""
        return cls(uuid.uuid4())

    @classmethod
    def parse(cls, text: str) -> "EntryId":
        """Rebuild an identifier from its persisted text form.

        Raises:
            ValueError: If text is not a valid identifier.
        """
        return cls(uuid.UUID(text))

    def __str__(self) -> str:
        return str(self.value)


class ChangeAction(Enum):
    """Kind of mutation reported by a change event."""

    ADD = "add"
    REMOVE = "remove"
    REPLACE = "replace"
    RESET = "reset"


@dataclass(frozen=True)
class ChangeEvent:
    """Structured notification describing one committed mutation.

    Attributes:
        action: Mutation kind.
        key: Affected key; None for reset.
        new_value: Value after the mutation for add and replace.
        old_value: Value before the mutation for remove and replace.
    """

    action: ChangeAction
    key: str | None = None
    new_value: Any = None
    old_value: Any = None

    @classmethod
    def add(cls, key: str, new_value: Any) -> "ChangeEvent":
        return cls(ChangeAction.ADD, key, new_value=new_value)

    @classmethod
    def remove(cls, key: str, old_value: Any) -> "ChangeEvent":
        return cls(ChangeAction.REMOVE, key, old_value=old_value)

    @classmethod
    def replace(cls, key: str, new_value: Any, old_value: Any) -> "ChangeEvent":
        return cls(ChangeAction.REPLACE, key, new_value=new_value, old_value=old_value)

    @classmethod
    def reset(cls) -> "ChangeEvent":
        return cls(ChangeAction.RESET)

"""Stash exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class StashError(Exception):
    """Base exception for all Stash failures."""


class StashConfigError(StashError):
    """Raised for invalid runtime configuration."""


class StashArgumentError(StashError, ValueError):
    """Raised for rejected keys or values before any state change."""


class StashCodecError(StashError):
    """Raised when a value cannot be serialized or deserialized."""


class StashBlobError(StashError):
    """Raised for durable blob read, write, and delete failures."""


class StashStoreError(StashError):
    """Raised when a settings store mutation cannot be committed."""


class StashNotificationError(StashError):
    """Raised when a change subscriber fails during delivery."""


class StashReentrancyError(StashError):
    """Raised when a change subscriber mutates the store it listens to."""

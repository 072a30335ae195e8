"""Value serialization codecs.

This module turns stored values into bytes and back. The settings
store only depends on the ValueCodec protocol; concrete codecs are
selected by name from runtime configuration.
"""

from __future__ import annotations

import json
import pickle
from typing import Any, Protocol

from core.constants import SUPPORTED_CODEC_NAMES, TEXT_ENCODING
from core.errors import StashCodecError, StashConfigError


class ValueCodec(Protocol):
    """Bidirectional value <-> bytes conversion that may fail."""

    name: str

    def serialize(self, value: Any) -> bytes:
        """Encode a value, raising StashCodecError on failure."""

    def deserialize(self, data: bytes) -> Any:
        """Decode a value, raising StashCodecError on failure."""


class JsonCodec:
    """UTF-8 JSON codec for plain settings values."""

    name = "json"

    def serialize(self, value: Any) -> bytes:
        try:
            return json.dumps(value, sort_keys=True).encode(TEXT_ENCODING)
        except (TypeError, ValueError, RecursionError) as error:
            raise StashCodecError(
                f"Value of type {type(value).__name__} is not JSON serializable: {error}. "
                "Store plain dicts, lists, strings, numbers, or booleans, or use the pickle codec."
            ) from error

    def deserialize(self, data: bytes) -> Any:
        try:
            return json.loads(data.decode(TEXT_ENCODING))
        except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as error:
            raise StashCodecError(f"Failed to decode JSON settings payload: {error}.") from error


class PickleCodec:
    """Pickle codec accepting any picklable Python object.

    Only use with blob stores written by trusted processes.
    """

    name = "pickle"

    def serialize(self, value: Any) -> bytes:
        try:
            return pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)
        except (pickle.PicklingError, TypeError, AttributeError, RecursionError) as error:
            raise StashCodecError(
                f"Value of type {type(value).__name__} cannot be pickled: {error}."
            ) from error

    def deserialize(self, data: bytes) -> Any:
        try:
            return pickle.loads(data)
        except (
            pickle.UnpicklingError,
            EOFError,
            AttributeError,
            ImportError,
            ValueError,
            RecursionError,
        ) as error:
            raise StashCodecError(f"Failed to unpickle settings payload: {error}.") from error


def build_codec(codec_name: str) -> ValueCodec:
    """Resolve a codec instance by configured name.

    Args:
        codec_name: One of the supported codec names.

    Returns:
        Codec instance.

    Raises:
        StashConfigError: If the name is not supported.
    """
    if codec_name == "json":
        return JsonCodec()
    if codec_name == "pickle":
        return PickleCodec()
    raise StashConfigError(
        f"Unsupported codec '{codec_name}'. "
        f"Choose one of: {', '.join(SUPPORTED_CODEC_NAMES)}."
    )

"""Unit tests for value codecs."""

from __future__ import annotations

import threading

import pytest

from core.errors import StashCodecError, StashConfigError
from store.value_codec import JsonCodec, PickleCodec, build_codec


def test_json_codec_decodes_encoded_mapping() -> None:
    """JSON codec should preserve plain settings payloads."""
    codec = JsonCodec()
    value = {"width": 900, "theme": "dark", "recent": ["a", "b"]}

    assert codec.deserialize(codec.serialize(value)) == value


def test_json_codec_rejects_unserializable_value() -> None:
    """Objects outside the JSON data model should fail to encode."""
    with pytest.raises(StashCodecError):
        JsonCodec().serialize(object())


def test_json_codec_rejects_corrupt_bytes() -> None:
    """Malformed payloads should fail to decode."""
    with pytest.raises(StashCodecError):
        JsonCodec().deserialize(b"{not json")


def test_pickle_codec_accepts_tuples() -> None:
    """Pickle codec should keep Python-specific types intact."""
    codec = PickleCodec()

    assert codec.deserialize(codec.serialize(("a", 1))) == ("a", 1)


def test_pickle_codec_rejects_unpicklable_value() -> None:
    """Locks cannot be pickled and should raise a codec error."""
    with pytest.raises(StashCodecError):
        PickleCodec().serialize(threading.Lock())


def test_pickle_codec_rejects_truncated_bytes() -> None:
    """Truncated payloads should fail to decode."""
    with pytest.raises(StashCodecError):
        PickleCodec().deserialize(b"")


def test_build_codec_resolves_by_name() -> None:
    """Configured codec names should map to codec instances."""
    assert build_codec("pickle").name == "pickle"


def test_build_codec_rejects_unknown_name() -> None:
    """Unknown codec names should raise a config error."""
    with pytest.raises(StashConfigError):
        build_codec("xml")


def _deeply_nested_list(depth: int) -> list[object]:
    root: list[object] = []
    current = root
    for _ in range(depth):
        child: list[object] = []
        current.append(child)
        current = child
    return root


def test_json_codec_wraps_recursion_on_encode() -> None:
    """Nesting deeper than the interpreter allows should be a codec error."""
    with pytest.raises(StashCodecError):
        JsonCodec().serialize(_deeply_nested_list(100_000))


def test_json_codec_wraps_recursion_on_decode() -> None:
    """Deeply nested payloads on disk should fail as codec errors."""
    with pytest.raises(StashCodecError):
        JsonCodec().deserialize(b"[" * 200_000 + b"]" * 200_000)


def test_pickle_codec_wraps_recursion_on_encode() -> None:
    """Pickle should report over-deep values as codec errors."""
    with pytest.raises(StashCodecError):
        PickleCodec().serialize(_deeply_nested_list(100_000))


def test_pickle_codec_rejects_garbage_bytes() -> None:
    """Bytes that are not a pickle stream should fail to decode."""
    with pytest.raises(StashCodecError):
        PickleCodec().deserialize(b"\x80\x05\xff")

"""Stash CLI entry points.
This module exposes commands for inspecting and editing a settings scope.
It maps argparse commands onto settings store calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
import json
from pathlib import Path
from typing import Any, Sequence

from core.config import StashConfig
from core.constants import SUPPORTED_CODEC_NAMES
from core.errors import StashError
from core.logging_config import enable_console_logging
from stash import open_settings_store
from store.settings_store import SettingsStore


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="stash", description="Stash settings store CLI")
    parser.add_argument("--data-root", help="Override STASH_DATA_ROOT for this command")
    parser.add_argument("--scope", help="Override STASH_SCOPE for this command")
    parser.add_argument(
        "--codec",
        choices=SUPPORTED_CODEC_NAMES,
        help="Override STASH_CODEC for this command",
    )
    parser.add_argument("--verbose", action="store_true", help="Log store activity to stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_get_command(subparsers)
    _add_set_command(subparsers)
    _add_remove_command(subparsers)
    _add_list_command(subparsers)
    _add_clear_command(subparsers)
    _add_purge_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Stash CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        enable_console_logging()
    try:
        store = _build_store(args)
        if args.command == "get":
            return _run_get_command(store, args)
        if args.command == "set":
            return _run_set_command(store, args)
        if args.command == "remove":
            return _run_remove_command(store, args)
        if args.command == "list":
            return _run_list_command(store)
        if args.command == "clear":
            return _run_clear_command(store)
        if args.command == "purge":
            return _run_purge_command(store)
    except StashError as error:
        print(f"error: {error}")
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_store(args: argparse.Namespace) -> SettingsStore:
    """Open the settings store with optional CLI overrides.

    Args:
        args: Parsed CLI args.

    Returns:
        Restored settings store.
    """
    config = StashConfig.from_env()
    if args.data_root:
        config = replace(config, data_root=Path(args.data_root).expanduser().resolve())
    if args.scope:
        config = replace(config, scope=args.scope)
    if args.codec:
        config = replace(config, codec_name=args.codec)
    return open_settings_store(config)


def _run_get_command(store: SettingsStore, args: argparse.Namespace) -> int:
    """Handle get command.

    Args:
        store: Settings store.
        args: Parsed CLI args.

    Returns:
        Exit code; 1 when the key is absent.
    """
    value = store.try_get(args.key)
    if value is None:
        print(f"{args.key}: not found")
        return 1
    print(_render_value(value))
    return 0


def _run_set_command(store: SettingsStore, args: argparse.Namespace) -> int:
    """Handle set command.

    Args:
        store: Settings store.
        args: Parsed CLI args.

    Returns:
        Exit code; 1 when the durable write failed.
    """
    if not store.try_add_or_update(args.key, _parse_value(args.value)):
        print(f"{args.key}: write failed")
        return 1
    return 0


def _run_remove_command(store: SettingsStore, args: argparse.Namespace) -> int:
    """Handle remove command."""
    if not store.try_remove(args.key):
        print(f"{args.key}: not found")
        return 1
    return 0


def _run_list_command(store: SettingsStore) -> int:
    """Handle list command."""
    for key, value in sorted(store.items(), key=lambda item: item[0]):
        print(f"{key}\t{_render_value(value)}")
    return 0


def _run_clear_command(store: SettingsStore) -> int:
    """Handle clear command."""
    store.clear()
    return 0


def _run_purge_command(store: SettingsStore) -> int:
    """Handle purge command."""
    for name in store.purge_orphaned_blobs():
        print(name)
    return 0


def _parse_value(raw_value: str) -> Any:
    """Parse a CLI value as JSON, falling back to the raw string."""
    try:
        return json.loads(raw_value)
    except json.JSONDecodeError:
        return raw_value


def _render_value(value: Any) -> str:
    try:
        return json.dumps(value, sort_keys=True)
    except (TypeError, ValueError):
        return repr(value)


def _add_get_command(subparsers: Any) -> None:
    """Register get subcommand."""
    parser = subparsers.add_parser("get", help="Print one setting value as JSON")
    parser.add_argument("key", help="Setting key")


def _add_set_command(subparsers: Any) -> None:
    """Register set subcommand."""
    parser = subparsers.add_parser("set", help="Add or update one setting")
    parser.add_argument("key", help="Setting key")
    parser.add_argument("value", help="JSON value; plain text is stored as a string")


def _add_remove_command(subparsers: Any) -> None:
    """Register remove subcommand."""
    parser = subparsers.add_parser("remove", help="Remove one setting")
    parser.add_argument("key", help="Setting key")


def _add_list_command(subparsers: Any) -> None:
    """Register list subcommand."""
    subparsers.add_parser("list", help="List all settings sorted by key")


def _add_clear_command(subparsers: Any) -> None:
    """Register clear subcommand."""
    subparsers.add_parser("clear", help="Remove every setting in the scope")


def _add_purge_command(subparsers: Any) -> None:
    """Register purge subcommand."""
    subparsers.add_parser("purge", help="Delete blobs not referenced by any setting")

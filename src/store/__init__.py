"""Settings storage layer.

This module persists individually durable settings entries and their index.
It powers the settings store, its recovery, and change notifications.
"""

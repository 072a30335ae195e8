"""Pytest configuration for Stash test runs."""

"""Shared helpers for the relay server."""

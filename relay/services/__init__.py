"""Service layer for the relay server."""

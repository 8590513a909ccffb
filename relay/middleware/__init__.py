"""ASGI middleware and exception handlers for the relay server."""

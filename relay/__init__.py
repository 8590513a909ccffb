"""
Real-time chat relay server.

Clients register a username, join named rooms, exchange text and file
messages, and see a live presence roster over a WebSocket event channel.
"""

__version__ = "0.1.0"

"""HTTP and WebSocket routers for the relay server."""

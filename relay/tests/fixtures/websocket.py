"""In-memory WebSocket double for connection manager and session tests."""

from typing import Any

from starlette.websockets import WebSocketState


class FakeWebSocket:
    """Records sent frames; can be told to fail sends or appear closed."""

    def __init__(self, fail_sends: bool = False) -> None:
        self.sent: list[dict[str, Any]] = []
        self.fail_sends = fail_sends
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.close_code: int | None = None

    async def send_json(self, data: dict[str, Any]) -> None:
        if self.fail_sends:
            raise RuntimeError("WebSocket is not connected")
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.close_code = code
        self.application_state = WebSocketState.DISCONNECTED

    def events(self, event_type: str | None = None) -> list[dict[str, Any]]:
        """Sent frames, optionally filtered by event_type."""
        if event_type is None:
            return list(self.sent)
        return [frame for frame in self.sent if frame.get("event_type") == event_type]

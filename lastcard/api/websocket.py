"""WebSocket transport for the real-time gateway."""

import json
import logging
import uuid
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect

from lastcard.api.gateway import RealtimeGateway

logger = logging.getLogger(__name__)

IDENTITY_REJECTED_CLOSE_CODE = 4001


class WebSocketConnection:
    """Wraps a FastAPI WebSocket as a gateway connection."""

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket
        self.connection_id = str(uuid.uuid4())

    async def send_json(self, data: dict[str, Any]) -> None:
        """Send a JSON message, reporting a closed socket as ConnectionError."""
        try:
            await self.websocket.send_json(data)
        except WebSocketDisconnect as e:
            raise ConnectionError(f"WebSocket closed ({e.code})") from e


async def serve_connection(gateway: RealtimeGateway, websocket: WebSocket, identity: str) -> None:
    """Run one client connection until it disconnects.

    Args:
        gateway: Gateway handling the decoded messages
        websocket: Client socket (not yet accepted)
        identity: Identity asserted by the upstream authentication layer

    """
    # Must accept before closing to avoid HTTP 403
    await websocket.accept()
    connection = WebSocketConnection(websocket)

    token = await gateway.connect(connection, identity)
    if token is None:
        await websocket.close(code=IDENTITY_REJECTED_CLOSE_CODE, reason="Identity not verified")
        return

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("Ignoring non-JSON frame from %s", connection.connection_id)
                continue
            if not isinstance(data, dict):
                logger.warning("Ignoring non-object frame from %s", connection.connection_id)
                continue

            await gateway.handle_message(connection, data)

    except WebSocketDisconnect:
        logger.info("Connection %s closed by client", connection.connection_id)

    except (RuntimeError, ConnectionError, OSError) as e:
        logger.warning("Error on connection %s: %s", connection.connection_id, e)

    finally:
        gateway.disconnect(connection)

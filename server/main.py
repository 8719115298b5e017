"""FastAPI WebSocket server for the Golf card game family."""

import json
import logging

from fastapi import FastAPI, WebSocket, WebSocketDisconnect

from config import config
from handlers import Outbound, dispatch, handle_disconnect, new_connection_context
from logging_config import connection_id_var, setup_logging
from room import RoomManager

setup_logging(
    level=config.LOG_LEVEL,
    environment=config.ENVIRONMENT,
)
logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Tracks open sockets by player ID and pushes outbound messages.

    A failed send is logged and skipped; the other recipients still get
    the message.
    """

    def __init__(self) -> None:
        self.active: dict[str, WebSocket] = {}

    def connect(self, player_id: str, websocket: WebSocket) -> None:
        self.active[player_id] = websocket

    def disconnect(self, player_id: str) -> None:
        self.active.pop(player_id, None)

    async def deliver(self, outbound: list[Outbound]) -> None:
        """Send each message to every connected recipient, in order."""
        for out in outbound:
            for player_id in out.recipients:
                websocket = self.active.get(player_id)
                if websocket is None:
                    continue
                try:
                    await websocket.send_json(out.message)
                except Exception as e:
                    logger.warning(
                        f"Failed to send {out.message.get('type')}: {e}",
                        extra={"player_id": player_id},
                    )


room_manager = RoomManager()
connections = ConnectionManager()

app = FastAPI(title="Golf Room Server")


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await websocket.accept()

    ctx = new_connection_context()
    connection_id_var.set(ctx.connection_id)
    connections.connect(ctx.player_id, websocket)
    logger.debug(f"WebSocket connected as {ctx.player_id}", extra={"player_id": ctx.player_id})

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                data = json.loads(raw)
            except ValueError:
                logger.debug("Ignoring non-JSON message", extra={"player_id": ctx.player_id})
                continue

            try:
                outbound = dispatch(data, ctx, room_manager)
            except Exception:
                room_code = data.get("room_code") if isinstance(data, dict) else None
                logger.exception(
                    "Error handling message",
                    extra={"player_id": ctx.player_id, "room_code": room_code},
                )
                continue

            await connections.deliver(outbound)
    except WebSocketDisconnect:
        logger.debug(f"WebSocket disconnected: {ctx.player_id}", extra={"player_id": ctx.player_id})
    finally:
        connections.disconnect(ctx.player_id)
        await connections.deliver(handle_disconnect(ctx, room_manager=room_manager))


def run():
    """Run the server using uvicorn."""
    import uvicorn

    logger.info(f"Starting Golf server on {config.HOST}:{config.PORT}")
    logger.info(f"Debug mode: {config.DEBUG}")

    uvicorn.run(
        "main:app",
        host=config.HOST,
        port=config.PORT,
        reload=config.DEBUG,
        log_level=config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()

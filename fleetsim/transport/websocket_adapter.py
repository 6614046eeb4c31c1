"""
WebSocket server that broadcasts fleet positions to dashboard clients.

On connect a client receives INITIAL_POSITIONS with the latest snapshot;
after that one POSITION_UPDATE per tick. Both carry

    {"type": ..., "data": [{"resourceId": ..., "position": {...}}, ...]}

Clients may send {"cmd": "snapshot"} to get the snapshot again, and
{"cmd": "set_speed", "speed": N}, {"cmd": "pause"} or {"cmd": "resume"}
to control the simulation clock.
"""

import json
import logging
from typing import Any

import websockets
from websockets.asyncio.server import ServerConnection

from fleetsim.core.clock import SimulationClock
from fleetsim.core.position_feed import PositionFeed
from fleetsim.core.resource import PositionSample, position_batch
from fleetsim.transport.base import TransportAdapter

logger = logging.getLogger(__name__)


class WebSocketAdapter(TransportAdapter):
    """WebSocket server broadcasting position batches to all clients."""

    def __init__(
        self,
        feed: PositionFeed,
        clock: SimulationClock | None = None,
        host: str = "0.0.0.0",
        port: int = 8765,
    ) -> None:
        self._feed = feed
        self._clock = clock
        self._host = host
        self._port = port
        self._clients: set[ServerConnection] = set()
        self._server: Any = None

    @property
    def name(self) -> str:
        return "websocket"

    @property
    def port(self) -> int:
        """Bound port (useful when started with port=0)."""
        if self._server is not None:
            return self._server.sockets[0].getsockname()[1]
        return self._port

    async def connect(self) -> None:
        """Start the WebSocket server."""
        self._server = await websockets.serve(self._handle_client, self._host, self._port)
        logger.info(f"WebSocket server started on ws://{self._host}:{self.port}")

    async def disconnect(self) -> None:
        """Stop the WebSocket server and close all clients."""
        if self._server:
            self._server.close()
            await self._server.wait_closed()
        self._clients.clear()
        logger.info("WebSocket server stopped")

    async def push_positions(self, samples: dict[str, PositionSample]) -> None:
        if not samples:
            return
        await self._broadcast(self._message("POSITION_UPDATE", samples))

    @staticmethod
    def _message(msg_type: str, samples: dict[str, PositionSample]) -> str:
        return json.dumps({"type": msg_type, "data": position_batch(samples)})

    async def _handle_client(self, websocket: ServerConnection) -> None:
        self._clients.add(websocket)
        logger.info(f"Client connected ({len(self._clients)} total)")

        try:
            await websocket.send(self._message("INITIAL_POSITIONS", self._feed.snapshot_all()))
            async for message in websocket:
                await self._handle_message(websocket, message)
        except websockets.ConnectionClosed:
            pass
        finally:
            self._clients.discard(websocket)
            logger.info(f"Client disconnected ({len(self._clients)} total)")

    async def _handle_message(self, websocket: ServerConnection, raw: str | bytes) -> None:
        try:
            msg = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Invalid JSON from client: {str(raw)[:100]}")
            return
        if not isinstance(msg, dict):
            return

        cmd = msg.get("cmd") or msg.get("type")
        if cmd == "snapshot":
            await websocket.send(self._message("INITIAL_POSITIONS", self._feed.snapshot_all()))
        elif cmd in ("set_speed", "pause", "resume") and self._clock is None:
            logger.debug(f"Ignoring {cmd}: no clock attached")
        elif cmd == "set_speed":
            try:
                self._clock.set_speed(float(msg.get("speed", 1.0)))
            except (TypeError, ValueError) as e:
                logger.warning(f"Rejected clock speed {msg.get('speed')!r}: {e}")
                return
            logger.info(f"Clock speed set to {self._clock.speed}x")
        elif cmd == "pause":
            self._clock.pause()
            logger.info("Clock paused")
        elif cmd == "resume":
            self._clock.resume()
            logger.info("Clock resumed")
        else:
            logger.debug(f"Unknown message type: {cmd}")

    async def _broadcast(self, message: str) -> None:
        """Send to every client. A failing client is dropped, the rest still get the message."""
        disconnected = set()
        for client in list(self._clients):
            try:
                await client.send(message)
            except websockets.ConnectionClosed:
                disconnected.add(client)
            except Exception as e:
                logger.warning(f"Dropping client after send error: {e}")
                disconnected.add(client)
        self._clients -= disconnected

    @property
    def client_count(self) -> int:
        return len(self._clients)

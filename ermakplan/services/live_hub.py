import asyncio
from typing import Any, Dict, Optional

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from ..logging import get_logger


log = get_logger("ermakplan.live")

WELCOME_MESSAGE = "WebSocket connection established"


def make_event(event_type: str, action: str, data: Any) -> Dict[str, Any]:
    return {"type": event_type, "action": action, "data": data}


class LiveHub:
    """
    Registry of open real-time connections.

    A connection stays registered until it closes or a send to it fails;
    the next sweep evicts connections whose last send failed. Transport
    liveness (dead peers) is left to the server's WebSocket ping/pong.
    Broadcasts are fire-and-forget: no retry, no backlog for clients that
    connect later.
    """

    def __init__(self) -> None:
        # WebSocket -> no send has failed since the last sweep
        self._alive: Dict[WebSocket, bool] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._alive)

    async def connect(self, ws: WebSocket) -> None:
        async with self._lock:
            self._alive[ws] = True
        log.info("ws_connected", connections=len(self._alive))
        await self._send(ws, make_event("notification", "create", {"message": WELCOME_MESSAGE}))

    async def disconnect(self, ws: WebSocket) -> None:
        async with self._lock:
            removed = self._alive.pop(ws, None) is not None
        if removed:
            log.info("ws_disconnected", connections=len(self._alive))

    async def mark_alive(self, ws: WebSocket) -> None:
        async with self._lock:
            if ws in self._alive:
                self._alive[ws] = True

    async def broadcast(self, event: Dict[str, Any]) -> int:
        """Push `event` to every open connection; returns how many sends succeeded."""
        async with self._lock:
            targets = list(self._alive)
        delivered = 0
        for ws in targets:
            if ws.client_state != WebSocketState.CONNECTED:
                continue
            if await self._send(ws, event):
                delivered += 1
        return delivered

    async def sweep(self) -> None:
        """One liveness round: drop connections whose last send failed, ping the rest."""
        async with self._lock:
            stale = [ws for ws, alive in self._alive.items() if not alive]
            for ws in stale:
                self._alive.pop(ws, None)
            targets = list(self._alive)
        for ws in stale:
            log.info("ws_evicted", reason="send_failed")
            try:
                await ws.close(code=1001)
            except Exception as e:
                log.debug("ws_close_failed", error=str(e))
        for ws in targets:
            await self._send(ws, {"type": "ping"})

    async def run_liveness(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            await self.sweep()

    async def _send(self, ws: WebSocket, payload: Dict[str, Any]) -> bool:
        try:
            await ws.send_json(payload)
            return True
        except Exception as e:
            # Left in the registry; the next sweep evicts it
            if ws in self._alive:
                self._alive[ws] = False
            log.warning("ws_send_failed", error=str(e))
            return False


def start_liveness(hub: LiveHub, interval: float) -> Optional[asyncio.Task]:
    if interval <= 0:
        return None
    return asyncio.create_task(hub.run_liveness(interval))

"""Bridge from sync route handlers (threadpool) to the async live hub."""
from typing import Any, Dict

import anyio
from fastapi import Request

from ..logging import get_logger
from .live_hub import LiveHub, make_event


log = get_logger("ermakplan.events")


def get_live_hub(request: Request) -> LiveHub:
    return request.app.state.live_hub


def publish(hub: LiveHub, event: Dict[str, Any]) -> None:
    async def _broadcast():
        await hub.broadcast(event)

    try:
        anyio.from_thread.run(_broadcast)
    except RuntimeError as e:
        # Not running inside a worker thread of the app's event loop
        log.warning("broadcast_skipped", event_type=event.get("type"), error=str(e))


def publish_location_report(hub: LiveHub, action: str, data: Any) -> None:
    publish(hub, make_event("location_report", action, data))


def publish_notification(hub: LiveHub, data: Any) -> None:
    publish(hub, make_event("notification", "create", data))

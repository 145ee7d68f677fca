from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..auth.security import resolve_session
from ..config import settings
from ..db import SessionLocal
from ..logging import get_logger
from ..services.live_hub import LiveHub


router = APIRouter(tags=["live"])
log = get_logger("ermakplan.live")


def _authenticated(websocket: WebSocket) -> bool:
    token = websocket.cookies.get(settings.session_cookie_name)
    db = SessionLocal()
    try:
        return resolve_session(db, token) is not None
    finally:
        db.close()


@router.websocket("/ws")
async def ws_live(websocket: WebSocket):
    if not _authenticated(websocket):
        await websocket.close(code=4401)
        return

    hub: LiveHub = websocket.app.state.live_hub
    await websocket.accept()
    await hub.connect(websocket)

    try:
        while True:
            data = await websocket.receive_text()
            await hub.mark_alive(websocket)
            if data and data.strip().lower() == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        await hub.disconnect(websocket)
    except Exception as e:
        log.warning("ws_receive_failed", error=str(e))
        await hub.disconnect(websocket)
        try:
            await websocket.close()
        except RuntimeError:
            pass

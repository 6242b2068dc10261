from __future__ import annotations

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from ..deps import get_ws_runtime
from ..log import get_logger
from ..state import Runtime

logger = get_logger(__name__)

router = APIRouter(prefix="", tags=["ws"])


@router.websocket("/ws")
async def websocket_endpoint(ws: WebSocket, runtime: Runtime = Depends(get_ws_runtime)):
    """Multiplayer channel: one JSON message per frame, dispatched by ``type``."""
    await ws.accept()
    router_ = runtime.router
    router_.connect(ws)
    try:
        while True:
            raw = await ws.receive_text()
            await router_.handle(ws, raw)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("websocket error")
    finally:
        await router_.disconnect(ws)

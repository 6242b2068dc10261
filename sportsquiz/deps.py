from fastapi import Request, WebSocket

from .state import Runtime


def get_runtime(request: Request) -> Runtime:
    return request.app.state.runtime


def get_ws_runtime(websocket: WebSocket) -> Runtime:
    return websocket.app.state.runtime

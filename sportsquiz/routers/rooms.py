from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..deps import get_runtime
from ..errors import RoomNotFound
from ..schemas import RoomSnapshot
from ..state import Runtime

router = APIRouter(prefix="/api", tags=["rooms"])


@router.get("/rooms", response_model=List[RoomSnapshot])
async def list_rooms(runtime: Runtime = Depends(get_runtime)):
    """Rooms still accepting players (same view as the lobby websocket)."""
    return runtime.directory.summaries(runtime.coordinator.clock())


@router.get("/rooms/{room_id}", response_model=RoomSnapshot)
async def get_room(room_id: str, runtime: Runtime = Depends(get_runtime)):
    try:
        room = runtime.directory.get_room(room_id)
    except RoomNotFound:
        raise HTTPException(status_code=404, detail="Room not found")
    return room.snapshot(runtime.coordinator.clock())

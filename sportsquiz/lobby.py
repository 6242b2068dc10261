"""Room directory: the id -> Room map behind the lobby.

None of these methods await, so on the single event loop each call runs
to completion before any other handler touches the map.
"""
from __future__ import annotations

import uuid
from typing import Dict, List, Optional

from .errors import InvalidRoomName, RoomNotFound
from .log import get_logger
from .room import Room
from .schemas import Player, RoomSnapshot

logger = get_logger(__name__)


class RoomDirectory:
    def __init__(
        self,
        total_questions: int = 10,
        min_players: int = 2,
        default_max_players: int = 4,
        max_players_limit: int = 8,
    ):
        self.rooms: Dict[str, Room] = {}
        self.total_questions = total_questions
        self.min_players = min_players
        self.default_max_players = default_max_players
        self.max_players_limit = max_players_limit

    def _clamp_capacity(self, capacity: Optional[int]) -> int:
        if capacity is None:
            return self.default_max_players
        return max(self.min_players, min(capacity, self.max_players_limit))

    def list_open_rooms(self) -> List[Room]:
        """Rooms still waiting for players and not yet full."""
        return [room for room in self.rooms.values() if room.is_open()]

    def summaries(self, now: float) -> List[RoomSnapshot]:
        return [room.snapshot(now) for room in self.list_open_rooms()]

    def create_room(
        self, name: str, category: str, capacity: Optional[int], creator: Player
    ) -> Room:
        if not name or not name.strip():
            raise InvalidRoomName()
        room_id = str(uuid.uuid4())
        while room_id in self.rooms:
            room_id = str(uuid.uuid4())
        room = Room(
            room_id,
            name.strip(),
            category,
            self._clamp_capacity(capacity),
            creator,
            total_questions=self.total_questions,
            min_players=self.min_players,
        )
        self.rooms[room_id] = room
        logger.info(
            "room=%s created name=%r category=%s capacity=%d host=%s",
            room_id, room.name, category, room.max_players, creator.id,
        )
        return room

    def get_room(self, room_id: str) -> Room:
        room = self.rooms.get(room_id)
        if room is None:
            raise RoomNotFound()
        return room

    def room_of(self, player_id: str) -> Optional[Room]:
        for room in self.rooms.values():
            if room.get_player(player_id) is not None:
                return room
        return None

    def remove_room_if_empty(self, room_id: str) -> bool:
        room = self.rooms.get(room_id)
        if room is None or room.players:
            return False
        self.rooms.pop(room_id, None)
        room.closed = True
        logger.info("room=%s removed (empty)", room_id)
        return True


__all__ = ["RoomDirectory"]

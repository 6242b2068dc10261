"""Single entry point for inbound websocket messages.

Each connection gets a ``Session`` holding the identity it announced with
``join_lobby`` and the room it is in. Room-scoped messages always act on
``session.room_id``; a client cannot name a room it never joined.
"""
from __future__ import annotations

import json
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from .constants import MSG_ERROR, MSG_ROOM_JOINED, MSG_ROOM_UPDATED, MSG_ROOMS_LIST
from .errors import InvalidState, MalformedMessage, QuizError, RoomNotFound
from .game_logic import MatchCoordinator
from .lobby import RoomDirectory
from .log import get_logger
from .registry import Channel, ConnectionRegistry
from .room import Room
from .schemas import (
    CreateRoomMessage,
    JoinLobbyMessage,
    JoinRoomMessage,
    LeaveRoomMessage,
    ListRoomsMessage,
    Player,
    SetReadyMessage,
    StartGameMessage,
    SubmitAnswerMessage,
    inbound_message_adapter,
)

logger = get_logger(__name__)


class Session:
    """Server-side state of one websocket connection."""

    def __init__(self, channel: Channel):
        self.channel = channel
        self.user_id: Optional[str] = None
        self.username: Optional[str] = None
        self.room_id: Optional[str] = None


def parse_message(raw: Union[str, bytes, Dict[str, Any]]):
    """Validate *raw* into one of the inbound message models."""
    try:
        data = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
        return inbound_message_adapter.validate_python(data)
    except (ValueError, ValidationError) as exc:
        raise MalformedMessage(str(exc)) from exc


class MessageRouter:
    def __init__(
        self,
        directory: RoomDirectory,
        registry: ConnectionRegistry,
        coordinator: MatchCoordinator,
    ):
        self.directory = directory
        self.registry = registry
        self.coordinator = coordinator
        self.sessions: Dict[Channel, Session] = {}

    # ---------------------------------------------------------------------
    # Connection lifecycle
    # ---------------------------------------------------------------------

    def connect(self, channel: Channel) -> Session:
        session = Session(channel)
        self.sessions[channel] = session
        return session

    async def disconnect(self, channel: Channel) -> None:
        """Treat a dropped connection exactly like ``leave_room``."""
        session = self.sessions.pop(channel, None)
        if session is None or session.user_id is None:
            return
        # A newer connection took over this identity; it owns the membership now
        if not self.registry.unregister(session.user_id, channel):
            return
        logger.info("player=%s disconnected", session.user_id)
        await self._leave_current_room(session)

    # ---------------------------------------------------------------------
    # Dispatch
    # ---------------------------------------------------------------------

    async def handle(self, channel: Channel, raw: Union[str, bytes, Dict[str, Any]]) -> None:
        session = self.sessions.get(channel) or self.connect(channel)
        try:
            message = parse_message(raw)
            await self._dispatch(session, message)
        except MalformedMessage as exc:
            logger.warning("malformed message from player=%s dropped: %s", session.user_id, exc.message)
        except QuizError as exc:
            if exc.client_visible:
                await self._send_error(session, exc.message)
            else:
                logger.info("player=%s %s: %s", session.user_id, type(exc).__name__, exc.message)

    async def _dispatch(self, session: Session, message) -> None:
        if isinstance(message, JoinLobbyMessage):
            await self.handle_join_lobby(session, message)
            return
        if session.user_id is None:
            raise InvalidState("Join the lobby first")

        if isinstance(message, ListRoomsMessage):
            await self._send_rooms_list(session)
        elif isinstance(message, CreateRoomMessage):
            await self.handle_create_room(session, message)
        elif isinstance(message, JoinRoomMessage):
            await self.handle_join_room(session, message)
        elif isinstance(message, LeaveRoomMessage):
            await self._leave_current_room(session)
        elif isinstance(message, SetReadyMessage):
            await self.handle_set_ready(session, message)
        elif isinstance(message, StartGameMessage):
            await self.handle_start_game(session)
        elif isinstance(message, SubmitAnswerMessage):
            await self.handle_submit_answer(session, message)

    # -------------------- Lobby -------------------- #

    async def handle_join_lobby(self, session: Session, message: JoinLobbyMessage) -> None:
        if session.user_id is not None and session.user_id != message.user_id:
            raise InvalidState("Connection already identified")
        session.user_id = message.user_id
        session.username = message.username
        previous = self.registry.register(message.user_id, session.channel)
        if previous is not None:
            # Old connection stays open but no longer speaks for this player
            self.sessions.pop(previous, None)
            room = self.directory.room_of(message.user_id)
            if room is not None:
                session.room_id = room.room_id
            logger.info("player=%s superseded an older connection", message.user_id)
        logger.info("player=%s (%s) joined lobby", message.user_id, message.username)
        await self._send_rooms_list(session)

    async def handle_create_room(self, session: Session, message: CreateRoomMessage) -> None:
        creator = Player(id=session.user_id, username=session.username)
        room = self.directory.create_room(
            message.room_name, message.category, message.max_players, creator
        )
        await self._leave_current_room(session)
        session.room_id = room.room_id
        async with room.lock:
            await self._send(session, self.coordinator.room_message(MSG_ROOM_JOINED, room))
        await self.broadcast_lobby()

    async def handle_join_room(self, session: Session, message: JoinRoomMessage) -> None:
        if session.room_id == message.room_id:
            room = self.directory.get_room(message.room_id)
            async with room.lock:
                await self._send(session, self.coordinator.room_message(MSG_ROOM_JOINED, room))
            return

        room = self.directory.get_room(message.room_id)
        async with room.lock:
            if room.closed:
                raise RoomNotFound()
            # Validate before leaving the current room so a failed join keeps it
            room.join(Player(id=session.user_id, username=session.username))
        await self._leave_current_room(session)

        async with room.lock:
            if room.closed or room.get_player(session.user_id) is None:
                raise RoomNotFound()
            session.room_id = room.room_id
            logger.info("room=%s player=%s joined", room.room_id, session.user_id)
            await self._send(session, self.coordinator.room_message(MSG_ROOM_JOINED, room))
            others = [pid for pid in room.player_ids if pid != session.user_id]
            await self.registry.broadcast(
                others, self.coordinator.room_message(MSG_ROOM_UPDATED, room)
            )
        await self.broadcast_lobby()

    # -------------------- In-room -------------------- #

    async def handle_set_ready(self, session: Session, message: SetReadyMessage) -> None:
        room = self._current_room(session)
        async with room.lock:
            self._check_membership(room, session)
            room.set_ready(session.user_id, message.ready)
            await self.coordinator.broadcast_room(room, MSG_ROOM_UPDATED)

    async def handle_start_game(self, session: Session) -> None:
        room = self._current_room(session)
        async with room.lock:
            self._check_membership(room, session)
            await self.coordinator.start_match(room, session.user_id)
        await self.broadcast_lobby()

    async def handle_submit_answer(self, session: Session, message: SubmitAnswerMessage) -> None:
        room = self._current_room(session)
        async with room.lock:
            self._check_membership(room, session)
            await self.coordinator.submit_answer(
                room, session.user_id, message.answer_index, message.time_remaining
            )

    async def _leave_current_room(self, session: Session) -> None:
        if session.room_id is None:
            return
        room = self.directory.rooms.get(session.room_id)
        session.room_id = None
        if room is None:
            return
        async with room.lock:
            if room.closed:
                return
            player = room.leave(session.user_id)
            if player is None:
                return
            logger.info("room=%s player=%s left (%d remain)", room.room_id, player.id, len(room.players))
            if self.directory.remove_room_if_empty(room.room_id):
                self.coordinator.discard_room(room.room_id)
            else:
                await self.coordinator.broadcast_room(room, MSG_ROOM_UPDATED)
                await self.coordinator.player_left(room)
        await self.broadcast_lobby()

    # ---------------------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------------------

    def _current_room(self, session: Session) -> Room:
        if session.room_id is None:
            raise InvalidState("You are not in a room")
        room = self.directory.rooms.get(session.room_id)
        if room is None:
            session.room_id = None
            raise RoomNotFound()
        return room

    def _check_membership(self, room: Room, session: Session) -> None:
        if room.closed or room.get_player(session.user_id) is None:
            session.room_id = None
            raise RoomNotFound()

    async def _send(self, session: Session, message: dict) -> None:
        try:
            await session.channel.send_json(message)
        except Exception as exc:
            logger.debug("drop %s -> %s: %s", message.get("type"), session.user_id, exc)

    async def _send_error(self, session: Session, text: str) -> None:
        await self._send(session, {"type": MSG_ERROR, "message": text})

    def rooms_list_message(self) -> dict:
        rooms = self.directory.summaries(self.coordinator.clock())
        return {"type": MSG_ROOMS_LIST, "rooms": [r.model_dump(by_alias=True) for r in rooms]}

    async def _send_rooms_list(self, session: Session) -> None:
        await self._send(session, self.rooms_list_message())

    async def broadcast_lobby(self) -> None:
        """Push the open room list to every identified connection not in a room."""
        message = self.rooms_list_message()
        for session in list(self.sessions.values()):
            if session.user_id is not None and session.room_id is None:
                await self._send(session, message)


__all__ = ["MessageRouter", "Session", "parse_message"]

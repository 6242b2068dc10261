"""Pydantic data schemas used across the backend service.

This module centralises all models so that other packages can import
from a single location instead of sprinkling the definitions across
multiple files. Everything serialises to camelCase on the wire
(``model_dump(by_alias=True)``) while Python code uses snake_case names.
"""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -----------------------------
# Runtime & Lobby
# -----------------------------

class Player(CamelModel):
    """Represents a user inside a room at runtime."""

    id: str
    username: str
    score: int = 0
    is_ready: bool = False
    is_host: bool = False
    # Monotonic join counter; decides host succession and ranking ties.
    join_seq: int = Field(default=0, exclude=True)


class RoomSnapshot(CamelModel):
    """Full room state as broadcast to every member after each change."""

    id: str
    name: str
    category: str
    max_players: int
    players: List[Player]
    status: str  # waiting | playing | finished
    current_question_index: int = 0
    total_questions: int = 0
    time_remaining: int = 0
    # Ids of players who already answered the open round
    answered: List[str] = []


class SubmittedAnswer(BaseModel):
    answer_index: int
    submitted_at: float
    # Client's own countdown reading; informational only, never trusted.
    time_remaining: Optional[float] = None


class PlayerResult(CamelModel):
    player_id: str
    username: str
    score: int
    rank: int


class RoundResults(CamelModel):
    round_index: int
    question_id: str
    correct_answer: int
    explanation: Optional[str] = None
    awards: Dict[str, int] = {}
    unanswered: List[str] = []


# -----------------------------
# Questions
# -----------------------------

class SanitizedQuestion(CamelModel):
    """Question as clients see it: no answer key."""

    id: str
    category: str
    question: str
    options: List[str]
    points: int = 10
    image_url: Optional[str] = None


class Question(SanitizedQuestion):
    correct_answer: int
    explanation: Optional[str] = None

    def sanitized(self) -> SanitizedQuestion:
        return SanitizedQuestion.model_validate(
            self.model_dump(include=set(SanitizedQuestion.model_fields))
        )


# -----------------------------
# Inbound websocket messages
# -----------------------------

class JoinLobbyMessage(CamelModel):
    type: Literal["join_lobby"]
    user_id: str = Field(min_length=1)
    username: str = Field(min_length=1, max_length=64)


class ListRoomsMessage(CamelModel):
    type: Literal["list_rooms"]


class CreateRoomMessage(CamelModel):
    type: Literal["create_room"]
    room_name: str
    category: str = Field(min_length=1)
    max_players: Optional[int] = None


class JoinRoomMessage(CamelModel):
    type: Literal["join_room"]
    room_id: str = Field(min_length=1)


class LeaveRoomMessage(CamelModel):
    type: Literal["leave_room"]


class SetReadyMessage(CamelModel):
    type: Literal["set_ready"]
    ready: Optional[bool] = None  # omitted -> toggle


class StartGameMessage(CamelModel):
    type: Literal["start_game"]


class SubmitAnswerMessage(CamelModel):
    type: Literal["submit_answer"]
    answer_index: int = Field(ge=0)
    time_remaining: Optional[float] = None


InboundMessage = Annotated[
    Union[
        JoinLobbyMessage,
        ListRoomsMessage,
        CreateRoomMessage,
        JoinRoomMessage,
        LeaveRoomMessage,
        SetReadyMessage,
        StartGameMessage,
        SubmitAnswerMessage,
    ],
    Field(discriminator="type"),
]

inbound_message_adapter: TypeAdapter[InboundMessage] = TypeAdapter(InboundMessage)


# -----------------------------
# REST request / response models
# -----------------------------

class UserCreate(CamelModel):
    username: str = Field(min_length=1, max_length=50)


class UserResponse(CamelModel):
    id: str
    username: str
    total_points: int
    created_at: datetime


class AnswerCheckRequest(CamelModel):
    question_id: str
    selected_answer: int


class AnswerCheckResponse(CamelModel):
    is_correct: bool
    points_earned: int
    correct_answer: int
    explanation: Optional[str] = None


__all__ = [
    # runtime
    "Player",
    "RoomSnapshot",
    "SubmittedAnswer",
    "PlayerResult",
    "RoundResults",
    # questions
    "SanitizedQuestion",
    "Question",
    # websocket
    "JoinLobbyMessage",
    "ListRoomsMessage",
    "CreateRoomMessage",
    "JoinRoomMessage",
    "LeaveRoomMessage",
    "SetReadyMessage",
    "StartGameMessage",
    "SubmitAnswerMessage",
    "InboundMessage",
    "inbound_message_adapter",
    # rest
    "UserCreate",
    "UserResponse",
    "AnswerCheckRequest",
    "AnswerCheckResponse",
]

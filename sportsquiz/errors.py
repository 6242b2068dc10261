"""Error taxonomy for room and match operations.

Operations raise these *before* mutating anything, so a failed call never
leaves a room half-updated. ``client_visible`` decides whether the message
router turns the error into an ``error`` message for the sender or only
logs it.
"""
from __future__ import annotations

from typing import Optional


class QuizError(Exception):
    """Base class for every coordinator failure."""

    client_visible: bool = True
    default_message: str = "Request failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# -------------------- Surfaced to the originating client -------------------- #

class InvalidRoomName(QuizError):
    default_message = "Room name is required"


class RoomFull(QuizError):
    default_message = "Room is full"


class InvalidState(QuizError):
    default_message = "That action is not allowed right now"


class NotEnoughPlayers(QuizError):
    default_message = "Not enough players to start"


class PlayersNotReady(QuizError):
    default_message = "All players must be ready"


class RoomNotFound(QuizError):
    default_message = "Room not found"


# -------------------- Handled internally -------------------- #

class DuplicateAnswer(QuizError):
    client_visible = False
    default_message = "Answer already recorded for this round"


class DeadlineExceeded(QuizError):
    client_visible = False
    default_message = "Round deadline has passed"


class MalformedMessage(QuizError):
    client_visible = False
    default_message = "Malformed message"


class QuestionUnavailable(QuizError):
    client_visible = False
    default_message = "No question available"


__all__ = [
    "QuizError",
    "InvalidRoomName",
    "RoomFull",
    "InvalidState",
    "NotEnoughPlayers",
    "PlayersNotReady",
    "RoomNotFound",
    "DuplicateAnswer",
    "DeadlineExceeded",
    "MalformedMessage",
    "QuestionUnavailable",
]

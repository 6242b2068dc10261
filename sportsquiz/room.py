from __future__ import annotations

import asyncio
import itertools
import math
from typing import Dict, List, Optional

from .constants import (
    STATUS_FINISHED,
    STATUS_PLAYING,
    STATUS_TRANSITIONS,
    STATUS_WAITING,
)
from .errors import (
    DeadlineExceeded,
    DuplicateAnswer,
    InvalidState,
    NotEnoughPlayers,
    PlayersNotReady,
    RoomFull,
)
from .log import get_logger
from .schemas import Player, PlayerResult, Question, RoomSnapshot, SubmittedAnswer

logger = get_logger(__name__)

# NOTE: ``Room`` only knows structure (membership, phase, answers). Timing and
# scoring policy live in ``sportsquiz.game_logic``; broadcasting lives in the
# message router.


class Round:
    """Answers collected for the question currently on screen."""

    def __init__(self, index: int, question: Question, deadline: float):
        self.index = index
        self.question = question
        self.deadline = deadline
        self.answers: Dict[str, SubmittedAnswer] = {}
        self.closed = False


class Room:
    """Runtime state machine for a single multiplayer match."""

    def __init__(
        self,
        room_id: str,
        name: str,
        category: str,
        max_players: int,
        creator: Player,
        total_questions: int = 10,
        min_players: int = 2,
    ):
        self.room_id = room_id
        self.name = name
        self.category = category
        self.max_players = max_players
        self.total_questions = total_questions
        self.min_players = min_players
        self.status = STATUS_WAITING
        self.round_index: int = 0
        self.current_round: Optional[Round] = None
        # Join order; host succession walks this list front to back.
        self.players: List[Player] = []
        # Flag to ensure we only write ledger deltas once per finished match
        self.results_recorded: bool = False
        # Set by the directory on removal; late lock holders treat it as gone
        self.closed: bool = False
        # Serialises every mutation of this room (messages and timers alike)
        self.lock = asyncio.Lock()
        # Join order counter, local to this room
        self._join_seq = itertools.count(1)

        creator.is_host = True
        creator.is_ready = True
        creator.score = 0
        creator.join_seq = next(self._join_seq)
        self.players.append(creator)

    # ---------------------------------------------------------------------
    # Helper utilities
    # ---------------------------------------------------------------------

    @property
    def player_ids(self) -> List[str]:
        return [p.id for p in self.players]

    @property
    def host(self) -> Optional[Player]:
        return next((p for p in self.players if p.is_host), None)

    @property
    def deadline(self) -> Optional[float]:
        if self.current_round is None or self.current_round.closed:
            return None
        return self.current_round.deadline

    def get_player(self, player_id: str) -> Optional[Player]:
        return next((p for p in self.players if p.id == player_id), None)

    def is_full(self) -> bool:
        return len(self.players) >= self.max_players

    def is_open(self) -> bool:
        return self.status == STATUS_WAITING and not self.is_full()

    def _require_member(self, player_id: str) -> Player:
        player = self.get_player(player_id)
        if player is None:
            raise InvalidState("You are not in this room")
        return player

    def _set_status(self, status: str) -> None:
        if status not in STATUS_TRANSITIONS[self.status]:
            raise InvalidState(f"Cannot move room from {self.status} to {status}")
        logger.info("room=%s status %s -> %s", self.room_id, self.status, status)
        self.status = status

    # -------------------- Membership -------------------- #

    def join(self, player: Player) -> Player:
        existing = self.get_player(player.id)
        if existing is not None:
            return existing
        if self.is_full():
            raise RoomFull()
        if self.status != STATUS_WAITING:
            raise InvalidState("Game already started")
        player.is_ready = False
        player.is_host = False
        player.score = 0
        player.join_seq = next(self._join_seq)
        self.players.append(player)
        return player

    def leave(self, player_id: str) -> Optional[Player]:
        player = self.get_player(player_id)
        if player is None:
            return None
        self.players.remove(player)
        # Transfer host if host leaves
        if player.is_host:
            player.is_host = False
            if self.players:
                successor = min(self.players, key=lambda p: p.join_seq)
                successor.is_host = True
                logger.info("room=%s host %s -> %s", self.room_id, player.id, successor.id)
        return player

    def set_ready(self, player_id: str, ready: Optional[bool] = None) -> Player:
        if self.status != STATUS_WAITING:
            raise InvalidState("Game already started")
        player = self._require_member(player_id)
        player.is_ready = (not player.is_ready) if ready is None else ready
        return player

    # -------------------- Match progression -------------------- #

    def start_match(self, player_id: str) -> None:
        player = self._require_member(player_id)
        if not player.is_host:
            raise InvalidState("Only the host can start the game")
        if self.status != STATUS_WAITING:
            raise InvalidState("Game already started")
        if len(self.players) < self.min_players:
            raise NotEnoughPlayers(f"At least {self.min_players} players are needed")
        if not all(p.is_ready for p in self.players):
            raise PlayersNotReady()
        self._set_status(STATUS_PLAYING)
        self.round_index = 0
        self.current_round = None
        for p in self.players:
            p.score = 0

    def open_round(self, question: Question, deadline: float) -> Round:
        if self.status != STATUS_PLAYING:
            raise InvalidState("Match is not running")
        self.current_round = Round(self.round_index, question, deadline)
        return self.current_round

    def record_answer(
        self,
        player_id: str,
        answer_index: int,
        submitted_at: float,
        time_remaining: Optional[float] = None,
    ) -> SubmittedAnswer:
        if self.status != STATUS_PLAYING:
            raise InvalidState("Match is not running")
        self._require_member(player_id)
        rnd = self.current_round
        if rnd is None or rnd.closed:
            raise DeadlineExceeded("No round is open")
        if player_id in rnd.answers:
            raise DuplicateAnswer()
        if submitted_at > rnd.deadline:
            raise DeadlineExceeded()
        answer = SubmittedAnswer(
            answer_index=answer_index,
            submitted_at=submitted_at,
            time_remaining=time_remaining,
        )
        rnd.answers[player_id] = answer
        return answer

    def all_answered(self) -> bool:
        rnd = self.current_round
        if rnd is None or rnd.closed or not self.players:
            return False
        return all(pid in rnd.answers for pid in self.player_ids)

    def close_round(self, round_index: int) -> Optional[Round]:
        """Close round *round_index*; ``None`` if it is stale or already closed."""
        rnd = self.current_round
        if (
            self.status != STATUS_PLAYING
            or rnd is None
            or rnd.closed
            or rnd.index != round_index
            or self.round_index != round_index
        ):
            return None
        rnd.closed = True
        return rnd

    def advance_round(self) -> None:
        if self.status != STATUS_PLAYING:
            raise InvalidState("Match is not running")
        self.round_index += 1
        if self.round_index >= self.total_questions:
            self._set_status(STATUS_FINISHED)

    def finish(self) -> None:
        """End the match early, keeping the rounds already played."""
        self._set_status(STATUS_FINISHED)
        if self.current_round is not None:
            self.current_round.closed = True

    # -------------------- Views -------------------- #

    def ranking(self) -> List[PlayerResult]:
        ordered = sorted(self.players, key=lambda p: (-p.score, p.join_seq))
        return [
            PlayerResult(player_id=p.id, username=p.username, score=p.score, rank=i + 1)
            for i, p in enumerate(ordered)
        ]

    def snapshot(self, now: float) -> RoomSnapshot:
        deadline = self.deadline
        remaining = max(0, math.ceil(deadline - now)) if deadline is not None else 0
        rnd = self.current_round
        answered: List[str] = []
        if rnd is not None and not rnd.closed:
            answered = [pid for pid in self.player_ids if pid in rnd.answers]
        return RoomSnapshot(
            id=self.room_id,
            name=self.name,
            category=self.category,
            max_players=self.max_players,
            players=[p.model_copy() for p in self.players],
            status=self.status,
            current_question_index=self.round_index,
            total_questions=self.total_questions,
            time_remaining=remaining,
            answered=answered,
        )


__all__ = ["Room", "Round"]

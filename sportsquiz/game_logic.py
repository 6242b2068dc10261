"""Match coordination: round timing, scoring and result reporting.

This module layers the timing and scoring policy on top of the structural
state machine in ``sportsquiz.room``. It never parses client messages; the
message router calls into it with the room lock already held.
"""
from __future__ import annotations

import asyncio
import math
import time
from typing import Callable, Dict, List, Optional, Tuple

from .constants import (
    MSG_GAME_FINISHED,
    MSG_GAME_STARTED,
    MSG_QUESTION,
    MSG_ROOM_UPDATED,
    MSG_ROUND_RESULTS,
    STATUS_FINISHED,
    STATUS_PLAYING,
)
from .errors import DeadlineExceeded, DuplicateAnswer, QuestionUnavailable
from .ledger import ScoreLedger
from .log import get_logger
from .questions import QuestionProvider
from .registry import ConnectionRegistry
from .room import Room
from .schemas import PlayerResult, Question, RoundResults

logger = get_logger(__name__)

TimerKey = Tuple[str, int]


def score(question: Question, answer_index: Optional[int]) -> int:
    """Points for one answer: the question's full value if correct, else 0."""
    if answer_index is None:
        return 0
    return question.points if answer_index == question.correct_answer else 0


class MatchCoordinator:
    """Drives rooms through their rounds.

    Every public coroutine expects the caller to hold ``room.lock``. Round
    timers take the lock themselves before touching the room.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        provider: QuestionProvider,
        ledger: ScoreLedger,
        round_duration: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.registry = registry
        self.provider = provider
        self.ledger = ledger
        self.round_duration = round_duration
        self.clock = clock
        self._timers: Dict[TimerKey, asyncio.Task] = {}

    # ---------------------------------------------------------------------
    # Broadcasting helpers
    # ---------------------------------------------------------------------

    def room_message(self, msg_type: str, room: Room, **extra) -> dict:
        snapshot = room.snapshot(self.clock()).model_dump(by_alias=True)
        return {"type": msg_type, "room": snapshot, **extra}

    async def broadcast_room(self, room: Room, msg_type: str, **extra) -> None:
        """Send the *entire* room snapshot to every member."""
        await self.registry.broadcast(room.player_ids, self.room_message(msg_type, room, **extra))

    # ---------------------------------------------------------------------
    # Match flow
    # ---------------------------------------------------------------------

    async def start_match(self, room: Room, player_id: str) -> None:
        room.start_match(player_id)
        available = await self.provider.question_count(room.category)
        if 0 < available < room.total_questions:
            logger.info(
                "room=%s category=%s has %d questions, shortening match from %d",
                room.room_id, room.category, available, room.total_questions,
            )
            room.total_questions = available
        logger.info("room=%s match started players=%s", room.room_id, room.player_ids)
        await self.broadcast_room(room, MSG_GAME_STARTED)
        await self._open_round(room)

    async def submit_answer(
        self,
        room: Room,
        player_id: str,
        answer_index: int,
        time_remaining: Optional[float] = None,
    ) -> bool:
        """Record an answer; returns ``False`` when it was dropped."""
        try:
            room.record_answer(player_id, answer_index, self.clock(), time_remaining)
        except DuplicateAnswer:
            logger.info(
                "room=%s round=%d player=%s duplicate answer ignored",
                room.room_id, room.round_index, player_id,
            )
            return False
        except DeadlineExceeded as exc:
            logger.info(
                "room=%s round=%d player=%s late answer ignored: %s",
                room.room_id, room.round_index, player_id, exc.message,
            )
            return False

        if room.all_answered():
            logger.debug("room=%s round=%d all answered", room.room_id, room.round_index)
            await self._close_round(room, room.round_index)
        else:
            await self.broadcast_room(room, MSG_ROOM_UPDATED)
        return True

    async def player_left(self, room: Room) -> None:
        """Re-check round completion after a member left mid-match."""
        if room.closed or not room.players:
            self.discard_room(room.room_id)
            return
        if room.status == STATUS_PLAYING and room.all_answered():
            await self._close_round(room, room.round_index)

    # -------------------- Rounds -------------------- #

    async def _open_round(self, room: Room) -> None:
        try:
            question = await self.provider.next_question(room.category, room.round_index)
        except QuestionUnavailable as exc:
            logger.warning(
                "room=%s round=%d question unavailable (%s); finishing early",
                room.room_id, room.round_index, exc.message,
            )
            room.finish()
            await self._finish_match(room)
            return

        deadline = self.clock() + self.round_duration
        rnd = room.open_round(question, deadline)
        await self.registry.broadcast(
            room.player_ids,
            {
                "type": MSG_QUESTION,
                "question": question.sanitized().model_dump(by_alias=True),
                "roundIndex": rnd.index,
                "totalQuestions": room.total_questions,
                "timeRemaining": math.ceil(self.round_duration),
            },
        )
        self._schedule_timer(room, rnd.index)

    def _schedule_timer(self, room: Room, round_index: int) -> None:
        key = (room.room_id, round_index)
        if key in self._timers:
            logger.debug("[timer-skip] room=%s round=%d already scheduled", *key)
            return
        self._timers[key] = asyncio.create_task(self._round_timer(room, round_index))
        logger.debug(
            "[timer-set] room=%s round=%d duration=%ss", room.room_id, round_index, self.round_duration
        )

    def _cancel_timer(self, key: TimerKey) -> None:
        task = self._timers.pop(key, None)
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    async def _round_timer(self, room: Room, round_index: int) -> None:
        try:
            await asyncio.sleep(self.round_duration)
        except asyncio.CancelledError:
            return
        self._timers.pop((room.room_id, round_index), None)
        async with room.lock:
            logger.debug(
                "[timer-fire] room=%s expected_round=%d actual_round=%d status=%s",
                room.room_id, round_index, room.round_index, room.status,
            )
            try:
                closed = not room.closed and await self._close_round(room, round_index)
            except Exception:
                logger.exception("[timer-error] room=%s round=%d", room.room_id, round_index)
                await self._abort_match(room)
                return
            if not closed:
                logger.debug("[timer-abort] room=%s round=%d stale", room.room_id, round_index)

    async def _close_round(self, room: Room, round_index: int) -> bool:
        rnd = room.close_round(round_index)
        if rnd is None:
            return False
        self._cancel_timer((room.room_id, round_index))

        awards: Dict[str, int] = {}
        unanswered: List[str] = []
        for player in room.players:
            answer = rnd.answers.get(player.id)
            if answer is None:
                logger.info(
                    "room=%s round=%d player=%s no answer before close, 0 points",
                    room.room_id, round_index, player.id,
                )
                unanswered.append(player.id)
                awards[player.id] = 0
                continue
            points = score(rnd.question, answer.answer_index)
            player.score += points
            awards[player.id] = points

        results = RoundResults(
            round_index=round_index,
            question_id=rnd.question.id,
            correct_answer=rnd.question.correct_answer,
            explanation=rnd.question.explanation,
            awards=awards,
            unanswered=unanswered,
        )
        logger.info("room=%s round=%d closed awards=%s", room.room_id, round_index, awards)
        await self.broadcast_room(room, MSG_ROUND_RESULTS, **results.model_dump(by_alias=True))

        room.advance_round()
        if room.status == STATUS_FINISHED:
            await self._finish_match(room)
        else:
            await self._open_round(room)
        return True

    # -------------------- Match end -------------------- #

    async def _finish_match(self, room: Room) -> List[PlayerResult]:
        results = room.ranking()
        logger.info(
            "room=%s match finished rounds=%d standings=%s",
            room.room_id, room.round_index, [(r.player_id, r.score) for r in results],
        )
        await self.record_results(room)
        await self.broadcast_room(
            room, MSG_GAME_FINISHED, results=[r.model_dump(by_alias=True) for r in results]
        )
        self.discard_room(room.room_id)
        return results

    async def _abort_match(self, room: Room) -> None:
        """Finish a match whose round flow failed, keeping the points earned."""
        self.discard_room(room.room_id)
        if room.closed or room.status != STATUS_PLAYING:
            return
        room.finish()
        await self._finish_match(room)

    async def record_results(self, room: Room) -> None:
        """Write each player's match total to the ledger, once per match."""
        if room.results_recorded or room.status != STATUS_FINISHED:
            return
        room.results_recorded = True
        for player in room.players:
            try:
                await self.ledger.apply_point_delta(player.id, player.score)
            except Exception:
                logger.exception(
                    "room=%s ledger write failed player=%s delta=%d",
                    room.room_id, player.id, player.score,
                )

    # -------------------- Timer bookkeeping -------------------- #

    def discard_room(self, room_id: str) -> None:
        for key in [k for k in self._timers if k[0] == room_id]:
            self._cancel_timer(key)

    def pending_timers(self) -> List[TimerKey]:
        return list(self._timers)

    def shutdown(self) -> None:
        for key in list(self._timers):
            self._cancel_timer(key)


__all__ = ["MatchCoordinator", "score"]

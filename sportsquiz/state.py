"""Runtime wiring for the in-memory match services.

Instead of module-level singletons, one ``Runtime`` is built per app (and
per test) and handed to whoever needs it, so scenarios never share rooms
or connections.
"""
from __future__ import annotations

import time
from typing import Callable, Optional

from .config import Settings
from .game_logic import MatchCoordinator
from .ledger import ScoreLedger, TortoiseScoreLedger
from .lobby import RoomDirectory
from .message_router import MessageRouter
from .questions import InMemoryQuestionBank, QuestionProvider
from .registry import ConnectionRegistry


class Runtime:
    def __init__(
        self,
        settings: Settings,
        question_provider: Optional[QuestionProvider] = None,
        score_ledger: Optional[ScoreLedger] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self.questions = question_provider or InMemoryQuestionBank()
        self.ledger = score_ledger or TortoiseScoreLedger()
        self.registry = ConnectionRegistry()
        self.directory = RoomDirectory(
            total_questions=settings.questions_per_match,
            min_players=settings.min_players,
            default_max_players=settings.default_max_players,
            max_players_limit=settings.max_players_limit,
        )
        self.coordinator = MatchCoordinator(
            self.registry,
            self.questions,
            self.ledger,
            round_duration=settings.round_duration_sec,
            clock=clock,
        )
        self.router = MessageRouter(self.directory, self.registry, self.coordinator)

    def shutdown(self) -> None:
        self.coordinator.shutdown()


__all__ = ["Runtime"]

"""Question provider backed by an in-memory sports question bank."""
from __future__ import annotations

import random
import uuid
from typing import Dict, List, Optional, Protocol

from .errors import QuestionUnavailable
from .schemas import Question, SanitizedQuestion


class QuestionProvider(Protocol):
    async def next_question(self, category: str, round_index: int) -> Question:
        """Question for *round_index* of *category*; raises ``QuestionUnavailable``."""
        ...

    async def question_count(self, category: str) -> int:
        """How many rounds *category* can fill; 0 if unknown."""
        ...


SEED_QUESTIONS: List[dict] = [
    # Football
    {
        "category": "Football",
        "question": "Which team won the first Super Bowl?",
        "options": ["Green Bay Packers", "Kansas City Chiefs", "New York Jets", "Oakland Raiders"],
        "correct_answer": 0,
        "explanation": "The Green Bay Packers defeated the Kansas City Chiefs 35-10 in Super Bowl I.",
    },
    {
        "category": "Football",
        "question": "How many players are on the field for each team during a play?",
        "options": ["10", "11", "12", "9"],
        "correct_answer": 1,
        "explanation": "Each team has 11 players on the field at any given time during a play.",
    },
    {
        "category": "Football",
        "question": "What is the maximum number of downs a team gets to advance 10 yards?",
        "options": ["3", "4", "5", "6"],
        "correct_answer": 1,
        "explanation": "A team gets 4 downs to advance the ball 10 yards and earn a first down.",
    },
    # Basketball
    {
        "category": "Basketball",
        "question": "Which NBA team holds the record for the most consecutive wins in a single season?",
        "options": [
            "Los Angeles Lakers (33 wins)",
            "Miami Heat (27 wins)",
            "Golden State Warriors (28 wins)",
            "Milwaukee Bucks (20 wins)",
        ],
        "correct_answer": 0,
        "explanation": "The Lakers set this record with 33 consecutive wins during the 1971-72 season.",
    },
    {
        "category": "Basketball",
        "question": "How many points is a shot worth from beyond the three-point line?",
        "options": ["2 points", "3 points", "4 points", "1 point"],
        "correct_answer": 1,
        "explanation": "Any shot made from beyond the three-point line is worth 3 points.",
    },
    {
        "category": "Basketball",
        "question": "Who holds the record for most points scored in a single NBA game?",
        "options": ["Michael Jordan", "Kobe Bryant", "Wilt Chamberlain", "LeBron James"],
        "correct_answer": 2,
        "explanation": "Wilt Chamberlain scored 100 points in a single game on March 2, 1962.",
    },
    # Soccer
    {
        "category": "Soccer",
        "question": "How many players are on the field for each team in soccer?",
        "options": ["10", "11", "12", "9"],
        "correct_answer": 1,
        "explanation": "Each soccer team has 11 players on the field, including the goalkeeper.",
    },
    {
        "category": "Soccer",
        "question": "Which country has won the most FIFA World Cups?",
        "options": ["Germany", "Argentina", "Brazil", "Italy"],
        "correct_answer": 2,
        "explanation": "Brazil has won the FIFA World Cup 5 times (1958, 1962, 1970, 1994, 2002).",
    },
    {
        "category": "Soccer",
        "question": "What is the duration of a standard soccer match?",
        "options": ["80 minutes", "90 minutes", "100 minutes", "120 minutes"],
        "correct_answer": 1,
        "explanation": "A standard soccer match consists of two 45-minute halves for a total of 90 minutes.",
    },
    # Baseball
    {
        "category": "Baseball",
        "question": "How many strikes result in a strikeout?",
        "options": ["2", "3", "4", "5"],
        "correct_answer": 1,
        "explanation": "A batter is out after accumulating three strikes.",
    },
    {
        "category": "Baseball",
        "question": "How many innings are in a standard baseball game?",
        "options": ["7", "8", "9", "10"],
        "correct_answer": 2,
        "explanation": "A standard baseball game consists of 9 innings.",
    },
    {
        "category": "Baseball",
        "question": "Which team has won the most World Series championships?",
        "options": ["Boston Red Sox", "New York Yankees", "St. Louis Cardinals", "Los Angeles Dodgers"],
        "correct_answer": 1,
        "explanation": "The New York Yankees have won 27 World Series championships.",
    },
]


class InMemoryQuestionBank:
    """Read-only question lookup keyed by case-insensitive category."""

    def __init__(self, questions: Optional[List[Question]] = None):
        if questions is None:
            questions = [
                Question(id=str(uuid.uuid4()), points=10, **data) for data in SEED_QUESTIONS
            ]
        self._by_id: Dict[str, Question] = {q.id: q for q in questions}
        self._by_category: Dict[str, List[Question]] = {}
        for q in questions:
            self._by_category.setdefault(q.category.lower(), []).append(q)

    def categories(self) -> List[str]:
        return [qs[0].category for qs in self._by_category.values()]

    def get(self, question_id: str) -> Optional[Question]:
        return self._by_id.get(question_id)

    async def question_count(self, category: str) -> int:
        return len(self._by_category.get(category.lower(), []))

    async def next_question(self, category: str, round_index: int) -> Question:
        pool = self._by_category.get(category.lower(), [])
        if round_index < 0 or round_index >= len(pool):
            raise QuestionUnavailable(f"No question {round_index} in category {category!r}")
        return pool[round_index]

    def random_questions(self, category: str, limit: int = 10) -> List[SanitizedQuestion]:
        pool = list(self._by_category.get(category.lower(), []))
        random.shuffle(pool)
        return [q.sanitized() for q in pool[:limit]]


__all__ = ["QuestionProvider", "InMemoryQuestionBank", "SEED_QUESTIONS"]

import asyncio
import os
import sys
from typing import List, Optional, Tuple

import pytest
import pytest_asyncio

# Ensure the repo root (containing the `sportsquiz` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
REPO_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from sportsquiz.config import Settings
from sportsquiz.errors import QuestionUnavailable
from sportsquiz.schemas import Question
from sportsquiz.state import Runtime


class FakeChannel:
    """Stands in for a websocket; records every JSON payload sent to it."""

    def __init__(self, name: str = ''):
        self.name = name
        self.sent: List[dict] = []
        self.broken = False

    async def send_json(self, data):
        if self.broken:
            raise RuntimeError('socket closed')
        self.sent.append(data)

    def of_type(self, msg_type: str) -> List[dict]:
        return [m for m in self.sent if m['type'] == msg_type]

    def types(self) -> List[str]:
        return [m['type'] for m in self.sent]

    def clear(self):
        self.sent.clear()


class FakeLedger:
    def __init__(self, fail_for: Optional[set] = None):
        self.writes: List[Tuple[str, int]] = []
        self.fail_for = fail_for or set()

    async def apply_point_delta(self, user_id: str, delta: int) -> None:
        if user_id in self.fail_for:
            raise RuntimeError('ledger down')
        self.writes.append((user_id, delta))


class FakeQuestionProvider:
    """``count`` questions per category, all answered by index 0 for 10 points."""

    def __init__(self, count: int = 10, correct_answer: int = 0, points: int = 10,
                 advertised: Optional[int] = None):
        self.count = count
        # What question_count reports; None means the real count
        self.advertised = advertised
        self.correct_answer = correct_answer
        self.points = points
        self.requests: List[Tuple[str, int]] = []

    async def question_count(self, category: str) -> int:
        return self.count if self.advertised is None else self.advertised

    async def next_question(self, category: str, round_index: int) -> Question:
        self.requests.append((category, round_index))
        if round_index >= self.count:
            raise QuestionUnavailable(f'only {self.count} questions')
        return Question(
            id=f'{category}-{round_index}',
            category=category,
            question=f'Question {round_index}?',
            options=['A', 'B', 'C', 'D'],
            correct_answer=self.correct_answer,
            points=self.points,
            explanation='Because.',
        )


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def build_runtime(
    provider=None,
    ledger=None,
    total_questions: int = 10,
    round_duration: float = 30.0,
    clock=None,
) -> Runtime:
    settings = Settings(
        database_url='sqlite://:memory:',
        round_duration_sec=round_duration,
        questions_per_match=total_questions,
    )
    kwargs = {'clock': clock} if clock is not None else {}
    return Runtime(
        settings,
        question_provider=provider or FakeQuestionProvider(),
        score_ledger=ledger or FakeLedger(),
        **kwargs,
    )


@pytest_asyncio.fixture()
async def make_runtime():
    created: List[Runtime] = []

    def _make(**kwargs) -> Runtime:
        rt = build_runtime(**kwargs)
        created.append(rt)
        return rt

    yield _make
    for rt in created:
        rt.shutdown()
    # Let cancelled timers unwind before the loop closes
    await asyncio.sleep(0)


async def enter_lobby(rt: Runtime, user_id: str, username: Optional[str] = None) -> FakeChannel:
    channel = FakeChannel(user_id)
    rt.router.connect(channel)
    await rt.router.handle(
        channel, {'type': 'join_lobby', 'userId': user_id, 'username': username or user_id.title()}
    )
    return channel


async def create_room(rt: Runtime, channel: FakeChannel, name: str = 'Arena',
                      category: str = 'Football', max_players: int = 4) -> str:
    await rt.router.handle(channel, {
        'type': 'create_room', 'roomName': name, 'category': category, 'maxPlayers': max_players,
    })
    return channel.of_type('room_joined')[-1]['room']['id']


async def start_match(rt: Runtime, *user_ids: str, category: str = 'Football'):
    """Lobby -> room -> everyone ready -> started. First user hosts."""
    channels = [await enter_lobby(rt, uid) for uid in user_ids]
    room_id = await create_room(rt, channels[0], category=category)
    for ch in channels[1:]:
        await rt.router.handle(ch, {'type': 'join_room', 'roomId': room_id})
        await rt.router.handle(ch, {'type': 'set_ready', 'ready': True})
    await rt.router.handle(channels[0], {'type': 'start_game'})
    return channels, rt.directory.get_room(room_id)


async def answer(rt: Runtime, channel: FakeChannel, index: int, time_remaining: float = 10):
    await rt.router.handle(
        channel, {'type': 'submit_answer', 'answerIndex': index, 'timeRemaining': time_remaining}
    )

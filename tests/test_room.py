import pytest

from sportsquiz.errors import (
    DeadlineExceeded,
    DuplicateAnswer,
    InvalidState,
    NotEnoughPlayers,
    PlayersNotReady,
    RoomFull,
)
from sportsquiz.room import Room
from sportsquiz.schemas import Player, Question


def make_room(max_players=4, total_questions=10, host='a'):
    return Room('room-1', 'Arena', 'Football', max_players,
                Player(id=host, username=host.upper()), total_questions=total_questions)


def question(correct=0, points=10):
    return Question(id='q1', category='Football', question='Q?', options=['A', 'B', 'C', 'D'],
                    correct_answer=correct, points=points)


def hosts(room):
    return [p.id for p in room.players if p.is_host]


def test_creator_is_ready_host():
    room = make_room()
    assert hosts(room) == ['a']
    assert room.players[0].is_ready is True
    assert room.status == 'waiting'


def test_joiner_is_not_ready_nor_host():
    room = make_room()
    p = room.join(Player(id='b', username='B', is_host=True, is_ready=True, score=50))
    assert p.is_host is False
    assert p.is_ready is False
    assert p.score == 0
    assert hosts(room) == ['a']


def test_rejoin_is_noop():
    room = make_room()
    room.join(Player(id='b', username='B'))
    room.join(Player(id='b', username='B'))
    assert room.player_ids == ['a', 'b']


def test_host_migration_follows_join_order():
    room = make_room()
    room.join(Player(id='b', username='B'))
    room.join(Player(id='c', username='C'))
    room.leave('a')
    assert hosts(room) == ['b']
    room.leave('b')
    assert hosts(room) == ['c']
    room.leave('c')
    assert room.players == []


def test_non_host_leave_keeps_host():
    room = make_room()
    room.join(Player(id='b', username='B'))
    room.join(Player(id='c', username='C'))
    room.leave('b')
    assert hosts(room) == ['a']
    assert room.leave('missing') is None


def test_capacity_never_exceeded():
    room = make_room(max_players=4)
    for pid in 'bcd':
        room.join(Player(id=pid, username=pid))
    with pytest.raises(RoomFull):
        room.join(Player(id='e', username='e'))
    assert len(room.players) == 4


def test_full_room_reports_full_even_when_playing():
    room = make_room(max_players=2)
    room.join(Player(id='b', username='B'))
    room.set_ready('b', True)
    room.start_match('a')
    with pytest.raises(RoomFull):
        room.join(Player(id='c', username='C'))


def test_join_after_start_is_invalid_state():
    room = make_room(max_players=4)
    room.join(Player(id='b', username='B'))
    room.set_ready('b', True)
    room.start_match('a')
    with pytest.raises(InvalidState):
        room.join(Player(id='c', username='C'))


def test_start_requires_host_players_and_ready():
    room = make_room()
    with pytest.raises(NotEnoughPlayers):
        room.start_match('a')
    room.join(Player(id='b', username='B'))
    with pytest.raises(PlayersNotReady):
        room.start_match('a')
    room.set_ready('b')  # toggle
    with pytest.raises(InvalidState):
        room.start_match('b')
    room.start_match('a')
    assert room.status == 'playing'
    assert room.round_index == 0
    with pytest.raises(InvalidState):
        room.start_match('a')
    with pytest.raises(InvalidState):
        room.set_ready('b', False)


def playing_room(total_questions=10):
    room = make_room(total_questions=total_questions)
    room.join(Player(id='b', username='B'))
    room.set_ready('b', True)
    room.start_match('a')
    room.open_round(question(), deadline=100.0)
    return room


def test_first_answer_is_immutable():
    room = playing_room()
    room.record_answer('b', 1, submitted_at=10.0)
    with pytest.raises(DuplicateAnswer):
        room.record_answer('b', 0, submitted_at=11.0)
    assert room.current_round.answers['b'].answer_index == 1


def test_late_answer_rejected():
    room = playing_room()
    with pytest.raises(DeadlineExceeded):
        room.record_answer('a', 0, submitted_at=100.5)
    assert room.current_round.answers == {}
    assert not room.all_answered()


def test_answer_outside_match_or_room():
    room = make_room()
    with pytest.raises(InvalidState):
        room.record_answer('a', 0, submitted_at=0)
    room = playing_room()
    with pytest.raises(InvalidState):
        room.record_answer('stranger', 0, submitted_at=0)


def test_close_round_only_once_and_only_current_index():
    room = playing_room()
    assert room.close_round(3) is None
    rnd = room.close_round(0)
    assert rnd is not None and rnd.closed
    assert room.close_round(0) is None
    with pytest.raises(DeadlineExceeded):
        room.record_answer('a', 0, submitted_at=1.0)


def test_advance_is_monotonic_and_finishes():
    room = playing_room(total_questions=3)
    seen = [room.round_index]
    for _ in range(3):
        room.advance_round()
        seen.append(room.round_index)
    assert seen == sorted(seen)
    assert room.status == 'finished'
    with pytest.raises(InvalidState):
        room.advance_round()
    with pytest.raises(InvalidState):
        room.finish()
    assert room.status == 'finished'


def test_early_finish_from_playing():
    room = playing_room()
    room.finish()
    assert room.status == 'finished'
    assert room.deadline is None


def test_ranking_ties_break_on_join_order():
    room = playing_room()
    room.players[0].score = 20
    room.players[1].score = 20
    ranking = room.ranking()
    assert [r.player_id for r in ranking] == ['a', 'b']
    room.players[1].score = 30
    assert [r.player_id for r in room.ranking()] == ['b', 'a']
    assert [r.rank for r in room.ranking()] == [1, 2]


def test_snapshot_is_camel_case_and_hides_join_seq():
    room = playing_room()
    snap = room.snapshot(now=90.2).model_dump(by_alias=True)
    assert snap['maxPlayers'] == 4
    assert snap['currentQuestionIndex'] == 0
    assert snap['timeRemaining'] == 10
    assert set(snap['players'][0]) == {'id', 'username', 'score', 'isReady', 'isHost'}


def test_join_sequence_is_counted_per_room():
    first = make_room(host='a')
    first.join(Player(id='b', username='B'))
    second = make_room(host='c')
    second.join(Player(id='d', username='D'))
    assert [p.join_seq for p in first.players] == [1, 2]
    assert [p.join_seq for p in second.players] == [1, 2]


def test_snapshot_lists_who_answered_the_open_round():
    room = playing_room()
    room.record_answer('b', 1, submitted_at=91)
    assert room.snapshot(now=91).answered == ['b']
    room.close_round(0)
    assert room.snapshot(now=91).answered == []

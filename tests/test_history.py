import pytest

from draughts_arena import db
from draughts_arena.errors import (
    InvalidDate,
    InvalidDateRange,
    InvalidFormat,
    MissingDate,
    NoMoves,
    NonPositiveTokens,
    PlayerNotFound,
    SessionNotFound,
)
from draughts_arena.models import GameSession, SessionStatus
from draughts_arena.services.sessions.economy import top_up_tokens
from draughts_arena.services.sessions.history import completed_sessions, export_move_history, leaderboard
from draughts_arena.services.sessions.scheduler import sweep_timed_out_sessions


def test_export_move_history_names_actors(orchestrator, lifecycle, players):
    alice = players['alice']
    session = lifecycle.create_session(alice.id, ai_difficulty='Easy')
    orchestrator.execute_move(session.id, 'B6', 'A5', alice.id)

    history = export_move_history(session.id, 'json')

    assert [m['move_number'] for m in history] == [1, 2]
    assert history[0]['username'] == 'alice'
    assert history[1]['username'] == 'Artificial Intelligence'
    assert history[0]['from_position'] == 'B6'
    assert history[0]['piece_type'] == 'single'
    assert history[0]['created_at'] == '2026-01-10 12:00:00'


def test_export_move_history_errors(lifecycle, players):
    session = lifecycle.create_session(players['alice'].id, ai_difficulty='Easy')
    with pytest.raises(NoMoves):
        export_move_history(session.id, 'json')
    with pytest.raises(InvalidFormat):
        export_move_history(session.id, 'pdf')
    with pytest.raises(SessionNotFound):
        export_move_history(999, 'json')


def test_completed_sessions_counts_outcomes(lifecycle, clock, players):
    alice, bob, carol = players['alice'], players['bob'], players['carol']
    first = lifecycle.create_session(alice.id, opponent_email=bob.email)
    lifecycle.abandon_session(first.id, bob.id)
    clock.advance(24 * 3600)
    second = lifecycle.create_session(carol.id, opponent_email=alice.email)
    lifecycle.abandon_session(second.id, alice.id)
    lifecycle.create_session(alice.id, ai_difficulty='Easy')  # still ongoing

    result = completed_sessions(alice.id)
    assert (result['wins'], result['losses'], result['draws']) == (1, 1, 0)
    assert [s['outcome'] for s in result['sessions']] == ['Won', 'Lost']
    assert all('board' not in s for s in result['sessions'])

    day_one = completed_sessions(alice.id, '2026-01-10', '2026-01-10')
    assert [s['id'] for s in day_one['sessions']] == [first.id]

    empty = completed_sessions(alice.id, '2026-02-01', '2026-02-03')
    assert empty['sessions'] == []
    assert empty['message'] == 'No matches found for the specified date range.'


@pytest.mark.parametrize('start,end,error', [
    ('2026-01-01', None, MissingDate),
    (None, '2026-01-01', MissingDate),
    ('01/01/2026', '2026-01-02', InvalidDate),
    ('2026-02-30', '2026-03-01', InvalidDate),
    ('2026-01-05', '2026-01-01', InvalidDateRange),
])
def test_completed_sessions_date_validation(players, start, end, error):
    with pytest.raises(error):
        completed_sessions(players['alice'].id, start, end)


def test_leaderboard_order(flask_app, players):
    players['bob'].score = 3
    players['carol'].score = 1.5
    db.session.commit()

    ranking = leaderboard('desc')
    assert [p['username'] for p in ranking[:2]] == ['bob', 'carol']
    assert leaderboard('asc')[-1] == {'username': 'bob', 'score': 3}


def test_top_up_tokens(players):
    player = top_up_tokens('ALICE@example.com', '2.5')
    assert player.tokens == pytest.approx(12.5)

    with pytest.raises(NonPositiveTokens):
        top_up_tokens('alice@example.com', -1)
    with pytest.raises(NonPositiveTokens):
        top_up_tokens('alice@example.com', 'lots')
    with pytest.raises(PlayerNotFound):
        top_up_tokens('ghost@example.com', 1)


def test_sweep_times_out_stalled_sessions(flask_app, orchestrator, lifecycle, clock, players):
    alice, bob = players['alice'], players['bob']
    session = lifecycle.create_session(alice.id, opponent_email=bob.email)
    orchestrator.execute_move(session.id, 'B6', 'A5', alice.id)

    # bob has not moved yet and cannot time out
    assert sweep_timed_out_sessions(flask_app, now=clock.advance(600)) == []

    orchestrator.execute_move(session.id, 'A3', 'B4', bob.id)
    assert sweep_timed_out_sessions(flask_app, now=clock.advance(30)) == []
    assert sweep_timed_out_sessions(flask_app, now=clock.advance(31)) == [session.id]

    stored = db.session.get(GameSession, session.id)
    assert stored.status is SessionStatus.TIMED_OUT
    assert stored.winner_id == bob.id
    assert alice.score == pytest.approx(-0.5)
    assert bob.score == pytest.approx(1)

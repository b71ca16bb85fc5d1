import pytest

from conftest import make_player
from draughts_arena import db
from draughts_arena.engine import AIDifficulty, Board
from draughts_arena.errors import (
    InsufficientCredit,
    InvalidBoardSnapshot,
    InvalidDifficulty,
    InvalidParameters,
    MissingParameters,
    NotParticipant,
    OpponentAlreadyInGame,
    OpponentNotFound,
    PlayerAlreadyInGame,
    SelfChallenge,
    SessionNotActive,
    SessionNotFound,
)
from draughts_arena.models import AI_PLAYER_ID, GameSession, SessionKind, SessionStatus


def test_create_pvp_session(lifecycle, clock, players):
    alice, bob = players['alice'], players['bob']
    session = lifecycle.create_session(alice.id, opponent_email=' BOB@example.com ')

    assert session.kind is SessionKind.PVP
    assert session.player_id == alice.id
    assert session.opponent_id == bob.id
    assert session.status is SessionStatus.ONGOING
    assert session.ai_difficulty is AIDifficulty.ABSENT
    assert session.total_moves == 0
    assert session.board == Board.initial()
    assert session.created_at == clock.now
    assert alice.tokens == pytest.approx(10 - 0.35)
    assert bob.tokens == pytest.approx(10)


def test_create_pve_session(lifecycle, players):
    session = lifecycle.create_session(players['alice'].id, ai_difficulty='hard')
    assert session.kind is SessionKind.PVE
    assert session.opponent_id == AI_PLAYER_ID
    assert session.ai_difficulty is AIDifficulty.HARD


@pytest.mark.parametrize('kwargs,error', [
    ({}, MissingParameters),
    ({'opponent_email': 'bob@example.com', 'ai_difficulty': 'Easy'}, InvalidParameters),
    ({'ai_difficulty': 'Medium'}, InvalidDifficulty),
    ({'ai_difficulty': 'Absent'}, InvalidDifficulty),
    ({'opponent_email': 'nobody@example.com'}, OpponentNotFound),
    ({'opponent_email': 'alice@example.com'}, SelfChallenge),
    ({'ai_difficulty': 'Easy', 'initial_board': {'version': 1, 'turn': 'dark', 'squares': 'bad'}}, InvalidBoardSnapshot),
])
def test_create_session_validation(lifecycle, players, kwargs, error):
    alice = players['alice']
    with pytest.raises(error):
        lifecycle.create_session(alice.id, **kwargs)
    assert GameSession.query.count() == 0
    assert alice.tokens == pytest.approx(10)


def test_one_ongoing_session_per_player(lifecycle, players):
    alice, bob, carol = players['alice'], players['bob'], players['carol']
    lifecycle.create_session(alice.id, opponent_email=bob.email)

    with pytest.raises(PlayerAlreadyInGame):
        lifecycle.create_session(alice.id, ai_difficulty='Easy')
    with pytest.raises(OpponentAlreadyInGame):
        lifecycle.create_session(carol.id, opponent_email=bob.email)
    # both rejections leave the balances untouched
    assert alice.tokens == pytest.approx(10 - 0.35)
    assert carol.tokens == pytest.approx(10)


def test_creation_requires_enough_tokens(lifecycle, players):
    poor = make_player('poor', tokens=0.3)
    with pytest.raises(InsufficientCredit) as excinfo:
        lifecycle.create_session(poor.id, ai_difficulty='Easy')
    assert excinfo.value.status_code == 401
    assert poor.tokens == pytest.approx(0.3)
    assert GameSession.query.count() == 0


def test_abandon_pvp_session(lifecycle, clock, players):
    alice, bob = players['alice'], players['bob']
    session = lifecycle.create_session(alice.id, opponent_email=bob.email)
    clock.advance(5)

    abandoned = lifecycle.abandon_session(session.id, bob.id)

    assert abandoned.status is SessionStatus.ABANDONED
    assert abandoned.winner_id == alice.id
    assert abandoned.ended_at == clock.now
    assert bob.score == pytest.approx(-0.5)
    assert alice.score == pytest.approx(1)

    with pytest.raises(SessionNotActive):
        lifecycle.abandon_session(session.id, alice.id)
    assert alice.score == pytest.approx(1)

    # a finished session no longer blocks new ones
    lifecycle.create_session(alice.id, ai_difficulty='Easy')


def test_abandon_pve_session_gives_the_win_to_the_ai(lifecycle, players):
    alice = players['alice']
    session = lifecycle.create_session(alice.id, ai_difficulty='Easy')
    abandoned = lifecycle.abandon_session(session.id, alice.id)
    assert abandoned.winner_id == AI_PLAYER_ID
    assert alice.score == pytest.approx(-0.5)


def test_abandon_errors(lifecycle, players):
    session = lifecycle.create_session(players['alice'].id, opponent_email=players['bob'].email)
    with pytest.raises(NotParticipant):
        lifecycle.abandon_session(session.id, players['carol'].id)
    with pytest.raises(SessionNotFound):
        lifecycle.abandon_session(12345, players['alice'].id)
    assert db.session.get(GameSession, session.id).status is SessionStatus.ONGOING

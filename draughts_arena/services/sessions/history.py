"""Read-only queries over sessions and ledgers. None of these take a lock."""

import re
from datetime import datetime, timedelta

from sqlalchemy import or_

from draughts_arena import db
from draughts_arena.errors import InvalidDate, InvalidDateRange, InvalidFormat, MissingDate, NoMoves, SessionNotFound
from draughts_arena.models import AI_PLAYER_ID, GameSession, Move, Player, SessionStatus

EXPORT_FORMATS = ('json',)
_DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')


def session_status(session_id) -> GameSession:
    session = db.session.get(GameSession, session_id)
    if session is None:
        raise SessionNotFound()
    return session


def _actor_name(actor_id, usernames):
    if actor_id == AI_PLAYER_ID:
        return 'Artificial Intelligence'
    return usernames.get(actor_id, 'Unknown Player')


def export_move_history(session_id, fmt='json'):
    """Ordered move list of a session with the actor's display name."""
    fmt = (fmt or 'json').lower()
    if fmt not in EXPORT_FORMATS:
        raise InvalidFormat()
    session_status(session_id)
    moves = Move.query.filter_by(session_id=session_id).order_by(Move.move_number.asc()).all()
    if not moves:
        raise NoMoves()
    actor_ids = {m.actor_id for m in moves if m.actor_id != AI_PLAYER_ID}
    usernames = {
        p.id: p.username
        for p in Player.query.filter(Player.id.in_(actor_ids)).all()
    } if actor_ids else {}
    return [
        {
            'move_number': m.move_number,
            'from_position': m.from_position,
            'to_position': m.to_position,
            'piece_type': m.piece_type,
            'created_at': m.created_at.strftime('%Y-%m-%d %H:%M:%S'),
            'username': _actor_name(m.actor_id, usernames),
        }
        for m in moves
    ]


def _parse_date(value):
    if not _DATE_RE.match(value):
        raise InvalidDate()
    try:
        return datetime.strptime(value, '%Y-%m-%d')
    except ValueError:
        raise InvalidDate()


def completed_sessions(player_id, start_date=None, end_date=None):
    """Terminal sessions of a player, optionally ended within [start, end] (whole days).

    Returns a dict with the sessions (without boards), each tagged with the
    player's outcome, and win / loss / draw counters.
    """
    if bool(start_date) != bool(end_date):
        raise MissingDate()
    query = GameSession.query.filter(
        GameSession.status != SessionStatus.ONGOING,
        or_(GameSession.player_id == player_id, GameSession.opponent_id == player_id),
    )
    if start_date:
        start, end = _parse_date(start_date), _parse_date(end_date)
        if start > end:
            raise InvalidDateRange()
        query = query.filter(GameSession.ended_at >= start, GameSession.ended_at < end + timedelta(days=1))

    sessions = query.order_by(GameSession.ended_at.asc()).all()
    result = {'sessions': [], 'wins': 0, 'losses': 0, 'draws': 0}
    for session in sessions:
        data = session.to_dict(include_board=False)
        if session.winner_id is None:
            data['outcome'] = 'Draw'
            result['draws'] += 1
        elif session.winner_id == player_id:
            data['outcome'] = 'Won'
            result['wins'] += 1
        else:
            data['outcome'] = 'Lost'
            result['losses'] += 1
        result['sessions'].append(data)
    if not sessions:
        result['message'] = 'No matches found for the specified date range.'
    return result


def leaderboard(order='desc'):
    order = (order or 'desc').lower()
    column = Player.score.asc() if order == 'asc' else Player.score.desc()
    players = Player.query.order_by(column, Player.username.asc()).all()
    return [{'username': p.username, 'score': p.score} for p in players]

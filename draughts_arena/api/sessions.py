from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user

from draughts_arena import socketio
from draughts_arena.errors import MissingParameters, TimeoutForfeit
from draughts_arena.services.sessions import get_lifecycle, get_orchestrator
from draughts_arena.services.sessions.ledger import MoveLedger
from draughts_arena.services.sessions.history import (
    completed_sessions,
    export_move_history,
    leaderboard,
    session_status,
)


sessions = Blueprint('sessions', __name__)


def _notify(session_id, payload):
    socketio.emit('session_update', dict(payload, session_id=session_id), to=f"session:{session_id}", namespace='/ws')


@sessions.route('/sessions', methods=['POST'])
@login_required
def create_session():
    data = request.get_json(silent=True) or {}
    session = get_lifecycle().create_session(
        current_user.id,
        opponent_email=data.get('opponent_email'),
        ai_difficulty=data.get('ai_difficulty'),
        initial_board=data.get('board'),
    )
    return jsonify({'message': 'Game session created successfully', 'session': session.to_dict()}), 201


@sessions.route('/sessions/<int:session_id>/moves', methods=['POST'])
@login_required
def execute_move(session_id):
    data = request.get_json(silent=True) or {}
    origin, destination = data.get('from'), data.get('to')
    if not origin or not destination:
        raise MissingParameters('You have to specify both "from" and "to".')
    try:
        result = get_orchestrator().execute_move(session_id, origin, destination, current_user.id)
    except TimeoutForfeit as exc:
        _notify(session_id, {'status': exc.details.get('status'), 'winner_id': exc.details.get('winner_id')})
        raise
    payload = result.to_dict()
    _notify(session_id, {
        'status': payload['status'],
        'winner_id': payload['winner_id'],
        'board': payload['board'],
        'moves': payload['moves'],
    })
    return jsonify(payload)


@sessions.route('/sessions/<int:session_id>/abandon', methods=['POST'])
@login_required
def abandon_session(session_id):
    session = get_lifecycle().abandon_session(session_id, current_user.id)
    _notify(session_id, {'status': session.status.value, 'winner_id': session.winner_id})
    return jsonify({
        'message': f"Game session {session_id} has been abandoned.",
        'session_id': session_id,
        'status': session.status.value,
    })


@sessions.route('/sessions/<int:session_id>', methods=['GET'])
@login_required
def get_session(session_id):
    session = session_status(session_id)
    data = session.to_dict()
    if session.is_terminal:
        data['message'] = f"The game has ended with status {session.status.value}."
        data['next_actor_id'] = None
    else:
        last = MoveLedger(session.id).last()
        data['message'] = 'The game is in progress.'
        # nobody has moved yet: either participant may open
        data['next_actor_id'] = session.other_participant(last.actor_id) if last else None
    return jsonify(data)


@sessions.route('/sessions/<int:session_id>/moves', methods=['GET'])
@login_required
def move_history(session_id):
    moves = export_move_history(session_id, request.args.get('format', 'json'))
    current_app.logger.info(f"[history] session={session_id} moves={len(moves)} player={current_user.id}")
    return jsonify({'session_id': session_id, 'moves': moves})


@sessions.route('/sessions/completed', methods=['GET'])
@login_required
def get_completed_sessions():
    result = completed_sessions(
        current_user.id,
        start_date=request.args.get('start_date'),
        end_date=request.args.get('end_date'),
    )
    return jsonify(result)


@sessions.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    return jsonify({'leaderboard': leaderboard(request.args.get('order', 'desc'))})

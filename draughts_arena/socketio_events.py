from flask_socketio import join_room, leave_room, emit
from draughts_arena import db, socketio
from draughts_arena.models import GameSession


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def _room_for(data):
    session_id = (data or {}).get('session_id')
    try:
        session_id = int(session_id)
    except (TypeError, ValueError):
        emit('error', {'message': 'session_id is required'})
        return None
    return f"session:{session_id}", session_id


def handle_join_session(data):
    target = _room_for(data)
    if target is None:
        return
    room, session_id = target
    session = db.session.get(GameSession, session_id)
    if session is None:
        emit('error', {'message': "The game session doesn't exist!"})
        return
    join_room(room)
    emit('joined', {'room': room, 'status': session.status.value})


def handle_leave_session(data):
    target = _room_for(data)
    if target is None:
        return
    room, _ = target
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    for namespace in (['/ws', '/'] if testing else ['/ws']):
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('join_session', handle_join_session, namespace=namespace)
        socketio.on_event('leave_session', handle_leave_session, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)

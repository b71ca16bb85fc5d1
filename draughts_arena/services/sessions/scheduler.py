import time
from typing import List

from draughts_arena import socketio
from draughts_arena.models import GameSession, SessionStatus


_sweep_started = set()


def sweep_timed_out_sessions(app, now=None) -> List[int]:
    """Finalize every Ongoing session whose side to move exceeded the move timeout.

    Runs inside its own app context and returns the ids it finalized.
    """
    from . import get_orchestrator

    finalized = []
    with app.app_context():
        orchestrator = get_orchestrator()
        ids = [s.id for s in GameSession.query.filter_by(status=SessionStatus.ONGOING).all()]
        for session_id in ids:
            if orchestrator.expire_if_stalled(session_id, now=now):
                finalized.append(session_id)
                socketio.emit(
                    'session_update',
                    {'session_id': session_id, 'status': SessionStatus.TIMED_OUT.value},
                    to=f"session:{session_id}",
                    namespace='/ws',
                )
        app.logger.info(f"[sweep] checked={len(ids)} finalized={finalized}")
    return finalized


def schedule_timeout_sweep(app) -> None:
    """Start the periodic timeout sweep as a Socket.IO background task.

    - No-ops in TESTING mode or when TIMEOUT_SWEEP_INTERVAL_SEC is 0
    - Starts at most one sweeper per app
    """
    interval = int(app.config.get('TIMEOUT_SWEEP_INTERVAL_SEC', 0) or 0)
    if app.config.get('TESTING') or interval <= 0:
        return
    if id(app) in _sweep_started:
        return
    _sweep_started.add(id(app))
    app.logger.info(f"[sweep-set] interval={interval}s")

    def _worker():
        while True:
            time.sleep(interval)
            try:
                sweep_timed_out_sessions(app)
            except Exception:
                # keep the loop alive, the next run retries every session
                app.logger.exception("[sweep-error] timeout sweep failed")

    socketio.start_background_task(_worker)

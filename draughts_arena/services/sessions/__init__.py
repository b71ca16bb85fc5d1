"""Game session services.

``init_app`` builds one shared set of collaborators per Flask app and stores
them in ``app.extensions``; request handlers fetch them with the ``get_*``
helpers.
"""

import random

from flask import current_app

from draughts_arena.engine import AIOpponent, EnglishDraughts
from .lifecycle import SessionLifecycle
from .locks import SessionLocks
from .orchestrator import MoveResult, TurnOrchestrator

EXTENSION_KEY = 'draughts_arena'


def init_app(app):
    config = app.config
    rules = EnglishDraughts()
    seed = config.get('AI_RANDOM_SEED')
    ai = AIOpponent(
        rules,
        rng=random.Random(seed) if seed is not None else random.Random(),
        search_depth=config.get('AI_HARD_SEARCH_DEPTH', 4),
    )
    locks = SessionLocks(timeout=config.get('SESSION_LOCK_TIMEOUT_SEC', 10.0))
    app.extensions[EXTENSION_KEY] = {
        'rules': rules,
        'ai': ai,
        'locks': locks,
        'orchestrator': TurnOrchestrator(
            rules,
            ai,
            locks,
            move_cost=config.get('MOVE_COST', 0.02),
            timeout_sec=config.get('MOVE_TIMEOUT_SEC', 60),
        ),
        'lifecycle': SessionLifecycle(locks, creation_cost=config.get('GAME_CREATION_COST', 0.35)),
    }


def _services():
    return current_app.extensions[EXTENSION_KEY]


def get_orchestrator() -> TurnOrchestrator:
    return _services()['orchestrator']


def get_lifecycle() -> SessionLifecycle:
    return _services()['lifecycle']


def get_rules():
    return _services()['rules']


__all__ = ['MoveResult', 'get_lifecycle', 'get_orchestrator', 'get_rules', 'init_app']

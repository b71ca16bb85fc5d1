import threading
from contextlib import contextmanager
from typing import Dict

from draughts_arena.errors import SessionBusy


def session_key(session_id) -> str:
    return f"session:{int(session_id)}"


def player_key(player_id) -> str:
    return f"player:{int(player_id)}"


class SessionLocks:
    """Process-local mutexes keyed by resource ("session:3", "player:7").

    Holds at most one in-flight mutation per key without serializing
    unrelated sessions. Acquisition waits at most ``timeout`` seconds and then
    raises SessionBusy.
    """

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout
        self._locks: Dict[str, threading.Lock] = {}
        self._users: Dict[str, int] = {}
        self._guard = threading.Lock()

    def _checkout(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            self._users[key] = self._users.get(key, 0) + 1
            return lock

    def _checkin(self, key: str) -> None:
        # the last holder or waiter of a key drops its entry
        with self._guard:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    @contextmanager
    def hold(self, *keys: str):
        # sorted acquisition order keeps multi-key holders deadlock free
        checked_out = []
        acquired = []
        try:
            for key in sorted(set(keys)):
                lock = self._checkout(key)
                checked_out.append(key)
                if not lock.acquire(timeout=self.timeout):
                    raise SessionBusy()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in checked_out:
                self._checkin(key)

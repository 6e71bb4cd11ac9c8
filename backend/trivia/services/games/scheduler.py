import logging
import threading
import time
from typing import Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class TaskScheduler:
    """Named, cancellable deferred tasks.

    - One pending task per name; scheduling a name again replaces it
    - A task only fires if it is still the current entry for its name when
      its delay runs out, so ``cancel()`` and re-scheduling win over a
      sleeping worker
    - Without ``spawn`` (tests) nothing runs by itself; call ``run_pending()``
    """

    def __init__(self, spawn: Optional[Callable] = None, sleep: Optional[Callable[[float], None]] = None):
        self._spawn = spawn
        self._sleep = sleep or time.sleep
        self._lock = threading.Lock()
        self._pending: Dict[str, Tuple[int, float, Callable[[], None]]] = {}
        self._counter = 0

    def call_later(self, name: str, delay: float, fn: Callable[[], None]) -> int:
        with self._lock:
            self._counter += 1
            token = self._counter
            self._pending[name] = (token, delay, fn)
        logger.info(f"[task-set] name={name} delay={delay}s")
        if self._spawn is not None:
            self._spawn(self._worker, name, token, delay)
        return token

    def cancel(self, name: str) -> bool:
        with self._lock:
            removed = self._pending.pop(name, None) is not None
        if removed:
            logger.info(f"[task-cancel] name={name}")
        return removed

    def cancel_all(self) -> None:
        with self._lock:
            self._pending.clear()

    def is_pending(self, name: str) -> bool:
        with self._lock:
            return name in self._pending

    def fire(self, name: str, token: Optional[int] = None) -> bool:
        with self._lock:
            entry = self._pending.get(name)
            if entry is None or (token is not None and entry[0] != token):
                return False
            del self._pending[name]
        logger.info(f"[task-fire] name={name}")
        entry[2]()
        return True

    def run_pending(self, name: Optional[str] = None) -> int:
        """Fire the named task (or every pending task) right now."""
        with self._lock:
            names = [name] if name is not None else list(self._pending)
        return sum(1 for n in names if self.fire(n))

    def _worker(self, name: str, token: int, delay: float) -> None:
        if delay > 0:
            self._sleep(delay)
        if not self.fire(name, token):
            logger.info(f"[task-abort] name={name} superseded or cancelled")

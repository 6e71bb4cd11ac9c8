import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)

TickCallback = Callable[[int], None]
CompleteCallback = Callable[[], None]


def format_ms(ms: int) -> str:
    """Render milliseconds as MM:SS."""
    ms = max(0, int(ms))
    minutes = ms // 60000
    seconds = (ms % 60000) // 1000
    return f"{minutes:02d}:{seconds:02d}"


class CountdownTimer:
    """Deadline-based countdown.

    Remaining time is always ``deadline - now`` so a late or skipped tick never
    skews it. Each ``start()`` opens a new generation; a poll that belongs to an
    older generation is ignored, which is what guarantees ``on_complete`` fires
    at most once per start even if ``stop()``/``start()`` race the worker.

    With ``spawn``/``sleep`` (e.g. ``socketio.start_background_task`` and
    ``socketio.sleep``) the timer polls itself in a background task. Without
    them nothing is scheduled and the owner calls ``poll()`` directly.
    """

    def __init__(
        self,
        duration_ms: int = 60000,
        tick_interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        spawn: Optional[Callable] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.duration_ms = int(duration_ms)
        self.tick_interval = tick_interval
        self.clock = clock
        self._spawn = spawn
        self._sleep = sleep or time.sleep
        self._lock = threading.Lock()
        self._generation = 0
        self._running = False
        self._deadline = 0.0
        self._frozen_ms = self.duration_ms
        self._on_tick: Optional[TickCallback] = None
        self._on_complete: Optional[CompleteCallback] = None

    def start(self, on_tick: Optional[TickCallback] = None, on_complete: Optional[CompleteCallback] = None) -> None:
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._on_tick = on_tick
            self._on_complete = on_complete
            self._deadline = self.clock() + self.duration_ms / 1000.0
            self._frozen_ms = self.duration_ms
            self._running = True
        logger.info(f"[timer-set] generation={generation} duration={self.duration_ms}ms")
        if self._spawn is not None:
            self._spawn(self._run, generation)

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._frozen_ms = self._remaining_locked()
            self._running = False
            self._generation += 1

    def reset(self) -> None:
        self.stop()
        with self._lock:
            self._frozen_ms = self.duration_ms

    def remaining(self) -> int:
        """Milliseconds left; frozen at the last value once stopped."""
        with self._lock:
            if self._running:
                return self._remaining_locked()
            return self._frozen_ms

    def is_active(self) -> bool:
        with self._lock:
            return self._running

    def formatted(self) -> str:
        return format_ms(self.remaining())

    def poll(self, generation: Optional[int] = None) -> bool:
        """Run one tick. Returns False once this generation is finished."""
        with self._lock:
            if not self._running:
                return False
            if generation is not None and generation != self._generation:
                return False
            remaining = self._remaining_locked()
            on_tick, on_complete = self._on_tick, self._on_complete
            expired = remaining <= 0
            if expired:
                self._running = False
                self._frozen_ms = 0
                self._generation += 1
        if on_tick is not None:
            on_tick(remaining)
        if expired:
            logger.info("[timer-fire] countdown reached zero")
            if on_complete is not None:
                on_complete()
            return False
        return True

    def _remaining_locked(self) -> int:
        return max(0, int(round((self._deadline - self.clock()) * 1000)))

    def _run(self, generation: int) -> None:
        while True:
            left = self.remaining() / 1000.0
            self._sleep(max(0.0, min(self.tick_interval, left)))
            if not self.poll(generation):
                return

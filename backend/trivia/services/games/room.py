"""The single serialization point between the transport and the session.

Every socket intent, timer tick, timer expiry and deferred task enters the
session through ``GameRoom`` while holding ``_lock``, so no transition is ever
observed half applied. Outbound messages go through a transport object with
``emit(event, data, to)`` and ``enter(sid)``.
"""
import logging
import threading
import time
from typing import Optional

from trivia.errors import TriviaError
from trivia.models import REASON_CORRECT, STATUS_ENDED, STATUS_IN_PROGRESS, Player
from .scheduler import TaskScheduler
from .session import GameSession, RoundOutcome
from .timer import CountdownTimer, format_ms

logger = logging.getLogger(__name__)

ROOM = 'game'
TASK_ROUND_RESET = 'round-reset'
TASK_MASTER_IDLE = 'master-idle'

TIMEOUT_MESSAGE = 'Game timeout, nobody got the correct answer'


class GameRoom:
    def __init__(
        self,
        session: GameSession,
        transport,
        scheduler: Optional[TaskScheduler] = None,
        reset_delay: float = 5.0,
        master_idle_timeout: float = 60.0,
    ):
        self.session = session
        self.transport = transport
        self.scheduler = scheduler or TaskScheduler()
        self.reset_delay = reset_delay
        self.master_idle_timeout = master_idle_timeout
        self._lock = threading.RLock()
        session.on_timer_tick = self._on_timer_tick
        session.on_timer_complete = self._on_timer_complete

    @classmethod
    def from_config(cls, config, transport, spawn=None, sleep=None, clock=time.monotonic, rng=None):
        """Build a room from a Flask config mapping. ``spawn=None`` means manual timers."""
        timer = CountdownTimer(
            duration_ms=int(config.get('ROUND_DURATION_MS', 60000)),
            tick_interval=float(config.get('TIMER_TICK_SEC', 1)),
            clock=clock,
            spawn=spawn,
            sleep=sleep,
        )
        session = GameSession(
            timer=timer,
            rng=rng,
            min_players=int(config.get('MIN_PLAYERS', 3)),
            max_attempts=int(config.get('MAX_ATTEMPTS', 3)),
            winner_bonus=int(config.get('WINNER_BONUS', 10)),
        )
        return cls(
            session,
            transport,
            scheduler=TaskScheduler(spawn=spawn, sleep=sleep),
            reset_delay=float(config.get('ROUND_RESET_DELAY_SEC', 5)),
            master_idle_timeout=float(config.get('MASTER_IDLE_TIMEOUT_SEC', 60)),
        )

    # ---- inbound intents ----

    def join(self, sid: str, name: str) -> Optional[Player]:
        with self._lock:
            try:
                player = self.session.join(sid, name)
            except TriviaError as exc:
                self._reject(sid, exc)
                return None
            self.transport.enter(sid)
            self._emit('joined', {'player': player.to_dict(), 'session': self.session.to_dict()}, to=sid)
            self._emit('playerJoined', {'player': player.to_dict(), 'session': self.session.to_dict()})
            return player

    def set_question_and_start(self, sid: str, prompt: str, answer: str) -> bool:
        with self._lock:
            try:
                self.session.set_question_and_start(sid, prompt, answer)
            except TriviaError as exc:
                self._reject(sid, exc)
                return False
            self.scheduler.cancel(TASK_MASTER_IDLE)
            self._emit('gameStarted', {
                'question': self.session.question.to_dict(),
                'session': self.session.to_dict(),
            })
            return True

    def guess(self, sid: str, text: str):
        with self._lock:
            try:
                outcome = self.session.submit_guess(sid, text)
            except TriviaError as exc:
                self._reject(sid, exc)
                return None
            if outcome.rejected:
                logger.info(f"[guess-rejected] player={outcome.player.name} {outcome.message}")
                self._emit('error', {'message': outcome.message, 'reason': 'attempts-exhausted'}, to=sid)
            elif outcome.correct:
                self._announce_round_end(outcome.round)
            else:
                self._emit('guessResult', {
                    'correct': False,
                    'attemptsRemaining': outcome.attempts_remaining,
                    'message': outcome.message,
                }, to=sid)
                self._emit('sessionUpdate', self.session.to_dict())
            return outcome

    def send_timer(self, sid: str) -> None:
        with self._lock:
            if self.session.status == STATUS_IN_PROGRESS:
                self._emit('timerUpdate', self._timer_payload(), to=sid)

    def leave(self, sid: str) -> Optional[Player]:
        with self._lock:
            player = self.session.leave(sid)
            if player is None:
                return None
            if self.session.is_empty():
                self.scheduler.cancel_all()
                return player
            self._emit('playerLeft', {'player': player.to_dict(), 'session': self.session.to_dict()})
            return player

    def clear(self) -> None:
        with self._lock:
            self.session.clear()
            self.scheduler.cancel_all()

    def snapshot(self):
        with self._lock:
            return self.session.to_dict()

    # ---- timer and deferred signals ----

    def _on_timer_tick(self, remaining_ms: int) -> None:
        with self._lock:
            if self.session.status == STATUS_IN_PROGRESS:
                self._emit('timerUpdate', {'timeLeft': remaining_ms, 'formatted': format_ms(remaining_ms)})

    def _on_timer_complete(self) -> None:
        with self._lock:
            outcome = self.session.expire_round()
            if outcome is not None:
                self._announce_round_end(outcome)

    def _finish_round(self) -> None:
        with self._lock:
            if self.session.status != STATUS_ENDED:
                return
            self.session.reset_for_new_round()
            self._emit('sessionUpdate', self.session.to_dict())
            self._notify_master(
                'You are now the game master! Create a question to start the next round.',
                '{name} is now the game master and will ask the next question.',
            )
            self._arm_master_idle()

    def _on_master_idle(self) -> None:
        with self._lock:
            master = self.session.rotate_idle_master()
            if master is None:
                return
            logger.info(f"[master-idle] rotated to {master.name}")
            self._emit('sessionUpdate', self.session.to_dict())
            self._notify_master(
                "Previous master didn't start the game. You are now the game master!",
                '{name} is now the game master.',
            )

    # ---- helpers ----

    def _announce_round_end(self, outcome: RoundOutcome) -> None:
        session_data = self.session.to_dict()
        if outcome.reason == REASON_CORRECT:
            winner = outcome.winner.to_dict()
            self._emit('gameEnded', {
                'winner': winner,
                'answer': outcome.answer,
                'reason': outcome.reason,
                'session': session_data,
            })
            self._emit('winnerModal', {
                'winner': winner,
                'answer': outcome.answer,
                'countdown': int(self.reset_delay),
            })
        else:
            self._emit('gameEnded', {
                'winner': None,
                'answer': outcome.answer,
                'reason': outcome.reason,
                'session': session_data,
            })
            self._emit('timeoutModal', {'message': TIMEOUT_MESSAGE, 'answer': outcome.answer})
        self.scheduler.cancel(TASK_MASTER_IDLE)
        self.scheduler.call_later(TASK_ROUND_RESET, self.reset_delay, self._finish_round)

    def _notify_master(self, master_message: str, others_template: str) -> None:
        master = self.session.registry.master()
        if master is None:
            return
        master_data = master.to_dict()
        for p in self.session.registry:
            message = master_message if p is master else others_template.format(name=master.name)
            self._emit('newMasterNotification', {'message': message, 'master': master_data}, to=p.sid)

    def _arm_master_idle(self) -> None:
        if self.master_idle_timeout > 0 and self.session.registry.count() > 1:
            self.scheduler.call_later(TASK_MASTER_IDLE, self.master_idle_timeout, self._on_master_idle)

    def _timer_payload(self):
        remaining = self.session.timer.remaining()
        return {'timeLeft': remaining, 'formatted': format_ms(remaining)}

    def _reject(self, sid: str, exc: TriviaError) -> None:
        logger.info(f"[rejected] sid={sid} reason={exc.reason} {exc.message}")
        self._emit('error', {'message': exc.message, 'reason': exc.reason}, to=sid)

    def _emit(self, event: str, data, to: str = ROOM) -> None:
        self.transport.emit(event, data, to=to)

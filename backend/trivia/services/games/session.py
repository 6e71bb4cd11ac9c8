"""Round orchestrator: the waiting -> in-progress -> ended -> waiting cycle.

``GameSession`` owns the question, the countdown and the player registry and
is the only thing allowed to change ``status``. It is not thread-safe on its
own; ``GameRoom`` serializes every call into it.

Ending a round is a compare-and-set on ``status``: whichever of a correct
guess or a timer expiry moves it from in-progress to ended first wins, and the
other trigger gets ``None`` back and changes nothing.
"""
import logging
import random
from dataclasses import dataclass
from typing import Callable, Optional

from trivia.errors import AuthorizationError, StateError, ValidationError
from trivia.models import (
    DEFAULT_MAX_ATTEMPTS,
    REASON_CORRECT,
    REASON_TIMEOUT,
    STATUS_ENDED,
    STATUS_IN_PROGRESS,
    STATUS_WAITING,
    Player,
    Question,
)
from .registry import PlayerRegistry
from .timer import CountdownTimer

logger = logging.getLogger(__name__)


@dataclass
class RoundOutcome:
    reason: str
    winner: Optional[Player]
    answer: str
    master: Optional[Player]
    round_number: int


@dataclass
class GuessOutcome:
    player: Player
    correct: bool
    attempts_remaining: int
    rejected: bool = False
    message: str = ''
    round: Optional[RoundOutcome] = None


class GameSession:
    def __init__(
        self,
        session_id: str = 'default',
        timer: Optional[CountdownTimer] = None,
        rng=None,
        min_players: int = 3,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        winner_bonus: int = 10,
        on_timer_tick: Optional[Callable[[int], None]] = None,
        on_timer_complete: Optional[Callable[[], None]] = None,
    ):
        self.id = session_id
        self.status = STATUS_WAITING
        self.registry = PlayerRegistry(max_attempts=max_attempts)
        self.question = Question()
        self.timer = timer or CountdownTimer()
        self.rng = rng or random.Random()
        self.min_players = min_players
        self.winner_bonus = winner_bonus
        self.winner: Optional[Player] = None
        self.round_number = 0
        self.on_timer_tick = on_timer_tick
        self.on_timer_complete = on_timer_complete

    # ---- membership ----

    def can_join(self) -> bool:
        return self.status == STATUS_WAITING

    def join(self, sid: str, name: str) -> Player:
        if not (name or '').strip():
            raise ValidationError('Name is required', reason='empty-name')
        if not self.can_join():
            raise ValidationError('Game is in progress. Please wait for it to end.', reason='not-joinable')
        return self.registry.add(sid, name)

    def leave(self, sid: str) -> Optional[Player]:
        """Remove a player in any status; an emptied session is cleared."""
        player = self.registry.remove(sid)
        if player is not None and self.registry.is_empty():
            self.clear()
            logger.info("[session-clear] no players left")
        return player

    def get_player(self, sid: str) -> Optional[Player]:
        return self.registry.get(sid)

    def is_empty(self) -> bool:
        return self.registry.is_empty()

    # ---- round setup ----

    def set_question(self, sid: str, prompt: str, answer: str) -> None:
        self._validate_question_input(prompt, answer)
        self._require_master(sid, 'Only the game master can create questions')
        if self.status != STATUS_WAITING:
            raise StateError(f"Cannot change the question while the game is {self.status}")
        self.question.set(prompt, answer)

    def start_round(self, sid: str) -> int:
        """Open a round. Raises before touching anything if a precondition fails."""
        self._require_master(sid, 'Only the game master can start the round')
        if self.status != STATUS_WAITING:
            raise StateError(f"Cannot start a round while the game is {self.status}")
        if not self.question.is_set():
            raise StateError('Set a question and answer first', reason='question-unset')
        self._require_enough_players()

        for p in self.registry:
            p.reset_for_new_round()
        self.status = STATUS_IN_PROGRESS
        self.winner = None
        self.round_number += 1
        self.timer.start(self.on_timer_tick, self.on_timer_complete or self.expire_round)
        logger.info(f"[round-start] round={self.round_number} players={self.registry.count()}")
        return self.round_number

    def set_question_and_start(self, sid: str, prompt: str, answer: str) -> int:
        self._validate_question_input(prompt, answer)
        self._require_master(sid, 'Only the game master can create questions')
        if self.status != STATUS_WAITING:
            raise StateError(f"Cannot start a round while the game is {self.status}")
        self._require_enough_players()
        self.question.set(prompt, answer)
        return self.start_round(sid)

    # ---- guessing and termination ----

    def submit_guess(self, sid: str, text: str) -> GuessOutcome:
        if not (text or '').strip():
            raise ValidationError('Guess is required', reason='empty-guess')
        player = self.registry.get(sid)
        if player is None:
            raise ValidationError('Join the game before guessing', reason='unknown-player')
        if self.status != STATUS_IN_PROGRESS:
            raise StateError('No round is in progress')
        if player.is_master:
            raise AuthorizationError('The game master cannot guess', reason='master-guess')
        if not player.can_guess():
            return GuessOutcome(player, correct=False, attempts_remaining=0, rejected=True,
                                message='No more attempts left')

        player.make_attempt()
        if self.question.check(text):
            outcome = self.end_round(player, REASON_CORRECT)
            return GuessOutcome(player, correct=True, attempts_remaining=player.attempts_remaining,
                                message='Correct! You won!', round=outcome)
        return GuessOutcome(player, correct=False, attempts_remaining=player.attempts_remaining,
                            message='Wrong guess!')

    def expire_round(self) -> Optional[RoundOutcome]:
        return self.end_round(None, REASON_TIMEOUT)

    def end_round(self, winner: Optional[Player], reason: str) -> Optional[RoundOutcome]:
        """Single termination entry point; only the first caller per round gets an outcome."""
        if self.status != STATUS_IN_PROGRESS:
            logger.info(f"[round-end-skip] reason={reason} status={self.status}")
            return None
        self.status = STATUS_ENDED

        self.timer.stop()
        self.question.reveal()
        if winner is not None and reason == REASON_CORRECT:
            self.winner = winner
            winner.award_points(self.winner_bonus)
        master = self.registry.rotate_master_randomly(self.rng)
        logger.info(
            f"[round-end] round={self.round_number} reason={reason} "
            f"winner={winner.name if winner else None} next_master={master.name if master else None}"
        )
        return RoundOutcome(reason, self.winner, self.question.answer, master, self.round_number)

    # ---- reset ----

    def reset_for_new_round(self) -> None:
        if self.status == STATUS_IN_PROGRESS:
            raise StateError('Cannot reset while a round is in progress')
        self.question.reset()
        self.timer.reset()
        self.winner = None
        for p in self.registry:
            p.reset_for_new_round()
        self.status = STATUS_WAITING

    def rotate_idle_master(self) -> Optional[Player]:
        """Pass mastership on when the master sat on a waiting session too long."""
        if self.status != STATUS_WAITING or self.registry.count() <= 1:
            return None
        return self.registry.rotate_master_randomly(self.rng)

    def clear(self) -> None:
        self.registry.clear()
        self.status = STATUS_WAITING
        self.question.reset()
        self.timer.reset()
        self.winner = None
        self.round_number = 0

    # ---- projection ----

    def to_dict(self):
        ended = self.status == STATUS_ENDED
        players = [p.to_dict() for p in self.registry]
        return {
            'id': self.id,
            'status': self.status,
            'roundNumber': self.round_number,
            'players': players,
            'playerCount': len(players),
            'question': self.question.to_dict(include_answer=ended),
            'timeLeft': self.timer.remaining(),
            'winner': self.winner.to_dict() if self.winner else None,
        }

    # ---- helpers ----

    def _validate_question_input(self, prompt, answer):
        if not (prompt or '').strip() or not (answer or '').strip():
            raise ValidationError('Question and answer are required', reason='empty-question')

    def _require_master(self, sid, message):
        player = self.registry.get(sid)
        if player is None or not player.is_master:
            raise AuthorizationError(message)
        return player

    def _require_enough_players(self):
        if self.registry.count() < self.min_players:
            raise StateError(
                f"Cannot start game. Need at least {self.min_players} players.",
                reason='insufficient-players',
            )

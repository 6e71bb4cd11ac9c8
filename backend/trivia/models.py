from datetime import datetime, timezone
from typing import Optional

STATUS_WAITING = 'waiting'
STATUS_IN_PROGRESS = 'in-progress'
STATUS_ENDED = 'ended'

REASON_CORRECT = 'correct'
REASON_TIMEOUT = 'timeout'

DEFAULT_MAX_ATTEMPTS = 3


def _utcnow():
    return datetime.now(timezone.utc)


def normalize(text: Optional[str]) -> str:
    """Reduce an answer or guess to the form used for comparison."""
    return (text or '').strip().lower()


class Player:
    """A connected participant. ``sid`` addresses the connection and is never serialized."""

    def __init__(self, id, name, sid, max_attempts=DEFAULT_MAX_ATTEMPTS):
        self.id = id
        self.name = name
        self.sid = sid
        self.is_master = False
        self.score = 0
        self.attempts = 0
        self.max_attempts = max_attempts
        self.has_exhausted_attempts = False
        self.joined_at = _utcnow()

    def can_guess(self) -> bool:
        return self.attempts < self.max_attempts and not self.has_exhausted_attempts

    def make_attempt(self) -> None:
        self.attempts += 1
        if self.attempts >= self.max_attempts:
            self.has_exhausted_attempts = True

    @property
    def attempts_remaining(self) -> int:
        return max(0, self.max_attempts - self.attempts)

    def award_points(self, points: int) -> None:
        self.score += points

    def reset_for_new_round(self) -> None:
        self.attempts = 0
        self.has_exhausted_attempts = False

    def __repr__(self):
        return f"<Player {self.name!r} master={self.is_master} score={self.score}>"

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'isMaster': self.is_master,
            'score': self.score,
            'attempts': self.attempts,
            'maxAttempts': self.max_attempts,
            'hasGuessed': self.has_exhausted_attempts,
        }


class Question:
    """The current prompt/answer pair. The answer is stored normalized."""

    def __init__(self, prompt='', answer=''):
        self.prompt = prompt or ''
        self.answer = normalize(answer)
        self.revealed = False
        self.created_at = _utcnow()

    def set(self, prompt: str, answer: str) -> None:
        self.prompt = prompt
        self.answer = normalize(answer)
        self.revealed = False
        self.created_at = _utcnow()

    def is_set(self) -> bool:
        return self.prompt.strip() != '' and self.answer != ''

    def check(self, guess: Optional[str]) -> bool:
        guess = normalize(guess)
        if not guess or not self.answer:
            return False
        return guess == self.answer

    def reveal(self) -> None:
        self.revealed = True

    def reset(self) -> None:
        self.prompt = ''
        self.answer = ''
        self.revealed = False
        self.created_at = _utcnow()

    def to_dict(self, include_answer=False):
        data = {
            'question': self.prompt,
            'isRevealed': self.revealed,
            'createdAt': self.created_at.isoformat(),
        }
        if include_answer:
            data['answer'] = self.answer
        return data

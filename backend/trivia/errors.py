"""Errors raised by the round state machine.

Every error is local to the connection that caused it: the transport layer
reports ``message`` back to the sender and nothing in the session changes.
``reason`` is a short machine-readable code.
"""


class TriviaError(Exception):
    """Base class for rejected intents."""

    reason = 'error'

    def __init__(self, message: str, reason: str = None):
        super().__init__(message)
        self.message = message
        if reason is not None:
            self.reason = reason


class ValidationError(TriviaError):
    """Bad input: empty name/guess/question, or the session refuses joins."""

    reason = 'invalid'


class NameTaken(ValidationError):
    reason = 'name-taken'

    def __init__(self, name: str):
        super().__init__('Name already taken')
        self.name = name


class AuthorizationError(TriviaError):
    """A non-master attempted a master-only action (or the master guessed)."""

    reason = 'not-master'


class StateError(TriviaError):
    """The session is in the wrong status, underpopulated, or has no question."""

    reason = 'wrong-status'

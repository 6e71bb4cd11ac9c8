"""Game domain services: question/timer/registry state machine and scheduling.

This package contains the round logic that socket handlers and HTTP routes
call into, keeping transport concerns separated from core game mechanics.
"""
from .room import GameRoom
from .session import GameSession, GuessOutcome, RoundOutcome

__all__ = ['GameRoom', 'GameSession', 'GuessOutcome', 'RoundOutcome']

import logging
import uuid
from typing import Dict, List, Optional

from trivia.errors import NameTaken, ValidationError
from trivia.models import DEFAULT_MAX_ATTEMPTS, Player

logger = logging.getLogger(__name__)


def generate_player_id() -> str:
    return f"player_{uuid.uuid4().hex[:12]}"


class PlayerRegistry:
    """Connected participants keyed by connection sid, in join order.

    Holds the single-master invariant: whenever the registry is non-empty
    exactly one player has ``is_master`` set.
    """

    def __init__(self, max_attempts: int = DEFAULT_MAX_ATTEMPTS):
        self.max_attempts = max_attempts
        self._players: Dict[str, Player] = {}

    def add(self, sid: str, name: str) -> Player:
        name = (name or '').strip()
        if not name:
            raise ValidationError('Name is required', reason='empty-name')
        if sid in self._players:
            raise ValidationError('You have already joined', reason='already-joined')
        lowered = name.lower()
        if any(p.name.lower() == lowered for p in self._players.values()):
            raise NameTaken(name)

        player = Player(generate_player_id(), name, sid, max_attempts=self.max_attempts)
        if not self._players:
            player.is_master = True
        self._players[sid] = player
        logger.info(f"[player-join] name={name} id={player.id} master={player.is_master}")
        return player

    def remove(self, sid: str) -> Optional[Player]:
        player = self._players.pop(sid, None)
        if player is None:
            return None
        logger.info(f"[player-leave] name={player.name} id={player.id}")
        if player.is_master and self._players:
            self.promote_next_master()
        return player

    def promote_next_master(self) -> Optional[Player]:
        """Hand mastership to the earliest joiner still present."""
        players = self.list()
        if not players:
            return None
        for p in players:
            p.is_master = False
        players[0].is_master = True
        logger.info(f"[master-promote] name={players[0].name}")
        return players[0]

    def rotate_master_randomly(self, rng) -> Optional[Player]:
        players = self.list()
        if len(players) <= 1:
            return self.master()
        for p in players:
            p.is_master = False
        chosen = rng.choice(players)
        chosen.is_master = True
        logger.info(f"[master-rotate] name={chosen.name}")
        return chosen

    def get(self, sid: str) -> Optional[Player]:
        return self._players.get(sid)

    def get_by_id(self, player_id: str) -> Optional[Player]:
        for p in self._players.values():
            if p.id == player_id:
                return p
        return None

    def master(self) -> Optional[Player]:
        for p in self._players.values():
            if p.is_master:
                return p
        return None

    def list(self) -> List[Player]:
        return list(self._players.values())

    def count(self) -> int:
        return len(self._players)

    def is_empty(self) -> bool:
        return not self._players

    def clear(self) -> None:
        self._players.clear()

    def __len__(self):
        return len(self._players)

    def __iter__(self):
        return iter(self.list())

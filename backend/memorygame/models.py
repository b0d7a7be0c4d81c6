from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional
import time


class RoomState(str, Enum):
    LOBBY = 'lobby'
    PLAYING = 'playing'
    PAUSED = 'paused'
    ENDED = 'ended'


@dataclass
class Card:
    id: int
    symbol: str
    matched: bool = False
    flipped: bool = False

    def to_dict(self, reveal=True):
        return {
            'id': self.id,
            'symbol': self.symbol if (reveal or self.flipped or self.matched) else None,
            'matched': self.matched,
            'flipped': self.flipped,
        }


@dataclass
class Player:
    id: str
    name: str
    connected: bool = True

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'connected': self.connected,
        }


@dataclass
class RoomConfig:
    grid_size: int = 4
    theme: str = 'emojis'
    max_players: int = 2
    time_limit: Optional[float] = None

    @property
    def pair_count(self) -> int:
        return (self.grid_size * self.grid_size) // 2

    def merged(self, overrides: Optional[dict]) -> 'RoomConfig':
        """Return a copy with every non-None override applied."""
        values = {
            'grid_size': self.grid_size,
            'theme': self.theme,
            'max_players': self.max_players,
            'time_limit': self.time_limit,
        }
        for key, value in (overrides or {}).items():
            if key in values and value is not None:
                values[key] = value
        return RoomConfig(**values)

    def to_dict(self):
        return {
            'gridSize': self.grid_size,
            'theme': self.theme,
            'maxPlayers': self.max_players,
            'timeLimit': self.time_limit,
        }


@dataclass
class Room:
    """One multiplayer session: seats, board and turn state.

    ``revealed`` is the pending-resolution buffer and never holds more than
    two cards. ``game_token`` is unique per deal across the process, so a
    resolution scheduled for an older game (or for a destroyed room with the
    same id) can recognise it is stale.
    """

    id: str
    config: RoomConfig = field(default_factory=RoomConfig)
    players: List[Player] = field(default_factory=list)
    board: List[Card] = field(default_factory=list)
    state: RoomState = RoomState.LOBBY
    current_player_index: int = 0
    scores: Dict[str, int] = field(default_factory=dict)
    move_count: int = 0
    matched_pair_count: int = 0
    revealed: List[Card] = field(default_factory=list)
    revealed_by: Optional[str] = None
    start_time: Optional[float] = None
    paused_by: Optional[str] = None
    paused_at: Optional[float] = None
    pause_reason: Optional[str] = None
    ended_at: Optional[float] = None
    game_token: int = 0

    @property
    def started(self) -> bool:
        return self.state != RoomState.LOBBY

    @property
    def paused(self) -> bool:
        return self.state == RoomState.PAUSED

    @property
    def ended(self) -> bool:
        return self.state == RoomState.ENDED

    @property
    def resolution_pending(self) -> bool:
        return len(self.revealed) == 2

    @property
    def is_full(self) -> bool:
        return len(self.players) >= self.config.max_players

    @property
    def is_complete(self) -> bool:
        return bool(self.board) and self.matched_pair_count * 2 == len(self.board)

    @property
    def current_player(self) -> Optional[Player]:
        if not self.players or not self.started:
            return None
        return self.players[self.current_player_index % len(self.players)]

    def find_player(self, player_id: str) -> Optional[Player]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def player_index(self, player_id: str) -> int:
        for idx, p in enumerate(self.players):
            if p.id == player_id:
                return idx
        return -1

    def find_card(self, card_id) -> Optional[Card]:
        for card in self.board:
            if card.id == card_id:
                return card
        return None

    def has_connected_players(self) -> bool:
        return any(p.connected for p in self.players)

    def elapsed_ms(self, now: Optional[float] = None) -> int:
        """Active play time; time spent paused does not count."""
        if self.start_time is None:
            return 0
        now = time.time() if now is None else now
        if self.ended and self.ended_at is not None:
            now = self.ended_at
        elif self.paused and self.paused_at is not None:
            now = self.paused_at
        return max(0, int(round((now - self.start_time) * 1000)))

    def to_dict(self, reveal_board=False, now: Optional[float] = None):
        current = self.current_player
        return {
            'id': self.id,
            'state': self.state.value,
            'config': self.config.to_dict(),
            'players': [p.to_dict() for p in self.players],
            'board': [c.to_dict(reveal=reveal_board) for c in self.board],
            'currentPlayer': current.to_dict() if current else None,
            'scores': dict(self.scores),
            'moves': self.move_count,
            'matchedPairs': self.matched_pair_count,
            'pausedBy': self.paused_by,
            'elapsed': self.elapsed_ms(now),
        }

import random
import string
import threading
from typing import Dict, Optional

from memorygame.models import Player, Room, RoomConfig


class RoomRegistry:
    """In-memory owner of every room and of connection -> room membership.

    One instance lives for the lifetime of the server process. Callers hold
    ``lock`` for the whole of any read-modify-write on a room so socket
    handlers and timer workers never interleave inside one event.
    """

    def __init__(self, defaults: Optional[RoomConfig] = None):
        self.defaults = defaults or RoomConfig()
        self.lock = threading.RLock()
        self._rooms: Dict[str, Room] = {}
        self._room_by_sid: Dict[str, str] = {}

    def create_room(self, room_id: str, config: Optional[dict] = None) -> Room:
        """Insert a room unless one with this id exists; return the room either way."""
        room = self._rooms.get(room_id)
        if room is None:
            room = Room(id=room_id, config=self.defaults.merged(config))
            self._rooms[room_id] = room
        return room

    def get_room(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def room_id_for(self, sid: str) -> Optional[str]:
        return self._room_by_sid.get(sid)

    def room_for(self, sid: str) -> Optional[Room]:
        room_id = self._room_by_sid.get(sid)
        return self._rooms.get(room_id) if room_id else None

    def add_player(self, room_id: str, player: Player) -> bool:
        room = self._rooms.get(room_id)
        if room is None or room.is_full:
            return False
        room.players.append(player)
        room.scores[player.id] = 0
        self._room_by_sid[player.id] = room_id
        return True

    def remove_player(self, room_id: str, sid: str) -> Optional[Player]:
        """Drop a player from a room, deleting the room once it is empty.

        Returns the removed player, or None when it was not seated.
        """
        if self._room_by_sid.get(sid) == room_id:
            self._room_by_sid.pop(sid, None)
        room = self._rooms.get(room_id)
        if room is None:
            return None
        idx = room.player_index(sid)
        if idx < 0:
            return None
        player = room.players.pop(idx)
        room.scores.pop(sid, None)
        if not room.players:
            self._rooms.pop(room_id, None)
        return player

    def forget_connection(self, sid: str, room_id: Optional[str] = None) -> Optional[str]:
        """Drop the sid's room lookup; with ``room_id``, only if it points there."""
        if room_id is not None and self._room_by_sid.get(sid) != room_id:
            return None
        return self._room_by_sid.pop(sid, None)

    def rekey_player(self, room_id: str, old_id: str, new_id: str) -> Optional[Player]:
        """Hand a seat over to a new connection id, keeping its score."""
        room = self._rooms.get(room_id)
        if room is None:
            return None
        player = room.find_player(old_id)
        if player is None:
            return None
        player.id = new_id
        room.scores[new_id] = room.scores.pop(old_id, 0)
        if room.revealed_by == old_id:
            room.revealed_by = new_id
        if room.paused_by == old_id:
            room.paused_by = new_id
        if self._room_by_sid.get(old_id) == room_id:
            self._room_by_sid.pop(old_id, None)
        self._room_by_sid[new_id] = room_id
        return player

    def delete_room(self, room_id: str) -> Optional[Room]:
        room = self._rooms.pop(room_id, None)
        if room is not None:
            for p in room.players:
                if self._room_by_sid.get(p.id) == room_id:
                    self._room_by_sid.pop(p.id, None)
        return room

    def generate_room_id(self, length: int = 6) -> str:
        """Generate a unique, short room code."""
        while True:
            code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
            if code not in self._rooms:
                return code

    def stats(self) -> dict:
        return {
            'rooms': len(self._rooms),
            'players': sum(len(r.players) for r in self._rooms.values()),
        }

    def __contains__(self, room_id: str) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

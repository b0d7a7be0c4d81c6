import re
from typing import Any, Dict, Optional

from memorygame.errors import InvalidInput
from memorygame.services.games.board import THEMES


_ROOM_ID_STRIP = re.compile(r'[^A-Za-z0-9_-]')
_NAME_STRIP = re.compile(r'[<>\x00-\x1f\x7f]')


def sanitize_room_id(raw: Any, max_length: int = 32) -> str:
    if not isinstance(raw, str):
        raise InvalidInput('Room ID is required')
    room_id = _ROOM_ID_STRIP.sub('', raw)[:max_length]
    if not room_id:
        raise InvalidInput('Invalid room ID')
    return room_id


def sanitize_player_name(raw: Any, max_length: int = 32) -> str:
    if not isinstance(raw, str):
        raise InvalidInput('Player name is required')
    name = _NAME_STRIP.sub('', raw).strip()[:max_length].strip()
    if not name:
        raise InvalidInput('Invalid player name')
    return name


def _as_int(value: Any, field: str) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise InvalidInput(f'{field} must be an integer')
    try:
        return int(value)
    except ValueError:
        raise InvalidInput(f'{field} must be an integer')


def parse_room_config(raw: Any, max_grid_size: int = 6, max_players_limit: int = 4) -> Optional[Dict[str, Any]]:
    """Validate client supplied room settings.

    Accepts the camelCase keys clients send and returns RoomConfig field
    overrides; keys that are absent stay at the room defaults.
    """
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise InvalidInput('Room config must be an object')
    overrides: Dict[str, Any] = {}

    if raw.get('gridSize') is not None:
        grid_size = _as_int(raw['gridSize'], 'gridSize')
        if grid_size <= 0 or grid_size % 2 or grid_size > max_grid_size:
            raise InvalidInput(f'gridSize must be a positive even number up to {max_grid_size}')
        overrides['grid_size'] = grid_size

    if raw.get('theme') is not None:
        if raw['theme'] not in THEMES:
            raise InvalidInput(f"Unknown theme {raw['theme']!r}")
        overrides['theme'] = raw['theme']

    if raw.get('maxPlayers') is not None:
        max_players = _as_int(raw['maxPlayers'], 'maxPlayers')
        if not 2 <= max_players <= max_players_limit:
            raise InvalidInput(f'maxPlayers must be between 2 and {max_players_limit}')
        overrides['max_players'] = max_players

    if raw.get('timeLimit') is not None:
        time_limit = raw['timeLimit']
        if isinstance(time_limit, bool) or not isinstance(time_limit, (int, float)) or time_limit <= 0:
            raise InvalidInput('timeLimit must be a positive number of seconds')
        overrides['time_limit'] = float(time_limit)

    return overrides

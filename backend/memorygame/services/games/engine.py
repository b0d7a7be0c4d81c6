"""Turn and match rules for a multiplayer room.

Every operation takes the room it acts on, mutates it in place and returns
the notices the caller must broadcast to the room, in order. Nothing here
knows about sockets or timers; callers hold the registry lock around each
call.
"""
import itertools
import random
import time
from typing import Any, Dict, List, Optional, Tuple

from memorygame.errors import (
    GameNotInProgress,
    GamePaused,
    InvalidCardSelection,
    NotYourTurn,
    PlayerNotInRoom,
)
from memorygame.models import Player, Room, RoomState
from .board import generate_board, resolve_theme
from .registry import RoomRegistry


Notice = Tuple[str, Dict[str, Any]]

DISCONNECT_REASON = 'Player disconnected'

# Process-wide, so a room recreated under an old id never reuses a token.
_game_tokens = itertools.count(1)

# action -> {from_state: to_state}
TRANSITIONS = {
    'start': {RoomState.LOBBY: RoomState.PLAYING},
    'restart': {RoomState.ENDED: RoomState.PLAYING},
    'pause': {RoomState.PLAYING: RoomState.PAUSED},
    'resume': {RoomState.PAUSED: RoomState.PLAYING},
    'finish': {RoomState.PLAYING: RoomState.ENDED, RoomState.PAUSED: RoomState.ENDED},
}


def _transition(room: Room, action: str, message: Optional[str] = None) -> None:
    target = TRANSITIONS[action].get(room.state)
    if target is None:
        raise GameNotInProgress(message or f'Cannot {action} while game is {room.state.value}')
    room.state = target


def _require_member(room: Room, sid: str) -> Player:
    player = room.find_player(sid)
    if player is None:
        raise PlayerNotInRoom()
    return player


def _deal(room: Room, now: float, rng: Optional[random.Random]) -> None:
    theme = resolve_theme(room.config.theme, room.config.pair_count)
    room.board = generate_board(room.config.grid_size, theme, rng)
    room.start_time = now
    room.current_player_index = 0
    room.move_count = 0
    room.matched_pair_count = 0
    room.revealed = []
    room.revealed_by = None
    room.paused_by = None
    room.paused_at = None
    room.pause_reason = None
    room.ended_at = None
    room.game_token = next(_game_tokens)


def _game_started(room: Room, restarted: bool = False) -> Notice:
    current = room.current_player
    payload = {
        # Cards start face-down; symbols ride along for the client to render.
        'gameBoard': [{'id': c.id, 'matched': c.matched, 'flipped': False, 'symbol': c.symbol} for c in room.board],
        'currentPlayer': current.to_dict() if current else None,
        'scores': dict(room.scores),
        'config': room.config.to_dict(),
    }
    if restarted:
        payload['restarted'] = True
    return 'game-started', payload


def start_game(room: Room, sid: str, now: Optional[float] = None, rng: Optional[random.Random] = None) -> List[Notice]:
    _require_member(room, sid)
    _transition(room, 'start', 'Game has already started')
    _deal(room, time.time() if now is None else now, rng)
    return [_game_started(room)]


def restart_game(room: Room, sid: str, now: Optional[float] = None, rng: Optional[random.Random] = None) -> List[Notice]:
    """Deal a fresh board for the same seats once a game has ended."""
    _require_member(room, sid)
    _transition(room, 'restart', 'Game can only be restarted after it has ended')
    for pid in room.scores:
        room.scores[pid] = 0
    _deal(room, time.time() if now is None else now, rng)
    return [_game_started(room, restarted=True)]


def flip_card(room: Room, sid: str, card_id) -> List[Notice]:
    """Reveal one card for the player holding the turn.

    Rejections are checked in a fixed order: game running, not paused,
    caller's turn, no pair awaiting resolution, selectable card.
    """
    if room.state in (RoomState.LOBBY, RoomState.ENDED):
        raise GameNotInProgress('Game not started or already finished')
    if room.paused:
        raise GamePaused()
    current = room.current_player
    if current is None or current.id != sid:
        raise NotYourTurn()
    if room.resolution_pending:
        raise InvalidCardSelection('Two cards are already awaiting resolution')
    card = room.find_card(card_id)
    if card is None or card.matched or card.flipped:
        raise InvalidCardSelection()

    card.flipped = True
    room.revealed.append(card)
    room.revealed_by = sid
    return [('card-flipped', {'cardId': card.id, 'symbol': card.symbol, 'playerId': sid})]


def pick_winner(room: Room) -> Optional[Player]:
    """Highest scorer; ties go to whoever sits first in turn order."""
    winner = None
    best = None
    for p in room.players:
        score = room.scores.get(p.id, 0)
        if best is None or score > best:
            winner, best = p, score
    return winner


def resolve_pair(room: Room, game_token: Optional[int] = None, now: Optional[float] = None) -> List[Notice]:
    """Settle the two revealed cards.

    Safe to call more than once: a stale token or an empty buffer is a
    no-op, so each pair resolves exactly once. Applies even while paused;
    pausing only blocks new flips.
    """
    if game_token is not None and game_token != room.game_token:
        return []
    if not room.resolution_pending or room.state not in (RoomState.PLAYING, RoomState.PAUSED):
        return []
    now = time.time() if now is None else now

    first, second = room.revealed
    actor_id = room.revealed_by
    notices: List[Notice] = []

    if first.symbol == second.symbol:
        first.matched = second.matched = True
        if actor_id in room.scores:
            room.scores[actor_id] += 1
        room.matched_pair_count += 1
        notices.append(('match-found', {
            'cards': [first.id, second.id],
            'playerId': actor_id,
            'scores': dict(room.scores),
        }))
    else:
        first.flipped = second.flipped = False
        actor_idx = room.player_index(actor_id) if actor_id else -1
        if actor_idx >= 0:
            room.current_player_index = (actor_idx + 1) % len(room.players)
        # A departed actor already handed the turn on when leaving.
        notices.append(('no-match', {'cards': [first.id, second.id]}))
        current = room.current_player
        notices.append(('turn-changed', {'currentPlayer': current.to_dict() if current else None}))

    room.revealed = []
    room.revealed_by = None
    room.move_count += 1

    if room.is_complete:
        duration = room.elapsed_ms(now)
        room.ended_at = room.paused_at if room.paused else now
        _transition(room, 'finish')
        room.paused_by = None
        room.paused_at = None
        room.pause_reason = None
        winner = pick_winner(room)
        notices.append(('game-ended', {
            'scores': dict(room.scores),
            'duration': duration,
            'moves': room.move_count,
            'winner': winner.to_dict() if winner else None,
        }))
    return notices


def pause_game(room: Room, sid: str, now: Optional[float] = None, reason: Optional[str] = None) -> List[Notice]:
    player = _require_member(room, sid)
    if room.paused:
        return []
    _transition(room, 'pause', 'Cannot pause: game not started')
    room.paused_by = sid
    room.paused_at = time.time() if now is None else now
    room.pause_reason = reason
    payload = {'pausedBy': sid, 'pausedByName': player.name}
    if reason:
        payload['reason'] = reason
    return [('game-paused', payload)]


def resume_game(room: Room, sid: str, now: Optional[float] = None) -> List[Notice]:
    player = _require_member(room, sid)
    if room.state == RoomState.PLAYING:
        return []
    _transition(room, 'resume', 'Cannot resume: game not started')
    now = time.time() if now is None else now
    if room.paused_at is not None and room.start_time is not None:
        room.start_time += now - room.paused_at
    room.paused_by = None
    room.paused_at = None
    room.pause_reason = None
    return [('game-resumed', {'resumedBy': sid, 'resumedByName': player.name})]


def disconnect_player(registry: RoomRegistry, room: Room, sid: str, now: Optional[float] = None) -> List[Notice]:
    """Mark a seat as disconnected and auto-pause a running game."""
    registry.forget_connection(sid, room.id)
    player = room.find_player(sid)
    if player is None:
        return []
    player.connected = False
    notices: List[Notice] = [('player-disconnected', player.to_dict())]
    if room.state == RoomState.PLAYING:
        notices.extend(pause_game(room, sid, now=now, reason=DISCONNECT_REASON))
    return notices


def reconnect_player(registry: RoomRegistry, room: Room, old_id: str, new_id: str) -> Player:
    """Give a disconnected seat to a new connection.

    The game is left paused; any member resumes it explicitly.
    """
    player = room.find_player(old_id)
    if player is None or player.connected:
        raise PlayerNotInRoom('No disconnected player with that id in this room')
    registry.rekey_player(room.id, old_id, new_id)
    player.connected = True
    return player


def leave_room(registry: RoomRegistry, room: Room, sid: str) -> Tuple[Optional[Player], List[Notice]]:
    """Remove a player for good.

    If the leaver held the turn it passes to whoever now sits at the same
    seat index (the next player in order). A lone card the leaver had
    revealed is turned back down; a full pair still resolves.
    """
    idx = room.player_index(sid)
    if idx < 0:
        # Not seated here; a seat elsewhere keeps its lookup.
        registry.forget_connection(sid, room.id)
        return None, []
    in_game = room.state in (RoomState.PLAYING, RoomState.PAUSED)
    was_current = in_game and idx == room.current_player_index % len(room.players)

    if in_game and room.revealed_by == sid and len(room.revealed) == 1:
        room.revealed[0].flipped = False
        room.revealed = []
        room.revealed_by = None

    player = registry.remove_player(room.id, sid)
    notices: List[Notice] = [('player-left', player.to_dict())]

    if in_game and room.players:
        if idx < room.current_player_index:
            room.current_player_index -= 1
        elif was_current:
            room.current_player_index = idx % len(room.players)
            notices.append(('turn-changed', {'currentPlayer': room.current_player.to_dict()}))
    return player, notices

import functools
from typing import Any, List

from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from memorygame.errors import (
    AlreadyInRoom,
    GameError,
    InternalError,
    InvalidCardSelection,
    InvalidInput,
    PlayerNotInRoom,
    RoomFull,
    RoomNotFound,
)
from memorygame.models import Player, Room
from memorygame.sanitize import parse_room_config, sanitize_player_name, sanitize_room_id
from memorygame.services.games import engine
from memorygame.services.games.registry import RoomRegistry
from memorygame.services.games.scheduler import TurnScheduler


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def guarded(handler):
    """Turn any fault into an ``error`` event for the sender only."""

    @functools.wraps(handler)
    def wrapper(self, *args):
        try:
            return handler(self, *args)
        except GameError as exc:
            current_app.logger.warning(f"[rejected] event={handler.__name__} sid={_get_sid()} code={exc.code} message={exc.message}")
            emit('error', exc.to_dict())
        except Exception:
            current_app.logger.exception(f"[error] event={handler.__name__} sid={_get_sid()}")
            emit('error', InternalError().to_dict())

    return wrapper


class RoomGateway:
    """Socket.IO boundary: sanitizes intents, applies them, broadcasts outcomes."""

    def __init__(self, app, registry: RoomRegistry, socketio):
        self.registry = registry
        self.socketio = socketio
        self.namespace = app.config.get('SOCKETIO_NAMESPACE', '/')
        self.scheduler = TurnScheduler(app, registry, socketio, self.broadcast)

    def broadcast(self, room_id: str, notices: List[engine.Notice]) -> None:
        for name, payload in notices:
            self.socketio.emit(name, payload, to=room_id, namespace=self.namespace)

    def _room_id(self, data: Any) -> str:
        # start-game historically sends the bare room id
        raw = data.get('roomId') if isinstance(data, dict) else data
        return sanitize_room_id(raw, current_app.config.get('ROOM_ID_MAX_LENGTH', 32))

    def _room(self, room_id: str) -> Room:
        room = self.registry.get_room(room_id)
        if room is None:
            raise RoomNotFound()
        return room

    def _after_departure(self, room_id: str) -> None:
        room = self.registry.get_room(room_id)
        if room is None:
            self.scheduler.cancel_reap(room_id)
            current_app.logger.info(f"[room-closed] room={room_id} reason=empty")
        elif not room.has_connected_players():
            self.scheduler.schedule_reap(room_id)

    def handle_connect(self, auth=None):
        emit('connected', {'playerId': _get_sid()})

    def handle_disconnect(self, reason=None):
        sid = _get_sid()
        try:
            with self.registry.lock:
                room = self.registry.room_for(sid)
                if room is None:
                    return
                notices = engine.disconnect_player(self.registry, room, sid)
                current_app.logger.info(f"[disconnect] room={room.id} sid={sid} state={room.state.value}")
                self.broadcast(room.id, notices)
                self._after_departure(room.id)
        except Exception:
            current_app.logger.exception(f"[error] event=disconnect sid={sid}")

    @guarded
    def handle_join_room(self, data=None):
        if not isinstance(data, dict):
            raise InvalidInput()
        cfg = current_app.config
        name = sanitize_player_name(data.get('playerName'), cfg.get('PLAYER_NAME_MAX_LENGTH', 32))
        overrides = parse_room_config(data.get('config'), cfg.get('MAX_GRID_SIZE', 6), cfg.get('MAX_PLAYERS_LIMIT', 4))
        sid = _get_sid()
        with self.registry.lock:
            current = self.registry.room_id_for(sid)
            if current is not None:
                raise AlreadyInRoom(f'Already in room {current}')
            if data.get('roomId') is None:
                room_id = self.registry.generate_room_id()
            else:
                room_id = self._room_id(data)
            room = self.registry.create_room(room_id, overrides)
            player = Player(id=sid, name=name)
            if not self.registry.add_player(room_id, player):
                raise RoomFull()
            join_room(room_id)
            self.scheduler.cancel_reap(room_id)
            emit('room-joined', {
                'roomId': room_id,
                'playerId': sid,
                'room': {
                    'players': [p.to_dict() for p in room.players],
                    'config': room.config.to_dict(),
                    'state': room.state.value,
                },
            })
            emit('player-joined', player.to_dict(), to=room_id, include_self=False)
            current_app.logger.info(f"[join] room={room_id} player={name} sid={sid} seats={len(room.players)}/{room.config.max_players}")

    @guarded
    def handle_rejoin_room(self, data=None):
        if not isinstance(data, dict) or not isinstance(data.get('playerId'), str):
            raise InvalidInput('roomId and playerId are required')
        room_id = self._room_id(data)
        sid = _get_sid()
        with self.registry.lock:
            if self.registry.room_id_for(sid) is not None:
                raise AlreadyInRoom()
            room = self._room(room_id)
            player = engine.reconnect_player(self.registry, room, data['playerId'], sid)
            join_room(room_id)
            self.scheduler.cancel_reap(room_id)
            snapshot = room.to_dict()
            emit('room-joined', {'roomId': room_id, 'playerId': sid, 'rejoined': True, 'room': snapshot})
            emit('player-reconnected', {'previousId': data['playerId'], 'player': player.to_dict()}, to=room_id, include_self=False)
            current_app.logger.info(f"[rejoin] room={room_id} player={player.name} sid={sid} previous={data['playerId']}")

    @guarded
    def handle_start_game(self, data=None):
        room_id = self._room_id(data)
        sid = _get_sid()
        with self.registry.lock:
            room = self._room(room_id)
            notices = engine.start_game(room, sid)
            self.broadcast(room_id, notices)
            current_app.logger.info(
                f"[start] room={room_id} cards={len(room.board)} players={[p.name for p in room.players]} current={room.current_player.name}"
            )

    @guarded
    def handle_restart_game(self, data=None):
        room_id = self._room_id(data)
        sid = _get_sid()
        with self.registry.lock:
            room = self._room(room_id)
            notices = engine.restart_game(room, sid)
            self.broadcast(room_id, notices)
            current_app.logger.info(f"[restart] room={room_id} token={room.game_token}")

    @guarded
    def handle_flip_card(self, data=None):
        if not isinstance(data, dict):
            raise InvalidInput()
        room_id = self._room_id(data)
        card_id = data.get('cardId')
        if isinstance(card_id, bool) or not isinstance(card_id, int):
            raise InvalidCardSelection()
        sid = _get_sid()
        with self.registry.lock:
            room = self._room(room_id)
            notices = engine.flip_card(room, sid, card_id)
            self.broadcast(room_id, notices)
            current_app.logger.debug(f"[flip] room={room_id} sid={sid} card={card_id} revealed={len(room.revealed)}")
            if room.resolution_pending:
                self.scheduler.schedule_resolution(room)

    @guarded
    def handle_pause_game(self, data=None):
        room_id = self._room_id(data)
        sid = _get_sid()
        with self.registry.lock:
            room = self._room(room_id)
            notices = engine.pause_game(room, sid)
            self.broadcast(room_id, notices)
            if notices:
                current_app.logger.info(f"[pause] room={room_id} by={room.find_player(sid).name}")

    @guarded
    def handle_resume_game(self, data=None):
        room_id = self._room_id(data)
        sid = _get_sid()
        with self.registry.lock:
            room = self._room(room_id)
            notices = engine.resume_game(room, sid)
            self.broadcast(room_id, notices)
            if notices:
                current_app.logger.info(f"[resume] room={room_id} by={room.find_player(sid).name}")

    @guarded
    def handle_leave_room(self, data=None):
        room_id = self._room_id(data)
        sid = _get_sid()
        with self.registry.lock:
            leave_room(room_id)
            room = self.registry.get_room(room_id)
            if room is None:
                self.registry.forget_connection(sid, room_id)
            else:
                player, notices = engine.leave_room(self.registry, room, sid)
                self.broadcast(room_id, notices)
                if player is not None:
                    current_app.logger.info(f"[leave] room={room_id} player={player.name} sid={sid}")
                    self._after_departure(room_id)
            emit('left-room', {'roomId': room_id})

    @guarded
    def handle_get_state(self, data=None):
        room_id = self._room_id(data)
        sid = _get_sid()
        with self.registry.lock:
            room = self._room(room_id)
            if room.find_player(sid) is None:
                raise PlayerNotInRoom()
            emit('room-state', room.to_dict())

    def handle_ping(self, data=None):
        emit('pong', data or {})


def register_socketio_handlers(gateway: RoomGateway) -> None:
    """Register Socket.IO event handlers on the gateway's namespace."""
    socketio = gateway.socketio
    namespace = gateway.namespace
    socketio.on_event('connect', gateway.handle_connect, namespace=namespace)
    socketio.on_event('disconnect', gateway.handle_disconnect, namespace=namespace)
    socketio.on_event('join-room', gateway.handle_join_room, namespace=namespace)
    socketio.on_event('rejoin-room', gateway.handle_rejoin_room, namespace=namespace)
    socketio.on_event('start-game', gateway.handle_start_game, namespace=namespace)
    socketio.on_event('restart-game', gateway.handle_restart_game, namespace=namespace)
    socketio.on_event('flip-card', gateway.handle_flip_card, namespace=namespace)
    socketio.on_event('pause-game', gateway.handle_pause_game, namespace=namespace)
    socketio.on_event('resume-game', gateway.handle_resume_game, namespace=namespace)
    socketio.on_event('leave-room', gateway.handle_leave_room, namespace=namespace)
    socketio.on_event('get-state', gateway.handle_get_state, namespace=namespace)
    socketio.on_event('ping', gateway.handle_ping, namespace=namespace)

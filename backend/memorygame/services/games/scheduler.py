import time
from typing import Callable, List, Set, Tuple

from memorygame.models import Room
from . import engine
from .registry import RoomRegistry


class TurnScheduler:
    """Delayed work for rooms: pair resolution and abandoned-room cleanup.

    Each task is keyed so the same pair is never scheduled twice. When a
    task fires it re-reads the room from the registry and does nothing if
    the room is gone or has moved on to another game.

    In TESTING mode tasks run inline (after their delay) unless
    ASYNC_TIMERS_IN_TESTS is set.
    """

    def __init__(self, app, registry: RoomRegistry, socketio, broadcast: Callable[[str, List[engine.Notice]], None]):
        self.app = app
        self.registry = registry
        self.socketio = socketio
        self.broadcast = broadcast
        self._scheduled_keys: Set[Tuple[str, int, int]] = set()
        self._reap_deadlines = {}

    def _run(self, worker, *args) -> None:
        if self.app.config.get('TESTING') and not self.app.config.get('ASYNC_TIMERS_IN_TESTS'):
            worker(*args)
        else:
            self.socketio.start_background_task(worker, *args)

    def schedule_resolution(self, room: Room) -> None:
        """Resolve the room's revealed pair after RESOLVE_DELAY_SEC."""
        if not room.resolution_pending:
            return
        key = (room.id, room.game_token, room.move_count)
        if key in self._scheduled_keys:
            self.app.logger.info(f"[timer-skip] room={room.id} token={room.game_token} move={room.move_count} already scheduled")
            return
        self._scheduled_keys.add(key)
        delay = float(self.app.config.get('RESOLVE_DELAY_SEC', 1.5))
        self.app.logger.info(f"[timer-set] room={room.id} token={room.game_token} move={room.move_count} delay={delay}s")
        self._run(self._resolve_worker, key, delay)

    def _resolve_worker(self, key: Tuple[str, int, int], delay: float) -> None:
        room_id, token, move = key
        if delay > 0:
            self.socketio.sleep(delay)
        with self.app.app_context():
            with self.registry.lock:
                self._scheduled_keys.discard(key)
                room = self.registry.get_room(room_id)
                if room is None or room.game_token != token or room.move_count != move:
                    self.app.logger.info(f"[timer-abort] room={room_id} token={token} move={move} room gone or moved on")
                    return
                self.app.logger.info(f"[timer-fire] room={room_id} token={token} move={move} state={room.state.value}")
                notices = engine.resolve_pair(room, game_token=token)
                if notices:
                    self.app.logger.info(f"[resolve] room={room_id} outcome={notices[0][0]} moves={room.move_count} matched={room.matched_pair_count}")
                self.broadcast(room_id, notices)

    def schedule_reap(self, room_id: str) -> None:
        """Close the room if nobody has reconnected by the end of the grace period."""
        grace = float(self.app.config.get('ABANDONED_ROOM_GRACE_SEC', 60))
        deadline = time.time() + grace
        self._reap_deadlines[room_id] = deadline
        self.app.logger.info(f"[reap-set] room={room_id} grace={grace}s")
        self._run(self._reap_worker, room_id, deadline)

    def cancel_reap(self, room_id: str) -> None:
        self._reap_deadlines.pop(room_id, None)

    def _reap_worker(self, room_id: str, deadline: float) -> None:
        sleep_for = max(0.0, deadline - time.time())
        if sleep_for:
            self.socketio.sleep(sleep_for)
        with self.app.app_context():
            with self.registry.lock:
                if self._reap_deadlines.get(room_id) != deadline:
                    return
                self._reap_deadlines.pop(room_id, None)
                room = self.registry.get_room(room_id)
                if room is None or room.has_connected_players():
                    return
                self.registry.delete_room(room_id)
                self.app.logger.info(f"[room-closed] room={room_id} reason=abandoned")

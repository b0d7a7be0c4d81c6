"""Game errors surfaced to clients as ``error`` events.

Every rejection carries a stable ``code`` so clients can branch on it, plus
a human readable ``message``. Pause/resume on an already paused/running game
are not errors and have no class here.
"""


class GameError(Exception):
    code = 'game_error'
    default_message = 'Game error'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {'code': self.code, 'message': self.message}


class InvalidInput(GameError):
    code = 'invalid_input'
    default_message = 'Invalid room ID or player name'


class RoomNotFound(GameError):
    code = 'room_not_found'
    default_message = 'Room not found'


class RoomFull(GameError):
    code = 'room_full'
    default_message = 'Unable to join room. Room may be full.'


class AlreadyInRoom(GameError):
    code = 'already_in_room'
    default_message = 'You are already in a room'


class PlayerNotInRoom(GameError):
    code = 'player_not_in_room'
    default_message = 'Player not in room'


class GameNotInProgress(GameError):
    code = 'game_not_in_progress'
    default_message = 'Game not started or already finished'


class GamePaused(GameError):
    code = 'game_paused'
    default_message = 'Game is currently paused'


class NotYourTurn(GameError):
    code = 'not_your_turn'
    default_message = 'Not your turn'


class InvalidCardSelection(GameError):
    code = 'invalid_card_selection'
    default_message = 'Invalid card selection'


class InternalError(GameError):
    code = 'internal_error'
    default_message = 'Server error occurred'

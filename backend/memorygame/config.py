import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma separated list of allowed browser origins for HTTP and Socket.IO
    CORS_ORIGINS = [o.strip() for o in os.environ.get('CORS_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000').split(',') if o.strip()]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # How long two revealed cards stay face-up before the pair is resolved (seconds)
    RESOLVE_DELAY_SEC = float(os.environ.get('RESOLVE_DELAY_SEC', '1.5'))
    # Rooms whose players are all disconnected are closed after this grace period (seconds)
    ABANDONED_ROOM_GRACE_SEC = float(os.environ.get('ABANDONED_ROOM_GRACE_SEC', '60'))
    # Room defaults, applied when a join creates a room without explicit settings
    DEFAULT_GRID_SIZE = int(os.environ.get('DEFAULT_GRID_SIZE', '4'))
    DEFAULT_THEME = os.environ.get('DEFAULT_THEME', 'emojis')
    DEFAULT_MAX_PLAYERS = int(os.environ.get('DEFAULT_MAX_PLAYERS', '2'))
    # Upper bounds for client supplied room settings
    MAX_GRID_SIZE = int(os.environ.get('MAX_GRID_SIZE', '6'))
    MAX_PLAYERS_LIMIT = int(os.environ.get('MAX_PLAYERS_LIMIT', '4'))
    ROOM_ID_MAX_LENGTH = int(os.environ.get('ROOM_ID_MAX_LENGTH', '32'))
    PLAYER_NAME_MAX_LENGTH = int(os.environ.get('PLAYER_NAME_MAX_LENGTH', '32'))

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from memorygame.config import Config
from memorygame.models import RoomConfig

socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from memorygame.main import main
    flask_app.register_blueprint(main)

    # One registry per server process; rooms live only in memory
    from memorygame.services.games.registry import RoomRegistry
    from memorygame.socketio_events import RoomGateway, register_socketio_handlers
    registry = RoomRegistry(RoomConfig(
        grid_size=flask_app.config.get('DEFAULT_GRID_SIZE', 4),
        theme=flask_app.config.get('DEFAULT_THEME', 'emojis'),
        max_players=flask_app.config.get('DEFAULT_MAX_PLAYERS', 2),
    ))
    gateway = RoomGateway(flask_app, registry, socketio)
    register_socketio_handlers(gateway)
    flask_app.extensions['room_registry'] = registry
    flask_app.extensions['room_gateway'] = gateway

    return flask_app

from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify
from werkzeug.exceptions import HTTPException

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the memory match server!'})

@main.route('/health')
def health():
    registry = current_app.extensions['room_registry']
    with registry.lock:
        stats = registry.stats()
    return jsonify({
        'status': 'OK',
        'timestamp': datetime.now(timezone.utc).isoformat(),
        **stats,
    })

@main.app_errorhandler(HTTPException)
def handle_http_error(exc):
    return jsonify({'error': exc.description}), exc.code

@main.app_errorhandler(Exception)
def handle_unexpected_error(exc):
    current_app.logger.exception(f"[error] unhandled HTTP error: {exc}")
    return jsonify({'error': 'Internal server error'}), 500

from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the trivia game server!'})


@main.route('/api/game-url')
def game_url():
    return jsonify({'url': current_app.config.get('GAME_URL')})


@main.route('/api/session')
def session_state():
    """Public snapshot of the live session (no connection ids, answer only once revealed)."""
    room = current_app.extensions['trivia.room']
    return jsonify(room.snapshot())

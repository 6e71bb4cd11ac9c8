from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = flask_app.config.get('CORS_ALLOWED_ORIGINS', '*')
    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/ws')
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Import and register blueprints here
    from trivia.routes import main
    flask_app.register_blueprint(main)

    # One explicitly owned room/session per app. Timers run as Socket.IO
    # background tasks, except in tests where they are driven by hand.
    from trivia.services.games.room import GameRoom
    from trivia.socketio_events import SocketIOTransport, register_socketio_handlers

    run_tasks = not flask_app.config.get('TESTING') or flask_app.config.get('ENABLE_SCHEDULER_IN_TESTS')
    room = GameRoom.from_config(
        flask_app.config,
        SocketIOTransport(socketio, namespace),
        spawn=socketio.start_background_task if run_tasks else None,
        sleep=socketio.sleep if run_tasks else None,
    )
    flask_app.extensions['trivia.room'] = room
    register_socketio_handlers(namespace)

    @click.command('reset-session')
    def reset_session_command():
        """Drops every player and returns the room to waiting."""
        room.clear()
        click.echo('Session has been cleared!')

    flask_app.cli.add_command(reset_session_command)

    flask_app.logger.info(
        f"[app-init] namespace={namespace} round={flask_app.config.get('ROUND_DURATION_MS')}ms "
        f"min_players={flask_app.config.get('MIN_PLAYERS')}"
    )
    return flask_app

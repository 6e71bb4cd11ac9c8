from flask import current_app, request
from flask_socketio import emit

from trivia import socketio
from trivia.services.games.room import ROOM, GameRoom


class SocketIOTransport:
    """Addresses outbound messages through the Socket.IO server.

    Uses ``socketio.emit`` rather than the request-bound ``emit`` so it also
    works from timer and scheduler background tasks.
    """

    def __init__(self, sio, namespace: str):
        self.sio = sio
        self.namespace = namespace

    def emit(self, event: str, data, to: str) -> None:
        self.sio.emit(event, data, to=to, namespace=self.namespace)

    def enter(self, sid: str) -> None:
        self.sio.server.enter_room(sid, ROOM, namespace=self.namespace)


def get_room() -> GameRoom:
    return current_app.extensions['trivia.room']


def _text(data, key: str, fallback: str = None) -> str:
    if not isinstance(data, dict):
        return ''
    value = data.get(key)
    if value is None and fallback:
        value = data.get(fallback)
    return value if isinstance(value, str) else ''


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to the trivia room'})


def handle_disconnect(reason=None):
    player = get_room().leave(_get_sid())
    if player is not None:
        current_app.logger.info(f"[disconnect] player={player.name} reason={reason}")


def handle_join(data):
    get_room().join(_get_sid(), _text(data, 'name'))


def handle_create_question(data):
    get_room().set_question_and_start(_get_sid(), _text(data, 'question'), _text(data, 'answer'))


def handle_guess(data):
    get_room().guess(_get_sid(), _text(data, 'guess', fallback='text'))


def handle_get_timer(data=None):
    get_room().send_timer(_get_sid())


def register_socketio_handlers(namespace: str = '/ws') -> None:
    """Register Socket.IO event handlers on the game namespace."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('join', handle_join, namespace=namespace)
    socketio.on_event('createQuestion', handle_create_question, namespace=namespace)
    socketio.on_event('guess', handle_guess, namespace=namespace)
    socketio.on_event('getTimer', handle_get_timer, namespace=namespace)

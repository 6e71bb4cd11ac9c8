import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    PORT = int(os.environ.get('PORT', '3000'))
    GAME_URL = os.environ.get('GAME_URL') or f"http://localhost:{PORT}"
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Socket.IO namespace and allowed browser origins (comma separated)
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/ws')
    CORS_ALLOWED_ORIGINS = os.environ.get(
        'CORS_ALLOWED_ORIGINS',
        'http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173',
    ).split(',')
    # Round timer
    ROUND_DURATION_MS = int(os.environ.get('ROUND_DURATION_MS', '60000'))
    TIMER_TICK_SEC = float(os.environ.get('TIMER_TICK_SEC', '1'))
    # Round rules
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '3'))
    MAX_ATTEMPTS = int(os.environ.get('MAX_ATTEMPTS', '3'))
    WINNER_BONUS = int(os.environ.get('WINNER_BONUS', '10'))
    # Hold time between a round ending and the next one opening (seconds)
    ROUND_RESET_DELAY_SEC = float(os.environ.get('ROUND_RESET_DELAY_SEC', '5'))
    # Re-rotate master if they don't start a round in time (seconds). 0 disables.
    MASTER_IDLE_TIMEOUT_SEC = float(os.environ.get('MASTER_IDLE_TIMEOUT_SEC', '60'))

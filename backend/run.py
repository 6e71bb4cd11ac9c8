import logging

from config import Config
from trivia import create_app, socketio

logging.basicConfig(
    level=Config.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

app = create_app()

if __name__ == '__main__':
    # Use SocketIO server to enable websockets in dev
    app.logger.info(f"Open {app.config.get('GAME_URL')} to play the game")
    socketio.run(app, host='0.0.0.0', port=app.config.get('PORT', 3000), debug=True)

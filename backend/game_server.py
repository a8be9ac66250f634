import logging
import threading
import uuid
from collections import OrderedDict

from flask import Flask, request, jsonify
from flask_cors import CORS

import game
from game_config import ServerConfig

logger = logging.getLogger(__name__)


class SessionStore:
    """In-memory games keyed by id, oldest dropped past max_sessions. Moves go through a single lock so one game is never updated twice at once."""

    def __init__(self, max_sessions=ServerConfig.MAX_SESSIONS):
        self.max_sessions = max_sessions
        self._sessions = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._sessions)

    def create(self, session=None):
        session = session or game.new_session()
        game_id = uuid.uuid4().hex
        with self._lock:
            self._sessions[game_id] = session
            while len(self._sessions) > self.max_sessions:
                dropped_id, _ = self._sessions.popitem(last=False)
                logger.info(f"Dropped game {dropped_id}, store full")
        return game_id, session

    def get(self, game_id):
        with self._lock:
            return self._sessions[game_id]

    def delete(self, game_id):
        with self._lock:
            del self._sessions[game_id]

    def move(self, game_id, direction):
        """Applies a move and stores the result. Returns (previous, current)."""
        with self._lock:
            session = self._sessions[game_id]
            next_session = game.apply_move(session, direction)
            self._sessions[game_id] = next_session
            self._sessions.move_to_end(game_id)
        return session, next_session


def _payload(game_id, session):
    data = session.to_dict()
    data['id'] = game_id
    data['max_tile'] = game.max_tile(session.board)
    return data


def share_text(score, url=None):
    return f"I scored {score} in 2048! {url or ServerConfig.SHARE_URL}"


app = Flask(__name__)
CORS(app, resources={r"/*": {"origins": ServerConfig.CORS_ORIGINS}})

store = SessionStore()


@app.route('/new-game', methods=['POST'])
def new_game():
    """Endpoint for starting a game with two spawned tiles."""
    game_id, session = store.create()
    logger.info(f"Created game {game_id}")
    return jsonify(_payload(game_id, session)), 201


@app.route('/game/<game_id>', methods=['GET'])
def get_game(game_id):
    try:
        session = store.get(game_id)
    except KeyError:
        return jsonify({'error': f'Unknown game: {game_id}'}), 404
    return jsonify(_payload(game_id, session))


@app.route('/game/<game_id>', methods=['DELETE'])
def delete_game(game_id):
    try:
        store.delete(game_id)
    except KeyError:
        return jsonify({'error': f'Unknown game: {game_id}'}), 404
    logger.info(f"Deleted game {game_id}")
    return '', 204


@app.route('/game/<game_id>/move', methods=['POST'])
def move(game_id):
    """Endpoint for sliding the board of a game in one direction."""
    try:
        direction = request.get_json(force=True, silent=True)['direction']
    except (KeyError, TypeError):
        return jsonify({'error': "Request body must be JSON with a 'direction' field"}), 400
    if direction not in game.DIRECTIONS:
        return jsonify({'error': f"Invalid direction: {direction!r}"}), 400

    try:
        before, session = store.move(game_id, direction)
    except KeyError:
        return jsonify({'error': f'Unknown game: {game_id}'}), 404
    except Exception as e:
        logger.exception(f"Move {direction} failed for game {game_id}")
        return jsonify({'error': str(e)}), 500

    moved = session is not before
    logger.debug(f"Game {game_id}: {direction} moved={moved} score={session.score}")
    if session.won and not before.won:
        logger.info(f"Game {game_id} reached {game.TARGET_TILE}")
    if session.game_over and not before.game_over:
        logger.info(f"Game {game_id} over with score {session.score}")

    data = _payload(game_id, session)
    data['moved'] = moved
    return jsonify(data)


@app.route('/game/<game_id>/share', methods=['GET'])
def share(game_id):
    """Endpoint for the share message; uses only the score."""
    try:
        session = store.get(game_id)
    except KeyError:
        return jsonify({'error': f'Unknown game: {game_id}'}), 404
    return jsonify({'text': share_text(session.score)})


if __name__ == '__main__':
    logging.basicConfig(level=ServerConfig.LOG_LEVEL, format=ServerConfig.LOG_FORMAT)
    logger.info(f"Server starting on http://{ServerConfig.HOST}:{ServerConfig.PORT}")
    app.run(host=ServerConfig.HOST, port=ServerConfig.PORT, debug=ServerConfig.DEBUG)

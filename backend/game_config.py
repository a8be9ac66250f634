"""
2048 backend configuration
Game rules constants and server settings
"""

import os


class GameConfig:
    """Game rules"""

    BOARD_SIZE = 4
    TARGET_TILE = 2048

    # Spawned tile is 4 with this probability, otherwise 2
    FOUR_PROBABILITY = 0.1
    START_TILES = 2


class ServerConfig:
    """HTTP backend settings, overridable from the environment"""

    HOST = os.environ.get("GAME_HOST", "0.0.0.0")
    PORT = int(os.environ.get("GAME_PORT", "5000"))
    DEBUG = os.environ.get("GAME_DEBUG", "0") == "1"

    CORS_ORIGINS = "*"
    SHARE_URL = os.environ.get("GAME_SHARE_URL", "http://localhost:5000")

    # Oldest games are dropped once more than this many are held
    MAX_SESSIONS = int(os.environ.get("GAME_MAX_SESSIONS", "10000"))

    LOG_LEVEL = os.environ.get("GAME_LOG_LEVEL", "INFO")
    LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'

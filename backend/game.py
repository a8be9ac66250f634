import random

import numpy as np

from game_config import GameConfig

BOARD_SIZE = GameConfig.BOARD_SIZE
TARGET_TILE = GameConfig.TARGET_TILE

DIRECTIONS = ('up', 'down', 'left', 'right')


def get_empty_board():
    return np.zeros((BOARD_SIZE, BOARD_SIZE), dtype=int)


def add_random_tile(board, rng=None):
    """Places a 2 (or, rarely, a 4) on a uniformly chosen empty cell of a copy of the board."""
    rng = rng or random
    new_board = np.copy(board)
    empty_cells = list(zip(*np.where(new_board == 0)))

    if not empty_cells:
        return new_board

    i, j = rng.choice(empty_cells)
    new_board[i, j] = 4 if rng.random() < GameConfig.FOUR_PROBABILITY else 2
    return new_board


def slide_and_combine(row):
    """Collapses one row towards index 0. Returns the new row and whether anything moved or merged."""
    row = np.asarray(row)
    new_row = row[row != 0]
    merged = False
    result_row = []

    i = 0
    while i < len(new_row):
        if i + 1 < len(new_row) and new_row[i] == new_row[i + 1]:
            result_row.append(new_row[i] * 2)
            merged = True
            i += 2
        else:
            result_row.append(new_row[i])
            i += 1

    while len(result_row) < len(row):
        result_row.append(0)

    result_row = np.array(result_row, dtype=row.dtype)
    changed = merged or not np.array_equal(result_row, row)
    return result_row, changed


def transpose(board):
    return np.transpose(board).copy()


def reverse_rows(board):
    return np.asarray(board)[:, ::-1].copy()


def slide_left(board):
    board = np.asarray(board)
    new_board = np.zeros_like(board)
    changed = False

    for i, row in enumerate(board):
        new_row, row_changed = slide_and_combine(row)
        new_board[i] = new_row
        changed = changed or row_changed

    return new_board, changed


def slide_right(board):
    new_board, changed = slide_left(reverse_rows(board))
    return reverse_rows(new_board), changed


def slide_up(board):
    new_board, changed = slide_left(transpose(board))
    return transpose(new_board), changed


def slide_down(board):
    new_board, changed = slide_right(transpose(board))
    return transpose(new_board), changed


TRANSFORMS = {
    'up': slide_up,
    'down': slide_down,
    'left': slide_left,
    'right': slide_right,
}


def move_board(board, direction):
    try:
        transform = TRANSFORMS[direction]
    except KeyError:
        raise ValueError(f"Invalid direction: {direction!r}. Must be one of {', '.join(DIRECTIONS)}") from None
    return transform(board)


def board_score(board):
    return int(np.sum(board))


def max_tile(board):
    return int(np.max(board))


def has_moves(board):
    """Checks for an empty cell or a horizontally/vertically adjacent equal pair."""
    board = np.asarray(board)
    if np.any(board == 0):
        return True

    rows, cols = board.shape
    for i in range(rows):
        for j in range(cols):
            current = board[i, j]
            if j < cols - 1 and current == board[i, j + 1]:
                return True
            if i < rows - 1 and current == board[i + 1, j]:
                return True

    return False


def is_game_over(board):
    """Checks if the game is over (no empty cells and no possible merges)."""
    return not has_moves(board)


class GameSession:
    """One game: a read-only board plus score and the won/game-over flags."""

    def __init__(self, board, score=0, won=False, game_over=False):
        board = np.array(board, dtype=int)
        board.flags.writeable = False
        self._board = board
        self._score = int(score)
        self._won = bool(won)
        self._game_over = bool(game_over)

    @property
    def board(self):
        return self._board.copy()

    @property
    def score(self):
        return self._score

    @property
    def won(self):
        return self._won

    @property
    def game_over(self):
        return self._game_over

    def to_dict(self):
        return {
            'board': self._board.tolist(),
            'score': self._score,
            'won': self._won,
            'game_over': self._game_over,
        }

    def __eq__(self, other):
        if not isinstance(other, GameSession):
            return NotImplemented
        return (np.array_equal(self._board, other._board)
                and self._score == other._score
                and self._won == other._won
                and self._game_over == other._game_over)

    def __repr__(self):
        return (f"GameSession(board={self._board.tolist()}, score={self._score}, "
                f"won={self._won}, game_over={self._game_over})")


def new_session(rng=None):
    board = get_empty_board()
    for _ in range(GameConfig.START_TILES):
        board = add_random_tile(board, rng)
    return GameSession(board)


def apply_move(session, direction, rng=None):
    """
    Plays one move and returns the resulting session.

    A finished game, or a move that leaves the board as it is, returns the
    given session object itself: no tile spawns and nothing is updated.
    """
    if session.game_over:
        return session

    moved_board, changed = move_board(session._board, direction)
    if not changed:
        return session

    new_board = add_random_tile(moved_board, rng)
    return GameSession(
        new_board,
        score=board_score(new_board),
        won=session.won or bool(np.any(new_board >= TARGET_TILE)),
        game_over=is_game_over(new_board),
    )

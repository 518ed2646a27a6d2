from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from esper import World

from tilematch.components.board import Board
from tilematch.components.game_rules import GameRules
from tilematch.components.token_types import TokenTypes
from tilematch.constants import MIN_MATCH, RESPAWN_MAX_ATTEMPTS
from tilematch.systems.match_finder import choose_token, find_all_matches, has_valid_moves

Position = Tuple[int, int]
TypeEntry = Tuple[int, int, str]


@dataclass(slots=True)
class GravityMove:
    source: Position
    target: Position
    type_name: str

    @property
    def distance(self) -> int:
        return self.target[0] - self.source[0]


def get_board(world: World) -> Board:
    for _, board in world.get_component(Board):
        return board
    raise RuntimeError("Board component not found")


def get_token_registry(world: World) -> TokenTypes:
    for _, registry in world.get_component(TokenTypes):
        return registry
    raise RuntimeError("TokenTypes definitions not found")


def get_rules(world: World) -> GameRules:
    for _, rules in world.get_component(GameRules):
        return rules
    raise RuntimeError("GameRules not found")


def world_rng(world: World) -> random.Random:
    candidate = getattr(world, "random", None)
    if isinstance(candidate, random.Random):
        return candidate
    rng = random.Random()
    setattr(world, "random", rng)
    return rng


def clear_positions(board: Board, positions: Iterable[Position]) -> List[TypeEntry]:
    """Empty each listed cell once; repeated or already empty cells are skipped."""
    cleared: List[TypeEntry] = []
    for row, col in positions:
        token = board.get(row, col)
        if token is None:
            continue
        board.set(row, col, None)
        cleared.append((row, col, token))
    return cleared


def compute_gravity_moves(board: Board) -> Tuple[List[GravityMove], int]:
    """Plan the slide of every surviving token toward the bottom of its column.

    Returns the moves plus the number of columns that had at least one move.
    Relative order inside a column is preserved.
    """
    moves: List[GravityMove] = []
    cascades = 0
    for col in range(board.cols):
        target_row = board.rows - 1
        column_moved = False
        for row in range(board.rows - 1, -1, -1):
            token = board.cells[row][col]
            if token is None:
                continue
            if row != target_row:
                moves.append(GravityMove(source=(row, col), target=(target_row, col), type_name=token))
                column_moved = True
            target_row -= 1
        if column_moved:
            cascades += 1
    return moves, cascades


def apply_gravity_moves(board: Board, moves: Sequence[GravityMove]) -> None:
    # Moves are planned bottom-up per column, so each target is already vacant.
    for move in moves:
        src_row, src_col = move.source
        dst_row, dst_col = move.target
        board.set(dst_row, dst_col, board.get(src_row, src_col))
        board.set(src_row, src_col, None)


def compact_columns(board: Board) -> Tuple[List[GravityMove], int]:
    moves, cascades = compute_gravity_moves(board)
    if moves:
        apply_gravity_moves(board, moves)
    return moves, cascades


def refill_empty_cells(
    board: Board,
    palette: Sequence[str],
    rng: random.Random,
    min_match: int = MIN_MATCH,
) -> List[TypeEntry]:
    """Fill every empty slot top-down, left-to-right, avoiding immediate runs where possible."""
    spawned: List[TypeEntry] = []
    for row, col in board.empty_positions():
        token = choose_token(row, col, board.cells, palette, rng, min_match)
        board.set(row, col, token)
        spawned.append((row, col, token))
    return spawned


def generate_layout(
    rows: int,
    cols: int,
    palette: Sequence[str],
    rng: random.Random,
    min_match: int = MIN_MATCH,
) -> List[List[Optional[str]]]:
    layout: List[List[Optional[str]]] = [[None] * cols for _ in range(rows)]
    for row in range(rows):
        for col in range(cols):
            layout[row][col] = choose_token(row, col, layout, palette, rng, min_match)
    return layout


def fill_board(board: Board, palette: Sequence[str], rng: random.Random, min_match: int = MIN_MATCH) -> List[TypeEntry]:
    """Populate the whole board from scratch, row by row."""
    board.load(generate_layout(board.rows, board.cols, palette, rng, min_match))
    return [(row, col, board.cells[row][col]) for row, col in board.positions()]


def respawn_full_board(
    board: Board,
    palette: Sequence[str],
    rng: random.Random,
    *,
    min_match: int = MIN_MATCH,
    max_attempts: int = RESPAWN_MAX_ATTEMPTS,
) -> List[TypeEntry]:
    """Fill the entire board with fresh tiles that contain no matches and at least one valid move."""
    for _ in range(max_attempts):
        layout = generate_layout(board.rows, board.cols, palette, rng, min_match)
        if find_all_matches(layout, min_match):
            continue
        if not has_valid_moves(layout, min_match):
            continue
        board.load(layout)
        return [(row, col, board.cells[row][col]) for row, col in board.positions()]
    raise RuntimeError("Unable to respawn board without matches and valid swaps")


def is_adjacent(a: Position, b: Position) -> bool:
    ar, ac = a
    br, bc = b
    return (abs(ar - br) == 1 and ac == bc) or (abs(ac - bc) == 1 and ar == br)

"""Pure match detection over grid snapshots.

Every function here reads a row-major grid (``grid[row][col]`` holding a token
name or ``None``) and never mutates it. ``Board.snapshot()`` is the usual
input, but any nested sequence works.
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Set, Tuple

from tilematch.constants import MIN_MATCH

Position = Tuple[int, int]
Grid = Sequence[Sequence[Optional[str]]]


@dataclass(frozen=True, slots=True)
class MatchGroup:
    """Unique same-token cells cleared together in one cascade iteration."""
    token: str
    positions: Tuple[Position, ...]

    @property
    def size(self) -> int:
        return len(self.positions)

    def __len__(self) -> int:
        return len(self.positions)

    def __contains__(self, pos: object) -> bool:
        return pos in self.positions


def grid_dimensions(grid: Grid) -> Tuple[int, int]:
    rows = len(grid)
    cols = len(grid[0]) if rows else 0
    return rows, cols


def _line_runs(grid: Grid, line: List[Position], min_match: int) -> List[Tuple[str, List[Position]]]:
    """Maximal runs of one token along ``line`` that reach ``min_match``."""
    runs: List[Tuple[str, List[Position]]] = []
    run: List[Position] = []
    last_type: Optional[str] = None
    for r, c in line:
        tval = grid[r][c]
        if tval is not None and tval == last_type:
            run.append((r, c))
            continue
        if last_type is not None and len(run) >= min_match:
            runs.append((last_type, run))
        run = [(r, c)] if tval is not None else []
        last_type = tval
    if last_type is not None and len(run) >= min_match:
        runs.append((last_type, run))
    return runs


def _merge_runs(runs: List[Tuple[str, List[Position]]]) -> List[MatchGroup]:
    groups: List[Tuple[str, Set[Position]]] = [(token, set(cells)) for token, cells in runs]
    merged: List[MatchGroup] = []
    while groups:
        token, first = groups.pop(0)
        # Keep absorbing until nothing overlaps the growing set, so chains
        # A-B-C collapse even when A and C do not touch directly.
        changed = True
        while changed:
            changed = False
            for other in groups[:]:
                other_token, cells = other
                if other_token == token and first & cells:
                    first |= cells
                    groups.remove(other)
                    changed = True
        merged.append(MatchGroup(token=token, positions=tuple(sorted(first))))
    merged.sort(key=lambda group: group.positions[0])
    return merged


def find_all_matches(grid: Grid, min_match: int = MIN_MATCH) -> List[MatchGroup]:
    """Detect every horizontal and vertical run of ``min_match`` or more and merge overlaps."""
    rows, cols = grid_dimensions(grid)
    if not rows or not cols:
        return []
    runs: List[Tuple[str, List[Position]]] = []
    # Horizontal runs
    for r in range(rows):
        runs.extend(_line_runs(grid, [(r, c) for c in range(cols)], min_match))
    # Vertical runs, scanned independently of the horizontal pass
    for c in range(cols):
        runs.extend(_line_runs(grid, [(r, c) for r in range(rows)], min_match))
    if not runs:
        return []
    return _merge_runs(runs)


def has_match_at(grid: Grid, pos: Position, min_match: int = MIN_MATCH) -> bool:
    """Return True if a horizontal or vertical run through pos reaches min_match."""
    rows, cols = grid_dimensions(grid)
    row, col = pos
    tval = grid[row][col]
    if tval is None:
        return False
    # Horizontal sweep
    h_count = 1
    c_left = col - 1
    while c_left >= 0 and grid[row][c_left] == tval:
        h_count += 1
        c_left -= 1
    c_right = col + 1
    while c_right < cols and grid[row][c_right] == tval:
        h_count += 1
        c_right += 1
    if h_count >= min_match:
        return True
    # Vertical sweep
    v_count = 1
    r_up = row - 1
    while r_up >= 0 and grid[r_up][col] == tval:
        v_count += 1
        r_up -= 1
    r_down = row + 1
    while r_down < rows and grid[r_down][col] == tval:
        v_count += 1
        r_down += 1
    return v_count >= min_match


def predict_swap_creates_match(grid: Grid, src: Position, dst: Position, min_match: int = MIN_MATCH) -> bool:
    """Return True if swapping src/dst would create a run through either moved cell."""
    scratch = [list(row) for row in grid]
    (sr, sc), (dr, dc) = src, dst
    if scratch[sr][sc] is None or scratch[dr][dc] is None:
        return False
    scratch[sr][sc], scratch[dr][dc] = scratch[dr][dc], scratch[sr][sc]
    return has_match_at(scratch, src, min_match) or has_match_at(scratch, dst, min_match)


def _adjacent_pairs(rows: int, cols: int):
    for row in range(rows):
        for col in range(cols):
            if col + 1 < cols:
                yield (row, col), (row, col + 1)
            if row + 1 < rows:
                yield (row, col), (row + 1, col)


def find_valid_swaps(grid: Grid, min_match: int = MIN_MATCH) -> List[Tuple[Position, Position]]:
    """Enumerate adjacent swaps that would produce a match."""
    rows, cols = grid_dimensions(grid)
    return [
        (a, b) for a, b in _adjacent_pairs(rows, cols)
        if predict_swap_creates_match(grid, a, b, min_match)
    ]


def has_valid_moves(grid: Grid, min_match: int = MIN_MATCH) -> bool:
    rows, cols = grid_dimensions(grid)
    for a, b in _adjacent_pairs(rows, cols):
        if predict_swap_creates_match(grid, a, b, min_match):
            return True
    return False


def would_create_match(row: int, col: int, token: str, grid: Grid, min_match: int = MIN_MATCH) -> bool:
    """Generation-time check against already placed cells to the left and above.

    Cells to the right and below are ignored because they have not been
    filled yet when a board is populated top-down, left-to-right.
    """
    need = min_match - 1
    if col >= need and all(grid[row][col - k] == token for k in range(1, need + 1)):
        return True
    if row >= need and all(grid[row - k][col] == token for k in range(1, need + 1)):
        return True
    return False


def choose_token(
    row: int,
    col: int,
    grid: Grid,
    palette: Sequence[str],
    rng: random.Random,
    min_match: int = MIN_MATCH,
) -> str:
    """Pick a palette token that does not complete a run, falling back to any token."""
    available = [token for token in palette if not would_create_match(row, col, token, grid, min_match)]
    if not available:
        return rng.choice(list(palette))
    return rng.choice(available)



def board_can_offer_moves(rows: int, cols: int, min_match: int = MIN_MATCH) -> bool:
    """Return True if some layout of this size could have a match-making swap.

    A swap has to bring a token into a line of min_match cells from outside
    that line: either from further along the line or from a neighbouring
    row or column.
    """
    longest, shortest = max(rows, cols), min(rows, cols)
    return longest > min_match or (longest >= min_match and shortest >= 2)

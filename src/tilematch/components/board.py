from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

Position = Tuple[int, int]
GridSnapshot = Tuple[Tuple[Optional[str], ...], ...]


class GridIndexError(IndexError):
    """Raised when a caller addresses a cell outside the board."""


@dataclass(slots=True)
class Board:
    """Authoritative grid of token names for the single board entity.

    ``cells[row][col]`` holds a token name or ``None`` for an empty slot.
    Row 0 is the top; tokens settle toward the highest row index.
    """
    rows: int
    cols: int
    cells: List[List[Optional[str]]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.rows <= 0 or self.cols <= 0:
            raise ValueError(f"Board dimensions must be positive, got {self.rows}x{self.cols}")
        if not self.cells:
            self.cells = [[None] * self.cols for _ in range(self.rows)]
            return
        if len(self.cells) != self.rows or any(len(row) != self.cols for row in self.cells):
            raise ValueError(f"Cell layout does not match {self.rows}x{self.cols} board")

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[Optional[str]]]) -> "Board":
        if not rows:
            raise ValueError("Board needs at least one row")
        return cls(rows=len(rows), cols=len(rows[0]), cells=[list(row) for row in rows])

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def _check(self, row: int, col: int) -> None:
        if not self.in_bounds(row, col):
            raise GridIndexError(f"Cell {(row, col)} outside {self.rows}x{self.cols} board")

    def get(self, row: int, col: int) -> Optional[str]:
        self._check(row, col)
        return self.cells[row][col]

    def set(self, row: int, col: int, token: Optional[str]) -> None:
        self._check(row, col)
        self.cells[row][col] = token

    def swap(self, a: Position, b: Position) -> None:
        self._check(*a)
        self._check(*b)
        (ar, ac), (br, bc) = a, b
        self.cells[ar][ac], self.cells[br][bc] = self.cells[br][bc], self.cells[ar][ac]

    def column(self, col: int) -> List[Optional[str]]:
        self._check(0, col)
        return [self.cells[row][col] for row in range(self.rows)]

    def positions(self) -> Iterable[Position]:
        for row in range(self.rows):
            for col in range(self.cols):
                yield row, col

    def empty_positions(self) -> List[Position]:
        return [(r, c) for r, c in self.positions() if self.cells[r][c] is None]

    def is_full(self) -> bool:
        return all(token is not None for row in self.cells for token in row)

    def snapshot(self) -> GridSnapshot:
        """Immutable copy handed to the match finder."""
        return tuple(tuple(row) for row in self.cells)

    def load(self, rows: Sequence[Sequence[Optional[str]]]) -> None:
        """Replace every cell; the layout must match the board's dimensions."""
        if len(rows) != self.rows or any(len(row) != self.cols for row in rows):
            raise ValueError(f"Layout does not match {self.rows}x{self.cols} board")
        self.cells = [list(row) for row in rows]

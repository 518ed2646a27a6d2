from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional, Sequence

from esper import World

from tilematch.components.board_state import BoardState
from tilematch.components.game_rules import GameRules
from tilematch.events.bus import EventBus
from tilematch.systems.board import BoardSystem
from tilematch.systems.match import MatchSystem
from tilematch.systems.match_resolution import MatchResolutionSystem
from tilematch.world import create_world

PALETTE = ['a', 'b', 'c', 'd', 'e', 'f']


@dataclass
class Game:
    bus: EventBus
    world: World
    board: BoardSystem
    match: MatchSystem
    resolution: MatchResolutionSystem

    @property
    def state(self) -> BoardState:
        return self.board.state


def build_game(
    layout: Optional[Sequence[Sequence[str]]] = None,
    *,
    rows: int = 9,
    cols: int = 6,
    rules: GameRules | None = None,
    seed: int = 1234,
    palette: Sequence[str] = PALETTE,
) -> Game:
    """Wire a world with the board, swap and cascade systems, optionally forcing a layout."""

    bus = EventBus()
    world = create_world(bus, palette=palette, rules=rules, rng=random.Random(seed))
    if layout is not None:
        rows, cols = len(layout), len(layout[0])
    board = BoardSystem(world, bus, rows, cols)
    match = MatchSystem(world, bus)
    resolution = MatchResolutionSystem(world, bus)
    if layout is not None:
        board.load_layout(layout)
    return Game(bus, world, board, match, resolution)


def record(bus: EventBus, name: str) -> list[dict]:
    """Collect every payload emitted for ``name``."""

    received: list[dict] = []
    bus.subscribe(name, lambda sender, **payload: received.append(payload))
    return received


def rows_of(text: str) -> list[list[str]]:
    """Parse a whitespace separated grid such as ``"a b c\\nb c a"``."""

    return [line.split() for line in text.strip().splitlines()]

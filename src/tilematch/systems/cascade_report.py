"""Replay script of one resolution, handed to presentation layers."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from tilematch.components.board_state import GameOutcome
from tilematch.systems.board_ops import GravityMove
from tilematch.systems.match_finder import MatchGroup

Position = Tuple[int, int]
TypeEntry = Tuple[int, int, str]


@dataclass(slots=True)
class CascadeStep:
    depth: int
    groups: List[MatchGroup]
    points: int
    cleared: List[TypeEntry] = field(default_factory=list)
    moves: List[GravityMove] = field(default_factory=list)
    spawned: List[TypeEntry] = field(default_factory=list)


@dataclass(slots=True)
class ResolutionReport:
    swap: Optional[Tuple[Position, Position]] = None
    reason: str = "swap"
    steps: List[CascadeStep] = field(default_factory=list)
    score: int = 0
    moves_remaining: int = 0
    combo_level: int = 0
    outcome: GameOutcome = GameOutcome.NONE
    reshuffled: bool = False

    @property
    def depth(self) -> int:
        return len(self.steps)

    @property
    def points(self) -> int:
        return sum(step.points for step in self.steps)

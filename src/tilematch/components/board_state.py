"""Live state of the board entity: score, moves, combo and controller phase."""
from dataclasses import dataclass
from enum import Enum, auto


class Phase(Enum):
    """Controller states; swap requests are only accepted while IDLE."""
    IDLE = auto()
    SWAP_PENDING = auto()
    RESOLVING = auto()
    GAME_OVER = auto()


class GameOutcome(Enum):
    NONE = auto()
    WIN = auto()
    LOSE = auto()


@dataclass(slots=True)
class BoardState:
    score: int = 0
    moves_remaining: int = 0
    combo_level: int = 0
    phase: Phase = Phase.IDLE
    outcome: GameOutcome = GameOutcome.NONE
    cascade_depth: int = 0

    @property
    def busy(self) -> bool:
        return self.phase in (Phase.SWAP_PENDING, Phase.RESOLVING)

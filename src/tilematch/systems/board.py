import logging
from typing import List, Optional, Sequence, Tuple

from esper import World

from tilematch.components.board import Board, GridSnapshot
from tilematch.components.board_state import BoardState, GameOutcome, Phase
from tilematch.constants import GRID_COLS, GRID_ROWS
from tilematch.events.bus import EVENT_BOARD_RESHUFFLED, EVENT_GAME_RESET, EVENT_SCORE_CHANGED, EventBus
from tilematch.systems.board_ops import (
    fill_board,
    get_rules,
    get_token_registry,
    respawn_full_board,
    world_rng,
)
from tilematch.systems.match_finder import board_can_offer_moves, has_valid_moves

logger = logging.getLogger(__name__)


class BoardSystem:
    """Creates the board entity and owns its lifecycle (initial fill and restarts)."""

    def __init__(self, world: World, event_bus: EventBus, rows: int = GRID_ROWS, cols: int = GRID_COLS):
        self.world = world
        self.event_bus = event_bus
        rules = get_rules(world)
        if not board_can_offer_moves(rows, cols, rules.min_match):
            raise ValueError(f"A {rows}x{cols} board can never offer a swap that makes a run of {rules.min_match}")
        # Single board entity carrying the grid and the live score/moves state
        self.board_entity = self.world.create_entity(
            Board(rows=rows, cols=cols),
            BoardState(moves_remaining=rules.initial_moves),
        )
        self.event_bus.subscribe(EVENT_GAME_RESET, self.on_game_reset)
        self._init_board()

    @property
    def board(self) -> Board:
        return self.world.component_for_entity(self.board_entity, Board)

    @property
    def state(self) -> BoardState:
        return self.world.component_for_entity(self.board_entity, BoardState)

    def _init_board(self):
        rules = get_rules(self.world)
        palette = get_token_registry(self.world).palette()
        rng = world_rng(self.world)
        board = self.board
        fill_board(board, palette, rng, rules.min_match)
        # A fresh board should offer at least one move when reshuffles are enabled.
        if rules.reshuffle_on_deadlock and not has_valid_moves(board.snapshot(), rules.min_match):
            respawn_full_board(board, palette, rng, min_match=rules.min_match)
        logger.debug("Board %sx%s filled", board.rows, board.cols)

    def token_at(self, row: int, col: int) -> Optional[str]:
        return self.board.get(row, col)

    def tokens(self) -> GridSnapshot:
        return self.board.snapshot()

    def load_layout(self, rows: Sequence[Sequence[Optional[str]]]) -> None:
        """Replace the board contents wholesale (scenario setup and replays)."""
        self.board.load(rows)

    def on_game_reset(self, sender, **kwargs):
        self.reset()

    def reset(self) -> List[Tuple[int, int]]:
        state = self.state
        if state.busy:
            logger.debug("Reset ignored while board is %s", state.phase.name)
            return []
        rules = get_rules(self.world)
        state.score = 0
        state.moves_remaining = rules.initial_moves
        state.combo_level = 0
        state.cascade_depth = 0
        state.outcome = GameOutcome.NONE
        state.phase = Phase.IDLE
        self._init_board()
        positions = list(self.board.positions())
        self.event_bus.emit(
            EVENT_BOARD_RESHUFFLED,
            positions=positions,
            tokens=[(row, col, self.board.cells[row][col]) for row, col in positions],
            reason="reset",
        )
        self.event_bus.emit(
            EVENT_SCORE_CHANGED,
            score=state.score,
            delta=0,
            combo=state.combo_level,
            moves_remaining=state.moves_remaining,
        )
        return positions

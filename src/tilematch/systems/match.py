import logging
from enum import Enum
from typing import Optional, Tuple

from esper import World

from tilematch.components.board_state import Phase
from tilematch.events.bus import (EventBus, EVENT_TILE_SWAP_REQUEST, EVENT_TILE_SWAP_VALID, EVENT_TILE_SWAP_INVALID,
                                  EVENT_TILE_SWAP_REJECTED, EVENT_TILE_SWAP_FINALIZE, EVENT_ANIMATION_START,
                                  EVENT_ANIMATION_COMPLETE)
from tilematch.systems.board_ops import get_board, get_rules, is_adjacent
from tilematch.systems.match_finder import find_all_matches
from tilematch.utils.board_state import get_board_state

logger = logging.getLogger(__name__)

Position = Tuple[int, int]


class SwapOutcome(Enum):
    ACCEPTED = "accepted"                  # swap matched, cascade started
    REVERTED = "reverted"                  # legal request, no match; grid restored
    REJECTED_INVALID = "rejected_invalid"  # out of bounds, empty cell or not adjacent
    REJECTED_BUSY = "rejected_busy"        # a swap or cascade is still in flight, or the game is over


class MatchSystem:
    """Validates swap requests and commits or reverts them."""

    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self.last_outcome: Optional[SwapOutcome] = None
        self._pending_revert: Optional[Tuple[Position, Position]] = None
        event_bus.subscribe(EVENT_TILE_SWAP_REQUEST, self.on_swap_request)
        event_bus.subscribe(EVENT_ANIMATION_COMPLETE, self.on_animation_complete)

    def on_swap_request(self, sender, **kwargs):
        src = kwargs.get('src')
        dst = kwargs.get('dst')
        if not src or not dst:
            return
        self.request_swap(tuple(src), tuple(dst))

    def request_swap(self, src: Position, dst: Position) -> SwapOutcome:
        state = get_board_state(self.world)
        if state.phase is not Phase.IDLE:
            return self._reject(src, dst, SwapOutcome.REJECTED_BUSY)
        board = get_board(self.world)
        if not (board.in_bounds(*src) and board.in_bounds(*dst)) or not is_adjacent(src, dst):
            return self._reject(src, dst, SwapOutcome.REJECTED_INVALID)
        if board.get(*src) is None or board.get(*dst) is None:
            return self._reject(src, dst, SwapOutcome.REJECTED_INVALID)

        rules = get_rules(self.world)
        state.phase = Phase.SWAP_PENDING
        # Tentative exchange; the match finder only ever sees a snapshot.
        board.swap(src, dst)
        matches = find_all_matches(board.snapshot(), rules.min_match)
        if not matches:
            board.swap(src, dst)
            logger.debug("Swap %s<->%s made no match, reverted", src, dst)
            self.last_outcome = SwapOutcome.REVERTED
            self.event_bus.emit(EVENT_TILE_SWAP_INVALID, src=src, dst=dst)
            if rules.await_animations:
                # Stay busy until the adapter has played the swap out and back.
                self._pending_revert = (src, dst)
                self.event_bus.emit(EVENT_ANIMATION_START, kind='swap', items=[src, dst], valid=False)
            else:
                state.phase = Phase.IDLE
            return SwapOutcome.REVERTED

        state.moves_remaining -= 1
        state.combo_level = 0
        state.phase = Phase.RESOLVING
        logger.debug("Swap %s<->%s accepted with %d group(s)", src, dst, len(matches))
        self.last_outcome = SwapOutcome.ACCEPTED
        self.event_bus.emit(EVENT_TILE_SWAP_VALID, src=src, dst=dst)
        self.event_bus.emit(EVENT_TILE_SWAP_FINALIZE, src=src, dst=dst, matches=matches)
        return SwapOutcome.ACCEPTED

    def on_animation_complete(self, sender, **kwargs):
        if kwargs.get('kind') != 'swap' or self._pending_revert is None:
            return
        self._pending_revert = None
        state = get_board_state(self.world)
        if state.phase is Phase.SWAP_PENDING:
            state.phase = Phase.IDLE

    def _reject(self, src, dst, outcome: SwapOutcome) -> SwapOutcome:
        reason = 'busy' if outcome is SwapOutcome.REJECTED_BUSY else 'invalid'
        logger.debug("Swap %s<->%s rejected (%s)", src, dst, reason)
        self.last_outcome = outcome
        self.event_bus.emit(EVENT_TILE_SWAP_REJECTED, src=src, dst=dst, reason=reason)
        return outcome

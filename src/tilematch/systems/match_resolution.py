import logging
from typing import Callable, Dict, List, Optional, Tuple

from esper import World

from tilematch.components.board_state import GameOutcome, Phase
from tilematch.systems.cascade_report import CascadeStep, ResolutionReport
from tilematch.events.bus import (EventBus, EVENT_TILE_SWAP_FINALIZE, EVENT_MATCH_FOUND, EVENT_CASCADE_STEP,
                                  EVENT_SCORE_CHANGED, EVENT_MATCH_CLEARED, EVENT_GRAVITY_APPLIED,
                                  EVENT_REFILL_COMPLETED, EVENT_CASCADE_COMPLETE, EVENT_ANIMATION_START,
                                  EVENT_ANIMATION_COMPLETE, EVENT_BOARD_CHANGED, EVENT_BOARD_RESHUFFLED,
                                  EVENT_BOARD_DEADLOCKED, EVENT_GAME_OVER)
from tilematch.systems.board_ops import (clear_positions, compact_columns, get_board, get_rules, get_token_registry,
                                         refill_empty_cells, respawn_full_board, world_rng)
from tilematch.systems.match_finder import MatchGroup, find_all_matches, has_valid_moves
from tilematch.utils.board_state import get_board_state

logger = logging.getLogger(__name__)

STEP_CLEAR = 'clear'
STEP_COMPACT = 'compact'
STEP_REFILL = 'refill'
STEP_DETECT = 'detect'

# A step returns the animation kind it produced and that animation's items.
StepResult = Tuple[Optional[str], list]


class MatchResolutionSystem:
    """Runs the cascade loop: score, clear, compact, refill and re-detect until stable.

    The loop is driven by a step pointer rather than recursion. With
    ``GameRules.await_animations`` off every step runs back to back inside the
    triggering call. With it on, each step that changed the board announces an
    EVENT_ANIMATION_START and the loop parks until the matching
    EVENT_ANIMATION_COMPLETE arrives.
    """

    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self.event_bus.subscribe(EVENT_TILE_SWAP_FINALIZE, self.on_swap_finalize)
        self.event_bus.subscribe(EVENT_BOARD_CHANGED, self.on_board_changed)
        self.event_bus.subscribe(EVENT_ANIMATION_COMPLETE, self.on_animation_complete)
        self.report: Optional[ResolutionReport] = None
        self._matches: List[MatchGroup] = []
        self._current: Optional[CascadeStep] = None
        self._next_step: Optional[str] = None
        self._awaiting: Optional[str] = None
        self._running = False
        self._steps: Dict[str, Callable[[], StepResult]] = {
            STEP_CLEAR: self._clear_matches,
            STEP_COMPACT: self._compact,
            STEP_REFILL: self._refill,
            STEP_DETECT: self._detect,
        }

    @property
    def active(self) -> bool:
        return self._next_step is not None or self._awaiting is not None

    def on_swap_finalize(self, sender, **kwargs):
        src = kwargs.get('src')
        dst = kwargs.get('dst')
        matches = kwargs.get('matches')
        if matches is None:
            matches = find_all_matches(get_board(self.world).snapshot(), get_rules(self.world).min_match)
        if not matches:
            return
        self._begin(matches, reason='swap', swap=(src, dst))
        if get_rules(self.world).await_animations:
            self._await('swap', [src, dst])
            return
        self._run()

    def on_board_changed(self, sender, **kwargs):
        # Board-altering actions outside a swap run the same pipeline without spending a move.
        state = get_board_state(self.world)
        if state.phase is not Phase.IDLE:
            return
        matches = find_all_matches(get_board(self.world).snapshot(), get_rules(self.world).min_match)
        if not matches:
            self._handle_deadlock()
            return
        state.phase = Phase.RESOLVING
        state.combo_level = 0
        self._begin(matches, reason=kwargs.get('reason', 'board_changed'))
        self._run()

    def on_animation_complete(self, sender, **kwargs):
        kind = kwargs.get('kind')
        if self._awaiting is None or kind != self._awaiting:
            return
        self._awaiting = None
        # An adapter may acknowledge synchronously from inside our own emit.
        if not self._running:
            self._run()

    def _begin(self, matches: List[MatchGroup], *, reason: str, swap=None) -> None:
        state = get_board_state(self.world)
        state.cascade_depth = 0
        self.report = ResolutionReport(swap=swap, reason=reason)
        self._matches = list(matches)
        self._next_step = STEP_CLEAR

    def _await(self, kind: str, items: list) -> None:
        self._awaiting = kind
        self.event_bus.emit(EVENT_ANIMATION_START, kind=kind, items=items)

    def _run(self) -> None:
        gated = get_rules(self.world).await_animations
        self._running = True
        try:
            while self._next_step is not None and self._awaiting is None:
                kind, items = self._steps[self._next_step]()
                if gated and kind and items:
                    self._await(kind, items)
        finally:
            self._running = False

    def _clear_matches(self) -> StepResult:
        state = get_board_state(self.world)
        rules = get_rules(self.world)
        board = get_board(self.world)
        state.combo_level += 1
        state.cascade_depth += 1
        groups = self._matches
        size = sum(group.size for group in groups)
        # Combo multiplies every group cleared in this iteration.
        points = size * rules.points_per_token * state.combo_level
        state.score += points
        positions = sorted({pos for group in groups for pos in group.positions})
        reason = self.report.reason if self.report else 'swap'
        logger.debug("Cascade depth %d: %d group(s), %d cell(s), +%d", state.cascade_depth, len(groups), size, points)
        self.event_bus.emit(EVENT_MATCH_FOUND, groups=groups, positions=positions, size=size, reason=reason)
        self.event_bus.emit(EVENT_CASCADE_STEP, depth=state.cascade_depth, positions=positions, points=points)
        self.event_bus.emit(
            EVENT_SCORE_CHANGED,
            score=state.score,
            delta=points,
            combo=state.combo_level,
            moves_remaining=state.moves_remaining,
        )
        cleared = clear_positions(board, positions)
        self._current = CascadeStep(depth=state.cascade_depth, groups=groups, points=points, cleared=cleared)
        if self.report is not None:
            self.report.steps.append(self._current)
        self.event_bus.emit(EVENT_MATCH_CLEARED, positions=positions, types=cleared)
        self._next_step = STEP_COMPACT
        return 'fade', positions

    def _compact(self) -> StepResult:
        moves, cascades = compact_columns(get_board(self.world))
        if self._current is not None:
            self._current.moves = moves
        self.event_bus.emit(EVENT_GRAVITY_APPLIED, moves=moves, cascades=cascades)
        self._next_step = STEP_REFILL
        fall_payload = [
            {'from': move.source, 'to': move.target, 'type_name': move.type_name}
            for move in moves
        ]
        return 'fall', fall_payload

    def _refill(self) -> StepResult:
        rules = get_rules(self.world)
        palette = get_token_registry(self.world).palette()
        spawned = refill_empty_cells(get_board(self.world), palette, world_rng(self.world), rules.min_match)
        if self._current is not None:
            self._current.spawned = spawned
        new_tiles = [(row, col) for row, col, _ in spawned]
        self.event_bus.emit(EVENT_REFILL_COMPLETED, new_tiles=new_tiles, tokens=spawned)
        self._next_step = STEP_DETECT
        return 'refill', new_tiles

    def _detect(self) -> StepResult:
        matches = find_all_matches(get_board(self.world).snapshot(), get_rules(self.world).min_match)
        if matches:
            self._matches = matches
            self._next_step = STEP_CLEAR
        else:
            self._next_step = None
            self._finish()
        return None, []

    def _finish(self) -> None:
        state = get_board_state(self.world)
        rules = get_rules(self.world)
        self._matches = []
        self._current = None
        state.phase = Phase.IDLE
        outcome = self._evaluate_outcome()
        report = self.report or ResolutionReport()
        if outcome is not GameOutcome.NONE:
            state.outcome = outcome
            state.phase = Phase.GAME_OVER
        else:
            report.reshuffled = self._handle_deadlock()
        report.score = state.score
        report.moves_remaining = state.moves_remaining
        report.combo_level = state.combo_level
        report.outcome = state.outcome
        self.report = report
        self.event_bus.emit(EVENT_CASCADE_COMPLETE, depth=state.cascade_depth, report=report)
        if state.phase is Phase.GAME_OVER:
            logger.info("Game over: %s with score %d", outcome.name, state.score)
            self.event_bus.emit(
                EVENT_GAME_OVER,
                outcome=outcome,
                score=state.score,
                moves_remaining=state.moves_remaining,
                target_score=rules.target_score,
            )

    def _evaluate_outcome(self) -> GameOutcome:
        state = get_board_state(self.world)
        rules = get_rules(self.world)
        if state.score >= rules.target_score:
            return GameOutcome.WIN
        if state.moves_remaining <= 0:
            return GameOutcome.LOSE
        return GameOutcome.NONE

    def _handle_deadlock(self) -> bool:
        rules = get_rules(self.world)
        board = get_board(self.world)
        if has_valid_moves(board.snapshot(), rules.min_match):
            return False
        if not rules.reshuffle_on_deadlock:
            logger.debug("No valid moves left; reshuffle disabled")
            self.event_bus.emit(EVENT_BOARD_DEADLOCKED)
            return False
        palette = get_token_registry(self.world).palette()
        spawned = respawn_full_board(board, palette, world_rng(self.world), min_match=rules.min_match)
        logger.debug("No valid moves left; board reshuffled")
        self.event_bus.emit(
            EVENT_BOARD_RESHUFFLED,
            positions=[(row, col) for row, col, _ in spawned],
            tokens=spawned,
            reason='deadlock',
        )
        return True

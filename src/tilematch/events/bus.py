from blinker import Signal
from typing import Dict

class EventBus:
    """Simple event bus leveraging blinker Signal objects."""
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        # Use weak=False to retain strong reference to bound methods so systems not kept in a variable still receive events.
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: str, fn):
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


# ============================================================================
# SWAP REQUESTS
# ============================================================================
EVENT_TILE_SWAP_REQUEST = "tile_swap_request"      # payload: src=(r,c), dst=(r,c)
EVENT_TILE_SWAP_REJECTED = "tile_swap_rejected"    # payload: src=(r,c), dst=(r,c), reason=str ('invalid'|'busy')
EVENT_TILE_SWAP_VALID = "tile_swap_valid"          # payload: src=(r,c), dst=(r,c)
EVENT_TILE_SWAP_INVALID = "tile_swap_invalid"      # payload: src=(r,c), dst=(r,c)
EVENT_TILE_SWAP_FINALIZE = "tile_swap_finalize"    # payload: src=(r,c), dst=(r,c), matches=list[MatchGroup]


# ============================================================================
# CASCADE RESOLUTION
# ============================================================================
EVENT_MATCH_FOUND = "match_found"                  # payload: groups=list[MatchGroup], positions=[(r,c),...], size=int, reason=str
EVENT_CASCADE_STEP = "cascade_step"                # payload: depth=int, positions=[(r,c),...], points=int
EVENT_SCORE_CHANGED = "score_changed"              # payload: score=int, delta=int, combo=int, moves_remaining=int
EVENT_MATCH_CLEARED = "match_cleared"              # payload: positions=[(r,c),...], types=[(r,c,token),...]
EVENT_GRAVITY_APPLIED = "gravity_applied"          # payload: moves=list[GravityMove], cascades=int
EVENT_REFILL_COMPLETED = "refill_completed"        # payload: new_tiles=[(r,c),...], tokens=[(r,c,token),...]
EVENT_CASCADE_COMPLETE = "cascade_complete"        # payload: depth=int, report=ResolutionReport
EVENT_BOARD_CHANGED = "board_changed"              # payload: reason=str


# ============================================================================
# BOARD LIFECYCLE
# ============================================================================
EVENT_BOARD_RESHUFFLED = "board_reshuffled"        # payload: positions=[(r,c),...], tokens=[(r,c,token),...], reason=str ("deadlock"|"reset")
EVENT_BOARD_DEADLOCKED = "board_deadlocked"        # payload: None
EVENT_GAME_RESET = "game_reset"                    # payload: None
EVENT_GAME_OVER = "game_over"                      # payload: outcome=GameOutcome, score=int, moves_remaining=int, target_score=int
EVENT_BEST_SCORE_CHANGED = "best_score_changed"    # payload: best=int, previous=int


# ============================================================================
# ANIMATION
# ============================================================================
EVENT_ANIMATION_START = "animation_start"          # payload: kind=str (swap|fade|fall|refill), items=list, valid=bool (swap revert only)
EVENT_ANIMATION_COMPLETE = "animation_complete"    # payload: kind=str

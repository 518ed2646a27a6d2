from dataclasses import dataclass

from tilematch.constants import INITIAL_MOVES, MIN_MATCH, POINTS_PER_TOKEN, TARGET_SCORE


@dataclass(slots=True)
class GameRules:
    """Scoring and flow settings read by the board systems."""

    min_match: int = MIN_MATCH
    points_per_token: int = POINTS_PER_TOKEN
    initial_moves: int = INITIAL_MOVES
    target_score: int = TARGET_SCORE
    # Regenerate the board when no swap can produce a match.
    reshuffle_on_deadlock: bool = True
    # Wait for EVENT_ANIMATION_COMPLETE between phases instead of resolving eagerly.
    await_animations: bool = False

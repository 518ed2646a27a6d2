from __future__ import annotations

import random
from typing import Sequence

from esper import World
from .events.bus import EventBus
from tilematch.components.game_rules import GameRules
from tilematch.components.token_types import TokenTypes
from tilematch.constants import TOKEN_TYPES


def create_world(
    event_bus: EventBus,
    *,
    palette: Sequence[str] | None = None,
    rules: GameRules | None = None,
    rng: random.Random | None = None,
) -> World:
    """Create a world holding the token palette and rule settings.

    The board entity itself is created by ``BoardSystem`` so tests can pick
    the board size per world.
    """
    world = World()
    setattr(world, "random", rng or random.Random())

    # Single registry entity with the token palette
    world.create_entity(TokenTypes(types=list(palette or TOKEN_TYPES)))
    world.create_entity(rules or GameRules())
    return world

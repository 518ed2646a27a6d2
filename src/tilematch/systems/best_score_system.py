from __future__ import annotations

import logging
from typing import MutableMapping

from esper import World

from tilematch.components.best_score import BestScore
from tilematch.constants import BEST_SCORE_KEY
from tilematch.events.bus import EVENT_BEST_SCORE_CHANGED, EVENT_GAME_OVER, EventBus

logger = logging.getLogger(__name__)


class BestScoreSystem:
    """Tracks the best final score and mirrors it into an injected key-value store.

    The store is any mutable mapping; keeping it on disk (or not) is up to
    whoever supplies it.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        store: MutableMapping[str, int] | None = None,
        key: str = BEST_SCORE_KEY,
    ) -> None:
        self.world = world
        self.event_bus = event_bus
        self._store: MutableMapping[str, int] = store if store is not None else {}
        self._key = key
        self._entity = self._ensure_best_score_entity()
        self.event_bus.subscribe(EVENT_GAME_OVER, self._on_game_over)

    def _ensure_best_score_entity(self) -> int:
        existing = list(self.world.get_component(BestScore))
        if existing:
            return existing[0][0]
        try:
            initial = int(self._store.get(self._key, 0))
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed best score %r", self._store.get(self._key))
            initial = 0
        return self.world.create_entity(BestScore(value=initial))

    @property
    def best(self) -> int:
        return self.world.component_for_entity(self._entity, BestScore).value

    def _on_game_over(self, sender, **payload) -> None:
        score = int(payload.get("score", 0))
        record = self.world.component_for_entity(self._entity, BestScore)
        if score <= record.value:
            return
        previous = record.value
        record.value = score
        self._store[self._key] = score
        self.event_bus.emit(EVENT_BEST_SCORE_CHANGED, best=score, previous=previous)

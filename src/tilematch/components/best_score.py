from dataclasses import dataclass


@dataclass(slots=True)
class BestScore:
    """Highest final score seen by this world (seeded from the injected store)."""
    value: int = 0

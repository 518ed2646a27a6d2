from dataclasses import dataclass
from typing import List

# Left and upward neighbours can rule out at most two tokens per cell.
MIN_PALETTE_SIZE = 3


@dataclass(slots=True)
class TokenTypes:
    """Token palette stored on a single entity; every name may be spawned."""
    types: List[str]

    def __post_init__(self) -> None:
        # Preserve order while dropping duplicates.
        self.types = list(dict.fromkeys(self.types))
        if len(self.types) < MIN_PALETTE_SIZE:
            raise ValueError(
                f"Token palette needs at least {MIN_PALETTE_SIZE} distinct types, got {self.types}"
            )

    def palette(self) -> List[str]:
        return list(self.types)

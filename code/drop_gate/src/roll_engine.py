"""
OnceDrop Roll Engine
Percentage roll in fixed point: 1..10000 where 10000 == 100.00%
"""
import random
from typing import Optional

ROLL_SCALE = 10000


class RollEngine:
    """Pass/fail roll against a drop chance given in percent."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    @classmethod
    def from_seed(cls, seed: int) -> "RollEngine":
        return cls(random.Random(seed))

    @staticmethod
    def threshold(chance_pct: float) -> int:
        """Chance in hundredths of a percent, rounded half up."""
        return int(chance_pct * 100.0 + 0.5)

    def roll(self, chance_pct: float) -> bool:
        if chance_pct <= 0.0:
            return False
        if chance_pct >= 100.0:
            return True

        return self._rng.randint(1, ROLL_SCALE) <= self.threshold(chance_pct)

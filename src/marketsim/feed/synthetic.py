"""Biased random-walk price model."""

from __future__ import annotations

import random
from dataclasses import dataclass, field

DEFAULT_BIAS = 0.48
DEFAULT_MAX_STEP_FRACTION = 0.02
DEFAULT_FLOOR_FRACTION = 0.1


@dataclass
class RandomWalkModel:
    """Random walk with slight upward drift and a per-step floor.

    Each step draws one uniform number u and moves the price by
    (u - bias) * previous * max_step_fraction, never falling below
    previous * floor_fraction.
    """

    bias: float = DEFAULT_BIAS
    max_step_fraction: float = DEFAULT_MAX_STEP_FRACTION
    floor_fraction: float = DEFAULT_FLOOR_FRACTION
    rng: random.Random = field(default_factory=random.Random)

    def __post_init__(self) -> None:
        if not 0.0 <= self.bias <= 1.0:
            raise ValueError("bias must be between 0 and 1")
        if self.max_step_fraction < 0:
            raise ValueError("max_step_fraction must be non-negative")
        if not 0.0 < self.floor_fraction < 1.0:
            raise ValueError("floor_fraction must be between 0 and 1")

    @classmethod
    def seeded(cls, seed: int | None, **kwargs: float) -> RandomWalkModel:
        return cls(rng=random.Random(seed), **kwargs)

    def next_price(self, previous_price: float) -> float:
        delta = (self.rng.random() - self.bias) * previous_price * self.max_step_fraction
        return max(previous_price + delta, previous_price * self.floor_fraction)

    def uniform(self, low: float, high: float) -> float:
        """Draw an initial price within [low, high]."""
        return self.rng.uniform(low, high)

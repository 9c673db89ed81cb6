"""Seeded random number generation for chains."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(slots=True)
class RandomState:
    """Wrapper for a seeded, chain-owned generator.

    Unlike the legacy ``np.random`` API no global state is seeded, so
    chains built from distinct ``RandomState`` objects never interfere.
    """

    seed: int
    generator: np.random.Generator

    @classmethod
    def create(cls, seed: int) -> "RandomState":
        return cls(seed=seed, generator=np.random.default_rng(seed))

    def spawn(self, offset: int) -> "RandomState":
        """Derive a child generator with deterministic offset."""

        bit_generator = self.generator.bit_generator.jumped(offset)
        return RandomState(seed=self.seed + offset, generator=np.random.Generator(bit_generator))


def choose_rng(seed: int) -> RandomState:
    """Convenience helper to create a ``RandomState``."""

    return RandomState.create(seed)

"""Precomputed constants used inside the likelihood estimator."""

from __future__ import annotations

from itertools import combinations
from math import comb
from typing import Dict, Tuple

import numpy as np
from scipy.special import gammaln

from .config import Parameters
from .data import GenotypingData
from .exceptions import ConfigurationError


def _count_vectors(coi: int, num_alleles: int) -> np.ndarray:
    """Every length ``num_alleles`` vector of non-negative counts summing to ``coi``."""
    slots = coi + num_alleles - 1
    rows = []
    for bars in combinations(range(slots), num_alleles - 1):
        edges = (-1,) + bars + (slots,)
        rows.append([edges[a + 1] - edges[a] - 1 for a in range(num_alleles)])
    return np.array(rows, dtype=np.int64).reshape(-1, num_alleles)


class Lookup:
    """Log-gamma values and importance sampling depth caps.

    ``lgamma[n]`` holds ``log Gamma(n)`` so ``lgamma[c + 1]`` is ``log c!``.
    ``sampling_depth[coi, k]`` is the number of count vectors evaluated for
    a locus with ``k`` alleles at the given COI: the configured depth, or
    the number of distinct strain count vectors if that is smaller.
    ``exhaustive[coi, k]`` marks the second case, where the whole support
    is enumerated instead of sampled.
    """

    def __init__(self, max_coi: int, max_alleles: int, importance_sampling_depth: int):
        if max_coi < 1:
            raise ConfigurationError("max_coi must be positive", {"max_coi": max_coi})
        if max_alleles < 1:
            raise ConfigurationError("max_alleles must be positive", {"max_alleles": max_alleles})
        if importance_sampling_depth < 1:
            raise ConfigurationError(
                "importance_sampling_depth must be positive",
                {"importance_sampling_depth": importance_sampling_depth},
            )

        self.max_coi = max_coi
        self.max_alleles = max_alleles
        self.importance_sampling_depth = importance_sampling_depth

        lgamma = gammaln(np.arange(max_coi + 2, dtype=float))
        lgamma.setflags(write=False)
        self.lgamma = lgamma

        depth = np.ones((max_coi + 1, max_alleles + 1), dtype=np.int64)
        exhaustive = np.zeros((max_coi + 1, max_alleles + 1), dtype=bool)
        for coi in range(max_coi + 1):
            for k in range(1, max_alleles + 1):
                support = comb(coi + k - 1, k - 1)
                depth[coi, k] = min(importance_sampling_depth, support)
                exhaustive[coi, k] = support <= importance_sampling_depth
        depth.setflags(write=False)
        exhaustive.setflags(write=False)
        self.sampling_depth = depth
        self.exhaustive = exhaustive

        self._support: Dict[Tuple[int, int], np.ndarray] = {}

    @classmethod
    def for_data(cls, data: GenotypingData, parameters: Parameters) -> "Lookup":
        return cls(parameters.max_coi, max(data.num_alleles), parameters.importance_sampling_depth)

    def depth(self, coi: int, num_alleles: int) -> int:
        return int(self.sampling_depth[coi, num_alleles])

    def is_exhaustive(self, coi: int, num_alleles: int) -> bool:
        return bool(self.exhaustive[coi, num_alleles])

    def support(self, coi: int, num_alleles: int) -> np.ndarray:
        """All count vectors for an exhaustive cell, built on first use."""
        if not self.is_exhaustive(coi, num_alleles):
            raise ValueError(
                f"support of coi={coi} over {num_alleles} alleles exceeds the sampling depth"
            )
        key = (int(coi), int(num_alleles))
        if key not in self._support:
            vectors = _count_vectors(*key)
            vectors.setflags(write=False)
            self._support[key] = vectors
        return self._support[key]

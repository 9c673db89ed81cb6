"""Simulation of genotyping data under the sampler's generative model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np
from scipy import stats

from .data import GenotypingData
from .exceptions import SimulationError


@dataclass
class SimulatedData:
    """Simulated observations together with the values that generated them."""
    data: GenotypingData
    allele_freqs: List[np.ndarray]
    sample_cois: np.ndarray
    true_genotypes: List[np.ndarray]
    eps_pos: float
    eps_neg: float
    mean_coi: float


def simulate_allele_frequencies(alpha: Sequence[float], num_loci: int, rng: np.random.Generator) -> List[np.ndarray]:
    """Dirichlet draws of allele frequency vectors."""
    draws = rng.dirichlet(np.asarray(alpha, dtype=float), size=num_loci)
    return [draws[j] for j in range(num_loci)]


def simulate_sample_coi(num_samples: int, mean_coi: float, rng: np.random.Generator) -> np.ndarray:
    """Zero-truncated Poisson COIs via inverse-CDF sampling."""
    u = rng.uniform(stats.poisson.pmf(0, mean_coi), 1.0, size=num_samples)
    return np.maximum(stats.poisson.ppf(u, mean_coi), 1).astype(np.int64)


def simulate_sample_genotype(sample_cois: np.ndarray, allele_freqs: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """Strain counts per allele for every sample at one locus."""
    return np.stack([rng.multinomial(int(coi), allele_freqs) for coi in sample_cois])


def simulate_observed_genotype(
    true_genotypes: np.ndarray,
    eps_pos: float,
    eps_neg: float,
    rng: np.random.Generator,
) -> np.ndarray:
    """Presence/absence calls with false positives and false negatives."""
    present = true_genotypes > 0
    detect_prob = np.where(present, 1.0 - eps_neg, eps_pos)
    return (rng.random(true_genotypes.shape) < detect_prob).astype(np.int8)


def simulate_data(
    mean_coi: float,
    locus_freq_alphas: Sequence[Sequence[float]],
    num_samples: int,
    eps_pos: float,
    eps_neg: float,
    rng: np.random.Generator,
) -> SimulatedData:
    """Simulate a full data set.

    Args:
        mean_coi: Poisson mean of the (zero-truncated) COI distribution
        locus_freq_alphas: One Dirichlet concentration vector per locus
        num_samples: Number of biological samples
        eps_pos: False positive rate
        eps_neg: False negative rate
        rng: Seeded random number generator

    Returns:
        ``SimulatedData`` whose ``data`` starts every sample at its naive COI
    """
    if mean_coi <= 0:
        raise SimulationError("mean_coi must be positive", {"mean_coi": mean_coi})
    if num_samples < 1:
        raise SimulationError("num_samples must be positive", {"num_samples": num_samples})
    if len(locus_freq_alphas) == 0:
        raise SimulationError("at least one locus is required")
    for name, value in (("eps_pos", eps_pos), ("eps_neg", eps_neg)):
        if not 0.0 <= value <= 1.0:
            raise SimulationError(f"{name} must lie in [0, 1]", {name: value})

    allele_freqs = [simulate_allele_frequencies(alpha, 1, rng)[0] for alpha in locus_freq_alphas]
    sample_cois = simulate_sample_coi(num_samples, mean_coi, rng)
    true_genotypes = [simulate_sample_genotype(sample_cois, freqs, rng) for freqs in allele_freqs]
    observed = [simulate_observed_genotype(g, eps_pos, eps_neg, rng) for g in true_genotypes]

    data = GenotypingData.from_nested(
        observed,
        sample_ids=[f"S{i + 1}" for i in range(num_samples)],
        loci=[f"L{j + 1}" for j in range(len(locus_freq_alphas))],
    )
    return SimulatedData(
        data=data,
        allele_freqs=allele_freqs,
        sample_cois=sample_cois,
        true_genotypes=true_genotypes,
        eps_pos=eps_pos,
        eps_neg=eps_neg,
        mean_coi=mean_coi,
    )

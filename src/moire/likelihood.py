"""
Marginal likelihood of one observed genotype.

The true strain composition behind an observation is latent. When the
number of possible count vectors fits within the sampling depth it is
summed out exactly. Otherwise count vectors are drawn from a reweighted
allele distribution that favours alleles consistent with the observation,
and the importance weights are averaged.
"""

from __future__ import annotations

import numpy as np
from scipy.special import logsumexp

from .config import LOG_FLOOR, REWEIGHT_FLOOR
from .lookup import Lookup
from .sampler import Sampler


def _safe_log(x):
    return np.log(np.maximum(x, LOG_FLOOR))


def reweight_allele_frequencies(
    allele_frequencies: np.ndarray,
    observed_genotype: np.ndarray,
    eps_neg: float,
    eps_pos: float,
) -> np.ndarray:
    """Importance distribution for a single observation.

    Observed alleles are scaled by ``1 - eps_neg`` and unobserved ones by
    ``eps_neg``; every allele then gains ``eps_pos`` plus a small floor.
    """
    obs = np.asarray(observed_genotype, dtype=float)
    weights = np.asarray(allele_frequencies, dtype=float) * (obs * (1 - eps_neg) + (1 - obs) * eps_neg)
    weights = weights + eps_pos + REWEIGHT_FLOOR
    return weights / weights.sum()


def genotype_log_pmf(
    genotypes: np.ndarray,
    coi: int,
    allele_frequencies: np.ndarray,
    lookup: Lookup,
) -> np.ndarray:
    """Multinomial log-pmf of each row of ``genotypes``."""
    genotypes = np.atleast_2d(genotypes)
    log_freqs = np.log(np.asarray(allele_frequencies, dtype=float) + LOG_FLOOR)
    terms = genotypes * log_freqs - lookup.lgamma[genotypes + 1]
    return lookup.lgamma[coi + 1] + terms.sum(axis=1)


def observation_log_likelihood(
    observed_genotype: np.ndarray,
    true_genotypes: np.ndarray,
    eps_neg: float,
    eps_pos: float,
) -> np.ndarray:
    """Log probability of the observation given each true count vector.

    Detected alleles carried by ``c`` strains contribute ``c * log(1 - eps_neg)``
    and missed ones ``c * log(eps_neg)``. Alleles carried by no strain
    contribute ``log(eps_pos)`` when detected and ``log(1 - eps_pos)`` otherwise.
    """
    obs = np.asarray(observed_genotype).astype(bool)
    true_genotypes = np.atleast_2d(true_genotypes)
    carried = true_genotypes > 0

    tp = _safe_log(1 - eps_neg)
    fn = _safe_log(eps_neg)
    fp = _safe_log(eps_pos)
    tn = _safe_log(1 - eps_pos)

    lliks = np.where(
        obs,
        np.where(carried, true_genotypes * tp, fp),
        np.where(carried, true_genotypes * fn, tn),
    )
    return lliks.sum(axis=1)


def marginal_log_likelihood(
    observed_genotype: np.ndarray,
    coi: int,
    allele_frequencies: np.ndarray,
    eps_neg: float,
    eps_pos: float,
    sampler: Sampler,
    lookup: Lookup,
) -> float:
    """Estimate of ``log P(obs)``, exact when the lookup marks the cell exhaustive."""
    allele_frequencies = np.asarray(allele_frequencies, dtype=float)
    num_alleles = allele_frequencies.shape[0]

    if lookup.is_exhaustive(coi, num_alleles):
        support = lookup.support(coi, num_alleles)
        prior_lp = genotype_log_pmf(support, coi, allele_frequencies, lookup)
        obs_lp = observation_log_likelihood(observed_genotype, support, eps_neg, eps_pos)
        return float(logsumexp(obs_lp + prior_lp))

    depth = lookup.depth(coi, num_alleles)

    importance_freqs = reweight_allele_frequencies(allele_frequencies, observed_genotype, eps_neg, eps_pos)
    draws = sampler.sample_genotype(coi, importance_freqs, depth)

    importance_lp = genotype_log_pmf(draws, coi, importance_freqs, lookup)
    prior_lp = genotype_log_pmf(draws, coi, allele_frequencies, lookup)
    obs_lp = observation_log_likelihood(observed_genotype, draws, eps_neg, eps_pos)

    return float(logsumexp(obs_lp + prior_lp - importance_lp) - np.log(depth))

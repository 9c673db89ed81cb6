"""All randomness used by a chain, behind named draws."""

from __future__ import annotations

import numpy as np
from scipy import stats
from scipy.special import expit, logit

from .config import LOG_FLOOR
from .rng import RandomState


class Sampler:
    """Proposal and latent-genotype draws for a single chain.

    A sampler wraps exactly one generator and must not be shared between
    chains or threads.
    """

    def __init__(self, random_state: RandomState):
        self.random_state = random_state
        self.rng = random_state.generator

    def sample_coi_delta(self, coi_prop_mean: float) -> int:
        """Signed geometric step whose magnitude has mean ``coi_prop_mean``.

        A zero step is possible and leaves the COI unchanged.
        """
        success = 1.0 / (1.0 + max(coi_prop_mean, 0.0))
        magnitude = int(self.rng.geometric(success)) - 1
        sign = 1 if self.rng.random() < 0.5 else -1
        return sign * magnitude

    def sample_allele_frequencies(self, allele_frequencies: np.ndarray, variance: float) -> np.ndarray:
        """Logit-normal perturbation of a simplex, renormalized to sum to one."""
        freqs = np.clip(np.asarray(allele_frequencies, dtype=float), LOG_FLOOR, 1.0 - LOG_FLOOR)
        noise = self.rng.normal(0.0, np.sqrt(variance), size=freqs.shape[0])
        proposed = np.maximum(expit(logit(freqs) + noise), LOG_FLOOR)
        return proposed / proposed.sum()

    def sample_epsilon(self, curr_epsilon: float, variance: float) -> float:
        """Gaussian random walk step for an error rate.

        The result is not confined; callers reject values outside their bounds.
        """
        return float(self.rng.normal(curr_epsilon, np.sqrt(variance)))

    def sample_epsilon_pos(self, curr_eps_pos: float, variance: float) -> float:
        return self.sample_epsilon(curr_eps_pos, variance)

    def sample_epsilon_neg(self, curr_eps_neg: float, variance: float) -> float:
        return self.sample_epsilon(curr_eps_neg, variance)

    def sample_genotype(self, coi: int, allele_frequencies: np.ndarray, num_samples: int) -> np.ndarray:
        """Draw ``num_samples`` strain count vectors, one per row."""
        return self.rng.multinomial(coi, allele_frequencies, size=num_samples)

    def sample_log_mh_acceptance(self) -> float:
        """Log of a uniform variate, compared against the log acceptance ratio."""
        # 1 - U lies in (0, 1], so the log is always finite
        return float(np.log1p(-self.rng.random()))

    @staticmethod
    def epsilon_log_prior(x: float, alpha: float, beta: float) -> float:
        """Beta log-density for an error rate."""
        return float(stats.beta.logpdf(x, alpha, beta))

    @staticmethod
    def coi_log_prior(coi: int, mean: float) -> float:
        """Poisson log-pmf for a COI."""
        return float(stats.poisson.logpmf(coi, mean))

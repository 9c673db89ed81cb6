"""
Adaptive Metropolis-Hastings chain over COI, allele frequencies and error rates.

Every iteration applies four moves in a fixed order: per-sample COI,
per-locus allele frequencies, the false-positive rate and the
false-negative rate. Each move proposes, evaluates the
marginal likelihood only for the cells of the likelihood cache it touches,
accepts or rejects, and nudges its proposal scale towards the target
acceptance rate with a Robbins-Monro step of size ``1 / sqrt(iteration)``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import numpy as np

from .config import Parameters, UNDERFLOW
from .data import GenotypingData
from .exceptions import ConfigurationError, NumericalError
from .likelihood import marginal_log_likelihood
from .lookup import Lookup
from .rng import RandomState
from .sampler import Sampler
from .trace import MoveEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChainState:
    """Snapshot of the parameters of a chain."""
    m: np.ndarray
    p: List[np.ndarray]
    eps_pos: float
    eps_neg: float
    llik: float


class Chain:
    """A single MCMC chain; owns its state, its likelihood cache and its sampler."""

    def __init__(
        self,
        data: GenotypingData,
        lookup: Lookup,
        parameters: Parameters,
        random_state: RandomState,
        trace: Optional[Callable[[MoveEvent], None]] = None,
    ):
        parameters.validate()
        if lookup.max_coi < parameters.max_coi:
            raise ConfigurationError(
                "lookup table was built for a smaller max_coi",
                {"lookup": lookup.max_coi, "parameters": parameters.max_coi},
            )
        if lookup.max_alleles < max(data.num_alleles):
            raise ConfigurationError(
                "lookup table was built for fewer alleles than the data contains",
                {"lookup": lookup.max_alleles, "data": max(data.num_alleles)},
            )

        self.data = data
        self.lookup = lookup
        self.params = parameters
        self.sampler = Sampler(random_state)
        self.trace = trace

        self._m = data.clamp_coi(parameters.max_coi)
        self._p = data.empirical_allele_frequencies()
        self._eps_pos = float(parameters.eps_pos_0)
        self._eps_neg = float(parameters.eps_neg_0)

        self.m_prop_mean = np.full(data.num_samples, float(parameters.m_prop_mean_0))
        self.p_prop_var = np.full(data.num_loci, float(parameters.p_prop_var_0))
        self.eps_pos_var = float(parameters.eps_pos_var_0)
        self.eps_neg_var = float(parameters.eps_neg_var_0)

        self.m_accept = np.zeros(data.num_samples, dtype=np.int64)
        self.m_attempt = np.zeros(data.num_samples, dtype=np.int64)
        self.p_accept = np.zeros(data.num_loci, dtype=np.int64)
        self.p_attempt = np.zeros(data.num_loci, dtype=np.int64)
        self.eps_pos_accept = 0
        self.eps_pos_attempt = 0
        self.eps_neg_accept = 0
        self.eps_neg_attempt = 0

        self._llik_old = np.zeros((data.num_loci, data.num_samples))
        self._llik_new = np.zeros((data.num_loci, data.num_samples))
        self._initialize_likelihood()

        logger.debug(
            "Initialized chain with %d samples, %d loci, llik=%.4f",
            data.num_samples, data.num_loci, self.get_llik(),
        )

    # -- read access ---------------------------------------------------------

    @property
    def m(self) -> np.ndarray:
        return self._m.copy()

    @property
    def p(self) -> List[np.ndarray]:
        return [freqs.copy() for freqs in self._p]

    @property
    def eps_pos(self) -> float:
        return self._eps_pos

    @property
    def eps_neg(self) -> float:
        return self._eps_neg

    @property
    def llik_matrix(self) -> np.ndarray:
        """Cached per-locus, per-sample log-likelihoods (a copy)."""
        return self._llik_old.copy()

    def get_llik(self) -> float:
        return float(self._llik_old.sum())

    def state(self) -> ChainState:
        return ChainState(m=self.m, p=self.p, eps_pos=self._eps_pos, eps_neg=self._eps_neg, llik=self.get_llik())

    def acceptance_rates(self) -> Dict[str, np.ndarray | float]:
        """Accepted over in-bounds proposals, per parameter block."""
        with np.errstate(divide="ignore", invalid="ignore"):
            return {
                "m": self.m_accept / self.m_attempt,
                "p": self.p_accept / self.p_attempt,
                "eps_pos": self.eps_pos_accept / self.eps_pos_attempt if self.eps_pos_attempt else float("nan"),
                "eps_neg": self.eps_neg_accept / self.eps_neg_attempt if self.eps_neg_attempt else float("nan"),
            }

    # -- likelihood ----------------------------------------------------------

    def _marginal_llik(self, locus: int, sample: int, coi: int, freqs: np.ndarray, eps_neg: float, eps_pos: float) -> float:
        llik = marginal_log_likelihood(
            self.data.observed_alleles[locus][sample],
            coi,
            freqs,
            eps_neg,
            eps_pos,
            self.sampler,
            self.lookup,
        )
        if not np.isfinite(llik):
            raise NumericalError(
                "non-finite marginal log-likelihood",
                {"locus": locus, "sample": sample, "coi": coi, "eps_neg": eps_neg, "eps_pos": eps_pos},
            )
        return llik

    def _initialize_likelihood(self) -> None:
        for j in range(self.data.num_loci):
            for i in range(self.data.num_samples):
                self._llik_old[j, i] = self._marginal_llik(j, i, self._m[i], self._p[j], self._eps_neg, self._eps_pos)
        self._llik_new[:] = self._llik_old

    def _emit(self, iteration: int, move: str, index: Optional[int], accepted: bool, value, in_bounds: bool = True) -> None:
        if self.trace is not None:
            self.trace(MoveEvent(iteration, move, index, accepted, value, in_bounds))

    def _adaptation_steps(self, iteration: int):
        if iteration < 1:
            raise ValueError(f"iteration must be at least 1, got {iteration}")
        scale = 1.0 / np.sqrt(iteration)
        target = self.params.target_acceptance
        return (1.0 - target) * scale, target * scale

    # -- moves ---------------------------------------------------------------

    def update_m(self, iteration: int) -> None:
        up, down = self._adaptation_steps(iteration)
        for i in range(self.data.num_samples):
            prop_m = self._m[i] + self.sampler.sample_coi_delta(self.m_prop_mean[i])

            # Out-of-range proposals leave the tuning state untouched
            if not 1 <= prop_m <= self.params.max_coi:
                self._emit(iteration, "m", i, False, int(prop_m), in_bounds=False)
                continue

            self.m_attempt[i] += 1

            # Unchanged COI is accepted without touching the likelihood
            if prop_m == self._m[i]:
                self.m_prop_mean[i] += up
                self.m_accept[i] += 1
                self._emit(iteration, "m", i, True, int(prop_m))
                continue

            for j in range(self.data.num_loci):
                self._llik_new[j, i] = self._marginal_llik(j, i, prop_m, self._p[j], self._eps_neg, self._eps_pos)
            sum_can = self._llik_new[:, i].sum()
            sum_orig = self._llik_old[:, i].sum()

            if self.sampler.sample_log_mh_acceptance() <= sum_can - sum_orig:
                self._m[i] = prop_m
                self.m_prop_mean[i] += up
                self.m_accept[i] += 1
                self._llik_old[:, i] = self._llik_new[:, i]
                self._emit(iteration, "m", i, True, int(prop_m))
            else:
                self.m_prop_mean[i] = max(self.m_prop_mean[i] - down, 0.0)
                self._emit(iteration, "m", i, False, int(prop_m))

    def update_p(self, iteration: int) -> None:
        up, down = self._adaptation_steps(iteration)
        for j in range(self.data.num_loci):
            prop_p = self.sampler.sample_allele_frequencies(self._p[j], self.p_prop_var[j])
            self.p_attempt[j] += 1

            for i in range(self.data.num_samples):
                self._llik_new[j, i] = self._marginal_llik(j, i, self._m[i], prop_p, self._eps_neg, self._eps_pos)
            sum_can = self._llik_new[j].sum()
            sum_orig = self._llik_old[j].sum()

            # Variance adapts on the log scale so it stays positive
            if self.sampler.sample_log_mh_acceptance() <= sum_can - sum_orig:
                self._p[j] = prop_p
                self.p_accept[j] += 1
                self.p_prop_var[j] = np.exp(np.log(self.p_prop_var[j]) + up)
                self._llik_old[j] = self._llik_new[j]
                self._emit(iteration, "p", j, True, prop_p)
            else:
                self.p_prop_var[j] = max(np.exp(np.log(self.p_prop_var[j]) - down), UNDERFLOW)
                self._emit(iteration, "p", j, False, prop_p)

    def update_eps_pos(self, iteration: int) -> None:
        up, down = self._adaptation_steps(iteration)
        prop = self.sampler.sample_epsilon_pos(self._eps_pos, self.eps_pos_var)
        if not 0.0 < prop < self.params.max_eps_pos:
            self._emit(iteration, "eps_pos", None, False, prop, in_bounds=False)
            return

        self.eps_pos_attempt += 1
        if self._accept_error_rate(eps_neg=self._eps_neg, eps_pos=prop):
            logger.debug("Iteration %d: accepted eps_pos=%.6g", iteration, prop)
            self._eps_pos = prop
            self.eps_pos_var += up
            self.eps_pos_accept += 1
            self._emit(iteration, "eps_pos", None, True, prop)
        else:
            self.eps_pos_var = max(self.eps_pos_var - down, UNDERFLOW)
            self._emit(iteration, "eps_pos", None, False, prop)

    def update_eps_neg(self, iteration: int) -> None:
        up, down = self._adaptation_steps(iteration)
        prop = self.sampler.sample_epsilon_neg(self._eps_neg, self.eps_neg_var)
        if not 0.0 < prop < self.params.max_eps_neg:
            self._emit(iteration, "eps_neg", None, False, prop, in_bounds=False)
            return

        self.eps_neg_attempt += 1
        if self._accept_error_rate(eps_neg=prop, eps_pos=self._eps_pos):
            logger.debug("Iteration %d: accepted eps_neg=%.6g", iteration, prop)
            self._eps_neg = prop
            self.eps_neg_var += up
            self.eps_neg_accept += 1
            self._emit(iteration, "eps_neg", None, True, prop)
        else:
            self.eps_neg_var = max(self.eps_neg_var - down, UNDERFLOW)
            self._emit(iteration, "eps_neg", None, False, prop)

    def _accept_error_rate(self, eps_neg: float, eps_pos: float) -> bool:
        """Evaluate the full cache under new error rates; commit it on acceptance."""
        for j in range(self.data.num_loci):
            for i in range(self.data.num_samples):
                self._llik_new[j, i] = self._marginal_llik(j, i, self._m[i], self._p[j], eps_neg, eps_pos)

        if self.sampler.sample_log_mh_acceptance() <= self._llik_new.sum() - self._llik_old.sum():
            self._llik_old[:] = self._llik_new
            return True
        return False

    def step(self, iteration: int) -> None:
        """Apply the four moves once, in order."""
        self.update_m(iteration)
        self.update_p(iteration)
        self.update_eps_pos(iteration)
        self.update_eps_neg(iteration)

"""Run one or more chains and record post burn-in draws."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from .chain import Chain
from .config import MCMCConfig
from .data import GenotypingData
from .logging_config import PerformanceLogger
from .lookup import Lookup
from .rng import RandomState, choose_rng
from .trace import ChainTrace

logger = logging.getLogger(__name__)


@dataclass
class ChainResult:
    """Draws recorded from a single chain."""
    chain_id: int
    coi: np.ndarray
    allele_freqs: List[np.ndarray]
    eps_pos: np.ndarray
    eps_neg: np.ndarray
    llik: np.ndarray
    burnin_llik: np.ndarray
    acceptance: Dict[str, object]
    trace: Optional[ChainTrace] = None

    @property
    def num_draws(self) -> int:
        return int(self.coi.shape[0])


@dataclass
class MCMCResult:
    """All chains of a run."""
    config_hash: str
    chains: List[ChainResult] = field(default_factory=list)
    sample_ids: Optional[List[str]] = None
    loci: Optional[List[str]] = None

    def pooled_coi(self) -> np.ndarray:
        return np.concatenate([chain.coi for chain in self.chains], axis=0)

    def pooled_allele_freqs(self) -> List[np.ndarray]:
        num_loci = len(self.chains[0].allele_freqs)
        return [
            np.concatenate([chain.allele_freqs[j] for chain in self.chains], axis=0)
            for j in range(num_loci)
        ]

    def pooled_eps_pos(self) -> np.ndarray:
        return np.concatenate([chain.eps_pos for chain in self.chains])

    def pooled_eps_neg(self) -> np.ndarray:
        return np.concatenate([chain.eps_neg for chain in self.chains])


def run_chain(
    data: GenotypingData,
    config: MCMCConfig,
    random_state: RandomState,
    chain_id: int = 0,
    lookup: Optional[Lookup] = None,
    record_trace: bool = False,
) -> ChainResult:
    """Run burn-in followed by ``config.run.samples`` recorded iterations.

    Iterations are numbered from 1 across burn-in and sampling so the
    adaptation step keeps shrinking after burn-in.
    """
    config.validate()
    params = config.parameters
    run = config.run
    lookup = lookup or Lookup.for_data(data, params)
    trace = ChainTrace() if record_trace else None
    chain = Chain(data, lookup, params, random_state, trace=trace)

    burnin_llik = np.empty(run.burnin)
    for t in range(1, run.burnin + 1):
        chain.step(t)
        burnin_llik[t - 1] = chain.get_llik()
        if t % 100 == 0:
            logger.debug("Chain %d burn-in %d/%d llik=%.3f", chain_id, t, run.burnin, burnin_llik[t - 1])

    num_draws = run.samples // run.thin
    coi = np.empty((num_draws, data.num_samples), dtype=np.int64)
    allele_freqs = [np.empty((num_draws, k)) for k in data.num_alleles]
    eps_pos = np.empty(num_draws)
    eps_neg = np.empty(num_draws)
    llik = np.empty(num_draws)

    draw = 0
    for s in range(1, run.samples + 1):
        chain.step(run.burnin + s)
        if s % run.thin != 0:
            continue
        state = chain.state()
        coi[draw] = state.m
        for j, freqs in enumerate(state.p):
            allele_freqs[j][draw] = freqs
        eps_pos[draw] = state.eps_pos
        eps_neg[draw] = state.eps_neg
        llik[draw] = state.llik
        draw += 1

    acceptance = chain.acceptance_rates()
    logger.info(
        "Chain %d finished: llik=%.3f eps_pos accept=%.3f eps_neg accept=%.3f",
        chain_id, chain.get_llik(), acceptance["eps_pos"], acceptance["eps_neg"],
    )

    return ChainResult(
        chain_id=chain_id,
        coi=coi,
        allele_freqs=allele_freqs,
        eps_pos=eps_pos,
        eps_neg=eps_neg,
        llik=llik,
        burnin_llik=burnin_llik,
        acceptance=acceptance,
        trace=trace,
    )


def run_mcmc(data: GenotypingData, config: MCMCConfig, record_trace: bool = False) -> MCMCResult:
    """Run ``config.run.num_chains`` independently seeded chains in sequence."""
    config.validate()
    root = choose_rng(config.seed)
    lookup = Lookup.for_data(data, config.parameters)
    result = MCMCResult(config_hash=config.config_hash(), sample_ids=data.sample_ids, loci=data.loci)

    with PerformanceLogger(logger, f"MCMC run {config.run_id} ({config.run.num_chains} chains)"):
        for chain_id in range(config.run.num_chains):
            chain_result = run_chain(
                data,
                config,
                root.spawn(chain_id + 1),
                chain_id=chain_id,
                lookup=lookup,
                record_trace=record_trace,
            )
            result.chains.append(chain_result)

    return result

"""Moire: Bayesian estimation of COI and allele frequencies from noisy genotypes."""

from __future__ import annotations

__version__ = "0.1.0"

# Core sampler
from .chain import Chain, ChainState
from .lookup import Lookup
from .sampler import Sampler
from .likelihood import marginal_log_likelihood

# Data and configuration
from .data import GenotypingData
from .config import MCMCConfig, Parameters, RunConfig, load_config, dump_config
from .rng import RandomState, choose_rng

# Driver, summaries and simulation
from .mcmc import ChainResult, MCMCResult, run_chain, run_mcmc
from .summarize import (
    calculate_heterozygosity,
    summarize_allele_frequencies,
    summarize_coi,
    summarize_error_rates,
    summarize_locus_heterozygosity,
)
from .simulate import SimulatedData, simulate_data

__all__ = [
    "__version__",
    # Core sampler
    "Chain",
    "ChainState",
    "Lookup",
    "Sampler",
    "marginal_log_likelihood",
    # Data and configuration
    "GenotypingData",
    "MCMCConfig",
    "Parameters",
    "RunConfig",
    "load_config",
    "dump_config",
    "RandomState",
    "choose_rng",
    # Driver
    "ChainResult",
    "MCMCResult",
    "run_chain",
    "run_mcmc",
    # Summaries
    "calculate_heterozygosity",
    "summarize_allele_frequencies",
    "summarize_coi",
    "summarize_error_rates",
    "summarize_locus_heterozygosity",
    # Simulation
    "SimulatedData",
    "simulate_data",
]

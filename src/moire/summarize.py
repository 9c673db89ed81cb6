"""
Posterior summaries of an MCMC run.

This module provides:
- Per-sample COI posterior means, medians and credible intervals
- Per-locus allele frequency summaries
- Expected heterozygosity per locus
- Error rate summaries
"""

from __future__ import annotations

from typing import List, Optional

import numpy as np
import pandas as pd

from .mcmc import MCMCResult


def _check_interval(lower: float, upper: float) -> None:
    if not 0.0 <= lower < upper <= 1.0:
        raise ValueError("credible interval bounds must satisfy 0 <= lower < upper <= 1")


def _labels(labels: Optional[List[str]], n: int, prefix: str) -> List[str]:
    return list(labels) if labels is not None else [f"{prefix}{k + 1}" for k in range(n)]


def calculate_heterozygosity(allele_frequencies: np.ndarray) -> np.ndarray:
    """Expected heterozygosity ``1 - sum(p^2)`` along the last axis."""
    freqs = np.asarray(allele_frequencies, dtype=float)
    return 1.0 - np.sum(freqs ** 2, axis=-1)


def summarize_coi(result: MCMCResult, lower: float = 0.025, upper: float = 0.975) -> pd.DataFrame:
    """Per-sample COI summary pooled over chains."""
    _check_interval(lower, upper)
    draws = result.pooled_coi()
    return pd.DataFrame({
        "sample_id": _labels(result.sample_ids, draws.shape[1], "S"),
        "post_coi_mean": draws.mean(axis=0),
        "post_coi_median": np.median(draws, axis=0),
        "post_coi_lower": np.quantile(draws, lower, axis=0),
        "post_coi_upper": np.quantile(draws, upper, axis=0),
    })


def summarize_allele_frequencies(result: MCMCResult, lower: float = 0.025, upper: float = 0.975) -> pd.DataFrame:
    """One row per locus and allele."""
    _check_interval(lower, upper)
    pooled = result.pooled_allele_freqs()
    loci = _labels(result.loci, len(pooled), "L")

    frames = []
    for locus, draws in zip(loci, pooled):
        frames.append(pd.DataFrame({
            "locus": locus,
            "allele": np.arange(draws.shape[1]),
            "post_allele_freq_mean": draws.mean(axis=0),
            "post_allele_freq_median": np.median(draws, axis=0),
            "post_allele_freq_lower": np.quantile(draws, lower, axis=0),
            "post_allele_freq_upper": np.quantile(draws, upper, axis=0),
        }))
    return pd.concat(frames, ignore_index=True)


def summarize_locus_heterozygosity(result: MCMCResult, lower: float = 0.025, upper: float = 0.975) -> pd.DataFrame:
    """Posterior of expected heterozygosity per locus."""
    _check_interval(lower, upper)
    pooled = result.pooled_allele_freqs()
    loci = _labels(result.loci, len(pooled), "L")

    rows = []
    for locus, draws in zip(loci, pooled):
        het = calculate_heterozygosity(draws)
        rows.append({
            "locus": locus,
            "post_het_mean": float(het.mean()),
            "post_het_median": float(np.median(het)),
            "post_het_lower": float(np.quantile(het, lower)),
            "post_het_upper": float(np.quantile(het, upper)),
        })
    return pd.DataFrame(rows)


def summarize_error_rates(result: MCMCResult, lower: float = 0.025, upper: float = 0.975) -> pd.DataFrame:
    _check_interval(lower, upper)
    rows = []
    for name, draws in (("eps_pos", result.pooled_eps_pos()), ("eps_neg", result.pooled_eps_neg())):
        rows.append({
            "parameter": name,
            "post_mean": float(draws.mean()),
            "post_median": float(np.median(draws)),
            "post_lower": float(np.quantile(draws, lower)),
            "post_upper": float(np.quantile(draws, upper)),
        })
    return pd.DataFrame(rows)

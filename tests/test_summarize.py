"""
Tests for posterior summaries.
"""

import numpy as np
import pandas as pd
import pytest

from moire.mcmc import ChainResult, MCMCResult
from moire.summarize import (
    calculate_heterozygosity,
    summarize_allele_frequencies,
    summarize_coi,
    summarize_error_rates,
    summarize_locus_heterozygosity,
)


@pytest.fixture
def result():
    """Two chains with hand-picked draws."""
    chains = []
    for chain_id in range(2):
        chains.append(ChainResult(
            chain_id=chain_id,
            coi=np.array([[1, 3], [2, 3], [1, 4], [2, 4]]) + chain_id,
            allele_freqs=[
                np.array([[0.5, 0.5]] * 4),
                np.array([[1.0, 0.0, 0.0]] * 4),
            ],
            eps_pos=np.full(4, 0.01 * (chain_id + 1)),
            eps_neg=np.full(4, 0.1),
            llik=np.zeros(4),
            burnin_llik=np.zeros(0),
            acceptance={},
        ))
    return MCMCResult(config_hash="abc", chains=chains, sample_ids=["a", "b"], loci=["L1", "L2"])


class TestHeterozygosity:

    def test_values(self):
        assert calculate_heterozygosity([0.5, 0.5]) == pytest.approx(0.5)
        assert calculate_heterozygosity([1.0, 0.0]) == pytest.approx(0.0)
        np.testing.assert_allclose(
            calculate_heterozygosity(np.array([[0.25] * 4, [1.0, 0, 0, 0]])),
            [0.75, 0.0],
        )


class TestSummaries:

    def test_coi_summary(self, result):
        df = summarize_coi(result)
        assert list(df["sample_id"]) == ["a", "b"]
        # pooled draws: sample a -> 1,2,1,2,2,3,2,3
        assert df.loc[0, "post_coi_mean"] == pytest.approx(2.0)
        assert df.loc[0, "post_coi_median"] == pytest.approx(2.0)
        assert (df["post_coi_lower"] <= df["post_coi_median"]).all()
        assert (df["post_coi_median"] <= df["post_coi_upper"]).all()

    def test_allele_frequency_summary(self, result):
        df = summarize_allele_frequencies(result)
        assert len(df) == 5
        assert list(df["locus"]) == ["L1", "L1", "L2", "L2", "L2"]
        np.testing.assert_allclose(df["post_allele_freq_mean"], [0.5, 0.5, 1.0, 0.0, 0.0])

    def test_heterozygosity_summary(self, result):
        df = summarize_locus_heterozygosity(result)
        np.testing.assert_allclose(df["post_het_mean"], [0.5, 0.0])

    def test_error_rate_summary(self, result):
        df = summarize_error_rates(result).set_index("parameter")
        assert df.loc["eps_pos", "post_mean"] == pytest.approx(0.015)
        assert df.loc["eps_neg", "post_median"] == pytest.approx(0.1)

    def test_default_labels(self, result):
        result.sample_ids = None
        result.loci = None
        assert list(summarize_coi(result)["sample_id"]) == ["S1", "S2"]
        assert set(summarize_allele_frequencies(result)["locus"]) == {"L1", "L2"}

    @pytest.mark.parametrize("bounds", [(0.5, 0.5), (-0.1, 0.9), (0.1, 1.1)])
    def test_invalid_interval(self, result, bounds):
        with pytest.raises(ValueError):
            summarize_coi(result, *bounds)

    def test_returns_dataframes(self, result):
        for func in (summarize_coi, summarize_allele_frequencies, summarize_locus_heterozygosity, summarize_error_rates):
            assert isinstance(func(result), pd.DataFrame)

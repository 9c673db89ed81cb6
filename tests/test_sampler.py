"""
Tests for proposal and latent genotype draws.
"""

import numpy as np
import pytest
from scipy import stats

from moire.rng import choose_rng
from moire.sampler import Sampler


class TestSampler:

    def setup_method(self):
        self.sampler = Sampler(choose_rng(123))

    def test_coi_delta_mean_magnitude(self):
        deltas = np.array([self.sampler.sample_coi_delta(2.0) for _ in range(20000)])
        assert np.abs(deltas).mean() == pytest.approx(2.0, rel=0.05)
        # symmetric around zero
        assert abs(deltas.mean()) < 0.1

    def test_coi_delta_zero_mean_never_moves(self):
        assert all(self.sampler.sample_coi_delta(0.0) == 0 for _ in range(100))

    def test_coi_delta_can_be_zero(self):
        deltas = [self.sampler.sample_coi_delta(1.0) for _ in range(1000)]
        assert 0 in deltas

    def test_allele_frequency_proposal_is_simplex(self):
        p = np.array([0.7, 0.2, 0.1, 0.0])
        for _ in range(200):
            prop = self.sampler.sample_allele_frequencies(p, 2.0)
            assert prop.shape == p.shape
            assert (prop >= 0).all()
            assert prop.sum() == pytest.approx(1.0)

    def test_small_variance_stays_close(self):
        p = np.array([0.5, 0.3, 0.2])
        prop = self.sampler.sample_allele_frequencies(p, 1e-8)
        np.testing.assert_allclose(prop, p, atol=1e-3)

    def test_epsilon_random_walk(self):
        draws = np.array([self.sampler.sample_epsilon(0.1, 0.0025) for _ in range(5000)])
        assert draws.mean() == pytest.approx(0.1, abs=0.005)
        assert draws.std() == pytest.approx(0.05, rel=0.1)

    def test_sample_genotype_shape_and_totals(self):
        draws = self.sampler.sample_genotype(4, np.array([0.2, 0.3, 0.5]), 25)
        assert draws.shape == (25, 3)
        assert (draws.sum(axis=1) == 4).all()

    def test_log_mh_acceptance_is_non_positive(self):
        draws = np.array([self.sampler.sample_log_mh_acceptance() for _ in range(1000)])
        assert np.isfinite(draws).all()
        assert (draws <= 0).all()
        # log(U) has an Exponential(1) tail
        assert (-draws).mean() == pytest.approx(1.0, rel=0.1)

    def test_same_seed_same_draws(self):
        a = Sampler(choose_rng(5))
        b = Sampler(choose_rng(5))
        for _ in range(20):
            assert a.sample_coi_delta(1.5) == b.sample_coi_delta(1.5)
            assert a.sample_log_mh_acceptance() == b.sample_log_mh_acceptance()


class TestPriors:

    def test_epsilon_log_prior(self):
        assert Sampler.epsilon_log_prior(0.1, 1.0, 10.0) == pytest.approx(stats.beta.logpdf(0.1, 1.0, 10.0))

    def test_coi_log_prior(self):
        assert Sampler.coi_log_prior(3, 2.0) == pytest.approx(stats.poisson.logpmf(3, 2.0))

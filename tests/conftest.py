"""
Test configuration and fixtures for moire tests.
"""

import logging
import shutil
import tempfile
from pathlib import Path

import numpy as np
import pytest

from moire.config import MCMCConfig, Parameters, RunConfig
from moire.data import GenotypingData
from moire.lookup import Lookup
from moire.rng import choose_rng
from moire.simulate import simulate_data


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers installed by CLI invocations."""
    yield
    logger = logging.getLogger("moire")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def seed():
    """Fixed random seed for reproducible tests."""
    return 42


@pytest.fixture
def temp_dir():
    """Temporary directory for test outputs."""
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir)
    shutil.rmtree(temp_dir)


@pytest.fixture
def small_data():
    """Two loci (3 and 2 alleles), four samples."""
    return GenotypingData.from_nested(
        [
            [[1, 0, 0], [1, 1, 0], [0, 0, 1], [1, 1, 1]],
            [[1, 0], [1, 1], [0, 1], [1, 1]],
        ],
        observed_coi=[1, 2, 1, 3],
    )


@pytest.fixture
def parameters():
    """Small sampler parameters for fast tests."""
    return Parameters(
        max_coi=6,
        eps_pos_0=0.01,
        eps_neg_0=0.05,
        max_eps_pos=0.2,
        max_eps_neg=0.2,
        importance_sampling_depth=50,
    )


@pytest.fixture
def lookup(small_data, parameters):
    return Lookup.for_data(small_data, parameters)


@pytest.fixture
def random_state(seed):
    return choose_rng(seed)


@pytest.fixture
def simulated(seed):
    """Simulated data set with known truth."""
    rng = np.random.default_rng(seed)
    return simulate_data(
        mean_coi=2.0,
        locus_freq_alphas=[[1.0] * 4 for _ in range(3)],
        num_samples=12,
        eps_pos=0.01,
        eps_neg=0.05,
        rng=rng,
    )


@pytest.fixture
def mcmc_config(parameters):
    """Short run configuration."""
    return MCMCConfig(
        run_id="test_run",
        seed=11,
        parameters=parameters,
        run=RunConfig(burnin=5, samples=10, thin=2, num_chains=2),
    )

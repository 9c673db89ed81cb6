"""Configuration management for moire runs."""

from __future__ import annotations

import hashlib
import json
import yaml
from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import Any, Dict

from .exceptions import ConfigurationError

# Robbins-Monro target acceptance rate for random-walk Metropolis.
TARGET_ACCEPTANCE = 0.23

# Smallest proposal variance the adaptation may reach.
UNDERFLOW = 1e-100

# Added to every reweighted allele frequency before renormalizing.
REWEIGHT_FLOOR = 1e-6

# Probabilities are clamped to this value before taking logs.
LOG_FLOOR = 1e-12


@dataclass
class Parameters:
    """Sampler parameters shared by every chain of a run."""
    max_coi: int = 25
    eps_pos_0: float = 0.01
    eps_neg_0: float = 0.1
    max_eps_pos: float = 0.2
    max_eps_neg: float = 0.2
    importance_sampling_depth: int = 100
    target_acceptance: float = TARGET_ACCEPTANCE
    m_prop_mean_0: float = 1.0
    p_prop_var_0: float = 1.0
    eps_pos_var_0: float = 0.05
    eps_neg_var_0: float = 0.05

    def validate(self) -> None:
        """Raise ``ConfigurationError`` if any value is out of range."""
        if self.max_coi < 1:
            raise ConfigurationError(
                f"max_coi must be positive, got {self.max_coi}",
                {"max_coi": self.max_coi},
            )
        if self.importance_sampling_depth < 1:
            raise ConfigurationError(
                "importance_sampling_depth must be positive",
                {"importance_sampling_depth": self.importance_sampling_depth},
            )
        for name in ("max_eps_pos", "max_eps_neg"):
            value = getattr(self, name)
            if not 0.0 < value <= 1.0:
                raise ConfigurationError(f"{name} must lie in (0, 1], got {value}", {name: value})
        # A zero starting rate is allowed so error-free models can be explored.
        if not 0.0 <= self.eps_pos_0 < self.max_eps_pos:
            raise ConfigurationError(
                f"eps_pos_0 must lie in [0, {self.max_eps_pos}), got {self.eps_pos_0}",
                {"eps_pos_0": self.eps_pos_0},
            )
        if not 0.0 <= self.eps_neg_0 < self.max_eps_neg:
            raise ConfigurationError(
                f"eps_neg_0 must lie in [0, {self.max_eps_neg}), got {self.eps_neg_0}",
                {"eps_neg_0": self.eps_neg_0},
            )
        if not 0.0 < self.target_acceptance < 1.0:
            raise ConfigurationError(
                "target_acceptance must lie in (0, 1)",
                {"target_acceptance": self.target_acceptance},
            )
        if self.m_prop_mean_0 < 0:
            raise ConfigurationError("m_prop_mean_0 must be non-negative", {"m_prop_mean_0": self.m_prop_mean_0})
        for name in ("p_prop_var_0", "eps_pos_var_0", "eps_neg_var_0"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive", {name: getattr(self, name)})


@dataclass
class RunConfig:
    """Settings for the driver loop."""
    burnin: int = 1000
    samples: int = 1000
    thin: int = 1
    num_chains: int = 1

    def validate(self) -> None:
        if self.burnin < 0:
            raise ConfigurationError("burnin must be non-negative", {"burnin": self.burnin})
        if self.samples < 1:
            raise ConfigurationError("samples must be positive", {"samples": self.samples})
        if self.thin < 1:
            raise ConfigurationError("thin must be positive", {"thin": self.thin})
        if self.thin > self.samples:
            raise ConfigurationError(
                "thin must not exceed samples",
                {"thin": self.thin, "samples": self.samples},
            )
        if self.num_chains < 1:
            raise ConfigurationError("num_chains must be positive", {"num_chains": self.num_chains})


@dataclass
class MCMCConfig:
    """Top-level run configuration."""
    run_id: str
    seed: int
    parameters: Parameters = field(default_factory=Parameters)
    run: RunConfig = field(default_factory=RunConfig)

    def validate(self) -> None:
        self.parameters.validate()
        self.run.validate()

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return asdict(self)

    def config_hash(self) -> str:
        """Compute deterministic hash of configuration."""
        config_str = json.dumps(self.to_dict(), sort_keys=True)
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]


def config_from_dict(data: Dict[str, Any]) -> MCMCConfig:
    """Build and validate an ``MCMCConfig`` from a plain mapping."""
    try:
        config = MCMCConfig(
            run_id=data['run_id'],
            seed=int(data['seed']),
            parameters=Parameters(**data.get('parameters', {})),
            run=RunConfig(**data.get('run', {})),
        )
    except (KeyError, TypeError) as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc
    config.validate()
    return config


def load_config(path: str | Path) -> MCMCConfig:
    """Load configuration from YAML file."""
    with open(path, 'r') as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} does not contain a mapping")
    return config_from_dict(data)


def dump_config(config: MCMCConfig, path: str | Path) -> None:
    """Save configuration to YAML file."""
    with open(path, 'w') as f:
        yaml.safe_dump(config.to_dict(), f, default_flow_style=False)

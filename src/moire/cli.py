"""Command-line interface for moire."""

from __future__ import annotations

import json
import math
from contextlib import ExitStack
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Optional

import click
import numpy as np
import pandas as pd

from .config import MCMCConfig, load_config
from .data import GenotypingData
from .exceptions import MoireError
from .logging_config import setup_logging
from .mcmc import run_mcmc
from .rng import choose_rng
from .simulate import simulate_data
from .summarize import (
    summarize_allele_frequencies,
    summarize_coi,
    summarize_error_rates,
    summarize_locus_heterozygosity,
)

DEFAULT_CONFIG_NAME = "default.yaml"


@dataclass(slots=True)
class CLIContext:
    """Shared CLI configuration."""

    seed: int
    config_override: Optional[Path]


def _load_run_config(config_option: Optional[Path], seed: int) -> MCMCConfig:
    """Load a run configuration, falling back to the packaged default."""
    with ExitStack() as stack:
        if config_option:
            config_path = Path(config_option)
            if not config_path.exists():
                raise click.ClickException(f"Configuration file not found: {config_path}")
        else:
            resource = resources.files("moire.assets.configs") / DEFAULT_CONFIG_NAME
            config_path = stack.enter_context(resources.as_file(resource))

        try:
            config = load_config(config_path)
        except MoireError as exc:
            raise click.ClickException(f"Failed to load configuration {config_path}: {exc}") from exc

    config.seed = seed
    return config


def _json_ready(payload: Any) -> Any:
    """Recursively convert numpy values to native Python types for JSON output.

    Non-finite floats become ``None`` so the output stays strict JSON.
    """
    if isinstance(payload, dict):
        return {key: _json_ready(value) for key, value in payload.items()}
    if isinstance(payload, (list, tuple)):
        return [_json_ready(item) for item in payload]
    if isinstance(payload, np.ndarray):
        return _json_ready(payload.tolist())
    if isinstance(payload, (float, np.floating)):
        value = float(payload)
        return value if math.isfinite(value) else None
    if isinstance(payload, np.integer):
        return int(payload)
    return payload


def _write_json(payload: Dict[str, Any], path: Path) -> None:
    path.write_text(json.dumps(_json_ready(payload), indent=2, allow_nan=False), encoding="utf-8")


@click.group()
@click.option("--seed", default=7, show_default=True, type=int, help="Seed for deterministic runs.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    help="Path to a run configuration file. Defaults to the packaged configuration.",
)
@click.option(
    "--log-level",
    default="INFO",
    show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write log records to this file.",
)
@click.pass_context
def main(
    ctx: click.Context,
    seed: int,
    config_path: Optional[Path],
    log_level: str,
    log_file: Optional[Path],
) -> None:
    """Moire: COI and allele frequency estimation from presence/absence genotypes."""
    setup_logging(level=log_level, log_file=log_file)
    ctx.obj = CLIContext(seed=seed, config_override=config_path)


@main.command("simulate")
@click.option("--num-samples", default=100, show_default=True, type=int)
@click.option("--num-loci", default=10, show_default=True, type=int)
@click.option("--num-alleles", default=5, show_default=True, type=int)
@click.option("--alpha", default=1.0, show_default=True, type=float, help="Symmetric Dirichlet concentration.")
@click.option("--mean-coi", default=3.0, show_default=True, type=float)
@click.option("--eps-pos", default=0.01, show_default=True, type=float)
@click.option("--eps-neg", default=0.1, show_default=True, type=float)
@click.option(
    "--out-dir",
    default=Path("data") / "simulated",
    show_default=True,
    type=click.Path(path_type=Path),
)
@click.pass_obj
def simulate_cmd(
    obj: CLIContext,
    num_samples: int,
    num_loci: int,
    num_alleles: int,
    alpha: float,
    mean_coi: float,
    eps_pos: float,
    eps_neg: float,
    out_dir: Path,
) -> None:
    """Simulate genotyping data and write it as a long table."""
    rng = choose_rng(obj.seed).generator
    try:
        simulated = simulate_data(
            mean_coi=mean_coi,
            locus_freq_alphas=[[alpha] * num_alleles for _ in range(num_loci)],
            num_samples=num_samples,
            eps_pos=eps_pos,
            eps_neg=eps_neg,
            rng=rng,
        )
    except MoireError as exc:
        raise click.ClickException(str(exc)) from exc

    out_dir.mkdir(parents=True, exist_ok=True)
    genotypes_path = out_dir / "genotypes.csv"
    truth_path = out_dir / "truth.json"
    simulated.data.to_long_table().to_csv(genotypes_path, index=False)
    _write_json(
        {
            "seed": obj.seed,
            "mean_coi": mean_coi,
            "eps_pos": eps_pos,
            "eps_neg": eps_neg,
            "sample_ids": simulated.data.sample_ids,
            "loci": simulated.data.loci,
            "sample_cois": simulated.sample_cois,
            "allele_freqs": simulated.allele_freqs,
        },
        truth_path,
    )
    click.echo(f"Wrote {genotypes_path}")
    click.echo(f"Wrote {truth_path}")


@main.command("run")
@click.option(
    "--data",
    "data_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Long table CSV with sample_id, locus, allele, is_present columns.",
)
@click.option("--burnin", type=int, help="Override the configured burn-in length.")
@click.option("--samples", type=int, help="Override the configured number of samples.")
@click.option(
    "--out-dir",
    default=Path("reports"),
    show_default=True,
    type=click.Path(path_type=Path),
)
@click.pass_obj
def run_cmd(
    obj: CLIContext,
    data_path: Path,
    burnin: Optional[int],
    samples: Optional[int],
    out_dir: Path,
) -> None:
    """Run the sampler and write posterior summaries."""
    config = _load_run_config(obj.config_override, obj.seed)
    if burnin is not None:
        config.run.burnin = burnin
    if samples is not None:
        config.run.samples = samples

    try:
        data = GenotypingData.from_long_table(pd.read_csv(data_path))
        result = run_mcmc(data, config)
    except MoireError as exc:
        raise click.ClickException(str(exc)) from exc

    out_dir.mkdir(parents=True, exist_ok=True)
    outputs = {
        "coi": out_dir / "coi_summary.csv",
        "allele_freqs": out_dir / "allele_freq_summary.csv",
        "heterozygosity": out_dir / "heterozygosity_summary.csv",
        "error_rates": out_dir / "error_rate_summary.csv",
        "run_context": out_dir / "run_context.json",
    }
    summarize_coi(result).to_csv(outputs["coi"], index=False)
    summarize_allele_frequencies(result).to_csv(outputs["allele_freqs"], index=False)
    summarize_locus_heterozygosity(result).to_csv(outputs["heterozygosity"], index=False)
    summarize_error_rates(result).to_csv(outputs["error_rates"], index=False)

    _write_json(
        {
            "seed": obj.seed,
            "config_hash": result.config_hash,
            "config": config.to_dict(),
            "data": str(data_path),
            "acceptance": [chain.acceptance for chain in result.chains],
            "final_llik": [float(chain.llik[-1]) for chain in result.chains],
        },
        outputs["run_context"],
    )

    for name, path in outputs.items():
        click.echo(f"{name}: {path}")


if __name__ == "__main__":  # pragma: no cover
    main()

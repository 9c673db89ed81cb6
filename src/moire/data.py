"""Observed presence/absence genotyping data."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from .exceptions import DataValidationError

LONG_TABLE_COLUMNS = ("sample_id", "locus", "allele", "is_present")


@dataclass(frozen=True, eq=False)
class GenotypingData:
    """Binary allele observations for every locus and sample.

    ``observed_alleles[j]`` is an ``(num_samples, num_alleles[j])`` int8
    array; row ``i`` records which alleles were detected in sample ``i``.
    """

    observed_alleles: List[np.ndarray]
    observed_coi: np.ndarray
    sample_ids: Optional[List[str]] = None
    loci: Optional[List[str]] = None

    def __post_init__(self):
        arrays = [np.array(locus, dtype=np.int8, copy=True) for locus in self.observed_alleles]
        for array in arrays:
            array.setflags(write=False)
        coi = np.array(self.observed_coi, dtype=np.int64, copy=True)
        coi.setflags(write=False)
        object.__setattr__(self, "observed_alleles", arrays)
        object.__setattr__(self, "observed_coi", coi)
        self.validate()

    @property
    def num_loci(self) -> int:
        return len(self.observed_alleles)

    @property
    def num_samples(self) -> int:
        return int(self.observed_alleles[0].shape[0])

    @property
    def num_alleles(self) -> List[int]:
        return [int(locus.shape[1]) for locus in self.observed_alleles]

    def validate(self) -> None:
        """Raise ``DataValidationError`` when dimensions or values are inconsistent."""
        if len(self.observed_alleles) == 0:
            raise DataValidationError("genotyping data must contain at least one locus")

        for j, locus in enumerate(self.observed_alleles):
            if locus.ndim != 2:
                raise DataValidationError(
                    f"locus {j} must be a (samples, alleles) matrix",
                    {"locus": j, "shape": locus.shape},
                )
            if locus.shape[1] == 0:
                raise DataValidationError(f"locus {j} has no alleles", {"locus": j})
            if not np.isin(locus, (0, 1)).all():
                raise DataValidationError(f"locus {j} contains non-binary observations", {"locus": j})

        sample_counts = {locus.shape[0] for locus in self.observed_alleles}
        if len(sample_counts) != 1:
            raise DataValidationError(
                "all loci must have the same number of samples",
                {"sample_counts": sorted(sample_counts)},
            )
        if self.num_samples == 0:
            raise DataValidationError("genotyping data must contain at least one sample")

        if self.observed_coi.shape != (self.num_samples,):
            raise DataValidationError(
                "observed_coi must have one entry per sample",
                {"expected": self.num_samples, "got": self.observed_coi.shape},
            )
        if (self.observed_coi < 1).any():
            raise DataValidationError("initial COI values must be at least 1")

        if self.sample_ids is not None and len(self.sample_ids) != self.num_samples:
            raise DataValidationError("sample_ids length does not match the number of samples")
        if self.loci is not None and len(self.loci) != self.num_loci:
            raise DataValidationError("loci length does not match the number of loci")

    @classmethod
    def from_nested(
        cls,
        data: Sequence[Sequence[Sequence[int]]],
        observed_coi: Optional[Sequence[int]] = None,
        sample_ids: Optional[List[str]] = None,
        loci: Optional[List[str]] = None,
    ) -> "GenotypingData":
        """Build from nested ``[locus][sample][allele]`` lists.

        When ``observed_coi`` is omitted, each sample starts at the largest
        number of alleles it shows at any locus (at least 1).
        """
        try:
            arrays = [np.asarray(locus, dtype=np.int8) for locus in data]
        except ValueError as exc:
            raise DataValidationError(f"ragged genotype data: {exc}") from exc
        if observed_coi is None:
            try:
                observed_coi = naive_coi(arrays)
            except ValueError as exc:
                raise DataValidationError(f"cannot derive initial COI: {exc}") from exc
        return cls(observed_alleles=arrays, observed_coi=np.asarray(observed_coi), sample_ids=sample_ids, loci=loci)

    @classmethod
    def from_long_table(
        cls,
        df: pd.DataFrame,
        observed_coi: Optional[Sequence[int]] = None,
    ) -> "GenotypingData":
        """Build from a long table with ``sample_id, locus, allele, is_present`` columns."""
        missing = [col for col in LONG_TABLE_COLUMNS if col not in df.columns]
        if missing:
            raise DataValidationError(f"missing required columns: {missing}", {"missing": missing})

        sample_ids = list(pd.unique(df["sample_id"]))
        loci = list(pd.unique(df["locus"]))
        arrays = []
        for locus in loci:
            frame = df[df["locus"] == locus]
            wide = frame.pivot_table(
                index="sample_id",
                columns="allele",
                values="is_present",
                aggfunc="max",
                fill_value=0,
            )
            if len(wide) != len(sample_ids):
                raise DataValidationError(
                    f"locus {locus} is missing observations for some samples",
                    {"locus": locus},
                )
            wide = wide.reindex(index=sample_ids)
            arrays.append(wide.to_numpy(dtype=np.int8))

        return cls.from_nested(
            arrays,
            observed_coi=observed_coi,
            sample_ids=[str(s) for s in sample_ids],
            loci=[str(locus) for locus in loci],
        )

    def to_long_table(self) -> pd.DataFrame:
        """Inverse of ``from_long_table``."""
        sample_ids = self.sample_ids or [f"S{i + 1}" for i in range(self.num_samples)]
        loci = self.loci or [f"L{j + 1}" for j in range(self.num_loci)]
        rows = []
        for j, locus in enumerate(self.observed_alleles):
            for i in range(self.num_samples):
                for k in range(locus.shape[1]):
                    rows.append({
                        "sample_id": sample_ids[i],
                        "locus": loci[j],
                        "allele": k,
                        "is_present": int(locus[i, k]),
                    })
        return pd.DataFrame(rows, columns=list(LONG_TABLE_COLUMNS))

    def empirical_allele_frequencies(self) -> List[np.ndarray]:
        """Per-locus fraction of all detections that fall on each allele."""
        freqs = []
        for locus in self.observed_alleles:
            counts = locus.sum(axis=0).astype(float)
            total = counts.sum()
            if total > 0:
                freqs.append(counts / total)
            else:
                freqs.append(np.full(locus.shape[1], 1.0 / locus.shape[1]))
        return freqs

    def clamp_coi(self, max_coi: int) -> np.ndarray:
        """Initial COI clipped to ``[1, max_coi]``."""
        return np.clip(self.observed_coi, 1, max_coi).astype(np.int64)


def naive_coi(observed_alleles: Sequence[np.ndarray]) -> np.ndarray:
    """Largest per-locus allele count for each sample, floored at 1."""
    per_locus = np.stack([np.asarray(locus).sum(axis=1) for locus in observed_alleles])
    return np.maximum(per_locus.max(axis=0), 1).astype(np.int64)

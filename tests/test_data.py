"""
Tests for genotyping data construction and validation.
"""

import numpy as np
import pandas as pd
import pytest

from moire.data import GenotypingData, naive_coi
from moire.exceptions import DataValidationError


class TestGenotypingData:

    def test_dimensions(self, small_data):
        assert small_data.num_loci == 2
        assert small_data.num_samples == 4
        assert small_data.num_alleles == [3, 2]

    def test_arrays_are_read_only(self, small_data):
        with pytest.raises(ValueError):
            small_data.observed_alleles[0][0, 0] = 0
        with pytest.raises(ValueError):
            small_data.observed_coi[0] = 5

    def test_zero_loci_rejected(self):
        with pytest.raises(DataValidationError):
            GenotypingData(observed_alleles=[], observed_coi=np.array([1]))

    def test_zero_samples_rejected(self):
        with pytest.raises(DataValidationError):
            GenotypingData(observed_alleles=[np.zeros((0, 2))], observed_coi=np.array([], dtype=int))

    def test_sample_count_mismatch_rejected(self):
        with pytest.raises(DataValidationError):
            GenotypingData(
                observed_alleles=[np.ones((3, 2)), np.ones((2, 2))],
                observed_coi=np.ones(3, dtype=int),
            )

    def test_coi_length_mismatch_rejected(self):
        with pytest.raises(DataValidationError):
            GenotypingData(observed_alleles=[np.ones((3, 2))], observed_coi=np.ones(2, dtype=int))

    def test_non_binary_rejected(self):
        with pytest.raises(DataValidationError):
            GenotypingData.from_nested([[[2, 0], [1, 0]]], observed_coi=[1, 1])

    def test_initial_coi_below_one_rejected(self):
        with pytest.raises(DataValidationError):
            GenotypingData.from_nested([[[1, 0], [1, 0]]], observed_coi=[0, 1])

    def test_ragged_alleles_rejected(self):
        with pytest.raises(DataValidationError):
            GenotypingData.from_nested([[[1, 0], [1, 0, 1]]], observed_coi=[1, 1])

    def test_label_length_mismatch_rejected(self):
        with pytest.raises(DataValidationError):
            GenotypingData.from_nested([[[1, 0]]], observed_coi=[1], sample_ids=["a", "b"])


class TestDerivedQuantities:

    def test_empirical_allele_frequencies(self, small_data):
        freqs = small_data.empirical_allele_frequencies()
        # locus 0 detections per allele: 3, 2, 2
        np.testing.assert_allclose(freqs[0], [3 / 7, 2 / 7, 2 / 7])
        np.testing.assert_allclose(freqs[1], [3 / 6, 3 / 6])

    def test_locus_without_detections_is_uniform(self):
        data = GenotypingData.from_nested([[[0, 0, 0], [0, 0, 0]]], observed_coi=[1, 1])
        np.testing.assert_allclose(data.empirical_allele_frequencies()[0], [1 / 3] * 3)

    def test_naive_coi_default(self):
        data = GenotypingData.from_nested(
            [
                [[1, 1, 0], [0, 0, 0]],
                [[1, 0], [1, 0]],
            ]
        )
        np.testing.assert_array_equal(data.observed_coi, [2, 1])
        np.testing.assert_array_equal(naive_coi(data.observed_alleles), [2, 1])

    def test_clamp_coi(self, small_data):
        np.testing.assert_array_equal(small_data.clamp_coi(2), [1, 2, 1, 2])


class TestLongTable:

    def test_from_long_table(self):
        df = pd.DataFrame({
            "sample_id": ["b", "b", "a", "a", "b", "b", "a", "a"],
            "locus": ["L1"] * 4 + ["L2"] * 4,
            "allele": [0, 1, 0, 1, 0, 1, 0, 1],
            "is_present": [1, 0, 1, 1, 0, 1, 1, 0],
        })
        data = GenotypingData.from_long_table(df)

        assert data.sample_ids == ["b", "a"]
        assert data.loci == ["L1", "L2"]
        np.testing.assert_array_equal(data.observed_alleles[0], [[1, 0], [1, 1]])
        np.testing.assert_array_equal(data.observed_alleles[1], [[0, 1], [1, 0]])
        np.testing.assert_array_equal(data.observed_coi, [1, 2])

    def test_long_table_round_trip(self, small_data):
        rebuilt = GenotypingData.from_long_table(small_data.to_long_table(), observed_coi=small_data.observed_coi)
        for original, copy in zip(small_data.observed_alleles, rebuilt.observed_alleles):
            np.testing.assert_array_equal(original, copy)

    def test_missing_columns_rejected(self):
        with pytest.raises(DataValidationError):
            GenotypingData.from_long_table(pd.DataFrame({"sample_id": ["a"], "locus": ["L1"]}))

    def test_missing_sample_at_locus_rejected(self):
        df = pd.DataFrame({
            "sample_id": ["a", "b", "a"],
            "locus": ["L1", "L1", "L2"],
            "allele": [0, 0, 0],
            "is_present": [1, 1, 1],
        })
        with pytest.raises(DataValidationError):
            GenotypingData.from_long_table(df)

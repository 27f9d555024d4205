"""
Tests for HUD region preprocessing.
"""

import numpy as np
import pytest

from hudreader.errors import AcquisitionUnavailable
from hudreader.preprocess import binarize, crop_region, preprocess_region


class TestCropRegion:

    def test_top_left_fraction(self):
        frame = np.zeros((100, 200, 3), dtype=np.uint8)
        region = crop_region(frame)
        assert region.shape == (80, 50, 3)

    def test_floors_dimensions(self):
        frame = np.zeros((11, 13, 3), dtype=np.uint8)
        assert crop_region(frame).shape[:2] == (8, 3)

    def test_too_small_frame(self):
        frame = np.zeros((10, 3, 3), dtype=np.uint8)
        with pytest.raises(AcquisitionUnavailable):
            crop_region(frame)


class TestBinarize:

    def test_thresholds(self):
        # Channel means: 200, 30, 100, 140, 60
        image = np.array([[
            [200, 200, 200],
            [10, 30, 50],
            [90, 100, 110],
            [140, 140, 140],
            [60, 60, 60],
        ]], dtype=np.uint8)
        out = binarize(image)
        assert out.dtype == np.uint8
        assert out.shape == (1, 5)
        assert out.tolist() == [[255, 0, 100, 140, 60]]

    def test_mid_tone_mean_rounded(self):
        image = np.array([[[100, 100, 101]]], dtype=np.uint8)
        assert binarize(image)[0, 0] == 100

    def test_grayscale_input(self):
        image = np.array([[0, 59, 61, 141]], dtype=np.uint8)
        assert binarize(image).tolist() == [[0, 0, 61, 255]]

    def test_alpha_ignored(self):
        image = np.array([[[200, 200, 200, 0]]], dtype=np.uint8)
        assert binarize(image)[0, 0] == 255


class TestPreprocessRegion:

    def test_output_size_and_values(self):
        frame = np.full((120, 160, 3), 255, dtype=np.uint8)
        frame[:, :20] = 0
        out = preprocess_region(frame)
        # Crop is 40 x 96, scaled 3x
        assert out.shape == (288, 120)
        assert out.dtype == np.uint8
        assert out[10, 5] == 0
        assert out[10, 110] == 255

    def test_empty_frame(self):
        with pytest.raises(AcquisitionUnavailable):
            preprocess_region(np.zeros((0, 0, 3), dtype=np.uint8))

    def test_none_frame(self):
        with pytest.raises(AcquisitionUnavailable):
            preprocess_region(None)

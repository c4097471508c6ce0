"""Tests for post-processing of float buffers into 8-bit images."""

import numpy as np
import pytest

from spheretracer.imaging.tonemap import (
    apply_gamma,
    encode_albedo,
    encode_color,
    encode_depth,
    encode_normal,
    normalize_depth,
    quantize,
    tone_map_reinhard,
)


class TestColorEncoding:
    """Tests for the colour pipeline."""

    def test_black_is_zero(self):
        assert (encode_color(np.zeros((2, 2, 3), dtype=np.float32)) == 0).all()

    def test_reinhard_bounds(self):
        values = np.array([0.0, 1.0, 3.0, 1e6], dtype=np.float32)
        mapped = tone_map_reinhard(values)
        assert mapped[0] == 0.0
        assert abs(mapped[1] - 0.5) < 1e-6
        assert abs(mapped[2] - 0.75) < 1e-6
        assert mapped[3] < 1.0

    def test_negative_clamped(self):
        assert tone_map_reinhard(np.array([-2.0], dtype=np.float32))[0] == 0.0

    def test_gamma_is_square_root(self):
        assert abs(apply_gamma(np.array([0.25], dtype=np.float32))[0] - 0.5) < 1e-6

    def test_monotonic(self):
        values = np.linspace(0.0, 50.0, 2000, dtype=np.float32).reshape(1, -1, 1)
        encoded = encode_color(np.repeat(values, 3, axis=2)).astype(int)
        assert (np.diff(encoded[0, :, 0]) >= 0).all()

    def test_bright_saturates_at_255(self):
        encoded = encode_color(np.full((1, 1, 3), 1e9, dtype=np.float32))
        assert (encoded == 255).all()

    def test_quantize(self):
        q = quantize(np.array([0.0, 0.5, 1.0, 2.0, np.nan], dtype=np.float32))
        assert q.tolist() == [0, 128, 255, 255, 0]
        assert q.dtype == np.uint8


class TestAuxiliaryEncoding:
    """Tests for the albedo, normal and depth encodings."""

    def test_albedo(self):
        albedo = np.array([[[0.0, 0.25, 1.0]]], dtype=np.float32)
        assert encode_albedo(albedo).tolist() == [[[0, 128, 255]]]

    def test_normal(self):
        normals = np.array([[[-1.0, 0.0, 1.0]]], dtype=np.float32)
        assert encode_normal(normals).tolist() == [[[0, 128, 255]]]

    def test_flat_depth_maps_to_zero(self):
        assert (normalize_depth(np.full((3, 3), 7.0, dtype=np.float32)) == 0.0).all()

    def test_depth_log_scale(self):
        depth = np.array([[1.0, 10.0, 100.0]], dtype=np.float32)
        normalized = normalize_depth(depth)
        assert np.allclose(normalized, [[0.0, 0.5, 1.0]], atol=1e-6)

    def test_non_finite_depth_is_far(self):
        depth = np.array([[1.0, np.inf, np.nan, 1e4]], dtype=np.float32)
        normalized = normalize_depth(depth)
        assert normalized[0, 0] == 0.0
        assert np.allclose(normalized[0, 1:], 1.0)

    def test_zero_depth_raised_to_floor(self):
        normalized = normalize_depth(np.array([[0.0, 1e-3, 1.0]], dtype=np.float64))
        assert normalized[0, 0] == normalized[0, 1] == 0.0

    def test_depth_image_is_rgb(self):
        encoded = encode_depth(np.array([[1.0, 100.0]], dtype=np.float32))
        assert encoded.shape == (1, 2, 3)
        assert encoded[0, 0].tolist() == [0, 0, 0]
        assert encoded[0, 1].tolist() == [255, 255, 255]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

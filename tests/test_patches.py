"""
Patch extraction tests: grayscale conversion, grid layout, value ranges and entropy
"""
import math

import numpy as np
import pytest

from aedoom_ai.config import Config
from aedoom_ai.perception.frame_source import StaticFrameSource, split_scene
from aedoom_ai.perception.patches import PatchExtractor, to_grayscale
from aedoom_ai.utils.math_utils import patch_entropy


def test_grid_shape_discards_partial_cells():
    extractor = PatchExtractor()
    assert extractor.grid_shape(np.zeros((20, 33), dtype=np.uint8)) == (2, 4)
    assert extractor.grid_shape(np.zeros((7, 64, 3), dtype=np.uint8)) == (0, 8)


def test_cells_are_row_major():
    extractor = PatchExtractor()
    gray = np.zeros((16, 24), dtype=np.uint8)
    for r in range(2):
        for c in range(3):
            gray[r * 8:(r + 1) * 8, c * 8:(c + 1) * 8] = 10 * (r * 3 + c)
    cells = extractor.cells(gray)
    assert cells.shape == (6, 64)
    for i, cell in enumerate(cells):
        assert (cell == 10 * i).all()


def test_patch_values_in_unit_range():
    extractor = PatchExtractor()
    gray = np.random.default_rng(3).integers(0, 256, size=(16, 16)).astype(np.uint8)
    patches = extractor.extract(gray, np.random.default_rng(1))
    assert len(patches) == 4
    for patch in patches:
        assert patch.input.dtype == np.float32 and patch.target.dtype == np.float32
        assert patch.input.shape == (64,)
        assert 0.0 <= patch.input.min() and patch.input.max() <= 1.0
        assert 0.0 <= patch.target.min() and patch.target.max() <= 1.0
    np.testing.assert_allclose(patches[0].target, gray[:8, :8].reshape(-1) / 255.0, rtol=1e-6)


def test_noise_is_added_to_input_only():
    extractor = PatchExtractor()
    gray = np.full((8, 8), 128, dtype=np.uint8)
    patch = extractor.extract(gray, np.random.default_rng(1))[0]
    assert not np.array_equal(patch.input, patch.target)
    assert np.allclose(patch.target, 128 / 255.0)

    quiet = PatchExtractor(Config().replace(PATCH_NOISE_STD=0.0))
    patch = quiet.extract(gray, np.random.default_rng(1))[0]
    assert np.array_equal(patch.input, patch.target)


def test_noise_is_reproducible():
    extractor = PatchExtractor()
    gray = np.full((16, 16), 50, dtype=np.uint8)
    a = extractor.extract(gray, np.random.default_rng(9), indices=[3, 1])
    b = extractor.extract(gray, np.random.default_rng(9), indices=[3, 1])
    assert [p.cell for p in a] == [3, 1]
    for pa, pb in zip(a, b):
        assert np.array_equal(pa.input, pb.input)


def test_entropy_bounds():
    assert patch_entropy(np.full((8, 8), 77, dtype=np.uint8)) == 0.0
    assert patch_entropy(np.arange(64, dtype=np.uint8).reshape(8, 8)) == pytest.approx(6.0)
    half = np.zeros((8, 8), dtype=np.uint8)
    half[4:] = 255
    assert patch_entropy(half) == pytest.approx(1.0)


def test_entropy_of_extracted_patch():
    extractor = PatchExtractor()
    gray = np.arange(64, dtype=np.uint8).reshape(8, 8)
    assert extractor.extract(gray, np.random.default_rng(0))[0].entropy == pytest.approx(math.log2(64))


def test_to_grayscale_shapes():
    white = np.full((4, 4, 3), 255, dtype=np.uint8)
    assert to_grayscale(white).shape == (4, 4)
    assert (to_grayscale(white) == 255).all()
    assert to_grayscale(np.zeros((4, 4, 4), dtype=np.uint8)).shape == (4, 4)
    assert to_grayscale(np.zeros((4, 4, 1), dtype=np.uint8)).shape == (4, 4)
    gray = np.full((4, 4), 9, dtype=np.uint8)
    assert to_grayscale(gray) is gray


def test_to_grayscale_scales_float_frames():
    assert (to_grayscale(np.ones((2, 2), dtype=np.float32)) == 255).all()
    assert (to_grayscale(np.zeros((2, 2), dtype=np.float64)) == 0).all()


def test_to_grayscale_rejects_unsupported_shapes():
    with pytest.raises(ValueError):
        to_grayscale(np.zeros((4, 4, 2), dtype=np.uint8))
    with pytest.raises(ValueError):
        to_grayscale(np.zeros(16, dtype=np.uint8))


def test_split_scene_and_static_source():
    frame = split_scene(16, 10, top=0, bottom=255)
    assert frame.shape == (10, 16, 3)
    assert (frame[:5] == 0).all() and (frame[5:] == 255).all()

    frames = list(StaticFrameSource(frame, count=3))
    assert len(frames) == 3
    frames[0][:] = 1
    assert (frame[:5] == 0).all()

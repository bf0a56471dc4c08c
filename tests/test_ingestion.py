from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from pattern_kfe.ingestion import build_training_matrix, load_grayscale_matrix, training_matrix_from_arrays


def test_grayscale_is_channel_average(tmp_path: Path) -> None:
    path = tmp_path / "flat.png"
    Image.new("RGB", (4, 4), (30, 60, 90)).save(path)
    grid = load_grayscale_matrix(path, feature_count=4, realization_count=4)
    assert grid.shape == (4, 4)
    assert np.allclose(grid, 60.0)


def test_rows_are_features_and_columns_are_realizations(image_pair) -> None:
    path_a, path_b = image_pair
    dark = load_grayscale_matrix(path_a, feature_count=8, realization_count=8)
    bright = load_grayscale_matrix(path_b, feature_count=8, realization_count=8)
    assert dark[0].tolist() == [60.0] * 8
    assert dark[1].tolist() == [40.0] * 8
    assert bright[:, 0].tolist() == [220.0] * 8
    assert bright[:, 1].tolist() == [0.0] * 8


def test_resize_uses_width_as_realizations(image_pair) -> None:
    path_a, _ = image_pair
    grid = load_grayscale_matrix(path_a, feature_count=5, realization_count=3)
    assert grid.shape == (5, 3)
    assert grid.min() >= 0.0 and grid.max() <= 255.0


def test_missing_image_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_grayscale_matrix(tmp_path / "missing.png")


def test_undecodable_image_raises(tmp_path: Path) -> None:
    path = tmp_path / "broken.png"
    path.write_bytes(b"definitely not a png")
    with pytest.raises(ValueError):
        load_grayscale_matrix(path)


def test_non_positive_grid_rejected(image_pair) -> None:
    with pytest.raises(ValueError):
        load_grayscale_matrix(image_pair[0], feature_count=0, realization_count=4)


def test_training_matrix_stacks_classes(image_pair) -> None:
    training = build_training_matrix(list(image_pair), feature_count=8, realization_count=6)
    assert training.shape == (2, 8, 6)


def test_training_matrix_validation() -> None:
    with pytest.raises(ValueError):
        training_matrix_from_arrays([])
    with pytest.raises(ValueError):
        training_matrix_from_arrays([np.zeros(4)])
    with pytest.raises(ValueError):
        training_matrix_from_arrays([np.zeros((2, 2)), np.zeros((2, 3))])
    with pytest.raises(ValueError):
        training_matrix_from_arrays([np.full((2, 2), 300.0)])

    stacked = training_matrix_from_arrays([np.zeros((2, 3)), np.full((2, 3), 255.0)])
    assert stacked.shape == (2, 2, 3)
    assert stacked.dtype == np.float64

from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest
from PIL import Image


def separable_matrix(features: int = 4, realizations: int = 4) -> np.ndarray:
    """Two classes that binarize to all ones (class 0) and all zeros (class 1) at delta=5.

    Class 0 alternates 10/20 along realizations (mean 15), class 1
    alternates 0/200 (mean 100), so a band of +/-5 admits every class-0
    value and rejects every class-1 value.
    """
    pattern_a = np.where(np.arange(realizations) % 2 == 0, 10.0, 20.0)
    pattern_b = np.where(np.arange(realizations) % 2 == 0, 0.0, 200.0)
    class_a = np.tile(pattern_a, (features, 1))
    class_b = np.tile(pattern_b, (features, 1))
    return np.stack([class_a, class_b], axis=0)


@pytest.fixture
def separable_training() -> np.ndarray:
    return separable_matrix()


@pytest.fixture
def random_training() -> np.ndarray:
    rng = np.random.default_rng(7)
    base = rng.uniform(0, 255, size=(2, 12, 1))
    noise = rng.normal(0, 20, size=(2, 12, 12))
    return np.clip(base + noise, 0, 255)


@pytest.fixture
def image_pair(tmp_path: Path) -> tuple:
    dark = np.full((8, 8, 3), 40, dtype=np.uint8)
    dark[::2, :, :] = 60
    bright = np.zeros((8, 8, 3), dtype=np.uint8)
    bright[:, ::2, :] = 220
    path_a = tmp_path / "class_a.png"
    path_b = tmp_path / "class_b.png"
    Image.fromarray(dark).save(path_a)
    Image.fromarray(bright).save(path_b)
    return path_a, path_b

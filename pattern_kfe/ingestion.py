"""Image ingestion: turn class images into the training matrix ``Y``.

Each image is normalized to a fixed grid before it contributes to ``Y``:

- it is converted to RGB and resized (bicubic) to
  ``realization_count`` × ``feature_count`` pixels (width × height);
- each pixel becomes the average of its three channels, so intensities lie
  in ``[0, 255]``;
- rows are features and columns are realizations.

All classes must share the same grid, otherwise code distances between
classes would compare unrelated positions.
"""
from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

import logging

import numpy as np
from PIL import Image, UnidentifiedImageError

from .pipeline.common import DEFAULT_FEATURE_COUNT, DEFAULT_REALIZATION_COUNT, MAX_INTENSITY

LOGGER = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = {".png", ".jpg", ".jpeg", ".bmp"}


def load_grayscale_matrix(
    path: Path,
    feature_count: int = DEFAULT_FEATURE_COUNT,
    realization_count: int = DEFAULT_REALIZATION_COUNT,
) -> np.ndarray:
    """Return the ``feature_count`` × ``realization_count`` intensity grid of one image."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")
    if feature_count < 1 or realization_count < 1:
        raise ValueError(f"Grid must be positive, got {feature_count}x{realization_count}")
    try:
        with Image.open(path) as img:
            rgb = img.convert("RGB")
            resized = rgb.resize((realization_count, feature_count), Image.Resampling.BICUBIC)
            pixels = np.asarray(resized, dtype=np.float64)
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError(f"Cannot decode image {path}: {exc}") from exc

    LOGGER.info("Loaded %s as a %dx%d grid", path, feature_count, realization_count)
    return pixels.sum(axis=2) / 3.0


def training_matrix_from_arrays(arrays: Sequence[np.ndarray]) -> np.ndarray:
    """Stack per-class intensity grids into ``Y`` after validating them."""
    if not arrays:
        raise ValueError("At least one intensity grid is required")
    grids: List[np.ndarray] = [np.asarray(a, dtype=np.float64) for a in arrays]
    shape = grids[0].shape
    for index, grid in enumerate(grids):
        if grid.ndim != 2:
            raise ValueError(f"Grid {index} must be 2D [features, realizations], got shape {grid.shape}")
        if grid.shape != shape:
            raise ValueError(f"Grid {index} has shape {grid.shape}, expected {shape}")
        if grid.size and (grid.min() < 0 or grid.max() > MAX_INTENSITY):
            raise ValueError(f"Grid {index} has intensities outside [0, {MAX_INTENSITY:.0f}]")
    return np.stack(grids, axis=0)


def build_training_matrix(
    paths: Sequence[Path],
    feature_count: int = DEFAULT_FEATURE_COUNT,
    realization_count: int = DEFAULT_REALIZATION_COUNT,
) -> np.ndarray:
    for path in paths:
        if Path(path).suffix.lower() not in SUPPORTED_SUFFIXES:
            LOGGER.warning("Unexpected image extension for %s; trying to decode anyway", path)
    grids = [load_grayscale_matrix(p, feature_count, realization_count) for p in paths]
    return training_matrix_from_arrays(grids)

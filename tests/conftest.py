"""Shared fixtures for the limage test suite.

Golden-image mode is selected per run, never through module globals:
    pytest                                         # SKIP (no references touched)
    pytest --golden-mode=update --golden-dir=DIR   # regenerate references
    pytest --golden-mode=compare --golden-dir=DIR  # check against references

LIMAGE_GOLDEN_MODE / LIMAGE_GOLDEN_DIR fill in whichever option is absent.
Tolerances (suite default and per-case) come from configs/golden.v1.yaml.
"""

import os
from pathlib import Path
from typing import Callable

import numpy as np
import pytest

from limage.image import LinearImage
from limage.utils import torch_utils
from limage.utils.validators import ENV_GOLDEN_MODE, ComparisonMode, GoldenConfig, load_golden_suite

PROJECT_ROOT = Path(__file__).parent.parent
GOLDEN_SUITE = PROJECT_ROOT / "configs" / "golden.v1.yaml"


def pytest_addoption(parser):
    group = parser.getgroup("golden", "reference image comparison")
    group.addoption(
        "--golden-mode",
        choices=[m.value for m in ComparisonMode],
        default=None,
        help="skip (default), compare or update reference images",
    )
    group.addoption(
        "--golden-dir",
        default=None,
        help="directory holding reference PNGs",
    )


@pytest.fixture(scope="session")
def golden_config(request) -> GoldenConfig:
    """Golden configuration for this test session.

    Mode and directory come from the command line, falling back to the
    environment per value; tolerances come from configs/golden.v1.yaml.
    """
    mode = request.config.getoption("--golden-mode")
    ref_dir = request.config.getoption("--golden-dir")
    if mode is None and ref_dir is not None and ENV_GOLDEN_MODE not in os.environ:
        mode = ComparisonMode.COMPARE
    suite = load_golden_suite(GOLDEN_SUITE)
    return GoldenConfig.from_env(
        mode=mode,
        reference_dir=ref_dir,
        epsilon=suite.epsilon,
        case_epsilon=suite.case_epsilons(),
        diff_dir=PROJECT_ROOT / suite.diff_dir if suite.diff_dir else None,
    )


def image_from_ascii(pattern: str) -> LinearImage:
    """Tiny single-channel image from rows of digits, e.g. "000 010 000".

    Each whitespace-separated token is one row; each digit is one pixel value.
    """
    rows = pattern.split()
    width = len(rows[0])
    if any(len(row) != width for row in rows):
        raise ValueError(f"Ragged ascii pattern: {pattern!r}")
    values = [[float(ord(c) - ord('0')) for c in row] for row in rows]
    return LinearImage.from_array(np.array(values, dtype=np.float32))


@pytest.fixture
def ascii_image() -> Callable[[str], LinearImage]:
    return image_from_ascii


@pytest.fixture
def rng() -> np.random.Generator:
    torch_utils.seed_everything(123)
    return np.random.default_rng(123)


@pytest.fixture
def random_image(rng) -> Callable[..., LinearImage]:
    """Factory for images filled with uniform values in [lo, hi)."""

    def make(width: int, height: int, channels: int = 1, lo: float = 0.0, hi: float = 1.0) -> LinearImage:
        arr = rng.uniform(lo, hi, size=(height, width, channels)).astype(np.float32)
        return LinearImage.from_array(arr)

    return make

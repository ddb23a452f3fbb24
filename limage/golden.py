"""Golden-image harness: store or check reference renderings.

A candidate image is handled according to an explicit GoldenConfig:
    - SKIP:    nothing happens (default when no reference directory is given)
    - UPDATE:  the candidate is written as <reference_dir>/<name> (8-bit RGB
               PNG) plus a <name>.yaml sidecar with shape and sha256
    - COMPARE: the reference is decoded and compared against the candidate,
               quantized the same way, within config.epsilon_for(name)

The mode is always passed in by the caller (pytest fixture, tooling
config); there is no process-wide comparison state.

Only 1- and 3-channel candidates are supported; single-channel images are
stored as gray RGB.

Usage:
    cfg = GoldenConfig(mode="compare", reference_dir="ci/golden_tests/reference")
    update_or_compare(hstack([grays0, grays1]), "grays.png", cfg)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np

from limage import codec
from limage.errors import GoldenMismatchError
from limage.image import LinearImage
from limage.ops import ContentMismatch, compare, diff_images
from limage.utils import fs, hashing
from limage.utils.logging_config import get_context, pop_context, push_context
from limage.utils.validators import ComparisonMode, GoldenConfig

logger = logging.getLogger(__name__)

SKIPPED = "skipped"
UPDATED = "updated"
MATCHED = "matched"


@dataclass(frozen=True)
class GoldenOutcome:
    """What update_or_compare() did for one reference."""

    name: str
    status: str
    path: Optional[Path] = None
    sha256: Optional[str] = None


def quantize(image: LinearImage) -> LinearImage:
    """Round-trip values through 8 bits, exactly as encode_png stores them."""
    return LinearImage.from_array(codec.to_uint8(image).astype(np.float32) / np.float32(255.0))


def sidecar_path(reference: Path) -> Path:
    return reference.with_name(reference.name + ".yaml")


def update_or_compare(
    image: LinearImage,
    name: str,
    config: GoldenConfig,
    epsilon: Optional[float] = None,
) -> GoldenOutcome:
    """Save or verify a reference image according to config.mode.

    Parameters
    ----------
    image : LinearImage
        Candidate, 1 or 3 channels
    name : str
        Reference file name, e.g. "colors.png"
    config : GoldenConfig
        Mode, reference directory, tolerances, optional diff directory
    epsilon : float, optional
        Per-call tolerance override (takes precedence over config)

    Returns
    -------
    GoldenOutcome
        status is "skipped", "updated" or "matched"

    Raises
    ------
    InvalidChannelCountError
        If the candidate has neither 1 nor 3 channels
    FileNotFoundError
        In COMPARE mode when the reference is missing
    GoldenMismatchError
        In COMPARE mode when shapes differ or a component exceeds tolerance
    """
    if config.mode == ComparisonMode.SKIP:
        logger.debug("Skipping reference comparison for %s", name)
        return GoldenOutcome(name=name, status=SKIPPED)

    rgb = codec.to_rgb(image)
    reference = Path(config.reference_dir) / name
    outer = get_context()
    push_context(golden=name)
    try:
        if config.mode == ComparisonMode.UPDATE:
            return _update(rgb, name, reference, image.channels)
        return _compare(rgb, name, reference, config, epsilon)
    finally:
        pop_context()
        push_context(**outer)


def _update(rgb: LinearImage, name: str, reference: Path, source_channels: int) -> GoldenOutcome:
    codec.encode_png(rgb, reference)
    digest = hashing.sha256_image(quantize(rgb))
    fs.atomic_yaml_dump(
        {
            'name': name,
            'width': rgb.width,
            'height': rgb.height,
            'source_channels': source_channels,
            'sha256': digest,
            'png_sha256': hashing.sha256_file(reference),
        },
        sidecar_path(reference),
    )
    logger.info("Updated reference %s (%dx%d)", reference, rgb.width, rgb.height)
    return GoldenOutcome(name=name, status=UPDATED, path=reference, sha256=digest)


def _compare(
    rgb: LinearImage,
    name: str,
    reference: Path,
    config: GoldenConfig,
    epsilon: Optional[float],
) -> GoldenOutcome:
    expected = codec.decode_png(reference, channels=3)
    candidate = quantize(rgb)
    eps = config.epsilon_for(name) if epsilon is None else epsilon
    result = compare(candidate, expected, eps)

    artifacts = None
    if config.diff_dir is not None:
        diff_dir = Path(config.diff_dir)
        artifacts = (diff_dir / f"actual_{name}", diff_dir / f"diff_{name}")
        # Clear artifacts left by an earlier failing run
        for stale in artifacts:
            if fs.safe_remove(stale):
                logger.debug("Removed stale artifact %s", stale)

    if result:
        digest = hashing.sha256_image(candidate)
        logger.debug("Reference %s matched within %.5f", name, eps)
        return GoldenOutcome(name=name, status=MATCHED, path=reference, sha256=digest)

    if artifacts is not None:
        actual_path, diff_path = artifacts
        codec.encode_png(candidate, actual_path)
        if isinstance(result, ContentMismatch):
            codec.encode_png(diff_images(candidate, expected), diff_path)

    if isinstance(result, ContentMismatch):
        message = (
            f"image mismatch for {name}: first difference at row {result.row}, "
            f"col {result.col}, channel {result.channel} "
            f"({result.a_value:.5f} vs reference {result.b_value:.5f}, epsilon {eps:.5f})"
        )
    else:
        message = f"shape mismatch for {name}: {result.a_shape} vs reference {result.b_shape}"
    logger.warning(message)
    raise GoldenMismatchError(name, result, message)

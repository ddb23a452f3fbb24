"""Buffer composition engine: stacking, transpose, crop, channels, compare.

Every operation is a pure transform: it validates its inputs, allocates one
fresh LinearImage for the result and fills it. Inputs are only read.

Public API:
    hstack(images)                              → width = Σ widths
    vstack(images)                              → height = Σ heights
    combine_channels(planes)                    → channels = len(planes)
    extract_channel(image, k) / split_channels  → single-channel planes
    transpose(image)                            → width and height swapped
    crop_region(image, left, top, right, bottom)
    vectors_to_colors(image)                    → [-1, 1] → [0, 1]
    diff_images(a, b)                           → normalized |a - b|
    compare(a, b, epsilon)                      → Equal | ShapeMismatch | ContentMismatch

Layout:
    Storage is always row-major (H, W, C). There is no axis-order flag;
    column-oriented work goes through an explicit, allocating transpose.
    vstack is defined as transpose(hstack([transpose(i) for i in images])).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import numpy as np

from limage.errors import (
    EmptyInputError,
    InconsistentShapeError,
    InvalidChannelCountError,
    OutOfRangeError,
)
from limage.image import LinearImage

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _collect(op: str, images: Iterable[LinearImage], what: str = "images") -> List[LinearImage]:
    """Materialize the input sequence and reject empty or non-image inputs."""
    items = list(images)
    if not items:
        raise EmptyInputError(op, f"must supply one or more {what}")
    for i, img in enumerate(items):
        if not isinstance(img, LinearImage):
            raise TypeError(f"{op}: item {i} is {type(img).__name__}, expected LinearImage")
    return items


def _require_same(op: str, images: List[LinearImage], attr: str, plural: str) -> int:
    expected = getattr(images[0], attr)
    for i, img in enumerate(images[1:], start=1):
        actual = getattr(img, attr)
        if actual != expected:
            raise InconsistentShapeError(
                op, f"inconsistent {plural} (image {i} has {attr} {actual}, expected {expected})"
            )
    return expected


# ---------------------------------------------------------------------------
# Stacking
# ---------------------------------------------------------------------------


def hstack(images: Iterable[LinearImage]) -> LinearImage:
    """Concatenate images left-to-right along the width axis.

    Parameters
    ----------
    images : Iterable[LinearImage]
        One or more images sharing height and channel count

    Returns
    -------
    LinearImage
        Width is the sum of input widths; input order is preserved

    Raises
    ------
    EmptyInputError
        If no images are given
    InconsistentShapeError
        If heights or channel counts differ
    """
    items = _collect("hstack", images)
    height = _require_same("hstack", items, "height", "heights")
    channels = _require_same("hstack", items, "channels", "channels")
    width = sum(img.width for img in items)

    out = np.empty((height, width, channels), dtype=np.float32)
    # One slab per input: each row receives a contiguous width*channels run.
    x = 0
    for img in items:
        out[:, x:x + img.width] = img.data
        x += img.width

    logger.debug("hstack: %d images -> %dx%dx%d", len(items), width, height, channels)
    return LinearImage._adopt(out)


def vstack(images: Iterable[LinearImage]) -> LinearImage:
    """Concatenate images top-to-bottom along the height axis.

    Transposes every input, delegates to hstack, then transposes the
    result back. Inputs must share width and channel count.

    Raises
    ------
    EmptyInputError
        If no images are given
    InconsistentShapeError
        If widths or channel counts differ
    """
    items = _collect("vstack", images)
    _require_same("vstack", items, "width", "widths")
    _require_same("vstack", items, "channels", "channels")

    result = transpose(hstack([transpose(img) for img in items]))
    logger.debug("vstack: %d images -> %dx%dx%d", len(items), *result.shape)
    return result


# ---------------------------------------------------------------------------
# Channels
# ---------------------------------------------------------------------------


def combine_channels(planes: Iterable[LinearImage]) -> LinearImage:
    """Interleave single-channel planes into one multi-channel image.

    Channel k of every output pixel comes from plane k at the same pixel.

    Raises
    ------
    EmptyInputError
        If no planes are given
    InvalidChannelCountError
        If a plane has more than one channel
    InconsistentShapeError
        If plane widths or heights differ
    """
    items = _collect("combine_channels", planes, what="image planes")
    for i, plane in enumerate(items):
        if plane.channels != 1:
            raise InvalidChannelCountError(
                "combine_channels", f"planes must be single channel (plane {i} has {plane.channels})"
            )
    _require_same("combine_channels", items, "width", "widths")
    _require_same("combine_channels", items, "height", "heights")

    out = np.stack([plane.data[:, :, 0] for plane in items], axis=-1)
    out = np.ascontiguousarray(out, dtype=np.float32)
    logger.debug("combine_channels: %d planes -> %dx%d", len(items), out.shape[1], out.shape[0])
    return LinearImage._adopt(out)


def extract_channel(image: LinearImage, channel: int) -> LinearImage:
    """Copy one channel of an image into a new single-channel plane.

    Raises
    ------
    InvalidChannelCountError
        If channel is not in [0, image.channels)
    """
    if not 0 <= channel < image.channels:
        raise InvalidChannelCountError(
            "extract_channel", f"channel {channel} out of range for {image.channels}-channel image"
        )
    return LinearImage._adopt(image.data[:, :, channel:channel + 1].copy())


def split_channels(image: LinearImage) -> List[LinearImage]:
    """All channels of an image as single-channel planes, in channel order."""
    return [extract_channel(image, k) for k in range(image.channels)]


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------


def transpose(image: LinearImage) -> LinearImage:
    """Swap rows and columns with full data movement.

    Output pixel (row=j, col=i) equals input pixel (row=i, col=j) for every
    channel. The result is a new row-major buffer, never a strided view, so
    a row-oriented consumer reads the original columns sequentially.
    """
    out = image.data.transpose(1, 0, 2).copy(order='C')
    return LinearImage._adopt(out)


def crop_region(
    image: LinearImage,
    left: int,
    top: int,
    right: int,
    bottom: int
) -> LinearImage:
    """Copy the sub-rectangle [left, right) x [top, bottom).

    Raises
    ------
    OutOfRangeError
        Unless 0 <= left < right <= width and 0 <= top < bottom <= height
    """
    if not (0 <= left < right <= image.width):
        raise OutOfRangeError(
            "crop_region",
            f"columns [{left}, {right}) not a non-empty range inside width {image.width}"
        )
    if not (0 <= top < bottom <= image.height):
        raise OutOfRangeError(
            "crop_region",
            f"rows [{top}, {bottom}) not a non-empty range inside height {image.height}"
        )
    return LinearImage._adopt(image.data[top:bottom, left:right].copy())


# ---------------------------------------------------------------------------
# Elementwise
# ---------------------------------------------------------------------------


def vectors_to_colors(image: LinearImage) -> LinearImage:
    """Map 3-component vectors in [-1, 1] to colors in [0, 1].

    Each component v becomes 0.5 * (v + 1); -1 → 0, 0 → 0.5, 1 → 1.

    Raises
    ------
    InvalidChannelCountError
        If the image does not have exactly 3 channels
    """
    if image.channels != 3:
        raise InvalidChannelCountError(
            "vectors_to_colors", f"must be a 3-channel image, got {image.channels}"
        )
    half = np.float32(0.5)
    out = (half * (image.data + np.float32(1.0))).astype(np.float32, copy=False)
    return LinearImage._adopt(np.ascontiguousarray(out))


def diff_images(a: LinearImage, b: LinearImage) -> LinearImage:
    """Absolute difference, normalized so min/max deltas map to 0/1.

    When every delta is the same the scale is 1, so identical images give
    an all-zero result.

    Raises
    ------
    InconsistentShapeError
        If the images differ in width, height or channel count
    """
    if a.shape != b.shape:
        raise InconsistentShapeError("diff_images", f"images must have same shape ({a.shape} vs {b.shape})")
    delta = np.abs(a.data.astype(np.float64) - b.data.astype(np.float64))
    smallest = float(delta.min())
    largest = float(delta.max())
    scale = 1.0 if largest == smallest else 1.0 / (largest - smallest)
    out = ((delta - smallest) * scale).astype(np.float32)
    return LinearImage._adopt(np.ascontiguousarray(out))


# ---------------------------------------------------------------------------
# Compare
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Comparison:
    """Result of compare(). Truthy only when the images are equal."""

    def __bool__(self) -> bool:
        return False

    @property
    def equal(self) -> bool:
        return bool(self)

    @property
    def ordering(self) -> Optional[int]:
        return None


@dataclass(frozen=True)
class Equal(Comparison):
    """Same shape; every component within epsilon."""

    def __bool__(self) -> bool:
        return True

    @property
    def ordering(self) -> Optional[int]:
        return 0


@dataclass(frozen=True)
class ShapeMismatch(Comparison):
    """Width, height or channel count differ; no value was compared."""

    a_shape: Tuple[int, int, int]
    b_shape: Tuple[int, int, int]


@dataclass(frozen=True)
class ContentMismatch(Comparison):
    """First component, in row-major scan order, outside tolerance.

    ``index`` is the flat offset; ``row``, ``col`` and ``channel`` locate
    the same component.
    """

    index: int
    row: int
    col: int
    channel: int
    a_value: float
    b_value: float

    @property
    def ordering(self) -> Optional[int]:
        """-1 when a's component is smaller, 1 when larger, 0 if unordered (NaN)."""
        if self.a_value < self.b_value:
            return -1
        if self.a_value > self.b_value:
            return 1
        return 0


def compare(a: LinearImage, b: LinearImage, epsilon: float) -> Comparison:
    """Compare two images component-wise within an absolute tolerance.

    Parameters
    ----------
    a, b : LinearImage
        Images to compare
    epsilon : float
        Absolute tolerance (>= 0); a component pair matches when
        a == b or |a - b| <= epsilon. NaN never matches.

    Returns
    -------
    Comparison
        Equal, ShapeMismatch, or ContentMismatch for the first failing
        component in scan order. Deterministic for a given pair of inputs.

    Raises
    ------
    ValueError
        If epsilon is negative or NaN
    """
    if not epsilon >= 0.0:
        raise ValueError(f"compare: epsilon must be non-negative, got {epsilon}")
    if a.shape != b.shape:
        return ShapeMismatch(a.shape, b.shape)

    fa = a.flat().astype(np.float64)
    fb = b.flat().astype(np.float64)
    # Exact equality first: inf - inf is NaN
    with np.errstate(invalid="ignore"):
        within = (fa == fb) | (np.abs(fa - fb) <= epsilon)
    failing = np.flatnonzero(~within)
    if failing.size == 0:
        return Equal()

    index = int(failing[0])
    row, col, channel = np.unravel_index(index, a.data.shape)
    return ContentMismatch(
        index=index,
        row=int(row),
        col=int(col),
        channel=int(channel),
        a_value=float(fa[index]),
        b_value=float(fb[index]),
    )

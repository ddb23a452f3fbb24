"""limage: in-memory composition of dense float32 pixel buffers.

This package provides the building blocks image pipelines use to lay out
and check pixel data before and after resampling:
    - LinearImage: row-major (H, W, C) float32 buffer with exclusive storage
    - ops: hstack, vstack, combine_channels, transpose, crop_region,
      vectors_to_colors, compare (plus channel extraction and diffs)
    - resample: adapter for the external separable resampling engine
    - codec: Pillow-backed PNG encode/decode
    - golden: reference-image harness (skip / compare / update)

Architecture layers (strict one-way dependency):
    tests/ → limage/{ops, resample, codec, golden} → limage/image → limage/utils/

Key invariants:
    - Storage is always row-major; offset = (row * width + col) * channels + k
    - Every operation validates first, then allocates exactly one new buffer
    - Inputs are never modified or aliased by results
"""

from limage.errors import (
    EmptyInputError,
    GoldenMismatchError,
    ImageOpsError,
    InconsistentShapeError,
    InvalidChannelCountError,
    OutOfRangeError,
)
from limage.image import LinearImage
from limage.ops import (
    Comparison,
    ContentMismatch,
    Equal,
    ShapeMismatch,
    combine_channels,
    compare,
    crop_region,
    diff_images,
    extract_channel,
    hstack,
    split_channels,
    transpose,
    vectors_to_colors,
    vstack,
)

__version__ = "1.0.0"

__all__ = [
    'LinearImage',
    'hstack',
    'vstack',
    'combine_channels',
    'extract_channel',
    'split_channels',
    'transpose',
    'crop_region',
    'vectors_to_colors',
    'diff_images',
    'compare',
    'Comparison',
    'Equal',
    'ShapeMismatch',
    'ContentMismatch',
    'ImageOpsError',
    'InconsistentShapeError',
    'InvalidChannelCountError',
    'EmptyInputError',
    'OutOfRangeError',
    'GoldenMismatchError',
]

"""Adapter for the external separable resampling engine.

The engine never resamples pixels itself. Resizing is delegated to a
collaborator implementing the Resampler protocol; this module validates the
request, normalizes the filter configuration and checks that whatever comes
back is a buffer the rest of the engine can consume.

Usage:
    from limage.resample import Filter, SamplerConfig, resample_image

    small = resample_image(img, 16, 16, Filter.GAUSSIAN_SCALARS, resampler)
    blurred = resample_image(
        img, 100, 100,
        SamplerConfig.uniform(Filter.GAUSSIAN_SCALARS, filter_radius_multiplier=10),
        resampler,
    )
"""

from __future__ import annotations

import logging
from typing import Protocol, Union, runtime_checkable

from limage.errors import InconsistentShapeError
from limage.image import LinearImage
from limage.utils.validators import Filter, SamplerConfig, SourceRegion

logger = logging.getLogger(__name__)

__all__ = ["Filter", "SamplerConfig", "SourceRegion", "Resampler", "resample_image"]


@runtime_checkable
class Resampler(Protocol):
    """Resizes a LinearImage to (width, height) under a SamplerConfig."""

    def __call__(
        self,
        image: LinearImage,
        width: int,
        height: int,
        config: SamplerConfig,
    ) -> LinearImage:
        ...


def resample_image(
    image: LinearImage,
    width: int,
    height: int,
    config: Union[SamplerConfig, Filter, str],
    resampler: Resampler,
) -> LinearImage:
    """Resize an image through the resampling collaborator.

    Parameters
    ----------
    image : LinearImage
        Source image
    width, height : int
        Target size (> 0)
    config : SamplerConfig | Filter | str
        Full sampler config, or a single filter applied to both axes
    resampler : Resampler
        Collaborator performing the actual resampling

    Returns
    -------
    LinearImage
        The collaborator's result

    Raises
    ------
    ValueError
        If the target size is not positive or the filter name is unknown
    InconsistentShapeError
        If the collaborator returns a buffer of the wrong size or channel count
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"resample_image: target size must be positive, got {width}x{height}")
    if not isinstance(config, SamplerConfig):
        config = SamplerConfig.uniform(Filter(config))

    result = resampler(image, width, height, config)

    if not isinstance(result, LinearImage):
        raise TypeError(f"resample_image: resampler returned {type(result).__name__}, expected LinearImage")
    expected = (width, height, image.channels)
    if result.shape != expected:
        raise InconsistentShapeError(
            "resample_image", f"resampler returned {result.shape}, expected {expected}"
        )
    if result is image:
        # Results must be fresh buffers, never an alias of the input.
        result = result.copy()

    logger.debug(
        "resample_image: %dx%d -> %dx%d (%s/%s, radius x%.2f)",
        image.width, image.height, width, height,
        config.horizontal_filter.value, config.vertical_filter.value,
        config.filter_radius_multiplier,
    )
    return result

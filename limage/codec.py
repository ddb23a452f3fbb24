"""PNG encode/decode for linear images (thin wrapper over Pillow).

Used by surrounding tooling (golden references, visual atlases); the
composition engine itself never touches files.

Conversions:
    - Encode: clamp to [0, 1], scale by 255, round to 8-bit
      1 channel → "L", 3 channels → "RGB", 4 channels → "RGBA"
    - Decode: 8-bit → float32 [0, 1], optionally forcing a channel count

Values are written as-is (no sRGB transfer curve): what is stored is the
linear value quantized to 8 bits, so encode → decode is exact up to QUANTUM/2.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from limage.errors import InvalidChannelCountError
from limage.image import LinearImage
from limage.utils import fs
from limage.utils.validators import QUANTUM

logger = logging.getLogger(__name__)

__all__ = ["QUANTUM", "to_uint8", "to_rgb", "encode_png_bytes", "encode_png", "decode_png"]

_MODES = {1: "L", 3: "RGB", 4: "RGBA"}


def to_uint8(image: LinearImage) -> np.ndarray:
    """Quantize to an (H, W, C) uint8 array."""
    clipped = np.clip(image.data, 0.0, 1.0)
    return np.rint(clipped * 255.0).astype(np.uint8)


def to_rgb(image: LinearImage) -> LinearImage:
    """Return a 3-channel copy; single-channel images are broadcast to gray.

    Raises
    ------
    InvalidChannelCountError
        If the image has neither 1 nor 3 channels
    """
    if image.channels == 3:
        return image.copy()
    if image.channels == 1:
        return LinearImage.from_array(np.repeat(image.data, 3, axis=2))
    raise InvalidChannelCountError(
        "to_rgb", f"only 1- and 3-channel images are supported, got {image.channels}"
    )


def encode_png_bytes(image: LinearImage) -> bytes:
    """Encode an image as PNG bytes.

    Raises
    ------
    InvalidChannelCountError
        If the channel count has no 8-bit PNG mode (only 1, 3, 4 do)
    """
    if image.channels not in _MODES:
        raise InvalidChannelCountError(
            "encode_png", f"cannot encode {image.channels}-channel image (supported: 1, 3, 4)"
        )
    pixels = to_uint8(image)
    if image.channels == 1:
        pixels = pixels[:, :, 0]
    buf = io.BytesIO()
    Image.fromarray(pixels).save(buf, format="PNG")
    return buf.getvalue()


def encode_png(image: LinearImage, path: Union[str, Path]) -> Path:
    """Write an image to a PNG file atomically; returns the path."""
    path = Path(path)
    fs.atomic_write_bytes(path, encode_png_bytes(image))
    logger.debug("Encoded %dx%dx%d image to %s", image.width, image.height, image.channels, path)
    return path


def decode_png(path: Union[str, Path], channels: Optional[int] = None) -> LinearImage:
    """Read an image file into a float32 LinearImage in [0, 1].

    Parameters
    ----------
    path : Union[str, Path]
        Image file (any format Pillow reads; references are PNG)
    channels : int, optional
        Force 1, 3 or 4 channels; None keeps L/RGB/RGBA as stored and
        converts any other mode to RGB

    Raises
    ------
    FileNotFoundError
        If the file doesn't exist
    ValueError
        If Pillow cannot decode the file
    InvalidChannelCountError
        If channels is not 1, 3 or 4
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Image not found: {path}")
    if channels is not None and channels not in _MODES:
        raise InvalidChannelCountError(
            "decode_png", f"cannot decode to {channels} channels (supported: 1, 3, 4)"
        )

    try:
        with Image.open(path) as pil_img:
            if channels is not None:
                target = _MODES[channels]
            else:
                target = pil_img.mode if pil_img.mode in _MODES.values() else "RGB"
            arr = np.asarray(pil_img.convert(target), dtype=np.float32)
    except UnidentifiedImageError as e:
        raise ValueError(f"File is not a decodable image: {path}") from e

    return LinearImage.from_array(arr / np.float32(255.0))

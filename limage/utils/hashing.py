"""SHA-256 hashing for reference-image provenance.

Provides:
    - sha256_file(): Hash file contents (golden PNGs, configs)
    - sha256_image(): Hash a LinearImage's shape and float32 values
    - sha256_string(): Hash a string

The golden harness records sha256_image() of every reference it writes so
a later compare can tell "reference re-encoded" from "pixels changed".

Deterministic hashing:
    - Images hashed as "WxHxC:" header + little-endian float32 bytes
    - Files read in chunks (1 MB default)
    - Results are hex strings (64 chars)
"""

import hashlib
from pathlib import Path
from typing import TYPE_CHECKING, Union

import numpy as np

if TYPE_CHECKING:
    from limage.image import LinearImage


def sha256_file(path: Union[str, Path], chunk_size: int = 1 << 20) -> str:
    """Compute SHA-256 hash of file contents.

    Raises
    ------
    FileNotFoundError
        If file doesn't exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    sha256 = hashlib.sha256()
    with open(path, 'rb') as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            sha256.update(chunk)
    return sha256.hexdigest()


def sha256_image(image: "LinearImage") -> str:
    """Compute SHA-256 hash of an image's shape and pixel values.

    Notes
    -----
    Two images hash equal only if they have the same width, height and
    channel count and bitwise-identical float32 storage. The shape is
    part of the digest, so a 2×3 and a 3×2 image with the same values
    never collide.
    """
    sha256 = hashlib.sha256()
    sha256.update(f"{image.width}x{image.height}x{image.channels}:".encode('ascii'))
    sha256.update(np.ascontiguousarray(image.data, dtype='<f4').tobytes())
    return sha256.hexdigest()


def sha256_string(s: str) -> str:
    """Compute SHA-256 hash of a UTF-8 string."""
    return hashlib.sha256(s.encode('utf-8')).hexdigest()

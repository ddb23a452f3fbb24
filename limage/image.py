"""Linear image buffer: dense, row-major, float32 pixels.

A LinearImage owns one C-contiguous numpy array of shape
(height, width, channels). Flattened, the offset of pixel (row, col),
channel k is::

    (row * width + col) * channels + k

Every engine operation relies on that layout, either preserving it
(stacking, cropping, channel combination) or deliberately inverting it
(transpose).

Invariants:
    - width, height, channels are positive and fixed at construction
    - storage is float32, C-contiguous, exclusively owned (never aliased by
      another LinearImage); from_array() and copy() always copy
    - mutation happens only through this image's own storage
"""

from __future__ import annotations

from typing import Iterable, Tuple, Union

import numpy as np
import torch

from limage.utils import torch_utils

ArrayLike = Union[np.ndarray, Iterable]


def _check_dim(name: str, value) -> int:
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, (int, np.integer)):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return int(value)


class LinearImage:
    """Fixed-size multi-channel float32 pixel buffer.

    Parameters
    ----------
    width : int
        Number of columns (> 0)
    height : int
        Number of rows (> 0)
    channels : int
        Components per pixel (> 0), default 1

    Raises
    ------
    ValueError
        If any dimension is not a positive integer

    Examples
    --------
    >>> img = LinearImage(4, 2, 3)
    >>> img.shape
    (4, 2, 3)
    >>> img.data.shape
    (2, 4, 3)
    """

    __slots__ = ("_data",)

    def __init__(self, width: int, height: int, channels: int = 1) -> None:
        width = _check_dim("width", width)
        height = _check_dim("height", height)
        channels = _check_dim("channels", channels)
        self._data = np.zeros((height, width, channels), dtype=np.float32)

    @classmethod
    def from_array(cls, arr: ArrayLike) -> "LinearImage":
        """Create an image from an (H, W) or (H, W, C) array (always copies)."""
        arr = np.array(arr, dtype=np.float32, copy=True)
        if arr.ndim == 2:
            arr = arr[:, :, np.newaxis]
        if arr.ndim != 3:
            raise ValueError(f"Expected (H, W) or (H, W, C) array, got shape {arr.shape}")
        height, width, channels = arr.shape
        result = cls(width, height, channels)
        result._data[...] = arr
        return result

    @classmethod
    def from_flat(
        cls,
        values: ArrayLike,
        width: int,
        height: int,
        channels: int = 1
    ) -> "LinearImage":
        """Create an image from values listed in row-major scan order."""
        result = cls(width, height, channels)
        flat = np.asarray(values, dtype=np.float32).reshape(-1)
        if flat.size != result.size:
            raise ValueError(
                f"Expected {result.size} values for {width}x{height}x{channels}, got {flat.size}"
            )
        result._data[...] = flat.reshape(height, width, channels)
        return result

    @classmethod
    def _adopt(cls, arr: np.ndarray) -> "LinearImage":
        """Take ownership of a freshly allocated (H, W, C) float32 array.

        Only for arrays nobody else references; the engine uses it to avoid
        a second copy of each result.
        """
        if arr.ndim != 3 or arr.dtype != np.float32 or not arr.flags.c_contiguous:
            raise ValueError(f"Cannot adopt array with shape {arr.shape}, dtype {arr.dtype}")
        _check_dim("width", arr.shape[1])
        _check_dim("height", arr.shape[0])
        _check_dim("channels", arr.shape[2])
        result = cls.__new__(cls)
        result._data = arr
        return result

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------

    @property
    def width(self) -> int:
        return self._data.shape[1]

    @property
    def height(self) -> int:
        return self._data.shape[0]

    @property
    def channels(self) -> int:
        return self._data.shape[2]

    @property
    def shape(self) -> Tuple[int, int, int]:
        """(width, height, channels)."""
        return (self.width, self.height, self.channels)

    @property
    def size(self) -> int:
        """Total number of float components."""
        return self._data.size

    # ------------------------------------------------------------------
    # Storage access
    # ------------------------------------------------------------------

    @property
    def data(self) -> np.ndarray:
        """Owned storage, shape (height, width, channels). Writable."""
        return self._data

    def flat(self) -> np.ndarray:
        """Read-only 1-D view of the storage in row-major scan order."""
        view = self._data.reshape(-1)
        view.flags.writeable = False
        return view

    def offset(self, x: int, y: int) -> int:
        """Flat index of channel 0 of the pixel at column x, row y."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} image")
        return (y * self.width + x) * self.channels

    def get_pixel(self, x: int, y: int) -> np.ndarray:
        """Copy of the channel values at column x, row y."""
        self.offset(x, y)
        return self._data[y, x].copy()

    def set_pixel(self, x: int, y: int, values) -> None:
        """Overwrite the channel values at column x, row y."""
        self.offset(x, y)
        self._data[y, x] = values

    def copy(self) -> "LinearImage":
        return LinearImage._adopt(self._data.copy())

    # ------------------------------------------------------------------
    # Torch interop
    # ------------------------------------------------------------------

    def to_tensor(self) -> torch.Tensor:
        """Planar (C, H, W) float32 tensor copy of this image."""
        return torch_utils.array_to_chw(self._data)

    @classmethod
    def from_tensor(cls, t: torch.Tensor) -> "LinearImage":
        """Create an image from a (C, H, W) or (H, W) tensor (always copies)."""
        return cls._adopt(torch_utils.chw_to_array(t))

    # ------------------------------------------------------------------
    # Dunder
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        """Exact equality: same shape and bitwise-equal values."""
        if not isinstance(other, LinearImage):
            return NotImplemented
        return self.shape == other.shape and np.array_equal(self._data, other._data)

    __hash__ = None

    def __repr__(self) -> str:
        return f"LinearImage(width={self.width}, height={self.height}, channels={self.channels})"

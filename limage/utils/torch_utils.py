"""PyTorch ergonomics: seeding and layout conversion.

Provides:
    - seed_everything(): Reproducible fixtures (torch, numpy, Python RNG)
    - array_to_chw(): (H, W, C) float32 array → (C, H, W) torch tensor
    - chw_to_array(): (C, H, W) or (H, W) tensor → (H, W, C) float32 array

LinearImage stores pixels interleaved (H, W, C); torch image code expects
planar (C, H, W). Both conversions copy, so a tensor never aliases the
storage of the image it came from.
"""

import random

import numpy as np
import torch


def seed_everything(seed: int) -> None:
    """Seed Python, numpy and torch RNGs."""
    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)


def array_to_chw(arr: np.ndarray) -> torch.Tensor:
    """Convert an interleaved (H, W, C) array to a planar float32 tensor.

    Returns
    -------
    torch.Tensor
        Contiguous tensor, shape (C, H, W), dtype float32
    """
    if arr.ndim != 3:
        raise ValueError(f"Expected (H, W, C) array, got shape {arr.shape}")
    chw = np.ascontiguousarray(np.transpose(arr, (2, 0, 1)), dtype=np.float32)
    return torch.from_numpy(chw.copy())


def chw_to_array(t: torch.Tensor) -> np.ndarray:
    """Convert a planar (C, H, W) or (H, W) tensor to an interleaved array.

    Returns
    -------
    np.ndarray
        Contiguous float32 array, shape (H, W, C)
    """
    t = t.detach().cpu()
    if t.ndim == 2:
        t = t.unsqueeze(0)
    if t.ndim != 3:
        raise ValueError(f"Expected (C, H, W) or (H, W) tensor, got shape {tuple(t.shape)}")
    arr = t.to(torch.float32).permute(1, 2, 0).numpy()
    return np.ascontiguousarray(arr).copy()

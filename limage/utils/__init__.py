"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Config validation (validators)
    - Atomic I/O and YAML (fs)
    - Provenance hashing (hashing)
    - Torch interop and seeding (torch_utils)
    - Unified logging (logging_config)

No module in utils/ may import from upper layers (image, ops, golden, ...)
at runtime.

Convenience imports:
    from limage.utils import fs, validators
    from limage.utils.logging_config import setup_logging, get_logger
"""

from . import fs
from . import hashing
from . import logging_config
from . import torch_utils
from . import validators

from .logging_config import get_logger, push_context, setup_logging

__all__ = [
    'fs',
    'hashing',
    'logging_config',
    'torch_utils',
    'validators',
    'setup_logging',
    'get_logger',
    'push_context',
]

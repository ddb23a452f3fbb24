"""Atomic filesystem operations and YAML handling.

Provides:
    - Atomic writes: tmp file → fsync → rename (no partially written references)
    - YAML load/save via PyYAML safe_load/safe_dump
    - Directory creation with exist_ok semantics

Golden references and their sidecar metadata are always written through
these helpers so an interrupted update never leaves a truncated PNG that a
later compare run would decode.

Usage:
    from limage.utils import fs
    fs.atomic_write_bytes(ref_dir / "colors.png", png_bytes)
    fs.atomic_yaml_dump(meta, ref_dir / "colors.png.yaml")
"""

import os
from pathlib import Path
from typing import Any, Dict, Union

import yaml


def ensure_dir(p: Union[str, Path]) -> Path:
    """Create directory (and parents) if missing; return it as a Path."""
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


def atomic_write_bytes(
    path: Union[str, Path],
    data: bytes,
    tmp_suffix: str = ".tmp"
) -> None:
    """Write bytes to file atomically (tmp → fsync → rename).

    Parameters
    ----------
    path : Union[str, Path]
        Target file path
    data : bytes
        Data to write
    tmp_suffix : str
        Temporary file suffix, default ".tmp"

    Raises
    ------
    RuntimeError
        If the write or the rename fails; the tmp file is removed first
    """
    path = Path(path)
    ensure_dir(path.parent)

    # Same directory so the rename never crosses filesystems
    tmp_path = path.with_name(path.name + tmp_suffix)

    try:
        with open(tmp_path, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(path)
    except Exception as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise RuntimeError(f"Failed to write {path} atomically: {e}") from e


def atomic_write_text(
    path: Union[str, Path],
    text: str,
    encoding: str = "utf-8"
) -> None:
    """Write text to file atomically."""
    atomic_write_bytes(path, text.encode(encoding))


def atomic_yaml_dump(obj: Any, path: Union[str, Path]) -> None:
    """Save object as YAML atomically (safe_dump, insertion order kept)."""
    yaml_str = yaml.safe_dump(
        obj,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True
    )
    atomic_write_text(path, yaml_str)


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """Load YAML file safely.

    Parameters
    ----------
    path : Union[str, Path]
        YAML file path

    Returns
    -------
    Dict[str, Any]
        Parsed YAML content; an empty file yields an empty dict

    Raises
    ------
    FileNotFoundError
        If file doesn't exist
    yaml.YAMLError
        If YAML parsing fails
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Failed to parse YAML file {path}: {e}") from e
    return data if data is not None else {}


def safe_remove(path: Union[str, Path]) -> bool:
    """Remove a file if present; return True when something was removed."""
    path = Path(path)
    if path.is_symlink() or path.exists():
        path.unlink()
        return True
    return False

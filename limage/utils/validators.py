"""YAML schema validation and config loading.

Provides centralized validation for configuration using pydantic:
    - Sampler config: reconstruction filters, radius multiplier, source region
      handed to the resampling collaborator
    - Golden config: comparison mode, reference directory, tolerance
    - Golden suite schema (golden.v1.yaml): per-case tolerances

Loaders fail fast with actionable messages (path, offending key, expected
range) wrapped in ValueError.

Units:
    - Source regions: normalized [0, 1] image coordinates
    - Tolerances: absolute, in linear float units per component

Usage:
    from limage.utils import validators

    suite = validators.load_golden_suite("configs/golden.v1.yaml")
    cfg = suite.to_config(validators.ComparisonMode.COMPARE)

    # or, in one step
    cfg = validators.load_golden_config("configs/golden.v1.yaml", "compare")
"""

import os
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# One 8-bit quantization step; references round-trip through 8-bit PNG.
QUANTUM = 1.0 / 255.0

ENV_GOLDEN_MODE = "LIMAGE_GOLDEN_MODE"
ENV_GOLDEN_DIR = "LIMAGE_GOLDEN_DIR"


# ============================================================================
# SAMPLER SCHEMA
# ============================================================================

class Filter(str, Enum):
    """Reconstruction kernels understood by the resampling collaborator."""
    DEFAULT = "default"
    BOX = "box"
    NEAREST = "nearest"
    HERMITE = "hermite"
    GAUSSIAN_SCALARS = "gaussian_scalars"
    GAUSSIAN_NORMALS = "gaussian_normals"
    MITCHELL = "mitchell"
    LANCZOS = "lanczos"
    MINIMUM = "minimum"


class SourceRegion(BaseModel):
    """Normalized sub-rectangle of the source image to resample from."""
    model_config = ConfigDict(frozen=True)

    left: float = Field(0.0, ge=0.0, le=1.0)
    top: float = Field(0.0, ge=0.0, le=1.0)
    width: float = Field(1.0, gt=0.0, le=1.0)
    height: float = Field(1.0, gt=0.0, le=1.0)

    @model_validator(mode='after')
    def validate_inside_unit_square(self) -> 'SourceRegion':
        """Region must not extend past the right or bottom edge."""
        eps = 1e-6
        if self.left + self.width > 1.0 + eps:
            raise ValueError(f"Source region left+width={self.left + self.width:.4f} exceeds 1.0")
        if self.top + self.height > 1.0 + eps:
            raise ValueError(f"Source region top+height={self.top + self.height:.4f} exceeds 1.0")
        return self


class SamplerConfig(BaseModel):
    """Filter configuration for one resampling call."""
    model_config = ConfigDict(frozen=True)

    horizontal_filter: Filter = Filter.DEFAULT
    vertical_filter: Filter = Filter.DEFAULT
    filter_radius_multiplier: float = Field(1.0, gt=0.0, description="Kernel radius scale (>1 blurs)")
    source_region: Optional[SourceRegion] = None

    @classmethod
    def uniform(cls, filt: Filter, **kwargs) -> 'SamplerConfig':
        """Same filter on both axes."""
        return cls(horizontal_filter=filt, vertical_filter=filt, **kwargs)


# ============================================================================
# GOLDEN SCHEMA
# ============================================================================

class ComparisonMode(str, Enum):
    """What the golden harness does with a candidate image."""
    SKIP = "skip"
    COMPARE = "compare"
    UPDATE = "update"


class GoldenConfig(BaseModel):
    """Explicit golden-test configuration passed into the test runner's scope."""
    model_config = ConfigDict(frozen=True)

    mode: ComparisonMode = ComparisonMode.SKIP
    reference_dir: Optional[Path] = None
    epsilon: float = Field(QUANTUM, ge=0.0)
    diff_dir: Optional[Path] = None
    case_epsilon: Dict[str, float] = Field(default_factory=dict, description="Per-reference tolerances")

    @model_validator(mode='after')
    def validate_reference_dir(self) -> 'GoldenConfig':
        if self.mode != ComparisonMode.SKIP and self.reference_dir is None:
            raise ValueError(f"Golden mode '{self.mode.value}' requires reference_dir")
        return self

    @field_validator('case_epsilon')
    @classmethod
    def validate_case_epsilon(cls, v: Dict[str, float]) -> Dict[str, float]:
        for name, eps in v.items():
            if not eps >= 0.0:
                raise ValueError(f"Tolerance for '{name}' must be non-negative, got {eps}")
        return v

    def epsilon_for(self, name: str) -> float:
        """Tolerance for one reference, falling back to epsilon."""
        return self.case_epsilon.get(name, self.epsilon)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Dict[str, str]] = None,
        *,
        mode: Optional[Union[ComparisonMode, str]] = None,
        reference_dir: Optional[Union[str, Path]] = None,
        **kwargs
    ) -> 'GoldenConfig':
        """Build from LIMAGE_GOLDEN_MODE / LIMAGE_GOLDEN_DIR (SKIP when unset).

        Explicit mode / reference_dir win over the environment one value at
        a time, so a mode given on the command line still picks up the
        directory from LIMAGE_GOLDEN_DIR. Extra kwargs go to the model.
        """
        environ = os.environ if environ is None else environ
        if mode is None:
            mode = environ.get(ENV_GOLDEN_MODE, ComparisonMode.SKIP.value).lower()
        if reference_dir is None:
            reference_dir = environ.get(ENV_GOLDEN_DIR)
        return cls(mode=mode, reference_dir=reference_dir, **kwargs)


class GoldenCase(BaseModel):
    """Per-reference overrides."""
    epsilon: Optional[float] = Field(None, ge=0.0)
    description: str = ""


class GoldenSuiteV1(BaseModel):
    """Golden suite file (golden.v1.yaml)."""
    model_config = ConfigDict(populate_by_name=True)

    schema_version: str = Field("golden.v1", alias="schema")
    reference_dir: str = Field(..., description="Directory holding reference PNGs")
    diff_dir: Optional[str] = None
    epsilon: float = Field(QUANTUM, ge=0.0)
    cases: Dict[str, GoldenCase] = Field(default_factory=dict)

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "golden.v1":
            raise ValueError(f"Expected schema 'golden.v1', got '{v}'")
        return v

    @field_validator('cases')
    @classmethod
    def validate_case_names(cls, v: Dict[str, GoldenCase]) -> Dict[str, GoldenCase]:
        for name in v:
            if not name.endswith(".png"):
                raise ValueError(f"Golden case '{name}' must name a .png reference")
        return v

    def epsilon_for(self, name: str) -> float:
        """Tolerance for one case, falling back to the suite default."""
        case = self.cases.get(name)
        if case is not None and case.epsilon is not None:
            return case.epsilon
        return self.epsilon

    def case_epsilons(self) -> Dict[str, float]:
        """Cases that override the suite tolerance."""
        return {name: case.epsilon for name, case in self.cases.items() if case.epsilon is not None}

    def to_config(
        self,
        mode: Union[ComparisonMode, str],
        base_dir: Optional[Union[str, Path]] = None,
        reference_dir: Optional[Union[str, Path]] = None
    ) -> GoldenConfig:
        """Resolve directories against base_dir and build a GoldenConfig.

        reference_dir, when given, replaces the suite's directory as is.
        """
        base = Path(base_dir) if base_dir is not None else Path('.')
        return GoldenConfig(
            mode=mode,
            reference_dir=Path(reference_dir) if reference_dir is not None else base / self.reference_dir,
            epsilon=self.epsilon,
            diff_dir=(base / self.diff_dir) if self.diff_dir else None,
            case_epsilon=self.case_epsilons(),
        )


# ============================================================================
# PUBLIC API
# ============================================================================

def load_golden_suite(path: Union[str, Path]) -> GoldenSuiteV1:
    """Load and validate a golden suite from YAML.

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If validation fails
    """
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Golden suite not found: {path}")

    data = fs.load_yaml(path)
    try:
        return GoldenSuiteV1(**data)
    except Exception as e:
        raise ValueError(f"Golden suite validation failed at {path}: {e}") from e


def load_golden_config(
    path: Union[str, Path],
    mode: Union[ComparisonMode, str] = ComparisonMode.COMPARE,
    base_dir: Optional[Union[str, Path]] = None,
    reference_dir: Optional[Union[str, Path]] = None
) -> GoldenConfig:
    """Load a golden suite and resolve it into a GoldenConfig.

    Parameters
    ----------
    path : Union[str, Path]
        golden.v1 suite file
    mode : ComparisonMode or str
        Harness mode, default COMPARE
    base_dir : Union[str, Path], optional
        Directory the suite's relative paths are resolved against
        (default: current directory)
    reference_dir : Union[str, Path], optional
        Overrides the suite's reference directory

    Returns
    -------
    GoldenConfig
        Config carrying the suite tolerance and per-case tolerances

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If validation fails
    """
    suite = load_golden_suite(path)
    try:
        return suite.to_config(mode, base_dir=base_dir, reference_dir=reference_dir)
    except Exception as e:
        raise ValueError(f"Golden config invalid for {path}: {e}") from e


def load_sampler_config(path: Union[str, Path]) -> SamplerConfig:
    """Load and validate a sampler config from YAML.

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If validation fails
    """
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Sampler config not found: {path}")

    data = fs.load_yaml(path)
    try:
        return SamplerConfig(**data)
    except Exception as e:
        raise ValueError(f"Sampler config validation failed at {path}: {e}") from e

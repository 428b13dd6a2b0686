"""
Configuration for k-means clustering runs.
"""

import json
import math
import numbers
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional

import yaml

from .errors import InvalidArgumentError

__all__ = [
    "KMeansConfig",
    "DEFAULT_CONFIG",
    "load_config",
    "validate_parameters",
]


def validate_parameters(
    num_clusters,
    max_epochs,
    min_relative_improvement,
    num_workers=1,
) -> None:
    """
    Check clusterer parameters, raising InvalidArgumentError on the first violation.

    Args:
        num_clusters: Must be an int >= 1
        max_epochs: Must be an int >= 0 (0 returns the seeding unoptimized)
        min_relative_improvement: Must be a finite number >= 0.0
        num_workers: Must be an int >= 1
    """
    if isinstance(num_clusters, bool) or not isinstance(num_clusters, numbers.Integral) or num_clusters < 1:
        raise InvalidArgumentError(
            f"Number of clusters must be positive. Found num_clusters={num_clusters!r}"
        )
    if isinstance(max_epochs, bool) or not isinstance(max_epochs, numbers.Integral) or max_epochs < 0:
        raise InvalidArgumentError(
            f"Number of epochs must be non-negative. Found max_epochs={max_epochs!r}"
        )
    try:
        improvement = float(min_relative_improvement)
    except (TypeError, ValueError):
        raise InvalidArgumentError(
            f"Minimum relative improvement must be a number. Found {min_relative_improvement!r}"
        ) from None
    if not math.isfinite(improvement) or improvement < 0.0:
        raise InvalidArgumentError(
            f"Minimum relative improvement must be finite and non-negative."
            f" Found min_relative_improvement={min_relative_improvement!r}"
        )
    if isinstance(num_workers, bool) or not isinstance(num_workers, numbers.Integral) or num_workers < 1:
        raise InvalidArgumentError(
            f"Number of workers must be positive. Found num_workers={num_workers!r}"
        )


@dataclass
class KMeansConfig:
    """Configuration for a k-means clusterer."""

    # Partition size
    num_clusters: int = 2

    # Termination
    max_epochs: int = 100
    min_relative_improvement: float = 0.0  # 0.0 = run until no element moves

    # Initialization
    kmeans_plus_plus: bool = True
    seed: Optional[int] = None  # None = fresh entropy per run

    # Reassignment shards (1 = single-threaded)
    num_workers: int = 1

    def validate(self) -> "KMeansConfig":
        validate_parameters(
            self.num_clusters,
            self.max_epochs,
            self.min_relative_improvement,
            self.num_workers,
        )
        if self.seed is not None and (isinstance(self.seed, bool) or not isinstance(self.seed, numbers.Integral)):
            raise InvalidArgumentError(f"Seed must be an int or None. Found seed={self.seed!r}")
        return self

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "KMeansConfig":
        """Create from dict, filtering out unknown keys."""
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        return cls(**filtered)


DEFAULT_CONFIG = KMeansConfig().to_dict()


def load_config(path: Path) -> KMeansConfig:
    """
    Load a clusterer config file, merging it over the defaults.

    Args:
        path: YAML (.yaml/.yml) or JSON (.json) file; the settings may sit at the
            top level or under a "kmeans" section

    Returns:
        Validated KMeansConfig

    Raises:
        FileNotFoundError: If the file does not exist
        InvalidArgumentError: If the file holds invalid settings
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"No config file at {path}")

    with open(path) as f:
        try:
            if path.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise InvalidArgumentError(f"Could not parse config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise InvalidArgumentError(f"Config file {path} must contain a mapping")

    section = data.get("kmeans", data)
    if not isinstance(section, dict):
        raise InvalidArgumentError(f"Config section 'kmeans' in {path} must be a mapping")

    # Merge with defaults
    merged = DEFAULT_CONFIG.copy()
    merged.update(section)

    return KMeansConfig.from_dict(merged).validate()

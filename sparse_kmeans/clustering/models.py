"""
Data models for k-means clustering.

Defines the sparse vector container used during optimization and the ranked
result types handed back to callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

import numpy as np


# Termination reasons
REASON_TRIVIAL = "trivial"                  # n <= k, every element its own cluster
REASON_NO_CHANGE = "no_change"              # no element changed cluster in an epoch
REASON_BELOW_THRESHOLD = "below_threshold"  # relative improvement < threshold
REASON_MAX_EPOCHS = "max_epochs"            # epoch budget exhausted


@dataclass
class SparseVectors:
    """
    Parallel sparse vectors, one per element.

    ``indices[i]`` / ``values[i]`` hold the non-zero coordinates of element i.
    The flattened arrays hold the same triples concatenated in element order so
    dot products and centroid sums can be done in a single NumPy call.
    """

    indices: list[np.ndarray]    # int64 dimension ids per element
    values: list[np.ndarray]     # float64 values per element
    sq_norms: np.ndarray         # ||x||^2 per element
    num_dims: int                # size of the symbol table
    owners: np.ndarray = field(init=False)
    flat_indices: np.ndarray = field(init=False)
    flat_values: np.ndarray = field(init=False)

    def __post_init__(self):
        lengths = np.fromiter((len(ix) for ix in self.indices), dtype=np.int64, count=len(self.indices))
        self.owners = np.repeat(np.arange(len(self.indices), dtype=np.int64), lengths)
        if self.indices:
            self.flat_indices = np.concatenate(self.indices).astype(np.int64, copy=False)
            self.flat_values = np.concatenate(self.values).astype(np.float64, copy=False)
        else:
            self.flat_indices = np.zeros(0, dtype=np.int64)
            self.flat_values = np.zeros(0, dtype=np.float64)

    def __len__(self) -> int:
        return len(self.indices)

    def dot(self, centroid: np.ndarray) -> np.ndarray:
        """Dot product of every element with one dense centroid."""
        return np.bincount(
            self.owners,
            weights=centroid[self.flat_indices] * self.flat_values,
            minlength=len(self),
        )

    def sq_distances(self, centroid: np.ndarray, centroid_sq_length: float) -> np.ndarray:
        """Squared distance of every element to one centroid, via the norm expansion."""
        return centroid_sq_length + self.sq_norms - 2.0 * self.dot(centroid)

    def to_dense(self) -> np.ndarray:
        """Dense (n, num_dims) copy, for inspection and tests."""
        dense = np.zeros((len(self), self.num_dims), dtype=np.float64)
        dense[self.owners, self.flat_indices] = self.flat_values
        return dense


@dataclass
class RunSummary:
    """How an optimization run ended."""

    reason: str
    epochs: int = 0
    errors: list[float] = field(default_factory=list)  # avg squared distance after each epoch

    @property
    def converged(self) -> bool:
        return self.reason in (REASON_NO_CHANGE, REASON_BELOW_THRESHOLD)

    @property
    def final_error(self) -> Optional[float]:
        return self.errors[-1] if self.errors else None

    def to_dict(self) -> dict:
        return {
            "reason": self.reason,
            "epochs": self.epochs,
            "errors": list(self.errors),
        }


@dataclass(frozen=True)
class ScoredCluster:
    """One cluster, members ordered best first (closest to the centroid)."""

    elements: tuple
    element_scores: tuple   # negated squared distances, parallel to elements
    score: float            # average element score

    @property
    def members(self) -> frozenset:
        return frozenset(self.elements)

    def __len__(self) -> int:
        return len(self.elements)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.elements)

    def __contains__(self, element) -> bool:
        return element in self.members

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "elements": [
                {"element": repr(e), "score": s}
                for e, s in zip(self.elements, self.element_scores)
            ],
        }


@dataclass(frozen=True)
class Clustering:
    """
    Ranked clustering result.

    Iterating yields clusters best first. ``partition()`` gives the plain
    set-of-sets view.
    """

    clusters: tuple
    summary: RunSummary

    def __len__(self) -> int:
        return len(self.clusters)

    def __iter__(self) -> Iterator[ScoredCluster]:
        return iter(self.clusters)

    def __getitem__(self, index: int) -> ScoredCluster:
        return self.clusters[index]

    def partition(self) -> set[frozenset]:
        return {cluster.members for cluster in self.clusters}

    def elements(self) -> set:
        return {e for cluster in self.clusters for e in cluster.elements}

    def cluster_of(self, element) -> Optional[ScoredCluster]:
        """The cluster containing an element, or None."""
        for cluster in self.clusters:
            if element in cluster.elements:
                return cluster
        return None

    def to_dict(self) -> dict:
        """Convert to dict for JSON serialization (elements via repr)."""
        return {
            "num_clusters": len(self.clusters),
            "summary": self.summary.to_dict(),
            "clusters": [cluster.to_dict() for cluster in self.clusters],
        }

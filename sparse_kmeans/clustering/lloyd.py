"""
Lloyd's algorithm over sparse vectors with changed-cluster tracking.

Each epoch reassigns every element to its nearest centroid, then recomputes
only the centroids whose membership changed. An element whose owning centroid
did not move keeps its cached distance as a lower bound and only has to be
compared against the centroids that did move.
"""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import numpy as np

from ..core.reporting import LogLevel, Reporter, resolve_reporter
from .models import (
    RunSummary,
    SparseVectors,
    REASON_BELOW_THRESHOLD,
    REASON_MAX_EPOCHS,
    REASON_NO_CHANGE,
)


def relative_improvement(last_error: float, error: float) -> float:
    """
    |2 (last - current)| / (|last| + |current|).

    Returns inf when there is no usable signal (no previous error, or both
    errors zero) so threshold checks fall through.
    """
    if not math.isfinite(last_error):
        return math.inf
    denominator = abs(last_error) + abs(error)
    if denominator == 0.0:
        return math.inf
    return abs(2.0 * (last_error - error)) / denominator


def assigned_sq_distances(
    vectors: SparseVectors,
    centroids: np.ndarray,
    sq_lengths: np.ndarray,
    closest: np.ndarray,
) -> np.ndarray:
    """Squared distance from every element to the centroid it is assigned to."""
    owner_clusters = closest[vectors.owners]
    products = np.bincount(
        vectors.owners,
        weights=centroids[owner_clusters, vectors.flat_indices] * vectors.flat_values,
        minlength=len(vectors),
    )
    return sq_lengths[closest] + vectors.sq_norms - 2.0 * products


class LloydIterator:
    """
    Owns the centroid, assignment and change-set arrays for one run.

    The arrays passed in are updated in place; ``run`` returns a summary of
    how the optimization ended.
    """

    def __init__(
        self,
        vectors: SparseVectors,
        centroids: np.ndarray,
        sq_lengths: np.ndarray,
        closest: np.ndarray,
        max_epochs: int,
        min_relative_improvement: float = 0.0,
        reporter: Optional[Reporter] = None,
        num_workers: int = 1,
    ):
        """
        Initialize iterator.

        Args:
            vectors: Sparse element vectors
            centroids: (k, d) dense centroids consistent with ``closest``
            sq_lengths: Squared length per centroid (inf for empty clusters)
            closest: Initial cluster index per element
            max_epochs: Epoch budget (0 = leave the initial assignment alone)
            min_relative_improvement: Stop when the error improves by less
            reporter: Progress sink (default: silent)
            num_workers: Element shards reassigned concurrently per epoch
        """
        self.vectors = vectors
        self.centroids = centroids
        self.sq_lengths = sq_lengths
        self.closest = closest
        self.max_epochs = max_epochs
        self.min_relative_improvement = min_relative_improvement
        self.reporter = resolve_reporter(reporter)
        self.num_workers = max(1, min(num_workers, len(vectors)))

        self.num_clusters = len(centroids)
        self.sq_dist = assigned_sq_distances(vectors, centroids, sq_lengths, closest)

    def run(self) -> RunSummary:
        """Iterate until convergence or until the epoch budget runs out."""
        if self.num_workers > 1:
            with ThreadPoolExecutor(
                max_workers=self.num_workers, thread_name_prefix="kmeans-shard"
            ) as executor:
                return self._epochs(executor)
        return self._epochs(None)

    def _epochs(self, executor: Optional[ThreadPoolExecutor]) -> RunSummary:
        reporter = self.reporter
        n = len(self.vectors)
        summary = RunSummary(reason=REASON_MAX_EPOCHS)
        last_changes = np.ones(self.num_clusters, dtype=bool)
        last_error = math.inf

        for epoch in range(self.max_epochs):
            reporter.report(LogLevel.DEBUG, f"Epoch={epoch}")
            changed_ids = np.flatnonzero(last_changes)
            unchanged_ids = np.flatnonzero(~last_changes)
            reporter.report(LogLevel.DEBUG, f"    #changed clusters={len(changed_ids)}")

            changes, num_moved = self._reassign_all(executor, last_changes, changed_ids, unchanged_ids)

            error = float(self.sq_dist.sum() / n) if n else 0.0
            summary.epochs = epoch + 1
            summary.errors.append(error)
            reporter.report(LogLevel.DEBUG, f"    avg dist to center={error}")
            reporter.report(LogLevel.DEBUG, f"    #moved elts={num_moved}")

            if num_moved == 0:
                reporter.report(LogLevel.INFO, "Converged by no elements changing cluster.")
                summary.reason = REASON_NO_CHANGE
                return summary

            if relative_improvement(last_error, error) < self.min_relative_improvement:
                reporter.report(LogLevel.INFO, "Converged by relative improvement < threshold")
                summary.reason = REASON_BELOW_THRESHOLD
                return summary
            last_error = error

            num_changed_elts = self._recompute_centroids(changes)
            reporter.report(LogLevel.DEBUG, f"    #changed elts={num_changed_elts}")
            last_changes = changes

        reporter.report(LogLevel.INFO, "Reached max epochs. Breaking without convergence.")
        return summary

    def _reassign_all(self, executor, last_changes, changed_ids, unchanged_ids) -> tuple[np.ndarray, int]:
        """Reassign every element; returns (this epoch's change set, #moved)."""
        # frozen for the epoch, shared read-only across shards
        changed_centroids = self.centroids[changed_ids]
        changed_sq = self.sq_lengths[changed_ids]
        unchanged_centroids = self.centroids[unchanged_ids]
        unchanged_sq = self.sq_lengths[unchanged_ids]
        args = (last_changes, changed_ids, changed_centroids, changed_sq,
                unchanged_ids, unchanged_centroids, unchanged_sq)

        n = len(self.vectors)
        if executor is None:
            return self._reassign(0, n, *args)

        bounds = np.linspace(0, n, self.num_workers + 1).astype(int)
        futures = [
            executor.submit(self._reassign, int(start), int(stop), *args)
            for start, stop in zip(bounds[:-1], bounds[1:])
            if stop > start
        ]
        changes = np.zeros(self.num_clusters, dtype=bool)
        num_moved = 0
        for future in futures:
            shard_changes, shard_moved = future.result()
            changes |= shard_changes
            num_moved += shard_moved
        return changes, num_moved

    def _reassign(
        self,
        start: int,
        stop: int,
        last_changes: np.ndarray,
        changed_ids: np.ndarray,
        changed_centroids: np.ndarray,
        changed_sq: np.ndarray,
        unchanged_ids: np.ndarray,
        unchanged_centroids: np.ndarray,
        unchanged_sq: np.ndarray,
    ) -> tuple[np.ndarray, int]:
        """Reassign elements [start, stop); writes only that slice of the assignment arrays."""
        vectors = self.vectors
        closest = self.closest
        sq_dist = self.sq_dist
        changes = np.zeros(self.num_clusters, dtype=bool)
        num_moved = 0

        for i in range(start, stop):
            idx = vectors.indices[i]
            vals = vectors.values[i]
            x_sq = vectors.sq_norms[i]
            owner = closest[i]

            # cached distance stays valid only if the owner did not move
            bound = math.inf if last_changes[owner] else sq_dist[i]
            best = -1
            if len(changed_ids):
                dist = changed_sq + x_sq - 2.0 * (changed_centroids[:, idx] @ vals)
                j = int(np.argmin(dist))
                if dist[j] < bound:
                    bound = float(dist[j])
                    best = int(changed_ids[j])

            # nothing beat the cached distance to an unmoved owner
            if best == -1:
                continue

            if not bound < sq_dist[i] and len(unchanged_ids):
                dist = unchanged_sq + x_sq - 2.0 * (unchanged_centroids[:, idx] @ vals)
                j = int(np.argmin(dist))
                if dist[j] < bound:
                    bound = float(dist[j])
                    best = int(unchanged_ids[j])

            sq_dist[i] = bound
            if best == owner:
                continue
            changes[best] = True  # to
            changes[owner] = True  # from
            closest[i] = best
            num_moved += 1

        return changes, num_moved

    def _recompute_centroids(self, changes: np.ndarray) -> int:
        """Rebuild the centroids of changed clusters; returns #elements summed."""
        vectors = self.vectors
        member = changes[self.closest]
        flat_member = member[vectors.owners]

        self.centroids[changes] = 0.0
        np.add.at(
            self.centroids,
            (self.closest[vectors.owners][flat_member], vectors.flat_indices[flat_member]),
            vectors.flat_values[flat_member],
        )
        counts = np.bincount(self.closest[member], minlength=self.num_clusters)

        for k in np.flatnonzero(changes):
            if counts[k] > 0:
                self.centroids[k] /= counts[k]
                self.sq_lengths[k] = float(self.centroids[k] @ self.centroids[k])
            else:
                # emptied cluster: never revived
                self.sq_lengths[k] = math.inf

        return int(member.sum())

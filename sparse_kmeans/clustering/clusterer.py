"""
K-means(++) clusterer over arbitrary elements.

Elements are turned into sparse vectors by a feature extractor, seeded by
k-means++ (or round-robin), optimized with Lloyd's algorithm under squared
Euclidean distance, and returned as a ranked clustering.

A clusterer instance is immutable and may be shared; the random source and
reporter passed to each call belong to that call only.
"""

from __future__ import annotations

from typing import Iterable, Optional

import numpy as np

from ..core.config import KMeansConfig, validate_parameters
from ..core.errors import DuplicateAssignmentError, InvalidArgumentError
from ..core.reporting import LogLevel, Reporter, resolve_reporter
from ..features import FeatureExtractor, as_feature_extractor
from .lloyd import LloydIterator
from .models import Clustering, SparseVectors
from .results import build_clustering, trivial_clustering
from .seeding import assign_all, kmeans_plus_plus_init, mean_centroids, round_robin_init
from .vectorizer import vectorize


class KMeansClusterer:
    """
    Clusters elements into at most ``num_clusters`` groups.

    Fewer clusters come back when there are no more elements than clusters
    (every element is then its own cluster) or when a cluster loses all of its
    members during optimization.
    """

    def __init__(
        self,
        feature_extractor: FeatureExtractor,
        num_clusters: int,
        max_epochs: int,
        kmeans_plus_plus: bool = True,
        min_relative_improvement: float = 0.0,
        num_workers: int = 1,
    ):
        """
        Initialize clusterer.

        Args:
            feature_extractor: ``features(element) -> {name: number}`` (or a bare callable)
            num_clusters: Number of clusters K (>= 1)
            max_epochs: Lloyd epoch budget (>= 0; 0 returns the seeding as-is)
            kmeans_plus_plus: k-means++ seeding if True, round-robin otherwise
            min_relative_improvement: Stop once the relative error improvement
                drops below this (>= 0.0, finite)
            num_workers: Threads sharing each epoch's reassignment pass

        Raises:
            InvalidArgumentError: On any out-of-range argument
        """
        validate_parameters(num_clusters, max_epochs, min_relative_improvement, num_workers)
        self.feature_extractor = as_feature_extractor(feature_extractor)
        self.num_clusters = int(num_clusters)
        self.max_epochs = int(max_epochs)
        self.kmeans_plus_plus = bool(kmeans_plus_plus)
        self.min_relative_improvement = float(min_relative_improvement)
        self.num_workers = int(num_workers)

    @classmethod
    def from_config(cls, feature_extractor: FeatureExtractor, config: KMeansConfig) -> KMeansClusterer:
        """Create from a KMeansConfig (its seed is ignored here; pass it to cluster())."""
        config.validate()
        return cls(
            feature_extractor,
            num_clusters=config.num_clusters,
            max_epochs=config.max_epochs,
            kmeans_plus_plus=config.kmeans_plus_plus,
            min_relative_improvement=config.min_relative_improvement,
            num_workers=config.num_workers,
        )

    def __repr__(self) -> str:
        return (
            f"KMeansClusterer(num_clusters={self.num_clusters}, max_epochs={self.max_epochs},"
            f" kmeans_plus_plus={self.kmeans_plus_plus},"
            f" min_relative_improvement={self.min_relative_improvement},"
            f" num_workers={self.num_workers})"
        )

    def cluster(
        self,
        elements: Iterable,
        random=None,
        reporter: Optional[Reporter] = None,
    ) -> Clustering:
        """
        Cluster a collection of elements.

        Args:
            elements: Hashable elements; duplicates collapse to their first
                occurrence and input order is otherwise preserved
            random: numpy Generator, int seed or None (fresh entropy). A
                Generator is consumed by this call and must not be shared with
                a concurrent run.
            reporter: Progress sink (default: silent)

        Returns:
            Clustering ranked best cluster first
        """
        reporter = resolve_reporter(reporter)
        elements = list(dict.fromkeys(elements))
        num_elements = len(elements)
        num_clusters = self.num_clusters

        reporter.report(LogLevel.INFO, f"#Elements={num_elements}")
        reporter.report(LogLevel.INFO, f"#Clusters={num_clusters}")

        if num_elements <= num_clusters:
            reporter.report(LogLevel.INFO, "Returning trivial clustering due to #elements <= #clusters")
            return trivial_clustering(elements)

        reporter.report(LogLevel.DEBUG, "Converting inputs to sparse vectors")
        vectors, symbol_table = vectorize(elements, self.feature_extractor)
        reporter.report(LogLevel.INFO, f"#Dimensions={symbol_table.num_symbols()}")

        if self.kmeans_plus_plus:
            reporter.report(LogLevel.INFO, "K-Means++ Initialization")
            rng = np.random.default_rng(random)
            closest, centroids, sq_lengths = kmeans_plus_plus_init(vectors, num_clusters, rng)
        else:
            reporter.report(LogLevel.INFO, "K-Means Round-Robin Initialization")
            closest, centroids, sq_lengths = round_robin_init(vectors, num_clusters)

        return self._optimize(elements, vectors, centroids, sq_lengths, closest, self.max_epochs, reporter)

    def recluster(
        self,
        partition: Iterable[Iterable],
        unclustered: Iterable = (),
        max_epochs: Optional[int] = None,
        reporter: Optional[Reporter] = None,
    ) -> Clustering:
        """
        Re-optimize starting from an existing partition plus new elements.

        Each cell's centroid is the mean of its given members; then every
        element (clustered or not) is reassigned once before ordinary Lloyd
        epochs run.

        Args:
            partition: Disjoint, non-empty collections of elements (a bare
                string is not accepted as a cell)
            unclustered: Elements not yet in any group
            max_epochs: Epoch budget (default: this clusterer's max_epochs)
            reporter: Progress sink (default: silent)

        Returns:
            Clustering with at most as many clusters as partition cells

        Raises:
            DuplicateAssignmentError: If an element appears twice in one cell,
                in two cells, or in a cell and in ``unclustered``
            InvalidArgumentError: On an empty or string cell, unclustered
                elements with no cells, or a bad ``max_epochs``
        """
        reporter = resolve_reporter(reporter)
        if max_epochs is None:
            max_epochs = self.max_epochs
        validate_parameters(self.num_clusters, max_epochs, self.min_relative_improvement)

        # Validate before doing any work
        cells = []
        for cell in partition:
            # a bare string would silently split into characters
            if isinstance(cell, (str, bytes)):
                raise InvalidArgumentError(
                    f"Each cluster must be a collection of elements, not a string. Found cluster={cell!r}"
                )
            cells.append(list(cell))
        unclustered = list(unclustered)
        seen = set()
        for cell in cells:
            if not cell:
                raise InvalidArgumentError("Clusters in the initial partition must be non-empty.")
            in_cell = set()
            for element in cell:
                if element in in_cell:
                    raise DuplicateAssignmentError(element, "the same cluster twice")
                if element in seen:
                    raise DuplicateAssignmentError(element, "two clusters")
                in_cell.add(element)
                seen.add(element)
        num_clustered = len(seen)
        clustered = frozenset(seen)
        for element in unclustered:
            if element in clustered:
                raise DuplicateAssignmentError(element, "a cluster and the unclustered set")
            if element in seen:
                raise DuplicateAssignmentError(element, "the unclustered set twice")
            seen.add(element)
        if unclustered and not cells:
            raise InvalidArgumentError(
                "Reclustering requires at least one initial cluster."
                f" Found 0 clusters and {len(unclustered)} unclustered elements."
            )

        reporter.report(LogLevel.INFO, "Reclustering")
        num_clusters = len(cells)
        elements = [e for cell in cells for e in cell] + unclustered
        reporter.report(LogLevel.INFO, f"# Clusters={num_clusters}")
        reporter.report(LogLevel.INFO, f"# Clustered Elements={num_clustered}")
        reporter.report(LogLevel.INFO, f"# Unclustered Elements={len(unclustered)}")
        reporter.report(LogLevel.INFO, f"# Elements Total={len(elements)}")

        if not elements:
            return trivial_clustering(elements)

        reporter.report(LogLevel.DEBUG, "Converting to vectors")
        vectors, symbol_table = vectorize(elements, self.feature_extractor)
        reporter.report(LogLevel.INFO, f"#Dimensions={symbol_table.num_symbols()}")

        # Centroids from the given cells; unclustered elements contribute nothing
        cell_ids = np.repeat(np.arange(num_clusters), [len(cell) for cell in cells])
        given = np.zeros(len(elements), dtype=bool)
        given[:num_clustered] = True
        centroids, sq_lengths, _ = mean_centroids(_subset(vectors, given), cell_ids, num_clusters)

        # Reassign everyone once, then rebuild the centroids from that pass
        closest, _ = assign_all(vectors, centroids, sq_lengths)
        centroids, sq_lengths, _ = mean_centroids(vectors, closest, num_clusters)

        return self._optimize(elements, vectors, centroids, sq_lengths, closest, max_epochs, reporter)

    def _optimize(self, elements, vectors, centroids, sq_lengths, closest, max_epochs, reporter) -> Clustering:
        iterator = LloydIterator(
            vectors,
            centroids,
            sq_lengths,
            closest,
            max_epochs=max_epochs,
            min_relative_improvement=self.min_relative_improvement,
            reporter=reporter,
            num_workers=self.num_workers,
        )
        summary = iterator.run()
        reporter.report(LogLevel.DEBUG, "Constructing Result")
        return build_clustering(elements, iterator.closest, iterator.sq_dist, len(centroids), summary)


def _subset(vectors: SparseVectors, mask: np.ndarray) -> SparseVectors:
    """The vectors selected by a boolean element mask (same dimension layout)."""
    keep = np.flatnonzero(mask)
    return SparseVectors(
        indices=[vectors.indices[i] for i in keep],
        values=[vectors.values[i] for i in keep],
        sq_norms=vectors.sq_norms[keep],
        num_dims=vectors.num_dims,
    )

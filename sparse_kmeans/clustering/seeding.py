"""
Initial centroid construction for k-means.

Two strategies:
1. k-means++: sample seed elements with probability proportional to their
   squared distance from the seeds chosen so far
2. Round-robin: element i starts in cluster i mod k

Both finish the same way: centroids are the mean of the elements assigned to
each cluster, not the seed points themselves.
"""

from __future__ import annotations

import numpy as np

from .models import SparseVectors


def mean_centroids(
    vectors: SparseVectors,
    closest: np.ndarray,
    num_clusters: int,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Centroids as the mean of their assigned elements.

    Args:
        vectors: Sparse element vectors
        closest: Cluster index per element
        num_clusters: Number of cluster slots

    Returns:
        Tuple of (centroids, sq_lengths, counts). A slot with no members gets a
        zero centroid and an infinite squared length, so no element is ever
        closer to it than to a populated cluster.
    """
    centroids = np.zeros((num_clusters, vectors.num_dims), dtype=np.float64)
    np.add.at(
        centroids,
        (closest[vectors.owners], vectors.flat_indices),
        vectors.flat_values,
    )
    counts = np.bincount(closest, minlength=num_clusters)
    populated = counts > 0
    centroids[populated] /= counts[populated, None]
    sq_lengths = np.full(num_clusters, np.inf)
    sq_lengths[populated] = np.einsum("ij,ij->i", centroids[populated], centroids[populated])
    return centroids, sq_lengths, counts


def assign_all(
    vectors: SparseVectors,
    centroids: np.ndarray,
    sq_lengths: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """
    One full assignment pass: every element to its nearest centroid.

    Clusters are scanned in index order with strict less-than, so ties go to
    the lowest index.

    Returns:
        Tuple of (closest, sq_dist)
    """
    n = len(vectors)
    closest = np.zeros(n, dtype=np.int64)
    sq_dist = np.full(n, np.inf)
    for k in range(len(centroids)):
        if not np.isfinite(sq_lengths[k]):
            continue
        dist = vectors.sq_distances(centroids[k], sq_lengths[k])
        better = dist < sq_dist
        sq_dist[better] = dist[better]
        closest[better] = k
    return closest, sq_dist


def sample_next_center(sq_distances: np.ndarray, rng: np.random.Generator) -> int:
    """
    Draw an index with probability proportional to its squared distance.

    Scans the running cumulative sum for the first total >= u, where
    u ~ Uniform(0, sum). Returns the last index if rounding leaves u above the
    final total.
    """
    # the norm expansion can dip a hair below zero for coincident points
    weights = np.maximum(sq_distances, 0.0)
    totals = np.cumsum(weights)
    sample_point = rng.random() * totals[-1]
    index = int(np.searchsorted(totals, sample_point, side="left"))
    return min(index, len(weights) - 1)


def kmeans_plus_plus_init(
    vectors: SparseVectors,
    num_clusters: int,
    rng: np.random.Generator,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    k-means++ seeding followed by one mean-centroid pass.

    Args:
        vectors: Sparse element vectors (more elements than clusters)
        num_clusters: Number of seeds to draw
        rng: Random source owned by the calling run

    Returns:
        Tuple of (closest, centroids, sq_lengths)
    """
    n = len(vectors)
    closest = np.zeros(n, dtype=np.int64)
    sq_dist = np.full(n, np.inf)
    seed = np.zeros(vectors.num_dims, dtype=np.float64)

    for k in range(num_clusters):
        index = int(rng.integers(n)) if k == 0 else sample_next_center(sq_dist, rng)
        seed[:] = 0.0
        seed[vectors.indices[index]] = vectors.values[index]
        dist = vectors.sq_distances(seed, vectors.sq_norms[index])
        better = dist < sq_dist
        sq_dist[better] = dist[better]
        closest[better] = k

    centroids, sq_lengths, _ = mean_centroids(vectors, closest, num_clusters)
    return closest, centroids, sq_lengths


def round_robin_init(
    vectors: SparseVectors,
    num_clusters: int,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Element i starts in cluster i mod k; consumes no randomness."""
    closest = np.arange(len(vectors), dtype=np.int64) % num_clusters
    centroids, sq_lengths, _ = mean_centroids(vectors, closest, num_clusters)
    return closest, centroids, sq_lengths

"""
Test vectorizer.py and seeding.py functionality
"""

import numpy as np
import pytest

from sparse_kmeans.core.errors import InvalidArgumentError
from sparse_kmeans.core.symbols import MapSymbolTable
from sparse_kmeans.features import DenseVectorFeatureExtractor, FunctionFeatureExtractor, TokenFeatureExtractor
from sparse_kmeans.clustering.seeding import (
    assign_all,
    kmeans_plus_plus_init,
    mean_centroids,
    round_robin_init,
    sample_next_center,
)
from sparse_kmeans.clustering.vectorizer import vectorize


class FixedRandom:
    """Stands in for a Generator whose next uniform draw is known."""

    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


def test_vectorize():
    """Test sparse vectors and symbol table from token counts."""
    print("Testing vectorize...")

    vectors, table = vectorize(["A A", "A A B", "B B B"], TokenFeatureExtractor())
    assert table.symbols() == ["A", "B"]
    assert vectors.num_dims == 2
    assert len(vectors) == 3
    assert np.array_equal(vectors.to_dense(), [[2.0, 0.0], [2.0, 1.0], [0.0, 3.0]])
    assert np.array_equal(vectors.sq_norms, [4.0, 5.0, 9.0])
    print("  ✓ Dense view and squared norms match the counts")

    centroid = np.array([1.0, 1.0])
    assert np.allclose(vectors.dot(centroid), [2.0, 3.0, 3.0])
    assert np.allclose(vectors.sq_distances(centroid, 2.0), [2.0, 1.0, 5.0])
    print("  ✓ Sparse dot products and squared distances")


def test_vectorize_edge_cases():
    """Test empty features, offset tables and non-finite values."""
    print("\nTesting vectorize edge cases...")

    vectors, _ = vectorize([[0.0], [3.0]], DenseVectorFeatureExtractor())
    assert len(vectors.indices[0]) == 0
    assert np.array_equal(vectors.sq_norms, [0.0, 9.0])
    print("  ✓ Element with no features is the zero vector")

    vectors, table = vectorize(["x y"], TokenFeatureExtractor(), MapSymbolTable(first_id=4))
    assert vectors.num_dims >= 6
    assert np.array_equal(vectors.to_dense()[0, 4:6], [1.0, 1.0])
    print("  ✓ Dimension count covers ids from an offset table")

    bad = FunctionFeatureExtractor(lambda e: {"x": float("nan")})
    with pytest.raises(InvalidArgumentError):
        vectorize(["e"], bad)
    print("  ✓ Non-finite feature value rejected")


def test_sample_next_center():
    """Test cumulative-sum sampling and overrun fallback."""
    print("\nTesting sample_next_center...")

    weights = np.array([0.0, 1.0, 0.0, 3.0])
    assert sample_next_center(weights, FixedRandom(0.1)) == 1   # u = 0.4
    assert sample_next_center(weights, FixedRandom(0.25)) == 1  # u = 1.0, first total >= u
    assert sample_next_center(weights, FixedRandom(0.5)) == 3   # u = 2.0
    assert sample_next_center(weights, FixedRandom(0.99)) == 3
    print("  ✓ First index whose running total reaches u")

    assert sample_next_center(weights, FixedRandom(1.5)) == 3
    print("  ✓ Overrun falls back to the last index")

    assert sample_next_center(np.array([-1e-12, 2.0]), FixedRandom(0.5)) == 1
    print("  ✓ Slightly negative distances treated as zero weight")


def test_mean_centroids_and_assign():
    """Test mean centroids, empty slots and tie-breaking."""
    print("\nTesting mean_centroids and assign_all...")

    vectors, _ = vectorize([[1.0, 0.0], [3.0, 0.0], [0.0, 4.0]], DenseVectorFeatureExtractor())
    closest = np.array([0, 0, 1])
    centroids, sq_lengths, counts = mean_centroids(vectors, closest, 3)
    assert np.allclose(centroids[0], [2.0, 0.0])
    assert np.allclose(centroids[1], [0.0, 4.0])
    assert np.array_equal(counts, [2, 1, 0])
    assert np.allclose(sq_lengths[:2], [4.0, 16.0])
    assert np.isinf(sq_lengths[2]) and not centroids[2].any()
    print("  ✓ Means computed, empty slot has zero centroid and infinite length")

    new_closest, sq_dist = assign_all(vectors, centroids, sq_lengths)
    assert np.array_equal(new_closest, [0, 0, 1])
    assert np.allclose(sq_dist, [1.0, 1.0, 0.0])
    print("  ✓ Empty slot never attracts an element")

    twins = np.array([[2.0, 0.0], [2.0, 0.0]])
    tied, _ = assign_all(vectors, twins, np.array([4.0, 4.0]))
    assert np.array_equal(tied, [0, 0, 0])
    print("  ✓ Ties go to the lowest cluster index")


def test_round_robin_init():
    """Test element i starts in cluster i mod k."""
    print("\nTesting round_robin_init...")

    vectors, _ = vectorize([[float(i)] for i in range(1, 6)], DenseVectorFeatureExtractor())
    closest, centroids, sq_lengths = round_robin_init(vectors, 2)
    assert np.array_equal(closest, [0, 1, 0, 1, 0])
    assert np.allclose(centroids[:, 0], [3.0, 3.0])
    assert np.allclose(sq_lengths, [9.0, 9.0])
    print("  ✓ Round-robin assignment with mean centroids")


def test_kmeans_plus_plus_init():
    """Test k-means++ seeding separates distinct groups and is reproducible."""
    print("\nTesting kmeans_plus_plus_init...")

    points = [[0.0, 0.0], [0.1, 0.0], [100.0, 100.0], [100.1, 100.0]]
    vectors, _ = vectorize(points, DenseVectorFeatureExtractor())

    for seed in range(20):
        closest, centroids, sq_lengths = kmeans_plus_plus_init(vectors, 2, np.random.default_rng(seed))
        assert closest[0] == closest[1]
        assert closest[2] == closest[3]
        assert closest[0] != closest[2], f"seed={seed} picked both seeds from one group"
        assert np.isfinite(sq_lengths).all()
    print("  ✓ Far-apart groups always get their own seed")

    first = kmeans_plus_plus_init(vectors, 2, np.random.default_rng(5))
    second = kmeans_plus_plus_init(vectors, 2, np.random.default_rng(5))
    for a, b in zip(first, second):
        assert np.array_equal(a, b)
    print("  ✓ Same seed, same seeding")


def test_kmeans_plus_plus_duplicate_points():
    """Test identical points never supply two seeds while a distinct point remains."""
    print("\nTesting kmeans_plus_plus_init with duplicate points...")

    vectors, _ = vectorize([[1.0], [1.0], [1.0], [5.0]], DenseVectorFeatureExtractor())
    for seed in range(50):
        closest, _, _ = kmeans_plus_plus_init(vectors, 2, np.random.default_rng(seed))
        assert closest[0] == closest[1] == closest[2]
        assert closest[3] != closest[0]
    print("  ✓ Zero-distance points carry zero sampling weight")


def run_all_tests():
    """Run all vectorizer and seeding tests."""
    print("=" * 60)
    print("VECTORIZER AND SEEDING VALIDATION")
    print("=" * 60)
    print()

    test_vectorize()
    test_vectorize_edge_cases()
    test_sample_next_center()
    test_mean_centroids_and_assign()
    test_round_robin_init()
    test_kmeans_plus_plus_init()
    test_kmeans_plus_plus_duplicate_points()

    print()
    print("=" * 60)
    print("✅ ALL VECTORIZER AND SEEDING TESTS PASSED")
    print("=" * 60)


if __name__ == "__main__":
    run_all_tests()

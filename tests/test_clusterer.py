"""
Test clusterer.py and results.py functionality
"""

import json

import numpy as np

from sparse_kmeans.clustering import (
    EXACT_MATCH_SCORE,
    KMeansClusterer,
    REASON_MAX_EPOCHS,
    REASON_NO_CHANGE,
    REASON_TRIVIAL,
    RunSummary,
    build_clustering,
)
from sparse_kmeans.features import TokenFeatureExtractor


def random_docs(n, vocab_size=12, max_len=8, seed=0):
    rng = np.random.default_rng(seed)
    vocab = [f"w{i}" for i in range(vocab_size)]
    docs = []
    for i in range(n):
        words = rng.choice(vocab, size=int(rng.integers(1, max_len + 1)))
        docs.append(f"doc{i} " + " ".join(words))
    return docs


def make_clusterer(k, max_epochs=100, **kwargs):
    return KMeansClusterer(TokenFeatureExtractor(), num_clusters=k, max_epochs=max_epochs, **kwargs)


def assert_partition_of(clustering, elements):
    seen = [e for cluster in clustering for e in cluster]
    assert len(seen) == len(set(seen)), "Element appears in two clusters"
    assert set(seen) == set(elements), "Clustering must cover exactly the input"
    assert all(len(cluster) > 0 for cluster in clustering), "Empty cluster returned"


def test_trivial_case():
    """Test n <= k returns singletons regardless of randomness."""
    print("Testing trivial case...")

    elements = ["A A A", "B B B"]
    clusterer = make_clusterer(2)
    for seed in range(1000):
        clustering = clusterer.cluster(elements, random=seed)
        assert clustering.partition() == {frozenset(["A A A"]), frozenset(["B B B"])}
    print("  ✓ Two singletons over 1000 seeds")

    clustering = make_clusterer(5).cluster(["x", "y", "z"])
    assert len(clustering) == 3
    assert clustering.summary.reason == REASON_TRIVIAL
    assert all(cluster.score == EXACT_MATCH_SCORE for cluster in clustering)
    assert all(cluster.element_scores == (EXACT_MATCH_SCORE,) for cluster in clustering)
    print("  ✓ Singletons scored as exact matches")

    for k in (1, 3):
        clustering = make_clusterer(k).cluster(["only"])
        assert clustering.partition() == {frozenset(["only"])}
    print("  ✓ Single element is always its own cluster")

    assert len(make_clusterer(2).cluster([])) == 0
    print("  ✓ Empty input gives an empty clustering")

    clustering = make_clusterer(2).cluster(["a", "a", "b"])
    assert clustering.partition() == {frozenset(["a"]), frozenset(["b"])}
    print("  ✓ Duplicate elements collapse before the size check")


def test_single_cluster():
    """Test k=1 puts everything together for any seeding and budget."""
    print("\nTesting k=1...")

    elements = ["A A A", "B B B", "C C C"]
    for kmeans_plus_plus in (True, False):
        for max_epochs in (0, 1, 2, 5):
            clusterer = make_clusterer(1, max_epochs=max_epochs, kmeans_plus_plus=kmeans_plus_plus)
            clustering = clusterer.cluster(elements, random=max_epochs)
            assert clustering.partition() == {frozenset(elements)}
    print("  ✓ One cluster holding all three elements")


def test_two_groups():
    """Test the A/B token example separates as expected."""
    print("\nTesting two-group example...")

    elements = ["A A", "A A B", "B B B"]
    expected = {frozenset(["A A", "A A B"]), frozenset(["B B B"])}

    clusterer = make_clusterer(2)
    for seed in range(50):
        assert clusterer.cluster(elements, random=seed).partition() == expected, f"seed={seed}"
    print("  ✓ k-means++ over 50 seeds")

    clustering = make_clusterer(2, kmeans_plus_plus=False).cluster(elements)
    assert clustering.partition() == expected
    assert clustering.summary.reason == REASON_NO_CHANGE
    print("  ✓ Round-robin initialization")


def test_coverage():
    """Test every run returns a partition of the input."""
    print("\nTesting coverage...")

    docs = random_docs(40, seed=1)
    runs = 0
    for kmeans_plus_plus in (True, False):
        for max_epochs in (0, 1, 2, 5, 100):
            for k in (2, 3, 7):
                clusterer = make_clusterer(k, max_epochs=max_epochs, kmeans_plus_plus=kmeans_plus_plus)
                clustering = clusterer.cluster(docs, random=runs)
                assert_partition_of(clustering, docs)
                assert len(clustering) <= k
                runs += 1
    print(f"  ✓ {runs} runs all partition the input")


def test_determinism():
    """Test fixed seed and order give identical results."""
    print("\nTesting determinism...")

    docs = random_docs(60, seed=2)
    clusterer = make_clusterer(4)

    def snapshot(clustering):
        return [(c.elements, c.element_scores, c.score) for c in clustering]

    first = clusterer.cluster(docs, random=123)
    second = clusterer.cluster(docs, random=123)
    assert snapshot(first) == snapshot(second)
    print("  ✓ Same int seed, same clustering")

    third = clusterer.cluster(docs, random=np.random.default_rng(123))
    assert snapshot(third) == snapshot(first)
    print("  ✓ Generator with the same seed matches")

    threaded = make_clusterer(4, num_workers=4).cluster(docs, random=123)
    assert snapshot(threaded) == snapshot(first)
    print("  ✓ Sharded reassignment matches single-threaded")


def test_convergence_reason():
    """Test zero threshold with a large budget ends by no change."""
    print("\nTesting convergence reason...")

    docs = random_docs(80, seed=3)
    for seed in range(5):
        clustering = make_clusterer(5, max_epochs=10_000).cluster(docs, random=seed)
        assert clustering.summary.reason == REASON_NO_CHANGE
        assert clustering.summary.converged
    print("  ✓ Every run converged by no change")

    clustering = make_clusterer(5, max_epochs=0).cluster(docs, random=0)
    assert clustering.summary.reason == REASON_MAX_EPOCHS
    assert clustering.summary.epochs == 0
    assert_partition_of(clustering, docs)
    print("  ✓ Zero epochs returns the seeding")


def test_ranking():
    """Test clusters and members are ordered best first."""
    print("\nTesting ranking...")

    docs = random_docs(50, seed=4)
    clustering = make_clusterer(4).cluster(docs, random=7)
    scores = [cluster.score for cluster in clustering]
    assert scores == sorted(scores, reverse=True)
    for cluster in clustering:
        assert list(cluster.element_scores) == sorted(cluster.element_scores, reverse=True)
        assert np.isclose(cluster.score, np.mean(cluster.element_scores))
    print("  ✓ Descending cluster and element scores")

    summary = RunSummary(reason=REASON_NO_CHANGE)
    built = build_clustering(
        ["a", "b", "c", "d", "e"],
        np.array([0, 0, 2, 2, 0]),
        np.array([4.0, 0.0, 1.0, 1.0, 2.0]),
        3,
        summary,
    )
    assert len(built) == 2
    assert built[0].elements == ("c", "d")
    assert built[0].score == -1.0
    assert built[1].elements == ("b", "e", "a")
    assert built[1].element_scores == (EXACT_MATCH_SCORE, -2.0, -4.0)
    assert built[1].score == -2.0
    print("  ✓ Exact match ranks first, ties keep input order, empty cluster dropped")


def test_exact_match_sentinel():
    """Test zero distances score as the smallest negative number."""
    print("\nTesting exact-match scores...")

    assert EXACT_MATCH_SCORE < 0.0
    assert EXACT_MATCH_SCORE > -1e-300
    assert EXACT_MATCH_SCORE != 0.0

    elements = ["A A A", "A A A ", "B B B"]
    clustering = make_clusterer(2, kmeans_plus_plus=False).cluster(elements)
    assert clustering.partition() == {frozenset(["A A A", "A A A "]), frozenset(["B B B"])}
    for cluster in clustering:
        assert cluster.score == EXACT_MATCH_SCORE
        assert all(score == EXACT_MATCH_SCORE for score in cluster.element_scores)
    print("  ✓ Identical feature vectors get the sentinel score")


def test_result_accessors():
    """Test Clustering helpers and JSON export."""
    print("\nTesting Clustering accessors...")

    elements = ["A A", "A A B", "B B B"]
    clustering = make_clusterer(2, kmeans_plus_plus=False).cluster(elements)

    assert clustering.elements() == set(elements)
    assert "A A" in clustering.cluster_of("A A B")
    assert clustering.cluster_of("missing") is None

    data = json.loads(json.dumps(clustering.to_dict()))
    assert data["num_clusters"] == 2
    assert data["summary"]["reason"] == REASON_NO_CHANGE
    assert sum(len(c["elements"]) for c in data["clusters"]) == 3
    print("  ✓ Lookups and JSON export work")

    assert "num_clusters=2" in repr(make_clusterer(2))
    print("  ✓ Clusterer repr shows its settings")


def run_all_tests():
    """Run all clusterer tests."""
    print("=" * 60)
    print("CLUSTERER VALIDATION")
    print("=" * 60)
    print()

    test_trivial_case()
    test_single_cluster()
    test_two_groups()
    test_coverage()
    test_determinism()
    test_convergence_reason()
    test_ranking()
    test_exact_match_sentinel()
    test_result_accessors()

    print()
    print("=" * 60)
    print("✅ ALL CLUSTERER TESTS PASSED")
    print("=" * 60)


if __name__ == "__main__":
    run_all_tests()

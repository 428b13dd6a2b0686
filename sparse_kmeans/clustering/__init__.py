"""
K-means clustering over sparse feature vectors.

Lloyd's algorithm with k-means++ seeding, changed-cluster tracking and
reclustering from an existing partition. Results are ranked best first.
"""

from .models import (
    SparseVectors,
    RunSummary,
    ScoredCluster,
    Clustering,
    REASON_TRIVIAL,
    REASON_NO_CHANGE,
    REASON_BELOW_THRESHOLD,
    REASON_MAX_EPOCHS,
)
from .vectorizer import vectorize
from .seeding import (
    mean_centroids,
    assign_all,
    sample_next_center,
    kmeans_plus_plus_init,
    round_robin_init,
)
from .lloyd import LloydIterator, relative_improvement
from .results import build_clustering, trivial_clustering, EXACT_MATCH_SCORE
from .clusterer import KMeansClusterer
from .scoring import ClusterScore, PairCounts, f_measure

__all__ = [
    # Models
    "SparseVectors",
    "RunSummary",
    "ScoredCluster",
    "Clustering",
    "REASON_TRIVIAL",
    "REASON_NO_CHANGE",
    "REASON_BELOW_THRESHOLD",
    "REASON_MAX_EPOCHS",
    # Algorithm
    "vectorize",
    "mean_centroids",
    "assign_all",
    "sample_next_center",
    "kmeans_plus_plus_init",
    "round_robin_init",
    "LloydIterator",
    "relative_improvement",
    "build_clustering",
    "trivial_clustering",
    "EXACT_MATCH_SCORE",
    # Clusterer
    "KMeansClusterer",
    # Scoring
    "ClusterScore",
    "PairCounts",
    "f_measure",
]

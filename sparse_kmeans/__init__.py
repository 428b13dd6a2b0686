"""
sparse-kmeans: k-means(++) clustering of arbitrary elements via sparse features.
"""

from .core import (
    InvalidArgumentError,
    DuplicateAssignmentError,
    UnknownSymbolError,
    LogLevel,
    Reporter,
    Reporters,
    MapSymbolTable,
    KMeansConfig,
    load_config,
)
from .features import (
    FeatureExtractor,
    FunctionFeatureExtractor,
    TokenFeatureExtractor,
    DenseVectorFeatureExtractor,
    LengthNormFeatureExtractor,
    PrefixedFeatureExtractor,
    CacheFeatureExtractor,
)
from .clustering import KMeansClusterer, Clustering, ScoredCluster, RunSummary, ClusterScore

__version__ = "0.1.0"

__all__ = [
    "InvalidArgumentError",
    "DuplicateAssignmentError",
    "UnknownSymbolError",
    "LogLevel",
    "Reporter",
    "Reporters",
    "MapSymbolTable",
    "KMeansConfig",
    "load_config",
    "FeatureExtractor",
    "FunctionFeatureExtractor",
    "TokenFeatureExtractor",
    "DenseVectorFeatureExtractor",
    "LengthNormFeatureExtractor",
    "PrefixedFeatureExtractor",
    "CacheFeatureExtractor",
    "KMeansClusterer",
    "Clustering",
    "ScoredCluster",
    "RunSummary",
    "ClusterScore",
]

#!/usr/bin/env python3
"""
Cluster a directory of text documents with k-means.

The input directory holds one subdirectory per reference category, each with
plain-text files. Documents are clustered by token counts and the result is
scored against the categories.

Usage:
    python scripts/cluster_docs.py ./corpus --k 3
    python scripts/cluster_docs.py ./corpus --config kmeans.yaml --seed 42
    python scripts/cluster_docs.py ./corpus --k 3 --log-jsonl run.jsonl --json
"""

import argparse
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sparse_kmeans.core.config import KMeansConfig, load_config
from sparse_kmeans.core.errors import InvalidArgumentError
from sparse_kmeans.core.reporting import LogLevel, Reporters
from sparse_kmeans.features import (
    CacheFeatureExtractor,
    LengthNormFeatureExtractor,
    TokenFeatureExtractor,
)
from sparse_kmeans.clustering import ClusterScore, KMeansClusterer


def read_corpus(corpus_dir: Path) -> tuple[dict[str, str], list[set[str]]]:
    """
    Read category/file.txt documents.

    Returns:
        Tuple of (doc id -> text, reference partition of doc ids)
    """
    texts = {}
    reference = []
    for category_dir in sorted(p for p in corpus_dir.iterdir() if p.is_dir()):
        category = set()
        for doc_path in sorted(p for p in category_dir.iterdir() if p.is_file()):
            doc_id = f"{category_dir.name}/{doc_path.name}"
            texts[doc_id] = doc_path.read_text(encoding="utf-8", errors="replace")
            category.add(doc_id)
        if category:
            reference.append(category)
    return texts, reference


def build_config(args) -> KMeansConfig:
    """Config file (if any) with command-line overrides on top."""
    config = load_config(Path(args.config)) if args.config else KMeansConfig()
    if args.k is not None:
        config.num_clusters = args.k
    if args.epochs is not None:
        config.max_epochs = args.epochs
    if args.seed is not None:
        config.seed = args.seed
    if args.workers is not None:
        config.num_workers = args.workers
    if args.round_robin:
        config.kmeans_plus_plus = False
    return config.validate()


def print_clustering(clustering, texts: dict[str, str], preview: int = 40) -> None:
    print(f"\n=== {len(clustering)} clusters ({clustering.summary.reason},"
          f" {clustering.summary.epochs} epochs) ===")
    for rank, cluster in enumerate(clustering):
        print(f"\nCluster {rank}: size={len(cluster)} score={cluster.score:.4f}")
        for doc_id, score in zip(cluster.elements, cluster.element_scores):
            snippet = " ".join(texts[doc_id].split())[:preview]
            print(f"  {score:10.4f}  {doc_id}  {snippet}")


def print_scores(score: ClusterScore) -> None:
    equivalence = score.equivalence()
    print("\n=== Scores vs reference categories ===")
    print(f"  Equivalence  P={equivalence.precision:.4f} R={equivalence.recall:.4f}"
          f" F={equivalence.f_measure:.4f}")
    print(f"  MUC          P={score.muc_precision():.4f} R={score.muc_recall():.4f}"
          f" F={score.muc_f():.4f}")
    print(f"  B3 element   P={score.b3_element_precision():.4f} R={score.b3_element_recall():.4f}"
          f" F={score.b3_element_f():.4f}")
    print(f"  B3 cluster   P={score.b3_cluster_precision():.4f} R={score.b3_cluster_recall():.4f}"
          f" F={score.b3_cluster_f():.4f}")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Cluster text documents with k-means over token counts"
    )
    parser.add_argument("corpus_dir", help="Directory of category subdirectories holding text files")
    parser.add_argument("--config", help="YAML or JSON clusterer config")
    parser.add_argument("--k", type=int, help="Number of clusters")
    parser.add_argument("--epochs", type=int, help="Max Lloyd epochs")
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument("--workers", type=int, help="Reassignment threads")
    parser.add_argument("--round-robin", action="store_true",
                        help="Round-robin initialization instead of k-means++")
    parser.add_argument("--no-length-norm", dest="length_norm", action="store_false",
                        help="Use raw token counts")
    parser.add_argument("--lowercase", action="store_true", help="Lowercase tokens")
    parser.add_argument("--log-jsonl", help="Write DEBUG progress events to this JSONL file")
    parser.add_argument("--json", action="store_true", help="Print result as JSON")
    parser.add_argument("--verbose", action="store_true", help="Print progress to stdout")

    args = parser.parse_args(argv)

    corpus_dir = Path(args.corpus_dir)
    if not corpus_dir.is_dir():
        print(f"Error: {corpus_dir} is not a directory", file=sys.stderr)
        return 1

    try:
        config = build_config(args)
    except (FileNotFoundError, InvalidArgumentError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    texts, reference = read_corpus(corpus_dir)
    if not texts:
        print(f"Error: no documents under {corpus_dir}", file=sys.stderr)
        return 1

    tokens = TokenFeatureExtractor(lowercase=args.lowercase)
    extractor = LengthNormFeatureExtractor(tokens) if args.length_norm else tokens
    doc_features = CacheFeatureExtractor(lambda doc_id: extractor.features(texts[doc_id]))
    clusterer = KMeansClusterer.from_config(doc_features, config)

    reporters = []
    if args.verbose:
        reporters.append(Reporters.stdout(LogLevel.DEBUG))
    if args.log_jsonl:
        reporters.append(Reporters.jsonl(Path(args.log_jsonl)))

    with Reporters.tee(*reporters) as reporter:
        if args.log_jsonl:
            reporters[-1].log_event("run_start", corpus=str(corpus_dir), config=config.to_dict())
        clustering = clusterer.cluster(texts, random=config.seed, reporter=reporter)
        score = ClusterScore(reference, clustering)
        if args.log_jsonl:
            reporters[-1].log_event("run_end", summary=clustering.summary.to_dict(), scores=score.to_dict())

    if args.json:
        print(json.dumps({
            "config": config.to_dict(),
            "clustering": clustering.to_dict(),
            "scores": score.to_dict(),
        }, indent=2))
    else:
        print_clustering(clustering, texts)
        print_scores(score)

    return 0


if __name__ == "__main__":
    sys.exit(main())

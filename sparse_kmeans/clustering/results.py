"""
Construction of ranked clusterings from final assignments.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from .models import Clustering, RunSummary, ScoredCluster, REASON_TRIVIAL


# Score for an exact match (distance 0): the negative number closest to zero,
# so exact matches still sort strictly and never compare equal to -0.0
EXACT_MATCH_SCORE = -math.ulp(0.0)


def _score(negated_distance: float) -> float:
    return EXACT_MATCH_SCORE if negated_distance == 0.0 else negated_distance


def build_clustering(
    elements: Sequence,
    closest: np.ndarray,
    sq_dist: np.ndarray,
    num_clusters: int,
    summary: RunSummary,
) -> Clustering:
    """
    Group elements by cluster and rank both levels by fit.

    Element score is the negated squared distance to its centroid; cluster
    score is the average element score. Empty clusters are dropped. Sorting is
    stable, so ties keep input order.
    """
    members: list[list[int]] = [[] for _ in range(num_clusters)]
    totals = [0.0] * num_clusters
    for i, k in enumerate(closest.tolist()):
        members[k].append(i)
        totals[k] -= float(sq_dist[i])

    clusters = []
    for k in range(num_clusters):
        if not members[k]:
            continue
        scored = sorted(
            ((elements[i], _score(-float(sq_dist[i]))) for i in members[k]),
            key=lambda pair: -pair[1],
        )
        clusters.append(ScoredCluster(
            elements=tuple(e for e, _ in scored),
            element_scores=tuple(s for _, s in scored),
            score=_score(totals[k] / len(members[k])),
        ))

    clusters.sort(key=lambda cluster: -cluster.score)
    return Clustering(clusters=tuple(clusters), summary=summary)


def trivial_clustering(elements: Sequence) -> Clustering:
    """Every element in its own singleton cluster."""
    clusters = tuple(
        ScoredCluster(elements=(e,), element_scores=(EXACT_MATCH_SCORE,), score=EXACT_MATCH_SCORE)
        for e in elements
    )
    return Clustering(clusters=clusters, summary=RunSummary(reason=REASON_TRIVIAL))

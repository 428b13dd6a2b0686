"""
Comparison of a response clustering against a reference partition.

Three families of scores:
1. Equivalence: every ordered pair (x, y), self-pairs included, is a positive
   if x and y share a cluster. Precision/recall over those pairs.
2. MUC: link-based precision/recall (the number of links needed to join each
   cluster, minus the links that cross the other partition).
3. B-cubed: per-element overlap of the element's reference and response
   clusters, averaged uniformly over elements or over clusters.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ..core.errors import InvalidArgumentError


def f_measure(precision: float, recall: float) -> float:
    """Harmonic mean; 0.0 when both are zero."""
    if precision + recall == 0.0:
        return 0.0
    return 2.0 * precision * recall / (precision + recall)


@dataclass(frozen=True)
class PairCounts:
    """Confusion counts over ordered element pairs."""

    true_positive: int
    false_positive: int
    false_negative: int
    true_negative: int

    @property
    def precision(self) -> float:
        predicted = self.true_positive + self.false_positive
        return self.true_positive / predicted if predicted else 1.0

    @property
    def recall(self) -> float:
        actual = self.true_positive + self.false_negative
        return self.true_positive / actual if actual else 1.0

    @property
    def f_measure(self) -> float:
        return f_measure(self.precision, self.recall)

    def to_dict(self) -> dict:
        return {
            "tp": self.true_positive,
            "fp": self.false_positive,
            "fn": self.false_negative,
            "tn": self.true_negative,
            "precision": self.precision,
            "recall": self.recall,
            "f": self.f_measure,
        }


def _as_partition(partition: Iterable[Iterable], name: str) -> list[frozenset]:
    cells = []
    seen = set()
    for cell in partition:
        cell = frozenset(cell)
        if not cell:
            raise InvalidArgumentError(f"Partition cells must be non-empty. Found an empty cell in {name}.")
        overlap = cell & seen
        if overlap:
            raise InvalidArgumentError(
                f"Partition cells must be disjoint. Found element={next(iter(overlap))!r} twice in {name}."
            )
        seen |= cell
        cells.append(cell)
    return cells


def _cell_index(cells: list[frozenset]) -> dict:
    return {element: cell for cell in cells for element in cell}


class ClusterScore:
    """
    Scores a response partition against a reference partition of the same elements.

    Accepts any iterable of iterables, including a ``Clustering`` result or the
    set of frozensets from ``Clustering.partition()``.
    """

    def __init__(self, reference: Iterable[Iterable], response: Iterable[Iterable]):
        """
        Initialize score.

        Args:
            reference: Gold-standard partition
            response: Partition being evaluated

        Raises:
            InvalidArgumentError: If either is not a partition (empty or
                overlapping cells) or they cover different elements
        """
        self.reference = _as_partition(reference, "reference")
        self.response = _as_partition(response, "response")
        self._reference_of = _cell_index(self.reference)
        self._response_of = _cell_index(self.response)

        if self._reference_of.keys() != self._response_of.keys():
            missing = self._reference_of.keys() ^ self._response_of.keys()
            raise InvalidArgumentError(
                "Reference and response must partition the same elements."
                f" Found element={next(iter(missing))!r} in only one of them."
            )

    @property
    def num_elements(self) -> int:
        return len(self._reference_of)

    # Equivalence (pairwise)

    def equivalence(self) -> PairCounts:
        """Confusion counts over all n^2 ordered pairs."""
        reference_pairs = sum(len(cell) ** 2 for cell in self.reference)
        response_pairs = sum(len(cell) ** 2 for cell in self.response)
        true_positive = sum(
            len(ref & resp) ** 2 for ref in self.reference for resp in self.response
        )
        false_positive = response_pairs - true_positive
        false_negative = reference_pairs - true_positive
        true_negative = self.num_elements ** 2 - true_positive - false_positive - false_negative
        return PairCounts(true_positive, false_positive, false_negative, true_negative)

    # MUC

    def muc_precision(self) -> float:
        return _muc_recall(self.response, self._reference_of)

    def muc_recall(self) -> float:
        return _muc_recall(self.reference, self._response_of)

    def muc_f(self) -> float:
        return f_measure(self.muc_precision(), self.muc_recall())

    # B-cubed

    def b3_element_precision(self) -> float:
        return _b3_element(self._response_of, self._reference_of)

    def b3_element_recall(self) -> float:
        return _b3_element(self._reference_of, self._response_of)

    def b3_element_f(self) -> float:
        return f_measure(self.b3_element_precision(), self.b3_element_recall())

    def b3_cluster_precision(self) -> float:
        return _b3_cluster(self.response, self._reference_of)

    def b3_cluster_recall(self) -> float:
        return _b3_cluster(self.reference, self._response_of)

    def b3_cluster_f(self) -> float:
        return f_measure(self.b3_cluster_precision(), self.b3_cluster_recall())

    def to_dict(self) -> dict:
        """All scores, for JSON output."""
        return {
            "num_elements": self.num_elements,
            "equivalence": self.equivalence().to_dict(),
            "muc": {"precision": self.muc_precision(), "recall": self.muc_recall(), "f": self.muc_f()},
            "b3_element": {
                "precision": self.b3_element_precision(),
                "recall": self.b3_element_recall(),
                "f": self.b3_element_f(),
            },
            "b3_cluster": {
                "precision": self.b3_cluster_precision(),
                "recall": self.b3_cluster_recall(),
                "f": self.b3_cluster_f(),
            },
        }


def _muc_recall(cells: list[frozenset], other_of: dict) -> float:
    """Fraction of each cell's spanning links that survive the other partition."""
    numerator = 0
    denominator = 0
    for cell in cells:
        pieces = {other_of[e] for e in cell}
        numerator += len(cell) - len(pieces)
        denominator += len(cell) - 1
    return numerator / denominator if denominator else 1.0


def _b3_element(cell_of: dict, other_of: dict) -> float:
    if not cell_of:
        return 1.0
    total = sum(len(cell_of[e] & other_of[e]) / len(cell_of[e]) for e in cell_of)
    return total / len(cell_of)


def _b3_cluster(cells: list[frozenset], other_of: dict) -> float:
    if not cells:
        return 1.0
    total = 0.0
    for cell in cells:
        total += sum(len(cell & other_of[e]) for e in cell) / (len(cell) ** 2)
    return total / len(cells)

"""
Conversion of domain elements into sparse feature vectors.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np

from ..core.errors import InvalidArgumentError
from ..core.symbols import MapSymbolTable, SymbolTable
from ..features import FeatureExtractor
from .models import SparseVectors


def vectorize(
    elements: Sequence,
    feature_extractor: FeatureExtractor,
    symbol_table: Optional[SymbolTable] = None,
) -> tuple[SparseVectors, SymbolTable]:
    """
    Extract features for every element and index them densely.

    Args:
        elements: Elements in the order their vectors should be laid out
        feature_extractor: Object with ``features(element) -> {name: number}``
        symbol_table: Table to grow (default: a fresh MapSymbolTable)

    Returns:
        Tuple of (vectors, symbol_table); the table covers every feature name seen

    Raises:
        InvalidArgumentError: If a feature value is not a finite number
    """
    if symbol_table is None:
        symbol_table = MapSymbolTable()

    indices: list[np.ndarray] = []
    values: list[np.ndarray] = []
    sq_norms = np.zeros(len(elements), dtype=np.float64)

    for i, element in enumerate(elements):
        feature_map = feature_extractor.features(element)
        ids = np.empty(len(feature_map), dtype=np.int64)
        vals = np.empty(len(feature_map), dtype=np.float64)
        for j, (name, value) in enumerate(feature_map.items()):
            value = float(value)
            if not math.isfinite(value):
                raise InvalidArgumentError(
                    f"Feature values must be finite. Found {name!r}={value} for element={element!r}"
                )
            ids[j] = symbol_table.get_or_add_symbol(name)
            vals[j] = value
        indices.append(ids)
        values.append(vals)
        sq_norms[i] = float(vals @ vals)

    # tables may start numbering above zero
    top_id = max((int(ids.max()) for ids in indices if len(ids)), default=-1)
    vectors = SparseVectors(
        indices=indices,
        values=values,
        sq_norms=sq_norms,
        num_dims=max(symbol_table.num_symbols(), top_id + 1),
    )
    return vectors, symbol_table

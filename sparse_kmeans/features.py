"""
Feature extractors turning domain elements into sparse feature maps.

A feature extractor is any callable-like object with a ``features(element)``
method returning a mapping from feature name to number. Plain functions can be
wrapped with ``FunctionFeatureExtractor``.
"""

from __future__ import annotations

import math
import numbers
import re
import threading
from collections import Counter
from typing import Any, Callable, Hashable, Mapping, Optional, Protocol, Sequence

from .core.errors import InvalidArgumentError

__all__ = [
    "FeatureExtractor",
    "FunctionFeatureExtractor",
    "TokenFeatureExtractor",
    "DenseVectorFeatureExtractor",
    "LengthNormFeatureExtractor",
    "PrefixedFeatureExtractor",
    "CacheFeatureExtractor",
    "as_feature_extractor",
]

# Runs of letters/digits, or single punctuation characters
TOKEN_PATTERN = r"\w+|[^\w\s]"


class FeatureExtractor(Protocol):
    """Maps an element to its non-zero features."""

    def features(self, element: Any) -> Mapping[str, float]: ...


class FunctionFeatureExtractor:
    """Adapts a plain ``element -> mapping`` function."""

    def __init__(self, fn: Callable[[Any], Mapping[str, float]]):
        self.fn = fn

    def features(self, element: Any) -> Mapping[str, float]:
        return self.fn(element)

    def __repr__(self) -> str:
        return f"FunctionFeatureExtractor({getattr(self.fn, '__name__', self.fn)!r})"


def as_feature_extractor(extractor) -> FeatureExtractor:
    """Accept either a feature extractor or a bare callable."""
    if hasattr(extractor, "features"):
        return extractor
    if callable(extractor):
        return FunctionFeatureExtractor(extractor)
    raise TypeError(
        f"Expected an object with a features() method or a callable. Found {type(extractor).__name__}"
    )


class TokenFeatureExtractor:
    """
    Bag-of-words counts over regex tokens.

    "A A B" -> {"A": 2, "B": 1}
    """

    def __init__(self, pattern: str = TOKEN_PATTERN, lowercase: bool = False):
        self.pattern = pattern
        self.lowercase = lowercase
        self._regex = re.compile(pattern)

    def tokenize(self, text: str) -> list[str]:
        tokens = self._regex.findall(text)
        if self.lowercase:
            tokens = [token.lower() for token in tokens]
        return tokens

    def features(self, text: str) -> dict[str, int]:
        return dict(Counter(self.tokenize(text)))

    def __repr__(self) -> str:
        return f"TokenFeatureExtractor(pattern={self.pattern!r}, lowercase={self.lowercase})"


class DenseVectorFeatureExtractor:
    """Uses each coordinate of a numeric sequence as a feature named by its position."""

    def __init__(self, skip_zeros: bool = True):
        self.skip_zeros = skip_zeros

    def features(self, vector: Sequence[float]) -> dict[str, float]:
        return {
            str(i): float(x)
            for i, x in enumerate(vector)
            if not (self.skip_zeros and x == 0)
        }


class LengthNormFeatureExtractor:
    """Scales another extractor's features to unit Euclidean length."""

    def __init__(self, base: FeatureExtractor):
        self.base = as_feature_extractor(base)

    def features(self, element: Any) -> Mapping[str, float]:
        base_map = self.base.features(element)
        sum_of_squares = sum(float(v) * float(v) for v in base_map.values())
        if sum_of_squares == 0.0:
            return base_map
        length = math.sqrt(sum_of_squares)
        return {name: float(value) / length for name, value in base_map.items()}


class PrefixedFeatureExtractor:
    """Prepends a fixed prefix to every feature name (keeps feature spaces apart)."""

    def __init__(self, prefix: str, base: FeatureExtractor):
        self.prefix = prefix
        self.base = as_feature_extractor(base)

    def features(self, element: Any) -> dict[str, float]:
        return {
            self.prefix + name: value
            for name, value in self.base.features(element).items()
        }


class CacheFeatureExtractor:
    """
    Memoizes another extractor's output per element.

    Elements must be hashable. The cache is unbounded unless ``max_size`` is
    given, in which case the oldest entry is evicted first.
    """

    def __init__(self, base: FeatureExtractor, max_size: Optional[int] = None):
        if max_size is not None and (isinstance(max_size, bool) or not isinstance(max_size, numbers.Integral) or max_size < 1):
            raise InvalidArgumentError(f"Cache size must be a positive int or None. Found max_size={max_size!r}")
        self.base = as_feature_extractor(base)
        self.max_size = max_size
        self._cache: dict[Hashable, Mapping[str, float]] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def features(self, element: Hashable) -> Mapping[str, float]:
        with self._lock:
            if element in self._cache:
                self.hits += 1
                return self._cache[element]
        result = self.base.features(element)
        with self._lock:
            self.misses += 1
            if self.max_size is not None and element not in self._cache:
                # dicts keep insertion order, so the first key is the oldest
                while len(self._cache) >= self.max_size:
                    self._cache.pop(next(iter(self._cache)))
            self._cache[element] = result
        return result

    def __len__(self) -> int:
        return len(self._cache)

"""Fuzzy text matching."""

from __future__ import annotations

from driftproof.matching.similarity import (
    CachedSimilarity,
    SimilarMatch,
    SimilarityCache,
    calculate_similarity,
    find_most_similar,
    normalize,
    strip_accents,
    texts_equivalent,
)

__all__ = [
    "CachedSimilarity",
    "SimilarMatch",
    "SimilarityCache",
    "calculate_similarity",
    "find_most_similar",
    "normalize",
    "strip_accents",
    "texts_equivalent",
]

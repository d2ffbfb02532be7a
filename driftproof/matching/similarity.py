"""Fuzzy text matching for disambiguating on-screen options.

Scores are normalized Levenshtein similarities in [0, 1]. Anything that
would need more than ~10% of edits is reported as 0.0 instead of a weak
score, so callers cannot accidentally accept an ambiguous option.
"""

from __future__ import annotations

import logging
import math
import re
import unicodedata
from collections import OrderedDict
from dataclasses import dataclass
from typing import Sequence

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")

# Relative length difference above which two strings are rejected outright.
MAX_LENGTH_RATIO_DIFF = 0.5
# Fraction of the longer string that may be edited before giving up.
MAX_EDIT_FRACTION = 0.1
DEFAULT_MIN_SIMILARITY = 0.9


@dataclass(frozen=True)
class SimilarMatch:
    index: int
    text: str
    similarity: float


def normalize(text: str) -> str:
    """Lowercase, collapse whitespace runs and strip."""
    return _WHITESPACE_RE.sub(" ", text.lower()).strip()


def strip_accents(text: str) -> str:
    """Lowercase and remove diacritics ("Título" -> "titulo")."""
    decomposed = unicodedata.normalize("NFD", text.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).strip()


def texts_equivalent(a: str, b: str) -> bool:
    """Compare two labels ignoring case and accents."""
    return strip_accents(a) == strip_accents(b)


def calculate_similarity(str1: str, str2: str) -> float:
    """Return the normalized edit-distance similarity of two strings.

    1.0 means identical after normalization. 0.0 is returned when either
    side is empty (two empty strings included), when the lengths differ by
    more than 50%, and when the pair exceeds the edit budget of
    ``ceil(max_len * 0.1)``.
    """
    s1 = normalize(str1)
    s2 = normalize(str2)

    if not s1 or not s2:
        return 0.0
    if s1 == s2:
        return 1.0

    max_len = max(len(s1), len(s2))
    if abs(len(s1) - len(s2)) / max_len > MAX_LENGTH_RATIO_DIFF:
        return 0.0

    max_distance = math.ceil(max_len * MAX_EDIT_FRACTION)

    # Two-row DP over s2 (rows) x s1 (columns).
    prev = list(range(len(s1) + 1))
    for i in range(1, len(s2) + 1):
        curr = [i] + [0] * len(s1)
        row_min = math.inf
        c2 = s2[i - 1]
        for j in range(1, len(s1) + 1):
            if c2 == s1[j - 1]:
                curr[j] = prev[j - 1]
            else:
                curr[j] = min(
                    prev[j - 1] + 1,  # substitution
                    curr[j - 1] + 1,  # insertion
                    prev[j] + 1,      # deletion
                )
            if curr[j] < row_min:
                row_min = curr[j]
        # Row minima never decrease, so the final distance is already over budget.
        if row_min > max_distance:
            return 0.0
        prev = curr

    distance = prev[len(s1)]
    # The row scan can miss an over-budget distance in one orientation only;
    # checking the final value keeps sim(a, b) == sim(b, a).
    if distance > max_distance:
        return 0.0
    return (max_len - distance) / max_len


class SimilarityCache:
    """Bounded memo of pairwise scores with FIFO eviction.

    Keys are order-sensitive: (a, b) and (b, a) are cached separately even
    though the score is symmetric.
    """

    def __init__(self, max_size: int = 1000):
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self.max_size = max_size
        self._cache: OrderedDict[tuple[str, str], float] = OrderedDict()

    def get(self, str1: str, str2: str) -> float | None:
        # Plain lookup: hits do not refresh insertion order.
        return self._cache.get((str1, str2))

    def set(self, str1: str, str2: str, similarity: float) -> None:
        key = (str1, str2)
        if key not in self._cache and len(self._cache) >= self.max_size:
            self._cache.popitem(last=False)
        self._cache[key] = similarity

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: tuple[str, str]) -> bool:
        return key in self._cache


class CachedSimilarity:
    """``calculate_similarity`` memoized through a ``SimilarityCache``."""

    def __init__(self, cache: SimilarityCache | None = None):
        self.cache = cache if cache is not None else SimilarityCache()
        self.hits = 0
        self.misses = 0

    def __call__(self, str1: str, str2: str) -> float:
        cached = self.cache.get(str1, str2)
        if cached is not None:
            self.hits += 1
            return cached
        self.misses += 1
        score = calculate_similarity(str1, str2)
        self.cache.set(str1, str2, score)
        return score


def find_most_similar(
    target: str,
    candidates: Sequence[str],
    min_similarity: float = DEFAULT_MIN_SIMILARITY,
    scorer=None,
) -> SimilarMatch | None:
    """Pick the candidate closest to *target*, or None if none is close enough.

    Ties keep the earliest candidate. The scan stops at the first perfect
    match. A best score below *min_similarity* yields None, never a guess.
    """
    score_fn = scorer or calculate_similarity
    best: SimilarMatch | None = None

    for i, candidate in enumerate(candidates):
        similarity = score_fn(target, candidate)
        if similarity > 0 and (best is None or similarity > best.similarity):
            best = SimilarMatch(index=i, text=candidate, similarity=similarity)
        if similarity == 1.0:
            break

    if best is None or best.similarity < min_similarity:
        best_text = f"{best.similarity:.2f}" if best else "none"
        logger.debug(f"No candidate for {target!r} reached {min_similarity:.2f} (best={best_text})")
        return None

    logger.debug(f"Best match for {target!r}: {best.text!r} ({best.similarity * 100:.1f}%)")
    return best

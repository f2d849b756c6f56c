"""
Text similarity measures for near-duplicate detection.

Three independent measures are blended into one score:
- Jaccard overlap of case-folded word sets
- Cosine similarity of word-frequency vectors
- Normalized Levenshtein similarity of the raw strings

Levenshtein is O(len(a) * len(b)); callers bound input sizes through the
content threshold and batch sizing.
"""

from collections import Counter
from typing import List

import numpy as np  # type: ignore[import-not-found]
from rapidfuzz import distance  # type: ignore[import-not-found]

from ..protocols import ContentSimilarity

JACCARD_WEIGHT = 0.4
COSINE_WEIGHT = 0.4
LEVENSHTEIN_WEIGHT = 0.2


def _tokenize(text: str) -> List[str]:
    return text.lower().split()


class SimilarityEngine:
    """Symmetric similarity measures bounded in [0, 1]."""

    def jaccard(self, text1: str, text2: str) -> float:
        words1 = set(_tokenize(text1))
        words2 = set(_tokenize(text2))
        union = words1 | words2
        if not union:
            return 0.0
        return len(words1 & words2) / len(union)

    def cosine(self, text1: str, text2: str) -> float:
        freq1 = Counter(_tokenize(text1))
        freq2 = Counter(_tokenize(text2))
        vocabulary = sorted(set(freq1) | set(freq2))
        if not vocabulary:
            return 0.0

        vec1 = np.array([freq1.get(word, 0) for word in vocabulary], dtype=np.float64)
        vec2 = np.array([freq2.get(word, 0) for word in vocabulary], dtype=np.float64)

        denominator = float(np.linalg.norm(vec1) * np.linalg.norm(vec2))
        if denominator == 0.0:
            return 0.0
        # Clamp float error so identical vectors never exceed 1.0
        return min(1.0, float(np.dot(vec1, vec2)) / denominator)

    def levenshtein(self, text1: str, text2: str) -> float:
        max_len = max(len(text1), len(text2))
        if max_len == 0:
            return 1.0
        dist = distance.Levenshtein.distance(text1, text2)
        return float(1.0 - (dist / max_len))

    def compare(self, text1: str, text2: str) -> ContentSimilarity:
        """Compute all three measures and their weighted combination."""
        jaccard = self.jaccard(text1, text2)
        cosine = self.cosine(text1, text2)
        levenshtein = self.levenshtein(text1, text2)
        combined = JACCARD_WEIGHT * jaccard + COSINE_WEIGHT * cosine + LEVENSHTEIN_WEIGHT * levenshtein
        return ContentSimilarity(jaccard=jaccard, cosine=cosine, levenshtein=levenshtein, combined=combined)

    def combined(self, text1: str, text2: str) -> float:
        return self.compare(text1, text2).combined

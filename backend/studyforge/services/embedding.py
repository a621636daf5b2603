"""Sparse term-frequency embeddings and cosine similarity."""

import math
import re
from collections import Counter
from collections.abc import Mapping

# Lowercase alphabetic runs; anything else separates tokens
_TOKEN_RE = re.compile(r"[a-z]+")
MIN_TOKEN_LENGTH = 3

Embedding = dict[str, float]


def tokenize(text: str) -> list[str]:
    """Split text into lowercase alphabetic tokens of at least three letters."""
    return [t for t in _TOKEN_RE.findall(text.lower()) if len(t) >= MIN_TOKEN_LENGTH]


def create_embedding(text: str) -> Embedding:
    """
    Build a term-frequency map for `text`.

    Each qualifying token maps to its count divided by the total number of
    qualifying tokens, so the values sum to 1. Text without any qualifying
    token yields an empty map.
    """
    tokens = tokenize(text or "")
    if not tokens:
        return {}
    total = len(tokens)
    return {word: count / total for word, count in Counter(tokens).items()}


def _magnitude(vector: Mapping[str, float]) -> float:
    return math.sqrt(sum(v * v for v in vector.values()))


def cosine_similarity(a: Mapping[str, float] | None, b: Mapping[str, float] | None) -> float:
    """Cosine similarity of two sparse vectors; 0 when either is empty."""
    if not a or not b:
        return 0.0

    # Iterate the smaller map for the dot product
    small, large = (a, b) if len(a) <= len(b) else (b, a)
    dot = sum(weight * large[word] for word, weight in small.items() if word in large)

    magnitude = _magnitude(a) * _magnitude(b)
    if magnitude == 0:
        return 0.0
    # Clamp rounding noise so self-similarity never exceeds 1
    return min(dot / magnitude, 1.0)

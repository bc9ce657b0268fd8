"""Scoring helpers for vector search results."""

import math
from typing import Any


def cosine_similarity(vec_a: list[float], vec_b: list[float]) -> float:
    """Compute cosine similarity between two vectors.

    Args:
        vec_a: First embedding vector
        vec_b: Second embedding vector

    Returns:
        float: Cosine similarity in [-1, 1]; 0.0 for empty, mismatched or zero vectors
    """
    if not vec_a or not vec_b or len(vec_a) != len(vec_b):
        return 0.0

    dot_product = sum(a * b for a, b in zip(vec_a, vec_b))
    magnitude_a = math.sqrt(sum(a * a for a in vec_a))
    magnitude_b = math.sqrt(sum(b * b for b in vec_b))

    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0

    return dot_product / (magnitude_a * magnitude_b)


def result_score(result: dict[str, Any], query_embedding: list[float]) -> float:
    """Similarity score of a raw RavenDB query result.

    Uses the ``@index-score`` RavenDB attaches to vector search hits and falls
    back to computing cosine similarity against the stored embedding.
    """
    index_score = result.get("@metadata", {}).get("@index-score")
    if index_score is not None:
        return float(index_score)
    return cosine_similarity(query_embedding, result.get("embedding") or [])

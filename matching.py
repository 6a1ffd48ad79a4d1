# matching.py
# Face matching utilities: cosine similarity search over a gallery of embeddings.

from typing import Sequence, Tuple

import numpy as np

from errors import DimensionMismatchError, EmptyInputError

EPS = 1e-6


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    a = np.asarray(a, dtype=np.float64).reshape(-1)
    b = np.asarray(b, dtype=np.float64).reshape(-1)
    if a.shape != b.shape:
        raise DimensionMismatchError(
            f"cosine_similarity: dimensions differ ({a.size} vs {b.size})"
        )
    denom = np.sqrt(np.dot(a, a)) * np.sqrt(np.dot(b, b)) + EPS
    return float(np.dot(a, b) / denom)


def search_most_similar(embeddings: Sequence[np.ndarray], query: np.ndarray) -> Tuple[int, float]:
    """
    Linear scan for the gallery entry closest in direction to `query`.

    Returns (index, similarity) of the first strict maximum. No threshold is
    applied; the caller decides whether the similarity is good enough.
    """
    query = np.asarray(query)
    if len(embeddings) == 0 or query.size == 0:
        raise EmptyInputError("search_most_similar: empty gallery or query")

    best_idx = 0
    best_sim = -1.0
    for idx, emb in enumerate(embeddings):
        sim = cosine_similarity(emb, query)
        if sim > best_sim:
            best_sim = sim
            best_idx = idx
    return best_idx, best_sim


def average_embedding(embeddings: Sequence[np.ndarray]) -> np.ndarray:
    if len(embeddings) == 0:
        raise EmptyInputError("average_embedding: no embeddings")
    if len(embeddings) == 1:
        return np.asarray(embeddings[0])

    dims = {np.asarray(e).size for e in embeddings}
    if len(dims) != 1:
        raise DimensionMismatchError(f"average_embedding: mixed dimensions {sorted(dims)}")
    return np.mean(np.stack([np.asarray(e, dtype=np.float32).reshape(-1) for e in embeddings]), axis=0)

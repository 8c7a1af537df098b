"""Cosine similarity helpers used by the retrieval engine."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np


def cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """Return the cosine similarity of two vectors.

    The result lies in ``[-1, 1]``.  When either vector has zero magnitude
    the angle is undefined and ``0.0`` is returned.

    Raises
    ------
    ValueError
        If the vectors have different lengths.
    """
    a = np.asarray(vec1, dtype=np.float64)
    b = np.asarray(vec2, dtype=np.float64)
    if a.shape != b.shape:
        raise ValueError(f"Vector length mismatch: {a.shape[0]} vs {b.shape[0]}")

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.clip(np.dot(a, b) / (norm_a * norm_b), -1.0, 1.0))


def cosine_similarities(query: Sequence[float], matrix: Sequence[Sequence[float]]) -> list[float]:
    """Score *query* against every row of *matrix* in one vectorised pass.

    Rows with zero magnitude (and a zero-magnitude query) score ``0.0``.
    """
    if len(matrix) == 0:
        return []

    q = np.asarray(query, dtype=np.float64)
    m = np.asarray(matrix, dtype=np.float64)
    if m.ndim != 2 or m.shape[1] != q.shape[0]:
        raise ValueError(f"Matrix shape {m.shape} does not match query length {q.shape[0]}")

    q_norm = np.linalg.norm(q)
    row_norms = np.linalg.norm(m, axis=1)
    denom = row_norms * q_norm
    dots = m @ q

    scores = np.zeros(len(m), dtype=np.float64)
    nonzero = denom > 0
    scores[nonzero] = dots[nonzero] / denom[nonzero]
    return np.clip(scores, -1.0, 1.0).tolist()

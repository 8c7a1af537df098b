"""Unit tests for cosine similarity helpers."""

from __future__ import annotations

import pytest

from studyrag.utils.similarity import cosine_similarities, cosine_similarity


class TestCosineSimilarity:
    def test_self_similarity_is_one(self) -> None:
        assert cosine_similarity([0.3, -1.2, 4.0], [0.3, -1.2, 4.0]) == pytest.approx(1.0)

    def test_orthogonal_is_zero(self) -> None:
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_opposite_is_minus_one(self) -> None:
        assert cosine_similarity([1.0, 2.0], [-1.0, -2.0]) == pytest.approx(-1.0)

    def test_scale_invariant(self) -> None:
        assert cosine_similarity([1.0, 2.0, 3.0], [10.0, 20.0, 30.0]) == pytest.approx(1.0)

    def test_zero_vector_scores_zero(self) -> None:
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0
        assert cosine_similarity([1.0, 1.0], [0.0, 0.0]) == 0.0

    def test_result_is_bounded(self) -> None:
        score = cosine_similarity([1e-8, 3.0, -7.5], [2.0, -0.1, 9.9])
        assert -1.0 <= score <= 1.0

    def test_length_mismatch_raises(self) -> None:
        with pytest.raises(ValueError):
            cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0])


class TestCosineSimilarities:
    def test_matches_scalar_version(self) -> None:
        query = [1.0, 2.0, 0.5]
        rows = [[1.0, 2.0, 0.5], [0.0, 1.0, 0.0], [-1.0, 0.0, 3.0], [0.0, 0.0, 0.0]]
        scores = cosine_similarities(query, rows)
        assert scores == pytest.approx([cosine_similarity(query, r) for r in rows])

    def test_empty_matrix(self) -> None:
        assert cosine_similarities([1.0, 2.0], []) == []

    def test_shape_mismatch_raises(self) -> None:
        with pytest.raises(ValueError):
            cosine_similarities([1.0, 2.0], [[1.0, 2.0, 3.0]])

    def test_zero_query_scores_zero(self) -> None:
        assert cosine_similarities([0.0, 0.0], [[1.0, 0.0], [0.0, 2.0]]) == [0.0, 0.0]

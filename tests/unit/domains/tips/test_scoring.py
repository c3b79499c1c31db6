"""검색 점수 계산 단위 테스트"""

import pytest

from app.domains.tips.exceptions import EmbeddingDimensionMismatchException
from app.domains.tips.scoring.keywords import (
    contains_any_pin,
    extract_query_keywords,
)
from app.domains.tips.scoring.scorer import RetrievalScorer
from app.domains.tips.scoring.vectors import (
    cosine_similarity,
    mean_vector,
    normalize_vector,
)
from app.domains.tips.types import TipCandidate


def make_candidate(tip_id, embedding, title="Bedtime story", body="Read together"):
    return TipCandidate(
        id=tip_id,
        title=title,
        body=body,
        category="sleep",
        embedding=embedding,
    )


@pytest.fixture
def scorer():
    return RetrievalScorer(
        min_query_sim=0.40,
        strong_query_sim=0.55,
        lambda_query=0.65,
        lambda_personal=0.35,
        lambda_dislike=0.25,
    )


class TestKeywords:
    """키워드 핀 추출 테스트"""

    def test_unigrams_and_bigrams(self):
        keywords = extract_query_keywords("Bedtime routine for my toddler")

        assert keywords == [
            "bedtime",
            "routine",
            "toddler",
            "bedtime routine",
            "routine toddler",
        ]

    def test_drops_stopwords_and_short_words(self):
        keywords = extract_query_keywords("the kids and I at the park")

        assert keywords == ["park"]

    def test_unigram_limit(self):
        keywords = extract_query_keywords(
            "alpha bravo charlie delta echo foxtrot golf hotel"
        )

        unigrams = [k for k in keywords if " " not in k]
        bigrams = [k for k in keywords if " " in k]
        assert len(unigrams) == 6
        assert len(bigrams) == 4

    def test_strips_punctuation(self):
        assert extract_query_keywords("Potty-training?!") == ["potty-training"]

    def test_empty_query(self):
        assert extract_query_keywords("") == []

    def test_contains_any_pin(self):
        assert contains_any_pin("A calm BEDTIME routine", ["bedtime"])
        assert not contains_any_pin("Morning routine", ["bedtime"])


class TestVectors:
    """벡터 연산 테스트"""

    def test_cosine_similarity(self):
        assert cosine_similarity([1.0, 0.0], [1.0, 0.0]) == pytest.approx(1.0)
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_zero_vector_similarity_is_zero(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0

    def test_dimension_mismatch_raises(self):
        with pytest.raises(EmbeddingDimensionMismatchException) as exc_info:
            cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])

        assert exc_info.value.detail_info == {"expected": 2, "actual": 3}

    def test_mean_vector(self):
        assert mean_vector([[1.0, 0.0], [0.0, 1.0]]) == [0.5, 0.5]
        assert mean_vector([]) is None

    def test_normalize_vector(self):
        assert normalize_vector([3.0, 4.0]) == pytest.approx([0.6, 0.8])
        assert normalize_vector([0.0, 0.0]) == [0.0, 0.0]


class TestRetrievalScorer:
    """점수 계산기 테스트"""

    def test_drops_candidates_below_floor(self, scorer):
        """질의 유사도 하한선 미만은 제외"""
        candidates = [
            make_candidate("1", [1.0, 0.0]),
            make_candidate("2", [0.0, 1.0]),
        ]

        ranked = scorer.score_and_rank([1.0, 0.0], candidates)

        assert [tip["id"] for tip in ranked] == ["1"]

    def test_neutral_personal_score_without_preference(self, scorer):
        ranked = scorer.score_and_rank(
            [1.0, 0.0], [make_candidate("1", [1.0, 0.0])]
        )

        tip = ranked[0]
        assert tip["personal_score"] == 0.5
        assert tip["similarity_score"] == pytest.approx(0.65 + 0.35 * 0.5)
        assert tip["is_strong_match"] is True

    def test_dislike_penalty(self, scorer):
        ranked = scorer.score_and_rank(
            [1.0, 0.0],
            [make_candidate("1", [1.0, 0.0])],
            user_preference=[1.0, 0.0],
            dislike_centroid=[1.0, 0.0],
        )

        tip = ranked[0]
        assert tip["dislike_penalty"] == pytest.approx(1.0)
        assert tip["similarity_score"] == pytest.approx(0.65 + 0.35 - 0.25)

    def test_negative_dislike_similarity_is_not_a_bonus(self, scorer):
        ranked = scorer.score_and_rank(
            [1.0, 0.0],
            [make_candidate("1", [1.0, 0.0])],
            dislike_centroid=[-1.0, 0.0],
        )

        assert ranked[0]["dislike_penalty"] == 0.0

    def test_keyword_pins_filter(self, scorer):
        """키워드 핀이 있으면 제목/본문에 핀이 있는 팁만"""
        candidates = [
            make_candidate("1", [1.0, 0.0], title="Bedtime story"),
            make_candidate("2", [1.0, 0.0], title="Snack ideas", body="Cut fruit"),
        ]

        ranked = scorer.score_and_rank(
            [1.0, 0.0], candidates, keyword_pins=["bedtime"]
        )

        assert [tip["id"] for tip in ranked] == ["1"]

    def test_strong_matches_first_then_query_similarity(self, scorer):
        """강한 매칭 우선, 같은 그룹은 질의 유사도 내림차순"""
        candidates = [
            make_candidate("weak", [0.5, 0.866]),
            make_candidate("strong", [0.6, 0.8]),
            make_candidate("best", [1.0, 0.0]),
        ]

        ranked = scorer.score_and_rank(
            [1.0, 0.0],
            candidates,
            # 선호 벡터가 weak 쪽이어도 강한 매칭이 먼저
            user_preference=[0.5, 0.866],
        )

        assert [tip["id"] for tip in ranked] == ["best", "strong", "weak"]
        assert ranked[2]["is_strong_match"] is False

    def test_ties_keep_input_order(self, scorer):
        candidates = [
            make_candidate("b", [1.0, 0.0]),
            make_candidate("a", [1.0, 0.0]),
        ]

        ranked = scorer.score_and_rank([1.0, 0.0], candidates)

        assert [tip["id"] for tip in ranked] == ["b", "a"]

    def test_skips_candidates_without_embedding(self, scorer):
        candidates = [make_candidate("1", None), make_candidate("2", [1.0, 0.0])]

        ranked = scorer.score_and_rank([1.0, 0.0], candidates)

        assert [tip["id"] for tip in ranked] == ["2"]

    def test_limit(self, scorer):
        candidates = [make_candidate(str(i), [1.0, 0.0]) for i in range(5)]

        ranked = scorer.score_and_rank([1.0, 0.0], candidates, limit=2)

        assert len(ranked) == 2

    def test_mixed_dimensions_raise(self, scorer):
        with pytest.raises(EmbeddingDimensionMismatchException):
            scorer.score_and_rank(
                [1.0, 0.0], [make_candidate("1", [1.0, 0.0, 0.0])]
            )

    def test_invalid_weights(self):
        with pytest.raises(ValueError):
            RetrievalScorer(lambda_query=0.8, lambda_personal=0.5)

    def test_rank_by_preference(self, scorer):
        candidates = [
            make_candidate("far", [0.0, 1.0]),
            make_candidate("near", [1.0, 0.0]),
        ]

        ranked = scorer.rank_by_preference([1.0, 0.0], candidates)

        assert [tip["id"] for tip in ranked] == ["near", "far"]
        assert ranked[0]["query_sim"] == 0.0

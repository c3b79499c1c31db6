"""검색 점수 계산기

미리 임베딩된 팁을 질의 유사도, 사용자 선호 벡터, 비선호 중심 벡터로 점수화하고
관련도 하한선 아래의 팁을 걸러낸 뒤 결정적으로 정렬합니다.

점수:
    query_sim = cos(q, tip)                       (MIN_QUERY_SIM 미만 제외)
    personal  = cos(pref, tip) 또는 0.5           (선호 벡터 없음)
    combined  = LAMBDA_QUERY * query_sim + LAMBDA_PERSONAL * personal
              - LAMBDA_DISLIKE * max(0, cos(dislike_centroid, tip))

정렬: 강한 매칭 우선 → query_sim 내림차순 → combined 내림차순 → 입력 순서
"""

from typing import Optional, Sequence

from app.core.config import settings
from app.core.logging import get_logger
from app.domains.tips.scoring.keywords import contains_any_pin
from app.domains.tips.scoring.vectors import cosine_similarity
from app.domains.tips.types import RankedTip, TipCandidate

logger = get_logger(__name__)

NEUTRAL_PERSONAL_SCORE = 0.5


class RetrievalScorer:
    """검색/생성 팁 공통 점수 계산기

    가중치와 임계값은 설정에서 읽으며, 테스트에서는 생성자로 덮어쓸 수 있습니다.
    """

    def __init__(
        self,
        min_query_sim: Optional[float] = None,
        strong_query_sim: Optional[float] = None,
        lambda_query: Optional[float] = None,
        lambda_personal: Optional[float] = None,
        lambda_dislike: Optional[float] = None,
    ):
        self.min_query_sim = _pick(min_query_sim, settings.min_query_sim)
        self.strong_query_sim = _pick(
            strong_query_sim, settings.strong_query_sim
        )
        self.lambda_query = _pick(lambda_query, settings.lambda_query)
        self.lambda_personal = _pick(lambda_personal, settings.lambda_personal)
        self.lambda_dislike = _pick(lambda_dislike, settings.lambda_dislike)

        if self.lambda_query + self.lambda_personal > 1.0 + 1e-9:
            raise ValueError("lambda_query + lambda_personal must not exceed 1.0")

    def score_and_rank(
        self,
        query_embedding: Sequence[float],
        candidates: Sequence[TipCandidate],
        user_preference: Optional[Sequence[float]] = None,
        dislike_centroid: Optional[Sequence[float]] = None,
        keyword_pins: Optional[list[str]] = None,
        limit: Optional[int] = None,
    ) -> list[RankedTip]:
        """후보 팁 점수 계산 및 정렬

        Args:
            query_embedding: 질의 임베딩
            candidates: 후보 팁 (임베딩이 없는 후보는 제외)
            user_preference: 사용자 선호 벡터
            dislike_centroid: 비선호 팁 임베딩 평균
            keyword_pins: 키워드 핀 (비어 있지 않으면 핀 포함 팁만 허용)
            limit: 최대 반환 개수

        Returns:
            정렬된 RankedTip 리스트

        Raises:
            EmbeddingDimensionMismatchException: 벡터 차원이 섞인 경우
        """
        pins = [pin.lower() for pin in (keyword_pins or []) if pin]
        scored: list[tuple[int, RankedTip]] = []
        dropped_floor = dropped_pin = 0

        for index, candidate in enumerate(candidates):
            if not candidate.embedding:
                continue

            query_sim = cosine_similarity(query_embedding, candidate.embedding)
            if query_sim < self.min_query_sim:
                dropped_floor += 1
                continue

            if pins and not contains_any_pin(candidate.pin_text, pins):
                dropped_pin += 1
                continue

            if user_preference is not None:
                personal = cosine_similarity(user_preference, candidate.embedding)
            else:
                personal = NEUTRAL_PERSONAL_SCORE

            penalty = 0.0
            if dislike_centroid is not None:
                penalty = max(
                    0.0, cosine_similarity(dislike_centroid, candidate.embedding)
                )

            combined = (
                self.lambda_query * query_sim
                + self.lambda_personal * personal
                - self.lambda_dislike * penalty
            )

            scored.append(
                (
                    index,
                    RankedTip(
                        id=candidate.id,
                        title=candidate.title,
                        body=candidate.body,
                        details=candidate.details,
                        category=candidate.category,
                        categories=list(candidate.categories),
                        source=candidate.source,
                        query_sim=query_sim,
                        personal_score=personal,
                        dislike_penalty=penalty,
                        similarity_score=combined,
                        is_strong_match=query_sim >= self.strong_query_sim,
                    ),
                )
            )

        scored.sort(
            key=lambda item: (
                not item[1]["is_strong_match"],
                -item[1]["query_sim"],
                -item[1]["similarity_score"],
                item[0],
            )
        )
        ranked = [tip for _, tip in scored]

        logger.debug(
            f"Scored {len(candidates)} candidates: kept={len(ranked)}, "
            f"below_floor={dropped_floor}, missing_pin={dropped_pin}"
        )

        if limit is not None:
            ranked = ranked[:limit]
        return ranked

    def rank_by_preference(
        self,
        user_preference: Sequence[float],
        candidates: Sequence[TipCandidate],
        dislike_centroid: Optional[Sequence[float]] = None,
        limit: Optional[int] = None,
    ) -> list[RankedTip]:
        """질의 없이 선호 벡터만으로 정렬 (추천 피드)

        score = cos(pref, tip) - LAMBDA_DISLIKE * max(0, cos(dislike, tip))
        """
        scored: list[tuple[int, RankedTip]] = []
        for index, candidate in enumerate(candidates):
            if not candidate.embedding:
                continue

            personal = cosine_similarity(user_preference, candidate.embedding)
            penalty = 0.0
            if dislike_centroid is not None:
                penalty = max(
                    0.0, cosine_similarity(dislike_centroid, candidate.embedding)
                )
            score = personal - self.lambda_dislike * penalty

            scored.append(
                (
                    index,
                    RankedTip(
                        id=candidate.id,
                        title=candidate.title,
                        body=candidate.body,
                        details=candidate.details,
                        category=candidate.category,
                        categories=list(candidate.categories),
                        source=candidate.source,
                        query_sim=0.0,
                        personal_score=personal,
                        dislike_penalty=penalty,
                        similarity_score=score,
                        is_strong_match=False,
                    ),
                )
            )

        scored.sort(key=lambda item: (-item[1]["similarity_score"], item[0]))
        ranked = [tip for _, tip in scored]
        return ranked[:limit] if limit is not None else ranked


def _pick(value: Optional[float], default: float) -> float:
    return default if value is None else value

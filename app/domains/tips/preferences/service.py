"""선호 프로필 서비스

사용자별 선호 벡터(단위 벡터)와 비선호 중심 벡터를 관리합니다.

선호 벡터:
    likes만 있으면     pref = likeAvg
    둘 다 있으면       pref = likeAvg - ALPHA * dislikeAvg
    dislikes만 있으면  pref = dislikeAvg
    설문 벡터가 있으면 weight = max(0.3, 0.7 - interactions * 0.02)로 혼합
최종 벡터는 항상 정규화해서 저장합니다.
"""

from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

import numpy as np
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.logging import get_logger
from app.domains.tips.repository import (
    InteractionRepository,
    PreferenceProfileRepository,
    to_vector,
)
from app.domains.tips.scoring.vectors import (
    ensure_same_dimension,
    mean_vector,
    normalize_vector,
)

logger = get_logger(__name__)

SURVEY_WEIGHT_START = 0.7
SURVEY_WEIGHT_FLOOR = 0.3
SURVEY_WEIGHT_DECAY = 0.02

RECENT_LIKES_FOR_CONTEXT = 10

# (테마, 트리거 단어)
PREFERENCE_THEMES: list[tuple[str, tuple[str, ...]]] = [
    ("active/outdoor activities", ("outdoor", "active", "play")),
    ("calm/gentle approaches", ("calm", "quiet", "gentle")),
    ("creative activities", ("creative", "art", "imagination")),
    ("structured routines", ("routine", "structure", "schedule")),
    ("child independence", ("independent", "choice", "decide")),
]


def survey_weight_for(interactions: int) -> float:
    """상호작용 수에 따라 감소하는 설문 가중치"""
    return max(SURVEY_WEIGHT_FLOOR, SURVEY_WEIGHT_START - interactions * SURVEY_WEIGHT_DECAY)


def combine_preference(
    like_avg: Optional[Sequence[float]],
    dislike_avg: Optional[Sequence[float]],
    alpha: float,
) -> Optional[list[float]]:
    """좋아요/싫어요 평균으로 선호 벡터 계산 (정규화 전)"""
    if like_avg is None and dislike_avg is None:
        return None
    if like_avg is not None and dislike_avg is not None:
        ensure_same_dimension(like_avg, dislike_avg)
        return [
            float(x)
            for x in np.asarray(like_avg) - alpha * np.asarray(dislike_avg)
        ]
    return list(like_avg if like_avg is not None else dislike_avg)  # type: ignore[arg-type]


def blend_with_survey(
    interaction_pref: Optional[Sequence[float]],
    survey_embedding: Sequence[float],
    weight: float,
) -> list[float]:
    """설문 벡터와 상호작용 벡터 혼합 후 정규화"""
    if interaction_pref is None:
        return normalize_vector(survey_embedding)
    ensure_same_dimension(survey_embedding, interaction_pref)
    blended = weight * np.asarray(survey_embedding, dtype=float) + (
        1 - weight
    ) * np.asarray(interaction_pref, dtype=float)
    return normalize_vector(blended.tolist())


@dataclass
class PreferenceState:
    """요청 시점의 사용자 선호 상태"""

    preference: Optional[list[float]]
    dislike_centroid: Optional[list[float]]
    total_interactions: int = 0

    @property
    def is_personalized(self) -> bool:
        return self.preference is not None


class PreferenceStore:
    """선호 프로필 저장소

    상호작용 기록 직후 같은 트랜잭션 안에서 recompute_profile을 호출합니다.
    """

    def __init__(self, session: AsyncSession, alpha: Optional[float] = None):
        self.session = session
        self.profiles = PreferenceProfileRepository(session)
        self.interactions = InteractionRepository(session)
        self.alpha = settings.preference_alpha if alpha is None else alpha

    async def recompute_profile(self, user_id: int) -> Optional[list[float]]:
        """좋아요/싫어요 임베딩으로 선호 벡터 재계산 후 저장

        좋아요/싫어요가 모두 없으면 total_interactions만 0으로 바꾸고
        기존 벡터는 그대로 둡니다.

        Returns:
            저장된 선호 벡터 (변경 없으면 None)
        """
        liked = await self.interactions.get_embeddings_by_type(user_id, "like")
        disliked = await self.interactions.get_embeddings_by_type(
            user_id, "dislike"
        )

        pref = combine_preference(
            mean_vector(liked), mean_vector(disliked), self.alpha
        )
        if pref is None:
            if await self.profiles.get(user_id) is not None:
                await self.profiles.upsert(user_id, total_interactions=0)
            logger.info(
                f"No like/dislike history for user_id={user_id}, "
                "reset interaction count"
            )
            return None

        total = len(liked) + len(disliked)

        profile = await self.profiles.get(user_id)
        survey_embedding = (
            to_vector(profile.survey_embedding) if profile is not None else None
        )

        if survey_embedding is not None:
            weight = survey_weight_for(total)
            vector = blend_with_survey(pref, survey_embedding, weight)
            await self.profiles.upsert(
                user_id,
                preference_embedding=vector,
                survey_weight=weight,
                total_interactions=total,
            )
        else:
            vector = normalize_vector(pref)
            await self.profiles.upsert(
                user_id,
                preference_embedding=vector,
                total_interactions=total,
            )

        logger.info(
            f"Recomputed preference for user_id={user_id} "
            f"(likes={len(liked)}, dislikes={len(disliked)})"
        )
        return vector

    async def apply_survey_embedding(
        self, user_id: int, survey_embedding: Sequence[float]
    ) -> list[float]:
        """설문 벡터 저장 및 선호 벡터 혼합

        Args:
            user_id: 사용자 ID
            survey_embedding: 설문 옵션 임베딩 평균

        Returns:
            혼합 후 선호 벡터
        """
        liked = await self.interactions.get_embeddings_by_type(user_id, "like")
        disliked = await self.interactions.get_embeddings_by_type(
            user_id, "dislike"
        )
        interaction_pref = combine_preference(
            mean_vector(liked), mean_vector(disliked), self.alpha
        )
        total = len(liked) + len(disliked)
        weight = survey_weight_for(total) if interaction_pref is not None else 1.0

        vector = blend_with_survey(interaction_pref, survey_embedding, weight)
        await self.profiles.upsert(
            user_id,
            preference_embedding=vector,
            survey_embedding=list(survey_embedding),
            survey_weight=weight,
            total_interactions=total,
        )
        logger.info(
            f"Applied survey embedding for user_id={user_id} "
            f"(survey_weight={weight:.2f})"
        )
        return vector

    async def get_state(self, user_id: Optional[int]) -> PreferenceState:
        """선호 벡터와 비선호 중심 벡터 조회"""
        if user_id is None:
            return PreferenceState(preference=None, dislike_centroid=None)

        profile = await self.profiles.get(user_id)
        disliked = await self.interactions.get_embeddings_by_type(
            user_id, "dislike"
        )
        return PreferenceState(
            preference=to_vector(profile.preference_embedding) if profile else None,
            dislike_centroid=mean_vector(disliked),
            total_interactions=profile.total_interactions if profile else 0,
        )

    async def analyze_user_preferences(self, user_id: int) -> str:
        """최근 좋아요 팁으로 생성 프롬프트용 선호 문맥 구성

        Returns:
            예: "Based on your liked tips, you prefer: literacy activities.
            You like approaches that involve calm/gentle approaches."
            좋아요가 없으면 빈 문자열
        """
        liked_tips = await self.interactions.get_recent_liked_tips(
            user_id, limit=RECENT_LIKES_FOR_CONTEXT
        )
        if not liked_tips:
            return ""

        categories: Counter[str] = Counter()
        themes: list[str] = []
        for tip in liked_tips:
            categories[tip.category] += 1
            text = f"{tip.title} {tip.body}".lower()
            for theme, triggers in PREFERENCE_THEMES:
                if theme not in themes and any(t in text for t in triggers):
                    themes.append(theme)

        top_categories = [category for category, _ in categories.most_common(3)]

        context = "Based on your liked tips, you prefer: "
        if top_categories:
            context += f"{', '.join(top_categories)} activities. "
        if themes:
            context += (
                f"You like approaches that involve {', '.join(themes[:4])}."
            )

        logger.debug(f"Preference context for user_id={user_id}: {context}")
        return context.strip()

    async def get_profile_summary(self, user_id: int) -> dict:
        """프로필 요약 (상호작용 수, 최근 갱신 시각, 유형별 개수)"""
        profile = await self.profiles.get(user_id)
        counts = await self.interactions.count_by_type(user_id)

        total = profile.total_interactions if profile else 0
        last_updated: Optional[datetime] = profile.updated_at if profile else None
        return {
            "total_interactions": total,
            "last_updated": last_updated,
            "has_preferences": total > 0,
            "likes": counts.get("like", 0),
            "dislikes": counts.get("dislike", 0),
            "saves": counts.get("save", 0),
            "has_survey": bool(profile is not None and profile.survey_embedding is not None),
        }

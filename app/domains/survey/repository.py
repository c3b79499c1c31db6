"""Survey 도메인 리포지토리"""

from typing import Optional, Sequence, cast

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.domains.survey.models import SurveyPreferenceEmbedding, UserSurveyResponse
from app.domains.tips.repository import to_vector


class SurveyRepository:
    """설문 리포지토리"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, user_id: int) -> Optional[UserSurveyResponse]:
        result = await self.session.execute(
            select(UserSurveyResponse).where(UserSurveyResponse.user_id == user_id)
        )
        return cast(Optional[UserSurveyResponse], result.scalar_one_or_none())

    async def upsert(
        self,
        user_id: int,
        content_preferences: list[str],
        challenge_areas: list[str],
        parenting_goals: list[str],
        engagement_frequency: str,
        current_challenge: Optional[str],
        additional_notes: Optional[str],
    ) -> UserSurveyResponse:
        """설문 응답 저장 (기존 응답이 있으면 덮어쓰고 completed_at은 유지)"""
        values = {
            "content_preferences": content_preferences,
            "challenge_areas": challenge_areas,
            "parenting_goals": parenting_goals,
            "engagement_frequency": engagement_frequency,
            "current_challenge": current_challenge,
            "additional_notes": additional_notes,
        }
        stmt = insert(UserSurveyResponse).values(user_id=user_id, **values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id"],
            set_={**values, "updated_at": func.now()},
        ).returning(UserSurveyResponse)
        result = await self.session.execute(
            stmt, execution_options={"populate_existing": True}
        )
        return cast(UserSurveyResponse, result.scalar_one())

    async def replace_embeddings(
        self,
        user_id: int,
        rows: Sequence[tuple[str, str, list[float]]],
    ) -> int:
        """설문 옵션 임베딩 전체 교체

        Args:
            user_id: 사용자 ID
            rows: (preference_type, preference_value, embedding) 목록

        Returns:
            저장된 임베딩 수
        """
        await self.session.execute(
            delete(SurveyPreferenceEmbedding).where(
                SurveyPreferenceEmbedding.user_id == user_id
            )
        )
        for preference_type, value, embedding in rows:
            self.session.add(
                SurveyPreferenceEmbedding(
                    user_id=user_id,
                    preference_type=preference_type,
                    preference_value=value,
                    embedding=embedding,
                )
            )
        await self.session.flush()
        return len(rows)

    async def get_embeddings(self, user_id: int) -> list[list[float]]:
        result = await self.session.execute(
            select(SurveyPreferenceEmbedding.embedding)
            .where(SurveyPreferenceEmbedding.user_id == user_id)
            .order_by(SurveyPreferenceEmbedding.id)
        )
        return [
            vector
            for vector in (to_vector(row) for row in result.scalars().all())
            if vector is not None
        ]

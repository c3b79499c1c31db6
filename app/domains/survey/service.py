"""Survey 서비스

설문 저장 시:
1. 응답 저장 (덮어쓰기)
2. 선택한 옵션별 설명 문장을 임베딩해 교체 저장
3. 옵션 임베딩 평균을 선호 프로필의 설문 벡터로 혼합
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.domains.survey.exceptions import InvalidSurveyException, SurveyNotFoundException
from app.domains.survey.lexicon import get_descriptive_text
from app.domains.survey.repository import SurveyRepository
from app.domains.survey.schemas import (
    VALID_FREQUENCIES,
    SurveyData,
    SurveyResponse,
    SurveySaveResponse,
    SurveyStatusResponse,
    SurveySummary,
)
from app.domains.tips.embedding.gateway import EmbeddingGateway, get_embedding_gateway
from app.domains.tips.exceptions import EmbeddingFailedException
from app.domains.tips.preferences.service import PreferenceStore
from app.domains.tips.scoring.vectors import mean_vector
from app.domains.users.exceptions import UserNotFoundException
from app.domains.users.repository import UserRepository

logger = get_logger(__name__)


class SurveyService:
    """설문 서비스"""

    def __init__(
        self,
        session: AsyncSession,
        gateway: Optional[EmbeddingGateway] = None,
        preference_store: Optional[PreferenceStore] = None,
    ):
        self.session = session
        self.repository = SurveyRepository(session)
        self.users = UserRepository(session)
        self.gateway = gateway or get_embedding_gateway()
        self.preference_store = preference_store or PreferenceStore(session)

    async def save_survey(self, user_id: int, data: SurveyData) -> SurveySaveResponse:
        """설문 저장 및 설문 벡터 갱신

        옵션 임베딩 생성에 실패한 항목은 건너뜁니다.

        Raises:
            InvalidSurveyException: engagement_frequency가 허용 값이 아닌 경우
            UserNotFoundException: 사용자가 없는 경우
        """
        if data.engagement_frequency not in VALID_FREQUENCIES:
            raise InvalidSurveyException(
                detail_msg=f"Invalid engagement frequency: {data.engagement_frequency}",
                valid_options=VALID_FREQUENCIES,
            )
        if not await self.users.exists(user_id):
            raise UserNotFoundException(user_id)

        logger.info(
            f"Saving survey for user_id={user_id}: "
            f"content={len(data.content_preferences)}, "
            f"challenges={len(data.challenge_areas)}, "
            f"goals={len(data.parenting_goals)}, "
            f"frequency={data.engagement_frequency}"
        )

        await self.repository.upsert(
            user_id=user_id,
            content_preferences=data.content_preferences,
            challenge_areas=data.challenge_areas,
            parenting_goals=data.parenting_goals,
            engagement_frequency=data.engagement_frequency,
            current_challenge=data.current_challenge or None,
            additional_notes=data.additional_notes or None,
        )

        rows: list[tuple[str, str, list[float]]] = []
        for preference_type, values in (
            ("content", data.content_preferences),
            ("challenge", data.challenge_areas),
            ("goal", data.parenting_goals),
        ):
            for value in values:
                text = get_descriptive_text(preference_type, value)
                try:
                    embedding = await self.gateway.embed(text)
                except EmbeddingFailedException as e:
                    logger.warning(
                        f"Skipping survey option {preference_type}:{value}: "
                        f"{e.detail_info.get('info')}"
                    )
                    continue
                rows.append((preference_type, value, embedding))

        await self.repository.replace_embeddings(user_id, rows)

        survey_embedding = mean_vector([embedding for _, _, embedding in rows])
        if survey_embedding is not None:
            await self.preference_store.apply_survey_embedding(
                user_id, survey_embedding
            )

        return SurveySaveResponse(
            user_id=user_id,
            survey_data=SurveySummary(
                content_preferences=data.content_preferences,
                challenge_areas=data.challenge_areas,
                parenting_goals=data.parenting_goals,
                engagement_frequency=data.engagement_frequency,
                has_current_challenge=bool(data.current_challenge),
                has_additional_notes=bool(data.additional_notes),
            ),
            embedded_options=len(rows),
        )

    async def get_survey(self, user_id: int) -> SurveyResponse:
        """설문 응답 조회

        Raises:
            SurveyNotFoundException: 응답이 없는 경우
        """
        survey = await self.repository.get(user_id)
        if survey is None:
            raise SurveyNotFoundException(user_id)

        return SurveyResponse(
            user_id=user_id,
            content_preferences=list(survey.content_preferences or []),
            challenge_areas=list(survey.challenge_areas or []),
            parenting_goals=list(survey.parenting_goals or []),
            engagement_frequency=survey.engagement_frequency,
            current_challenge=survey.current_challenge,
            additional_notes=survey.additional_notes,
            completed_at=survey.completed_at,
            updated_at=survey.updated_at,
        )

    async def get_status(self, user_id: int) -> SurveyStatusResponse:
        survey = await self.repository.get(user_id)
        return SurveyStatusResponse(
            user_id=user_id,
            has_completed_survey=survey is not None,
            completed_at=survey.completed_at if survey else None,
            last_updated=survey.updated_at if survey else None,
        )

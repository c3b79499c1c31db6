"""Survey 도메인 데이터 모델

- UserSurveyResponse: 사용자 설문 응답 (사용자당 1개, 저장 시 덮어씀)
- SurveyPreferenceEmbedding: 선택한 설문 옵션별 임베딩 (저장 시 재생성)
"""

from datetime import datetime
from typing import Optional

from pgvector.sqlalchemy import Vector
from sqlalchemy import ARRAY, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.config import settings
from app.core.database import Base

EMBEDDING_DIM = settings.embedding_dimensions


class UserSurveyResponse(Base):
    """사용자 설문 응답"""

    __tablename__ = "user_survey_responses"

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    content_preferences: Mapped[list[str]] = mapped_column(
        ARRAY(String), nullable=False, default=list, comment="선호 콘텐츠 유형"
    )
    challenge_areas: Mapped[list[str]] = mapped_column(
        ARRAY(String), nullable=False, default=list, comment="현재 어려움"
    )
    parenting_goals: Mapped[list[str]] = mapped_column(
        ARRAY(String), nullable=False, default=list, comment="양육 목표"
    )
    engagement_frequency: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="daily, few-times-week, weekly, on-demand",
    )
    current_challenge: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True, comment="현재 겪는 구체적 어려움"
    )
    additional_notes: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True, comment="추가 메모"
    )
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="최초 완료 일시",
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=True,
    )


class SurveyPreferenceEmbedding(Base):
    """설문 옵션 임베딩"""

    __tablename__ = "survey_preference_embeddings"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    preference_type: Mapped[str] = mapped_column(
        String(20), nullable=False, comment="content, challenge, goal"
    )
    preference_value: Mapped[str] = mapped_column(
        String(100), nullable=False, comment="설문 옵션 값"
    )
    embedding = mapped_column(
        Vector(EMBEDDING_DIM),
        nullable=False,
        comment=f"옵션 설명 임베딩 ({EMBEDDING_DIM} 차원)",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

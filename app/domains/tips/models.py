"""Tips 도메인 데이터 모델

- Tip: 팁 (카탈로그 시드 또는 AI 생성)
- TipCategory: 팁 세부 카테고리 (정규화)
- TipEmbedding: 팁 임베딩 (생성 시 1회 계산, 이후 불변)
- UserTipInteraction: 사용자 상호작용 (like/dislike/save, 삽입/삭제만 수행)
- UserPreferenceProfile: 사용자 선호 프로필 (상호작용 기록 직후 동기 재계산)
"""

from datetime import datetime
from typing import Optional

from pgvector.sqlalchemy import Vector
from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.core.config import settings
from app.core.database import Base

EMBEDDING_DIM = settings.embedding_dimensions


class Tip(Base):
    """팁

    content_hash는 sha256(title|body|details)이며, 동일 내용 업서트 시
    기존 ID를 재사용하기 위해 유니크 제약을 둡니다.
    """

    __tablename__ = "tips"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    title: Mapped[str] = mapped_column(
        String(255), nullable=False, comment="팁 제목"
    )
    body: Mapped[str] = mapped_column(Text, nullable=False, comment="팁 본문")
    details: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True, comment="부가 설명"
    )
    category: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="generated",
        comment="대표 카테고리 (분류 체계 값 또는 generated)",
    )
    source: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="catalog",
        comment="출처 (catalog, ai)",
    )
    content_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        index=True,
        comment="SHA-256(title|body|details)",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="생성 일시",
    )

    def __repr__(self) -> str:
        return f"<Tip(id={self.id}, source={self.source}, title={self.title!r})>"


class TipCategory(Base):
    """팁 세부 카테고리"""

    __tablename__ = "tip_categories"
    __table_args__ = (
        UniqueConstraint(
            "tip_id", "category_type", "category_value",
            name="uq_tip_categories_tip_type_value",
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    tip_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tips.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category_type: Mapped[str] = mapped_column(
        String(50), nullable=False, default="topic", comment="카테고리 유형"
    )
    category_value: Mapped[str] = mapped_column(
        String(100), nullable=False, comment="카테고리 값 (소문자)"
    )
    confidence: Mapped[float] = mapped_column(
        Float, nullable=False, default=1.0, comment="신뢰도 (0~1)"
    )


class TipEmbedding(Base):
    """팁 임베딩 (팁당 1개)"""

    __tablename__ = "tip_embeddings"

    tip_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tips.id", ondelete="CASCADE"),
        primary_key=True,
    )
    embedding = mapped_column(
        Vector(EMBEDDING_DIM),
        nullable=False,
        comment=f"임베딩 벡터 ({EMBEDDING_DIM} 차원)",
    )
    embedding_model: Mapped[str] = mapped_column(
        String(100), nullable=False, comment="임베딩 모델"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


class UserTipInteraction(Base):
    """사용자-팁 상호작용

    (user_id, tip_id, interaction_type) 유니크. 중복 삽입은 무시합니다.
    """

    __tablename__ = "user_tip_interactions"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "tip_id", "interaction_type",
            name="uq_user_tip_interactions_user_tip_type",
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tip_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tips.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    interaction_type: Mapped[str] = mapped_column(
        String(10), nullable=False, comment="like, dislike, save"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


class UserPreferenceProfile(Base):
    """사용자 선호 프로필

    preference_embedding은 단위 벡터로 저장합니다.
    survey_embedding이 있으면 survey_weight로 혼합합니다.
    """

    __tablename__ = "user_preference_profiles"

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    preference_embedding = mapped_column(
        Vector(EMBEDDING_DIM), nullable=True, comment="선호 벡터 (단위 벡터)"
    )
    survey_embedding = mapped_column(
        Vector(EMBEDDING_DIM), nullable=True, comment="설문 기반 벡터"
    )
    survey_weight: Mapped[Optional[float]] = mapped_column(
        Float, nullable=True, comment="설문 벡터 혼합 가중치"
    )
    total_interactions: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="총 상호작용 수"
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=True,
    )

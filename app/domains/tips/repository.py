"""Tips 도메인 레포지토리

팁, 팁 임베딩, 사용자 상호작용, 선호 프로필에 대한 데이터 접근 계층입니다.
"""

from typing import Any, Iterable, Optional, Sequence, cast

from sqlalchemy import and_, delete, func, select, text
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.domains.tips.models import (
    Tip,
    TipCategory,
    TipEmbedding,
    UserPreferenceProfile,
    UserTipInteraction,
)
from app.domains.tips.types import TipCandidate

logger = get_logger(__name__)

# 질의 임베딩과 가까운 순으로 가져올 후보 수
DEFAULT_CANDIDATE_POOL = 200


def to_vector(value: Any) -> Optional[list[float]]:
    if value is None:
        return None
    return [float(x) for x in value]


class TipRepository:
    """팁 레포지토리"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, tip_id: int) -> Optional[Tip]:
        result = await self.session.execute(select(Tip).where(Tip.id == tip_id))
        return cast(Optional[Tip], result.scalar_one_or_none())

    async def get_by_content_hash(self, content_hash: str) -> Optional[Tip]:
        result = await self.session.execute(
            select(Tip).where(Tip.content_hash == content_hash)
        )
        return cast(Optional[Tip], result.scalar_one_or_none())

    async def insert_tip(
        self,
        title: str,
        body: str,
        details: Optional[str],
        category: str,
        source: str,
        content_hash: str,
    ) -> int:
        """팁 삽입 (content_hash 충돌 시 기존 ID 반환)

        Returns:
            팁 ID
        """
        stmt = (
            insert(Tip)
            .values(
                title=title,
                body=body,
                details=details,
                category=category,
                source=source,
                content_hash=content_hash,
            )
            .on_conflict_do_nothing(index_elements=["content_hash"])
            .returning(Tip.id)
        )
        result = await self.session.execute(stmt)
        tip_id = result.scalar_one_or_none()
        if tip_id is None:
            existing = await self.get_by_content_hash(content_hash)
            if existing is None:
                raise RuntimeError(
                    f"Tip with content_hash={content_hash} vanished after conflict"
                )
            tip_id = existing.id
        await self.session.flush()
        return int(tip_id)

    async def add_categories(
        self, tip_id: int, categories: Iterable[tuple[str, str, float]]
    ) -> int:
        """세부 카테고리 저장 (실패해도 팁 저장은 유지)

        Args:
            tip_id: 팁 ID
            categories: (category_type, category_value, confidence) 목록

        Returns:
            저장 시도한 카테고리 수
        """
        rows = [
            {
                "tip_id": tip_id,
                "category_type": category_type,
                "category_value": value,
                "confidence": confidence,
            }
            for category_type, value, confidence in categories
        ]
        if not rows:
            return 0

        try:
            async with self.session.begin_nested():
                stmt = insert(TipCategory).values(rows).on_conflict_do_nothing(
                    constraint="uq_tip_categories_tip_type_value"
                )
                await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.warning(f"Failed to store categories for tip_id={tip_id}: {e}")
            return 0
        return len(rows)

    async def has_embedding(self, tip_id: int) -> bool:
        result = await self.session.execute(
            select(TipEmbedding.tip_id).where(TipEmbedding.tip_id == tip_id)
        )
        return result.scalar_one_or_none() is not None

    async def save_embedding(
        self, tip_id: int, embedding: list[float], model: str
    ) -> None:
        """팁 임베딩 저장 (이미 있으면 변경하지 않음)"""
        stmt = (
            insert(TipEmbedding)
            .values(tip_id=tip_id, embedding=embedding, embedding_model=model)
            .on_conflict_do_nothing(index_elements=["tip_id"])
        )
        await self.session.execute(stmt)
        await self.session.flush()

    async def get_categories_for_tips(
        self, tip_ids: Sequence[int]
    ) -> dict[int, list[dict]]:
        if not tip_ids:
            return {}
        result = await self.session.execute(
            select(TipCategory)
            .where(TipCategory.tip_id.in_(tip_ids))
            .order_by(TipCategory.id)
        )
        categories: dict[int, list[dict]] = {}
        for row in result.scalars().all():
            categories.setdefault(row.tip_id, []).append(
                {
                    "type": row.category_type,
                    "value": row.category_value,
                    "confidence": row.confidence,
                }
            )
        return categories

    async def get_candidates(
        self,
        user_id: Optional[int] = None,
        query_embedding: Optional[list[float]] = None,
        category_filter: Optional[list[str]] = None,
        limit: int = DEFAULT_CANDIDATE_POOL,
    ) -> list[TipCandidate]:
        """임베딩이 있는 후보 팁 조회

        - user_id가 있으면 사용자가 like/dislike한 팁 제외
        - category_filter가 있으면 대표 카테고리 또는 세부 카테고리가 일치하는 팁만
        - query_embedding이 있으면 코사인 거리가 가까운 순으로 limit개

        Args:
            user_id: 사용자 ID
            query_embedding: 질의 임베딩
            category_filter: 카테고리 필터 (소문자 비교)
            limit: 최대 후보 수

        Returns:
            TipCandidate 리스트
        """
        query = select(Tip, TipEmbedding.embedding).join(
            TipEmbedding, TipEmbedding.tip_id == Tip.id
        )

        if user_id is not None:
            judged = select(UserTipInteraction.tip_id).where(
                UserTipInteraction.user_id == user_id,
                UserTipInteraction.interaction_type.in_(["like", "dislike"]),
            )
            query = query.where(Tip.id.not_in(judged))

        if category_filter:
            lowered = [c.lower() for c in category_filter if c]
            tagged = select(TipCategory.tip_id).where(
                func.lower(TipCategory.category_value).in_(lowered)
            )
            query = query.where(
                func.lower(Tip.category).in_(lowered) | Tip.id.in_(tagged)
            )

        if query_embedding is not None:
            query = query.order_by(
                TipEmbedding.embedding.cosine_distance(query_embedding), Tip.id
            )
        else:
            query = query.order_by(Tip.id)

        result = await self.session.execute(query.limit(limit))
        rows = result.all()

        categories = await self.get_categories_for_tips([row[0].id for row in rows])
        return [
            TipCandidate(
                id=str(tip.id),
                title=tip.title,
                body=tip.body,
                details=tip.details,
                category=tip.category,
                categories=categories.get(tip.id, []),
                embedding=to_vector(embedding),
                source=tip.source,
            )
            for tip, embedding in rows
        ]

    async def get_popular(
        self, limit: int = 10, exclude_user_id: Optional[int] = None
    ) -> list[tuple[Tip, int]]:
        """좋아요 수 내림차순, ID 오름차순 인기 팁

        Returns:
            (Tip, like_count) 리스트
        """
        like_count = func.count(UserTipInteraction.id).label("like_count")
        query = (
            select(Tip, like_count)
            .outerjoin(
                UserTipInteraction,
                and_(
                    UserTipInteraction.tip_id == Tip.id,
                    UserTipInteraction.interaction_type == "like",
                ),
            )
            .group_by(Tip.id)
            .order_by(like_count.desc(), Tip.id.asc())
            .limit(limit)
        )

        if exclude_user_id is not None:
            judged = select(UserTipInteraction.tip_id).where(
                UserTipInteraction.user_id == exclude_user_id,
                UserTipInteraction.interaction_type.in_(["like", "dislike"]),
            )
            query = query.where(Tip.id.not_in(judged))

        result = await self.session.execute(query)
        return [(row[0], int(row[1])) for row in result.all()]


class InteractionRepository:
    """사용자 상호작용 레포지토리"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def lock_user(self, user_id: int) -> None:
        """사용자 단위 트랜잭션 잠금 (트랜잭션 종료 시 자동 해제)"""
        await self.session.execute(
            text("SELECT pg_advisory_xact_lock(:key)"), {"key": user_id}
        )

    async def delete_types(
        self, user_id: int, tip_id: int, interaction_types: Sequence[str]
    ) -> int:
        if not interaction_types:
            return 0
        result = await self.session.execute(
            delete(UserTipInteraction).where(
                UserTipInteraction.user_id == user_id,
                UserTipInteraction.tip_id == tip_id,
                UserTipInteraction.interaction_type.in_(interaction_types),
            )
        )
        return int(result.rowcount or 0)

    async def insert_ignore(
        self, user_id: int, tip_id: int, interaction_type: str
    ) -> bool:
        """상호작용 삽입 (중복이면 무시)

        Returns:
            새로 삽입되었는지 여부
        """
        stmt = (
            insert(UserTipInteraction)
            .values(
                user_id=user_id, tip_id=tip_id, interaction_type=interaction_type
            )
            .on_conflict_do_nothing(
                constraint="uq_user_tip_interactions_user_tip_type"
            )
            .returning(UserTipInteraction.id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def get_types(self, user_id: int, tip_id: int) -> set[str]:
        result = await self.session.execute(
            select(UserTipInteraction.interaction_type).where(
                UserTipInteraction.user_id == user_id,
                UserTipInteraction.tip_id == tip_id,
            )
        )
        return set(result.scalars().all())

    async def get_embeddings_by_type(
        self, user_id: int, interaction_type: str
    ) -> list[list[float]]:
        result = await self.session.execute(
            select(TipEmbedding.embedding)
            .join(
                UserTipInteraction,
                UserTipInteraction.tip_id == TipEmbedding.tip_id,
            )
            .where(
                UserTipInteraction.user_id == user_id,
                UserTipInteraction.interaction_type == interaction_type,
            )
            .order_by(UserTipInteraction.id)
        )
        return [
            vector
            for vector in (to_vector(row) for row in result.scalars().all())
            if vector is not None
        ]

    async def count_by_type(self, user_id: int) -> dict[str, int]:
        result = await self.session.execute(
            select(
                UserTipInteraction.interaction_type,
                func.count(UserTipInteraction.id),
            )
            .where(UserTipInteraction.user_id == user_id)
            .group_by(UserTipInteraction.interaction_type)
        )
        return {row[0]: int(row[1]) for row in result.all()}

    async def get_recent_liked_tips(
        self, user_id: int, limit: int = 10
    ) -> list[Tip]:
        result = await self.session.execute(
            select(Tip)
            .join(UserTipInteraction, UserTipInteraction.tip_id == Tip.id)
            .where(
                UserTipInteraction.user_id == user_id,
                UserTipInteraction.interaction_type == "like",
            )
            .order_by(UserTipInteraction.created_at.desc(), UserTipInteraction.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())


class PreferenceProfileRepository:
    """선호 프로필 레포지토리"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, user_id: int) -> Optional[UserPreferenceProfile]:
        result = await self.session.execute(
            select(UserPreferenceProfile).where(
                UserPreferenceProfile.user_id == user_id
            )
        )
        return cast(Optional[UserPreferenceProfile], result.scalar_one_or_none())

    async def upsert(self, user_id: int, **values: Any) -> None:
        """프로필 업서트 (전달된 컬럼만 갱신)"""
        stmt = insert(UserPreferenceProfile).values(user_id=user_id, **values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id"],
            set_={**values, "updated_at": func.now()},
        )
        await self.session.execute(stmt)
        await self.session.flush()
        # ORM 캐시에 남아 있는 이전 값 무효화
        existing = await self.session.get(UserPreferenceProfile, user_id)
        if existing is not None:
            await self.session.refresh(existing)

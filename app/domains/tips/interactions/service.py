"""상호작용 기록 서비스

like/dislike/save/unsave 이벤트를 기록하고 선호 프로필을 재계산합니다.
상호작용 행은 삽입/삭제만 하며 수정하지 않습니다.
"""

from typing import Optional, TypedDict

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.domains.tips.exceptions import (
    InvalidInteractionException,
    TipNotFoundException,
)
from app.domains.tips.preferences.service import PreferenceStore
from app.domains.tips.repository import InteractionRepository, TipRepository
from app.domains.users.exceptions import UserNotFoundException
from app.domains.users.repository import UserRepository

logger = get_logger(__name__)

# 새 상호작용 유형 -> 함께 제거할 기존 유형
INTERACTION_TRANSITIONS: dict[str, list[str]] = {
    "like": ["dislike"],
    "dislike": ["like"],
    "save": [],
    "unsave": ["save"],
}

# 행으로 저장하지 않는 유형
REMOVAL_ONLY_TYPES = {"unsave"}


class InteractionResult(TypedDict):
    user_id: int
    tip_id: int
    interaction_type: str
    inserted: bool
    removed: int


def is_valid_interaction_type(interaction_type: Optional[str]) -> bool:
    return interaction_type in INTERACTION_TRANSITIONS


class InteractionLedger:
    """상호작용 원장

    같은 사용자에 대한 쓰기는 pg_advisory_xact_lock으로 직렬화되며,
    잠금은 요청 트랜잭션이 끝날 때 해제됩니다.
    """

    def __init__(
        self,
        session: AsyncSession,
        preference_store: Optional[PreferenceStore] = None,
    ):
        self.session = session
        self.interactions = InteractionRepository(session)
        self.tips = TipRepository(session)
        self.users = UserRepository(session)
        self.preference_store = preference_store or PreferenceStore(session)

    async def record_interaction(
        self, user_id: int, tip_id: int, interaction_type: str
    ) -> InteractionResult:
        """상호작용 기록 후 선호 프로필 재계산

        Args:
            user_id: 사용자 ID
            tip_id: 저장된 팁 ID
            interaction_type: like, dislike, save, unsave

        Returns:
            InteractionResult

        Raises:
            InvalidInteractionException: 지원하지 않는 유형
            TipNotFoundException: 팁이 없는 경우
            UserNotFoundException: 사용자가 없는 경우
        """
        if not is_valid_interaction_type(interaction_type):
            raise InvalidInteractionException(interaction_type)

        if await self.tips.get_by_id(tip_id) is None:
            raise TipNotFoundException(str(tip_id))
        if not await self.users.exists(user_id):
            raise UserNotFoundException(user_id)

        await self.interactions.lock_user(user_id)

        removed = await self.interactions.delete_types(
            user_id, tip_id, INTERACTION_TRANSITIONS[interaction_type]
        )
        inserted = False
        if interaction_type not in REMOVAL_ONLY_TYPES:
            inserted = await self.interactions.insert_ignore(
                user_id, tip_id, interaction_type
            )

        await self.preference_store.recompute_profile(user_id)

        logger.info(
            f"Recorded {interaction_type} for user_id={user_id}, "
            f"tip_id={tip_id} (inserted={inserted}, removed={removed})"
        )
        return InteractionResult(
            user_id=user_id,
            tip_id=tip_id,
            interaction_type=interaction_type,
            inserted=inserted,
            removed=removed,
        )

"""Users 도메인 리포지토리"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domains.users.models import User


class UserRepository:
    """사용자 존재 확인 (삭제된 사용자는 없는 것으로 취급)"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def exists(self, user_id: int) -> bool:
        result = await self.session.execute(
            select(User.id).where(User.id == user_id, User.deleted_at.is_(None))
        )
        return result.scalar_one_or_none() is not None

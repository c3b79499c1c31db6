"""비동기 DB 엔진과 세션

REST 요청은 get_db 의존성으로 요청당 세션 하나를 사용하고,
WebSocket 스트리밍은 질의마다 async_session_maker로 세션을 엽니다.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    pool_pre_ping=True,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """SQLAlchemy 모델 베이스 클래스"""


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """요청 단위 트랜잭션 (성공 시 커밋, 예외 시 롤백)

    상호작용 기록의 사용자별 advisory lock도 이 트랜잭션이 끝날 때 해제됩니다.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def close_db() -> None:
    await engine.dispose()

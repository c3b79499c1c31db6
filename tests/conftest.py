"""테스트 설정"""

import itertools
import json
import os
from typing import Generator
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from docker import from_env
from docker.errors import DockerException
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from testcontainers.postgres import PostgresContainer

from app.core.config import settings
from app.core.database import Base, get_db
from app.core.llm.types import LLMResult
from app.core.utils.datetime import now_utc
from app.domains.tips.embedding.gateway import get_embedding_gateway
from app.domains.users.models import User
from app.main import app

# 기본 Mock 응답: "bedtime" 질의의 키워드 핀을 통과하는 팁 3개
MOCK_TIPS = [
    {
        "title": "Wind-down bedtime routine",
        "body": "Dim the lights and read one short book before bedtime.",
        "details": "A predictable bedtime routine helps toddlers settle.",
        "categories": ["sleep", "routines"],
    },
    {
        "title": "Bedtime choices",
        "body": "Offer two pajama choices so your toddler feels in control at bedtime.",
        "details": "Small choices reduce bedtime power struggles.",
        "categories": ["sleep"],
    },
    {
        "title": "Quiet song",
        "body": "Sing the same quiet song every night as the last step of the bedtime routine.",
        "details": "Repetition signals that sleep is coming.",
        "categories": [{"type": "content", "value": "sleep", "confidence": 0.9}],
    },
]


def _is_docker_available() -> bool:
    """로컬 환경에서 Docker 접근 가능 여부 확인"""
    if os.getenv("FORCE_DOCKER_TESTS", "").lower() in {"1", "true"}:
        return True
    if os.getenv("SKIP_DOCKER_TESTS", "").lower() in {"1", "true"}:
        return False

    try:
        client = from_env()
        client.ping()
        return True
    except DockerException:
        return False
    except Exception:
        return False


DOCKER_AVAILABLE = _is_docker_available()


@pytest.fixture(scope="session")
def user_id_factory():
    """
    테스트마다 겹치지 않는 PK를 만들기 위한 ID 팩토리.
    UTC 기준 현재 타임스탬프(ms)를 시작값으로 사용
    """
    start = int(now_utc().timestamp() * 1000) % 2_000_000_000
    counter = itertools.count(start=start)

    def _factory(n: int = 1):
        if n == 1:
            return next(counter)
        return [next(counter) for _ in range(n)]

    return _factory


@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """PostgreSQL 테스트 컨테이너 (pgvector 포함)"""
    if not DOCKER_AVAILABLE:
        pytest.skip("Docker is not available; skipping container-based tests.")

    with PostgresContainer("pgvector/pgvector:pg16") as postgres:
        yield postgres


@pytest.fixture(scope="session")
def test_database_url(postgres_container: PostgresContainer) -> str:
    """테스트 데이터베이스 URL"""
    # asyncpg를 위한 URL 생성
    return str(
        postgres_container.get_connection_url().replace(
            "postgresql+psycopg2://", "postgresql+asyncpg://"
        )
    )


@pytest_asyncio.fixture
async def test_engine(test_database_url: str):
    """테스트 엔진 (테스트마다 스키마 초기화)"""
    engine = create_async_engine(test_database_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        # pgvector extension 활성화
        await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory):
    """테스트 데이터베이스 세션"""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def create_user(db_session):
    """외부 인증 서비스가 발급한 사용자 ID를 미리 등록"""

    async def _create(user_id: int) -> User:
        user = User(id=user_id)
        db_session.add(user)
        await db_session.flush()
        return user

    return _create


# NOTE:
# pytest-asyncio(0.21+)는 기본적으로 테스트마다 독립적인 event loop를 생성
# session 스코프 async fixture는 이 구조와 충돌하여 ScopeMismatch 에러를 유발할 수 있음
# 이를 방지하기 위해 async fixture는 모두 function 스코프로 유지
@pytest_asyncio.fixture
async def client(db_session):
    """비동기 테스트 클라이언트 (테스트 DB 사용)"""

    # 테스트용 데이터베이스로 의존성 오버라이드
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport, base_url="http://test"
    ) as client:
        yield client

    # 정리
    app.dependency_overrides.clear()


@pytest.fixture
def api_key_header():
    """Internal API Key 헤더"""
    return {"X-Internal-Api-Key": settings.internal_api_key}


# LLM 테스트 설정


def pytest_configure(config):
    """pytest marker 등록"""
    config.addinivalue_line("markers", "real_ai: 실제 AI API를 사용하는 테스트 (유료)")
    config.addinivalue_line("markers", "mock_ai: Mock AI를 사용하는 테스트 (무료)")


def is_real_ai_enabled() -> bool:
    """실제 AI 테스트 활성화 여부"""
    return os.getenv("ENABLE_REAL_AI_TESTS", "false").lower() == "true"


@pytest.fixture
def skip_if_no_real_ai():
    """실제 AI 테스트가 비활성화된 경우 스킵"""
    if not is_real_ai_enabled():
        pytest.skip("ENABLE_REAL_AI_TESTS=true 설정 필요")


@pytest.fixture(autouse=True)
def mock_llm_completion():
    """LLM completion Mock - 자동 적용"""
    mock = AsyncMock()

    async def default_side_effect(*args, **kwargs):
        return LLMResult(
            content=json.dumps(MOCK_TIPS),
            model="mock-model",
            input_tokens=100,
            output_tokens=50,
            finish_reason="stop",
        )

    mock.side_effect = default_side_effect

    # call_with_fallback이 노출되는 모든 경로를 Mock
    with patch("app.core.llm.call_with_fallback", mock), patch(
        "app.domains.tips.synthesis.service.call_with_fallback", mock
    ):
        yield mock


@pytest.fixture(autouse=True)
def mock_embedding():
    """임베딩 생성 Mock - 자동 적용

    모든 텍스트가 같은 방향의 벡터를 받으므로 질의 유사도는 1.0입니다.
    """

    async def mock_embedding_1536(_text):
        return [0.1] * 1536

    get_embedding_gateway.cache_clear()
    with patch(
        "app.core.llm.create_embedding",
        side_effect=mock_embedding_1536,
    ), patch(
        "app.domains.tips.embedding.gateway.create_embedding",
        side_effect=mock_embedding_1536,
    ) as mock_gateway:
        yield mock_gateway
    get_embedding_gateway.cache_clear()

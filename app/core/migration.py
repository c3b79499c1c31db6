"""서버 시작 시 Alembic 마이그레이션 확인/적용

AUTO_MIGRATE=true면 head까지 업그레이드하고, false면 상태만 로그로 남깁니다.
프로덕션에서 상태 확인에 실패하면 서버를 시작하지 않습니다.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]


@dataclass(frozen=True)
class MigrationStatus:
    current: Optional[str]
    head: Optional[str]

    @property
    def is_up_to_date(self) -> bool:
        return self.current is not None and self.current == self.head


def sync_database_url(url: Optional[str] = None) -> str:
    """asyncpg URL을 alembic용 psycopg2 URL로 변환"""
    return (url or settings.database_url).replace(
        "postgresql+asyncpg://", "postgresql+psycopg2://"
    )


def get_alembic_config() -> Config:
    config = Config(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    config.set_main_option("sqlalchemy.url", sync_database_url())
    return config


def get_migration_status(config: Optional[Config] = None) -> MigrationStatus:
    """DB의 현재 revision과 스크립트 head 조회

    Raises:
        SQLAlchemyError: DB에 연결할 수 없는 경우
    """
    config = config or get_alembic_config()
    head = ScriptDirectory.from_config(config).get_current_head()

    engine = create_engine(sync_database_url())
    try:
        with engine.connect() as conn:
            current = MigrationContext.configure(conn).get_current_revision()
    finally:
        engine.dispose()

    return MigrationStatus(current=current, head=head)


def run_migrations_on_startup(auto_migrate: bool = True) -> None:
    """마이그레이션 상태 확인 후 필요하면 업그레이드

    Raises:
        RuntimeError: 프로덕션에서 확인/적용에 실패한 경우
    """
    try:
        config = get_alembic_config()
        status = get_migration_status(config)

        if status.is_up_to_date:
            logger.info(f"Database schema is up to date (revision={status.current})")
            return

        logger.warning(
            f"Database schema is behind (current={status.current}, head={status.head})"
        )
        if not auto_migrate:
            return

        command.upgrade(config, "head")
        logger.info(f"Migrated database schema to revision={status.head}")

    except Exception as e:
        logger.error(f"Migration check failed: {e}")
        if settings.is_production:
            raise RuntimeError("Migration check failed in production") from e
        logger.warning("Continuing startup without migrations (non-production)")

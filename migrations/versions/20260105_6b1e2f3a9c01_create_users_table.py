"""create_users_table

Revision ID: 6b1e2f3a9c01
Revises:
Create Date: 2026-01-05 10:12:41.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "6b1e2f3a9c01"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """업그레이드 마이그레이션: pgvector 확장 + users 테이블 생성"""
    # pgvector 확장 설치 (벡터 연산 지원)
    op.execute("CREATE EXTENSION IF NOT EXISTS vector")

    op.create_table(
        "users",
        sa.Column(
            "id",
            sa.Integer(),
            nullable=False,
            autoincrement=False,
            comment="인증 서비스에서 제공하는 사용자 ID",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
            comment="생성 일시",
        ),
        sa.Column(
            "deleted_at",
            sa.DateTime(timezone=True),
            nullable=True,
            comment="삭제 일시 (Soft Delete)",
        ),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    """다운그레이드 마이그레이션"""
    op.drop_table("users")
    op.execute("DROP EXTENSION IF EXISTS vector")

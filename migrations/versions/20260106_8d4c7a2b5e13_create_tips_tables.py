"""create_tips_tables

Revision ID: 8d4c7a2b5e13
Revises: 6b1e2f3a9c01
Create Date: 2026-01-06 14:03:17.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from pgvector.sqlalchemy import Vector

# revision identifiers, used by Alembic.
revision: str = "8d4c7a2b5e13"
down_revision: Union[str, None] = "6b1e2f3a9c01"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

EMBEDDING_DIM = 1536


def upgrade() -> None:
    """업그레이드 마이그레이션: 팁, 임베딩, 상호작용, 선호 프로필 테이블 생성"""
    op.create_table(
        "tips",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False, comment="팁 제목"),
        sa.Column("body", sa.Text(), nullable=False, comment="팁 본문"),
        sa.Column("details", sa.Text(), nullable=True, comment="부가 설명"),
        sa.Column(
            "category",
            sa.String(length=50),
            nullable=False,
            comment="대표 카테고리 (분류 체계 값 또는 generated)",
        ),
        sa.Column(
            "source",
            sa.String(length=20),
            nullable=False,
            comment="출처 (catalog, ai)",
        ),
        sa.Column(
            "content_hash",
            sa.String(length=64),
            nullable=False,
            comment="SHA-256(title|body|details)",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
            comment="생성 일시",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_tips_content_hash", "tips", ["content_hash"], unique=True
    )

    op.create_table(
        "tip_categories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("tip_id", sa.Integer(), nullable=False),
        sa.Column(
            "category_type",
            sa.String(length=50),
            nullable=False,
            comment="카테고리 유형",
        ),
        sa.Column(
            "category_value",
            sa.String(length=100),
            nullable=False,
            comment="카테고리 값 (소문자)",
        ),
        sa.Column(
            "confidence", sa.Float(), nullable=False, comment="신뢰도 (0~1)"
        ),
        sa.ForeignKeyConstraint(["tip_id"], ["tips.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "tip_id",
            "category_type",
            "category_value",
            name="uq_tip_categories_tip_type_value",
        ),
    )
    op.create_index("ix_tip_categories_tip_id", "tip_categories", ["tip_id"])

    op.create_table(
        "tip_embeddings",
        sa.Column("tip_id", sa.Integer(), nullable=False),
        sa.Column(
            "embedding",
            Vector(EMBEDDING_DIM),
            nullable=False,
            comment=f"임베딩 벡터 ({EMBEDDING_DIM} 차원)",
        ),
        sa.Column(
            "embedding_model",
            sa.String(length=100),
            nullable=False,
            comment="임베딩 모델",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["tip_id"], ["tips.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("tip_id"),
    )

    op.create_table(
        "user_tip_interactions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("tip_id", sa.Integer(), nullable=False),
        sa.Column(
            "interaction_type",
            sa.String(length=10),
            nullable=False,
            comment="like, dislike, save",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tip_id"], ["tips.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_id",
            "tip_id",
            "interaction_type",
            name="uq_user_tip_interactions_user_tip_type",
        ),
    )
    op.create_index(
        "ix_user_tip_interactions_user_id", "user_tip_interactions", ["user_id"]
    )
    op.create_index(
        "ix_user_tip_interactions_tip_id", "user_tip_interactions", ["tip_id"]
    )

    op.create_table(
        "user_preference_profiles",
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column(
            "preference_embedding",
            Vector(EMBEDDING_DIM),
            nullable=True,
            comment="선호 벡터 (단위 벡터)",
        ),
        sa.Column(
            "survey_embedding",
            Vector(EMBEDDING_DIM),
            nullable=True,
            comment="설문 기반 벡터",
        ),
        sa.Column(
            "survey_weight",
            sa.Float(),
            nullable=True,
            comment="설문 벡터 혼합 가중치",
        ),
        sa.Column(
            "total_interactions",
            sa.Integer(),
            server_default="0",
            nullable=False,
            comment="총 상호작용 수",
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id"),
    )


def downgrade() -> None:
    """다운그레이드 마이그레이션"""
    op.drop_table("user_preference_profiles")
    op.drop_index(
        "ix_user_tip_interactions_tip_id", table_name="user_tip_interactions"
    )
    op.drop_index(
        "ix_user_tip_interactions_user_id", table_name="user_tip_interactions"
    )
    op.drop_table("user_tip_interactions")
    op.drop_table("tip_embeddings")
    op.drop_index("ix_tip_categories_tip_id", table_name="tip_categories")
    op.drop_table("tip_categories")
    op.drop_index("ix_tips_content_hash", table_name="tips")
    op.drop_table("tips")

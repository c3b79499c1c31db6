"""create_survey_tables

Revision ID: c3a9e1f47b22
Revises: 8d4c7a2b5e13
Create Date: 2026-01-10 09:41:05.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from pgvector.sqlalchemy import Vector

# revision identifiers, used by Alembic.
revision: str = "c3a9e1f47b22"
down_revision: Union[str, None] = "8d4c7a2b5e13"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

EMBEDDING_DIM = 1536


def upgrade() -> None:
    """업그레이드 마이그레이션: 설문 응답, 설문 옵션 임베딩 테이블 생성"""
    op.create_table(
        "user_survey_responses",
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column(
            "content_preferences",
            sa.ARRAY(sa.String()),
            nullable=False,
            comment="선호 콘텐츠 유형",
        ),
        sa.Column(
            "challenge_areas",
            sa.ARRAY(sa.String()),
            nullable=False,
            comment="현재 어려움",
        ),
        sa.Column(
            "parenting_goals",
            sa.ARRAY(sa.String()),
            nullable=False,
            comment="양육 목표",
        ),
        sa.Column(
            "engagement_frequency",
            sa.String(length=20),
            nullable=False,
            comment="daily, few-times-week, weekly, on-demand",
        ),
        sa.Column(
            "current_challenge",
            sa.Text(),
            nullable=True,
            comment="현재 겪는 구체적 어려움",
        ),
        sa.Column(
            "additional_notes", sa.Text(), nullable=True, comment="추가 메모"
        ),
        sa.Column(
            "completed_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
            comment="최초 완료 일시",
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

    op.create_table(
        "survey_preference_embeddings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column(
            "preference_type",
            sa.String(length=20),
            nullable=False,
            comment="content, challenge, goal",
        ),
        sa.Column(
            "preference_value",
            sa.String(length=100),
            nullable=False,
            comment="설문 옵션 값",
        ),
        sa.Column(
            "embedding",
            Vector(EMBEDDING_DIM),
            nullable=False,
            comment=f"옵션 설명 임베딩 ({EMBEDDING_DIM} 차원)",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_survey_preference_embeddings_user_id",
        "survey_preference_embeddings",
        ["user_id"],
    )


def downgrade() -> None:
    """다운그레이드 마이그레이션"""
    op.drop_index(
        "ix_survey_preference_embeddings_user_id",
        table_name="survey_preference_embeddings",
    )
    op.drop_table("survey_preference_embeddings")
    op.drop_table("user_survey_responses")

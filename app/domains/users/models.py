"""Users 도메인 모델 정의

사용자 계정은 외부 인증 서비스가 발급합니다.
이 테이블은 상호작용/선호 프로필의 무결성 확인용으로만 사용되며,
ID는 인증 서비스에서 제공되므로 자동 증가하지 않습니다.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class User(Base):
    """사용자 모델"""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(
        primary_key=True,
        autoincrement=False,
        comment="인증 서비스에서 제공하는 사용자 ID",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="생성 일시",
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, comment="삭제 일시 (Soft Delete)"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, deleted_at={self.deleted_at})>"

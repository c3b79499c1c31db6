"""Users 도메인 예외 정의"""

from enum import Enum
from typing import Optional

from app.core.exceptions import NotFoundException


class UserErrorCode(str, Enum):
    USER_NOT_FOUND = "USER_NOT_FOUND"


class UserNotFoundException(NotFoundException):
    """등록되지 않았거나 삭제된 사용자 ID로 상호작용/설문을 기록하려는 경우"""

    def __init__(self, user_id: Optional[int] = None):
        super().__init__(
            message="사용자를 찾을 수 없습니다.",
            error_code=UserErrorCode.USER_NOT_FOUND,
            detail={"user_id": user_id} if user_id is not None else {},
        )

"""Users 도메인 모듈

외부 인증 서비스가 발급한 사용자 ID의 존재 여부를 확인합니다.

구조:
    - models.py: SQLAlchemy 모델 정의 (User)
    - repository.py: 데이터 접근 계층
    - exceptions.py: 도메인 예외
"""

from app.domains.users.exceptions import UserErrorCode, UserNotFoundException
from app.domains.users.models import User
from app.domains.users.repository import UserRepository

__all__ = [
    "User",
    "UserRepository",
    "UserErrorCode",
    "UserNotFoundException",
]

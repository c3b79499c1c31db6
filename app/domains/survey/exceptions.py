"""Survey 도메인 예외 정의"""

from enum import Enum
from typing import Optional

from app.core.exceptions import BadRequestException, NotFoundException


class SurveyErrorCode(str, Enum):
    """설문 도메인 에러 코드"""

    SURVEY_NOT_FOUND = "SURVEY_NOT_FOUND"
    INVALID_SURVEY = "INVALID_SURVEY"


class SurveyNotFoundException(NotFoundException):
    """설문 응답이 없는 경우"""

    def __init__(self, user_id: Optional[int] = None):
        detail = {"user_id": user_id, "has_completed_survey": False}
        super().__init__(
            message="설문 응답을 찾을 수 없습니다.",
            error_code=SurveyErrorCode.SURVEY_NOT_FOUND,
            detail=detail,
        )


class InvalidSurveyException(BadRequestException):
    """설문 값이 올바르지 않은 경우"""

    def __init__(self, detail_msg: str, valid_options: Optional[list[str]] = None):
        detail: dict = {"info": detail_msg}
        if valid_options:
            detail["valid_options"] = valid_options
        super().__init__(
            message="설문 데이터가 올바르지 않습니다.",
            error_code=SurveyErrorCode.INVALID_SURVEY,
            detail=detail,
        )

"""예외 단위 테스트"""

from app.core.exceptions import (
    BadRequestException,
    ErrorCode,
    InternalServerException,
    NotFoundException,
    UnauthorizedException,
)
from app.domains.survey.exceptions import (
    InvalidSurveyException,
    SurveyErrorCode,
    SurveyNotFoundException,
)
from app.domains.tips.exceptions import (
    EmbeddingFailedException,
    InvalidInteractionException,
    InvalidTipPayloadException,
    QueryRejectedException,
    TipErrorCode,
    TipNotFoundException,
)
from app.domains.users.exceptions import UserErrorCode, UserNotFoundException


class TestGlobalExceptions:
    """전역 예외 테스트"""

    def test_not_found_exception(self):
        """NotFoundException 기본값"""
        exc = NotFoundException()

        assert exc.status_code == 404
        assert exc.error_code == ErrorCode.NOT_FOUND
        assert exc.message == "리소스를 찾을 수 없습니다."

    def test_not_found_exception_custom(self):
        """NotFoundException 커스텀 메시지"""
        exc = NotFoundException(
            message="팁을 찾을 수 없습니다.",
            detail={"tip_id": 123},
        )

        assert exc.message == "팁을 찾을 수 없습니다."
        assert exc.detail_info == {"tip_id": 123}

    def test_bad_request_exception(self):
        exc = BadRequestException(message="잘못된 입력입니다.")

        assert exc.status_code == 400
        assert exc.error_code == ErrorCode.BAD_REQUEST

    def test_unauthorized_exception(self):
        exc = UnauthorizedException()

        assert exc.status_code == 401
        assert exc.error_code == ErrorCode.UNAUTHORIZED

    def test_internal_server_exception(self):
        exc = InternalServerException()

        assert exc.status_code == 500
        assert exc.error_code == ErrorCode.INTERNAL_ERROR


class TestDomainExceptions:
    """도메인 예외 테스트"""

    def test_query_rejected_exception(self):
        """가드레일 거절은 카테고리를 에러 코드로 사용"""
        exc = QueryRejectedException(
            category="non_parenting",
            message="We only provide parenting tips.",
            original_query="best pizza recipe",
            suggestions=["Sharing and turn-taking tips"],
        )

        assert exc.status_code == 400
        assert exc.error_code == "non_parenting"
        assert exc.message == "We only provide parenting tips."
        assert exc.detail_info == {
            "category": "non_parenting",
            "suggestions": ["Sharing and turn-taking tips"],
            "original_query": "best pizza recipe",
            "is_parenting_related": False,
        }

    def test_tip_not_found_exception(self):
        exc = TipNotFoundException("generated_x")

        assert exc.status_code == 404
        assert exc.error_code == TipErrorCode.TIP_NOT_FOUND
        assert exc.detail_info == {"tip_id": "generated_x"}

    def test_invalid_payload_and_interaction(self):
        assert InvalidTipPayloadException().status_code == 400
        exc = InvalidInteractionException("share")
        assert exc.error_code == TipErrorCode.INVALID_INTERACTION
        assert exc.detail_info == {"interaction_type": "share"}

    def test_embedding_failed_exception(self):
        exc = EmbeddingFailedException(detail_msg="timeout")

        assert exc.status_code == 500
        assert exc.error_code == TipErrorCode.EMBEDDING_FAILED

    def test_survey_exceptions(self):
        not_found = SurveyNotFoundException(user_id=7)
        assert not_found.status_code == 404
        assert not_found.error_code == SurveyErrorCode.SURVEY_NOT_FOUND
        assert not_found.detail_info["has_completed_survey"] is False

        invalid = InvalidSurveyException("bad", valid_options=["daily"])
        assert invalid.detail_info == {"info": "bad", "valid_options": ["daily"]}

    def test_user_not_found_exception(self):
        """UserNotFoundException"""
        exc = UserNotFoundException(user_id=123)

        assert exc.status_code == 404
        assert exc.error_code == UserErrorCode.USER_NOT_FOUND
        assert exc.detail_info == {"user_id": 123}

"""스키마 단위 테스트"""

import pytest
from pydantic import ValidationError

from app.core.schemas import APIResponse, ErrorDetail, ErrorResponse, create_response
from app.domains.tips.schemas import (
    BatchInteractionItem,
    GenerateTipsRequest,
    InteractionRequest,
    SurveyTipsRequest,
    TipsQueryRequest,
)


class TestAPIResponse:
    """APIResponse 테스트"""

    def test_success_response_with_data(self):
        response = create_response(data={"id": "1"}, message="조회 성공")

        assert response.success is True
        assert response.message == "조회 성공"
        assert response.data == {"id": "1"}

    def test_default_message(self):
        response = APIResponse(success=True)

        assert response.message == "요청이 성공적으로 처리되었습니다."
        assert response.data is None


class TestErrorResponse:
    def test_error_response_structure(self):
        error = ErrorResponse(
            message="This app is for ages 0–5.",
            error=ErrorDetail(
                code="age_out_of_scope",
                message="This app is for ages 0–5.",
                detail={"suggestions": []},
            ),
        )

        assert error.success is False
        assert error.error.code == "age_out_of_scope"


class TestTipsRequests:
    """Tips 요청 스키마 테스트"""

    def test_defaults(self):
        request = TipsQueryRequest(prompt="bedtime routine")

        assert request.user_id is None
        assert request.generate_mode == "hybrid"
        assert request.policy is None
        assert request.content_preferences == []

    def test_content_preferences_from_string(self):
        request = TipsQueryRequest(
            prompt="bedtime routine", content_preferences="sleep, routines"
        )

        assert request.content_preferences == ["sleep", "routines"]

    @pytest.mark.parametrize(
        "field,value",
        [("generate_mode", "random"), ("policy", "everything"), ("prompt", "")],
    )
    def test_invalid_values(self, field, value):
        payload = {"prompt": "bedtime routine", field: value}
        with pytest.raises(ValidationError):
            TipsQueryRequest(**payload)

    def test_survey_request_requires_user(self):
        with pytest.raises(ValidationError):
            SurveyTipsRequest(prompt="bedtime routine")

    def test_generate_count_bounds(self):
        with pytest.raises(ValidationError):
            GenerateTipsRequest(prompt="bedtime", count=11)

    def test_interaction_tip_id_accepts_generated_id(self):
        request = InteractionRequest(
            user_id=1,
            tip_id="generated_1700000000000_0",
            interaction_type="like",
            tip_payload={"title": "T", "body": "B"},
        )

        assert request.tip_id == "generated_1700000000000_0"
        assert request.tip_payload.categories == []

    def test_batch_item_kind_alias(self):
        item = BatchInteractionItem(tip_id=3, kind="save")

        assert item.interaction_type is None
        assert item.kind == "save"

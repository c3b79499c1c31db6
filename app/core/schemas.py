"""공통 API 응답 스키마

이 모듈은 API 응답의 일관된 구조를 정의합니다.

Usage::

    from app.core.schemas import APIResponse, create_response
    return create_response(data=tips, message="인기 팁 조회 성공")

Note:
    Generic 타입의 classmethod는 Pydantic에서 제한이 있으므로,
    팩토리 함수(create_response)를 사용하거나 직접 생성자를 호출하세요.
"""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

DataT = TypeVar("DataT")


class APIResponse(BaseModel, Generic[DataT]):
    """단일 데이터 API 응답

    Example::

        @router.get("/popular", response_model=APIResponse[list[PopularTipResponse]])
        async def get_popular_tips():
            tips = await service.get_popular()
            return APIResponse(
                success=True,
                data=[PopularTipResponse.model_validate(t) for t in tips],
                message="인기 팁 조회 성공",
            )
    """

    success: bool = True
    message: str = "요청이 성공적으로 처리되었습니다."
    data: Optional[DataT] = None


def create_response(
    data: Optional[DataT] = None,
    message: str = "요청이 성공적으로 처리되었습니다.",
    success: bool = True,
) -> APIResponse[DataT]:
    """API 응답 생성 팩토리 함수

    Args:
        data: 응답 데이터
        message: 응답 메시지
        success: 성공 여부

    Returns:
        APIResponse 인스턴스
    """
    return APIResponse(success=success, message=message, data=data)


class ErrorDetail(BaseModel):
    """에러 상세 정보"""

    code: str = Field(..., description="에러 코드")
    message: str = Field(..., description="에러 메시지")
    detail: Optional[dict[str, Any]] = Field(default=None, description="추가 정보")


class ErrorResponse(BaseModel):
    """에러 API 응답

    Example::

        {
            "success": false,
            "message": "This app is for ages 0–5.",
            "error": {
                "code": "age_out_of_scope",
                "message": "This app is for ages 0–5.",
                "detail": {
                    "category": "age_out_of_scope",
                    "suggestions": ["Ask about a calming bedtime routine"],
                    "original_query": "my 7 year old's bedtime",
                    "is_parenting_related": false
                }
            }
        }
    """

    success: bool = False
    message: str
    error: ErrorDetail

"""Tips 도메인 예외 클래스

팁 조회/생성/상호작용 중 발생할 수 있는 도메인 특화 예외들을 정의합니다.
"""

from enum import Enum
from typing import Optional

from app.core.exceptions import (
    BadRequestException,
    InternalServerException,
    NotFoundException,
)


class TipErrorCode(str, Enum):
    """Tips 도메인 에러 코드"""

    QUERY_REJECTED = "QUERY_REJECTED"
    TIP_NOT_FOUND = "TIP_NOT_FOUND"
    INVALID_TIP_PAYLOAD = "INVALID_TIP_PAYLOAD"
    INVALID_INTERACTION = "INVALID_INTERACTION"
    EMBEDDING_FAILED = "EMBEDDING_FAILED"
    EMBEDDING_DIMENSION_MISMATCH = "EMBEDDING_DIMENSION_MISMATCH"
    TIP_SYNTHESIS_FAILED = "TIP_SYNTHESIS_FAILED"


class QueryRejectedException(BadRequestException):
    """가드레일에 의해 거절된 질의

    오류가 아닌 범위 판정 결과이며, 카테고리별 안내 문구와 추천 질문을 함께 전달합니다.
    error_code는 가드레일 카테고리(예: age_out_of_scope)입니다.
    """

    def __init__(
        self,
        category: str,
        message: str,
        original_query: str,
        suggestions: Optional[list[str]] = None,
    ):
        self.category = category
        super().__init__(
            message=message,
            error_code=category,
            detail={
                "category": category,
                "suggestions": suggestions or [],
                "original_query": original_query,
                "is_parenting_related": False,
            },
        )


class TipNotFoundException(NotFoundException):
    """팁을 찾을 수 없는 경우"""

    def __init__(self, tip_id: Optional[str] = None):
        detail = {"tip_id": tip_id} if tip_id else {}
        super().__init__(
            message="팁을 찾을 수 없습니다.",
            error_code=TipErrorCode.TIP_NOT_FOUND,
            detail=detail,
        )


class InvalidTipPayloadException(BadRequestException):
    """생성된 팁 저장에 필요한 필드가 없는 경우"""

    def __init__(self, detail_msg: str = "title과 body는 필수입니다"):
        super().__init__(
            message="팁 데이터가 올바르지 않습니다.",
            error_code=TipErrorCode.INVALID_TIP_PAYLOAD,
            detail={"info": detail_msg},
        )


class InvalidInteractionException(BadRequestException):
    """지원하지 않는 상호작용 유형"""

    def __init__(self, interaction_type: str):
        super().__init__(
            message="지원하지 않는 상호작용 유형입니다.",
            error_code=TipErrorCode.INVALID_INTERACTION,
            detail={"interaction_type": interaction_type},
        )


class EmbeddingFailedException(InternalServerException):
    """임베딩 생성 실패

    임베딩 프로바이더 호출이 실패했을 때 발생합니다. 재시도하지 않습니다.
    """

    def __init__(self, detail_msg: str):
        super().__init__(
            message="임베딩 생성에 실패했습니다",
            error_code=TipErrorCode.EMBEDDING_FAILED,
            detail={"info": detail_msg},
        )


class EmbeddingDimensionMismatchException(InternalServerException):
    """하나의 계산에 서로 다른 차원의 벡터가 섞인 경우"""

    def __init__(self, expected: int, actual: int):
        super().__init__(
            message="임베딩 차원이 일치하지 않습니다",
            error_code=TipErrorCode.EMBEDDING_DIMENSION_MISMATCH,
            detail={"expected": expected, "actual": actual},
        )


class TipSynthesisException(InternalServerException):
    """팁 생성 응답을 파싱할 수 없는 경우"""

    def __init__(self, detail_msg: str):
        super().__init__(
            message="팁 생성에 실패했습니다",
            error_code=TipErrorCode.TIP_SYNTHESIS_FAILED,
            detail={"info": detail_msg},
        )

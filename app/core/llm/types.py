"""LLM 관련 공통 타입 정의"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from app.core.exceptions import ErrorCode, InternalServerException


class LLMTier(str, Enum):
    """LLM 티어 (작업 복잡도 기반)

    Attributes:
        LIGHT: 간단한 작업 (짧은 팁 생성, 분류)
        STANDARD: 일반 작업 (설문 기반 맞춤 생성)
        EMBEDDING: 임베딩 생성
    """

    LIGHT = "light"
    STANDARD = "standard"
    EMBEDDING = "embedding"


class LLMMessage(BaseModel):
    """LLM 메시지 형식

    Attributes:
        role: 메시지 역할 ("system", "user", "assistant")
        content: 메시지 내용
    """

    role: str
    content: str


class LLMResult(BaseModel):
    """LLM 호출 결과

    Attributes:
        content: 생성된 텍스트
        model: 사용된 모델 이름
        input_tokens: 입력 토큰 수
        output_tokens: 출력 토큰 수
        finish_reason: 생성 완료 이유 (선택사항)
    """

    content: str
    model: str
    input_tokens: int
    output_tokens: int
    finish_reason: Optional[str] = None


class LLMProviderError(InternalServerException):
    """단일 LLM 프로바이더 호출 실패

    단일 모델 호출이 실패했을 때 발생하는 예외입니다.
    타임아웃도 프로바이더 실패로 취급합니다.
    Fallback 로직에서 다음 모델로 재시도하기 위해 사용됩니다.

    Example:
        try:
            result = await litellm.acompletion(model="gpt-4o-mini", ...)
        except Exception as e:
            raise LLMProviderError(
                provider="gpt-4o-mini",
                original_error=str(e)
            )
    """

    def __init__(
        self,
        provider: str,
        original_error: str,
        error_code: str = ErrorCode.LLM_PROVIDER_ERROR,
    ):
        super().__init__(
            message=f"LLM provider '{provider}' failed: {original_error}",
            error_code=error_code,
            detail={"provider": provider, "error": original_error},
        )


class LLMRateLimitError(LLMProviderError):
    """요청 한도/쿼터 초과

    재시도해도 성공 가능성이 낮으므로 생성 재시도 루프는
    이 예외를 받으면 즉시 중단합니다.
    """

    def __init__(self, provider: str, original_error: str):
        super().__init__(
            provider=provider,
            original_error=original_error,
            error_code=ErrorCode.LLM_RATE_LIMITED,
        )


class AllProvidersFailedError(InternalServerException):
    """모든 프로바이더 fallback 실패

    티어에 정의된 모든 fallback 모델이 실패했을 때 발생하는 예외입니다.
    rate_limited는 실패 원인 중 한도 초과가 있었는지를 나타냅니다.

    Example:
        attempted = ["gpt-4o-mini", "claude-3-5-haiku-latest"]
        raise AllProvidersFailedError(tier="light", attempts=attempted)
    """

    def __init__(
        self, tier: str, attempts: list[str], rate_limited: bool = False
    ):
        self.rate_limited = rate_limited
        super().__init__(
            message=f"All providers failed for tier '{tier}'",
            error_code=ErrorCode.ALL_PROVIDERS_FAILED,
            detail={
                "tier": tier,
                "attempted_models": attempts,
                "rate_limited": rate_limited,
            },
        )

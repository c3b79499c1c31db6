"""Core LLM 인프라 공개 API

이 모듈은 Tips/Survey 도메인에서 사용할 공개 인터페이스만 노출합니다.
"""

from app.core.llm.fallback import (
    call_with_fallback,
    create_embedding,
    stream_with_fallback,
)
from app.core.llm.observability import flush_observability, get_observe_decorator
from app.core.llm.types import (
    AllProvidersFailedError,
    LLMMessage,
    LLMProviderError,
    LLMRateLimitError,
    LLMResult,
    LLMTier,
)

__all__ = [
    # Types
    "LLMTier",
    "LLMMessage",
    "LLMResult",
    # Errors
    "LLMProviderError",
    "LLMRateLimitError",
    "AllProvidersFailedError",
    # Functions
    "call_with_fallback",
    "stream_with_fallback",
    "create_embedding",
    # Observability
    "get_observe_decorator",
    "flush_observability",
]

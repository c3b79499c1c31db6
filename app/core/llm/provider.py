"""LiteLLM 기반 LLM 프로바이더 래퍼

이 모듈은 LiteLLM을 직접 호출하는 유일한 곳입니다.
모든 호출은 명시적인 타임아웃을 가지며, 타임아웃은 프로바이더 실패로 취급합니다.
"""

import asyncio
import os
from typing import AsyncGenerator, Optional, cast

from litellm import RateLimitError, acompletion, aembedding

from app.core.config import settings
from app.core.llm.types import (
    LLMMessage,
    LLMProviderError,
    LLMRateLimitError,
    LLMResult,
)
from app.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_COMPLETION_TIMEOUT = 30.0

_RATE_LIMIT_MARKERS = ("rate limit", "ratelimit", "quota", "429")


def _setup_api_keys() -> None:
    """환경 변수에 API 키 설정 (LiteLLM이 자동으로 읽음)"""
    os.environ["OPENAI_API_KEY"] = settings.openai_api_key
    os.environ["ANTHROPIC_API_KEY"] = settings.anthropic_api_key
    os.environ["GOOGLE_API_KEY"] = settings.google_api_key


# 모듈 로드 시 API 키 설정
_setup_api_keys()


def _wrap_error(model: str, error: Exception) -> LLMProviderError:
    """LiteLLM 예외를 도메인 예외로 변환

    한도/쿼터 초과는 LLMRateLimitError로 분류합니다.
    """
    if isinstance(error, asyncio.TimeoutError):
        return LLMProviderError(provider=model, original_error="timeout")

    message = str(error)
    if isinstance(error, RateLimitError) or any(
        marker in message.lower() for marker in _RATE_LIMIT_MARKERS
    ):
        return LLMRateLimitError(provider=model, original_error=message)
    return LLMProviderError(provider=model, original_error=message)


async def acompletion_raw(
    model: str,
    messages: list[LLMMessage],
    temperature: float = 0.7,
    max_tokens: Optional[int] = None,
    timeout: Optional[float] = None,
    **kwargs,
) -> LLMResult:
    """LiteLLM completion 호출 (비동기)

    Args:
        model: 모델 이름 (예: "gpt-4o-mini")
        messages: 대화 메시지 리스트
        temperature: 샘플링 온도 (0.0 ~ 1.0)
        max_tokens: 최대 출력 토큰 수
        timeout: 호출 타임아웃 (초)
        **kwargs: LiteLLM에 전달할 추가 파라미터

    Returns:
        LLMResult: 생성된 텍스트 및 사용량 정보

    Raises:
        LLMRateLimitError: 한도/쿼터 초과 시
        LLMProviderError: 프로바이더 호출 실패 또는 타임아웃 시

    Example:
        messages = [
            LLMMessage(role="system", content="You are helpful."),
            LLMMessage(role="user", content="Hello!")
        ]
        result = await acompletion_raw("gpt-4o-mini", messages, timeout=8)
    """
    timeout = timeout or DEFAULT_COMPLETION_TIMEOUT
    try:
        response = await asyncio.wait_for(
            acompletion(
                model=model,
                messages=[msg.model_dump() for msg in messages],
                temperature=temperature,
                max_tokens=max_tokens,
                timeout=timeout,
                **kwargs,
            ),
            timeout=timeout,
        )

        choice = response.choices[0]
        usage = response.usage

        return LLMResult(
            content=choice.message.content or "",
            model=response.model,
            input_tokens=usage.prompt_tokens,
            output_tokens=usage.completion_tokens,
            finish_reason=choice.finish_reason,
        )

    except Exception as e:
        logger.error(f"LiteLLM completion failed for model {model}: {e!r}")
        raise _wrap_error(model, e) from e


async def astream_completion_raw(
    model: str,
    messages: list[LLMMessage],
    temperature: float = 0.7,
    max_tokens: Optional[int] = None,
    timeout: Optional[float] = None,
    **kwargs,
) -> AsyncGenerator[str, None]:
    """LiteLLM streaming completion (비동기 제너레이터)

    timeout은 연결 수립과 각 청크 사이의 대기 시간에 각각 적용됩니다.
    소비자가 반복을 중단하면 업스트림 스트림도 닫습니다.

    Args:
        model: 모델 이름
        messages: 대화 메시지 리스트
        temperature: 샘플링 온도
        max_tokens: 최대 출력 토큰 수
        timeout: 청크 대기 타임아웃 (초)
        **kwargs: LiteLLM 추가 파라미터

    Yields:
        str: 생성된 텍스트 청크

    Raises:
        LLMProviderError: 프로바이더 호출 실패 또는 타임아웃 시
    """
    timeout = timeout or DEFAULT_COMPLETION_TIMEOUT
    response = None
    try:
        response = await asyncio.wait_for(
            acompletion(
                model=model,
                messages=[msg.model_dump() for msg in messages],
                temperature=temperature,
                max_tokens=max_tokens,
                stream=True,
                timeout=timeout,
                **kwargs,
            ),
            timeout=timeout,
        )

        iterator = response.__aiter__()
        while True:
            try:
                chunk = await asyncio.wait_for(
                    iterator.__anext__(), timeout=timeout
                )
            except StopAsyncIteration:
                break
            if chunk.choices and chunk.choices[0].delta.content:
                yield chunk.choices[0].delta.content

    except LLMProviderError:
        raise
    except Exception as e:
        logger.error(f"LiteLLM streaming failed for model {model}: {e!r}")
        raise _wrap_error(model, e) from e
    finally:
        close = getattr(response, "aclose", None)
        if close is not None:
            await close()


async def aembedding_raw(
    model: str, input_text: str, timeout: Optional[float] = None
) -> list[float]:
    """LiteLLM embedding 생성 (비동기)

    Args:
        model: 임베딩 모델 이름 (예: "text-embedding-3-small")
        input_text: 임베딩할 텍스트
        timeout: 호출 타임아웃 (초)

    Returns:
        list[float]: 임베딩 벡터

    Raises:
        LLMProviderError: 프로바이더 호출 실패 또는 타임아웃 시

    Example:
        vector = await aembedding_raw(
            "text-embedding-3-small",
            "bedtime routine for toddlers"
        )
        # vector: list[float] with 1536 dimensions
    """
    timeout = timeout or settings.embedding_timeout_seconds
    try:
        response = await asyncio.wait_for(
            aembedding(model=model, input=[input_text], timeout=timeout),
            timeout=timeout,
        )
        return cast(list[float], response.data[0]["embedding"])

    except Exception as e:
        logger.error(f"LiteLLM embedding failed for model {model}: {e!r}")
        raise _wrap_error(model, e) from e

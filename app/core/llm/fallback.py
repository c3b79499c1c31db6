"""티어 기반 LLM Fallback 로직

호출자는 모델이 아닌 티어만 지정하면 자동으로 fallback이 처리됩니다.
Fallback 순서는 설정(LLM_LIGHT_MODELS, LLM_STANDARD_MODELS)에서 읽습니다.
"""

from typing import AsyncGenerator, Optional

from app.core.config import settings
from app.core.llm.provider import (
    acompletion_raw,
    aembedding_raw,
    astream_completion_raw,
)
from app.core.llm.types import (
    AllProvidersFailedError,
    LLMMessage,
    LLMProviderError,
    LLMRateLimitError,
    LLMResult,
    LLMTier,
)
from app.core.logging import get_logger

logger = get_logger(__name__)


def get_models_for_tier(tier: LLMTier) -> list[str]:
    """티어별 fallback 모델 목록 조회

    Raises:
        ValueError: 티어에 설정된 모델이 없는 경우
    """
    if tier == LLMTier.LIGHT:
        models = settings.llm_light_models
    elif tier == LLMTier.STANDARD:
        models = settings.llm_standard_models
    elif tier == LLMTier.EMBEDDING:
        models = [settings.embedding_model]
    else:
        models = []

    if not models:
        raise ValueError(
            f"No available models for tier: {tier}. "
            "Please check LLM model settings."
        )
    return list(models)


async def call_with_fallback(
    tier: LLMTier,
    messages: list[LLMMessage],
    temperature: float = 0.7,
    max_tokens: Optional[int] = None,
    timeout: Optional[float] = None,
    **kwargs,
) -> LLMResult:
    """티어 기반 LLM 호출 (자동 fallback)

    첫 번째 모델이 실패하면 자동으로 다음 모델로 재시도합니다.
    모든 모델이 실패하면 AllProvidersFailedError를 발생시킵니다.

    Args:
        tier: LLM 티어 (light, standard)
        messages: 대화 메시지
        temperature: 샘플링 온도
        max_tokens: 최대 출력 토큰
        timeout: 모델별 호출 타임아웃 (초)
        **kwargs: 추가 파라미터

    Returns:
        LLMResult: 생성 결과

    Raises:
        AllProvidersFailedError: 모든 모델 실패 시

    Example:
        from app.core.llm import LLMTier, LLMMessage, call_with_fallback

        messages = [
            LLMMessage(role="system", content="You are helpful."),
            LLMMessage(role="user", content="Hello!")
        ]
        result = await call_with_fallback(tier=LLMTier.LIGHT, messages=messages)
        print(result.content)
    """
    models = get_models_for_tier(tier)
    attempted_models = []
    rate_limited = False

    for model_name in models:
        try:
            logger.info(
                f"Attempting LLM call with tier={tier.value}, model={model_name}"
            )
            result = await acompletion_raw(
                model=model_name,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                timeout=timeout,
                **kwargs,
            )
            logger.info(f"LLM call succeeded with model={model_name}")
            return result

        except LLMProviderError as e:
            attempted_models.append(model_name)
            rate_limited = rate_limited or isinstance(e, LLMRateLimitError)
            logger.warning(
                f"Model {model_name} failed (tier={tier.value}): "
                f"{e.detail_info['error']}. Trying next model..."
            )
            continue

    # 모든 모델 실패
    raise AllProvidersFailedError(
        tier=tier.value, attempts=attempted_models, rate_limited=rate_limited
    )


async def stream_with_fallback(
    tier: LLMTier,
    messages: list[LLMMessage],
    temperature: float = 0.7,
    max_tokens: Optional[int] = None,
    timeout: Optional[float] = None,
    **kwargs,
) -> AsyncGenerator[str, None]:
    """티어 기반 스트리밍 호출 (스트리밍 시작 전까지만 fallback)

    스트리밍 시작 전 (첫 번째 청크 전)에 에러가 발생하면 다음 모델로
    fallback을 시도합니다. 스트리밍이 시작된 후에는 이미 yield된 청크를
    취소할 수 없으므로 즉시 에러를 발생시킵니다.

    Args:
        tier: LLM 티어
        messages: 대화 메시지
        temperature: 샘플링 온도
        max_tokens: 최대 출력 토큰
        timeout: 청크 대기 타임아웃 (초)
        **kwargs: 추가 파라미터

    Yields:
        str: 생성된 텍스트 청크

    Raises:
        AllProvidersFailedError: 모든 모델이 스트리밍 시작 전 실패 시
        LLMProviderError: 스트리밍 중 에러 발생 시 (fallback 없음)

    Note:
        - 연결 실패, 인증 에러, 첫 청크 타임아웃: fallback 시도
        - 스트리밍 중간 에러: 즉시 종료 (응답 손상 방지)
    """
    models = get_models_for_tier(tier)
    attempted_models = []
    rate_limited = False
    streaming_started = False

    for model_name in models:
        try:
            logger.info(
                f"Attempting streaming: tier={tier.value}, model={model_name}"
            )

            stream = astream_completion_raw(
                model=model_name,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                timeout=timeout,
                **kwargs,
            )
            try:
                async for chunk in stream:
                    # 첫 번째 청크를 성공적으로 받음 - 스트리밍 시작
                    if not streaming_started:
                        streaming_started = True
                        logger.info(
                            f"Streaming started with model={model_name}"
                        )

                    yield chunk
            finally:
                # 소비자가 중단해도 업스트림 연결을 닫음
                await stream.aclose()

            logger.info(f"Streaming completed with model={model_name}")
            return

        except LLMProviderError as e:
            if streaming_started:
                logger.error(
                    f"Streaming failed mid-stream with model={model_name}: "
                    f"{e.detail_info['error']}. "
                    "Cannot fallback - chunks already sent."
                )
                raise

            attempted_models.append(model_name)
            rate_limited = rate_limited or isinstance(e, LLMRateLimitError)
            logger.warning(
                f"Model {model_name} failed before streaming "
                f"(tier={tier.value}): {e.detail_info['error']}. "
                "Trying next model..."
            )
            continue

    # 모든 모델이 스트리밍 시작 전에 실패
    raise AllProvidersFailedError(
        tier=tier.value, attempts=attempted_models, rate_limited=rate_limited
    )


async def create_embedding(input_text: str) -> list[float]:
    """임베딩 생성 (fallback 없음)

    임베딩은 모델마다 벡터 공간이 다르므로 fallback을 지원하지 않습니다.
    저장된 팁 임베딩과 같은 공간이어야 하므로 EMBEDDING_MODEL만 사용합니다.

    Args:
        input_text: 임베딩할 텍스트

    Returns:
        list[float]: 임베딩 벡터 (text-embedding-3-small: 1536 차원)

    Raises:
        LLMProviderError: 임베딩 생성 실패 시

    Example:
        from app.core.llm import create_embedding

        vector = await create_embedding("toddler bedtime routine")
        print(f"Embedding dimension: {len(vector)}")
    """
    model_name = get_models_for_tier(LLMTier.EMBEDDING)[0]
    logger.debug(f"Creating embedding with model={model_name}")
    return await aembedding_raw(
        model=model_name,
        input_text=input_text,
        timeout=settings.embedding_timeout_seconds,
    )

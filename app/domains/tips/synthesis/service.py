"""생성형 팁 합성 서비스

LLM으로 팁을 생성합니다.
- 배치: JSON 배열 응답을 파싱, 실패 시 지수 백오프로 재시도 후 기본 팁 반환
- 스트리밍: NDJSON 응답을 줄 단위로 파싱해 콜백으로 전달

생성된 팁의 점수 계산은 호출자(TipsService)가 검색 팁과 동일한 파이프라인으로 수행합니다.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional, Sequence

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from app.core.config import settings
from app.core.llm import (
    AllProvidersFailedError,
    LLMMessage,
    LLMTier,
    call_with_fallback,
    get_observe_decorator,
    stream_with_fallback,
)
from app.core.logging import get_logger
from app.core.utils.datetime import now_utc
from app.core.utils.time import elapsed_ms_since, measure_time
from app.domains.tips.exceptions import TipSynthesisException
from app.domains.tips.synthesis import prompts
from app.domains.tips.synthesis.parsers import (
    format_generated_tip,
    parse_ndjson_line,
    parse_tips_payload,
)
from app.domains.tips.types import GeneratedTip

logger = get_logger(__name__)
observe = get_observe_decorator()

TipCallback = Callable[[GeneratedTip], Awaitable[None]]
CancelCheck = Callable[[], bool]


def _now_ms() -> int:
    return int(now_utc().timestamp() * 1000)


def is_retryable_generation_error(error: BaseException) -> bool:
    """잘못된 응답과 프로바이더 실패만 재시도 (한도 초과 제외)"""
    if isinstance(error, AllProvidersFailedError):
        return not error.rate_limited
    return isinstance(error, TipSynthesisException)


def build_fallback_tips(query: str, count: int = 5) -> list[GeneratedTip]:
    """LLM 생성이 모두 실패했을 때 반환하는 기본 팁 (질의 문구 포함)"""
    now = _now_ms()
    fallback_tips = [
        GeneratedTip(
            id=f"fallback_{now}_1",
            title=f"Getting Started with {query}",
            body=(
                f"Here are gentle, practical approaches to help with {query}. "
                "Start small, observe your child, and iterate."
            ),
            details=(
                "Every child is different. Adjust strategies to your family's "
                f"routine while focusing on {query}."
            ),
            categories=["general"],
        ),
        GeneratedTip(
            id=f"fallback_{now}_2",
            title=f"Making {query} Easier",
            body=(
                f"Break {query} into small steps. Use clear cues and consistent "
                "routines to reduce friction."
            ),
            details=f"Celebrate small wins to build momentum with {query}.",
            categories=["general"],
        ),
    ]
    return fallback_tips[:count]


class TipSynthesizer:
    """LLM 기반 팁 생성기

    재시도 횟수, 백오프, 타임아웃은 설정에서 읽으며
    sleep은 테스트에서 주입할 수 있습니다.
    """

    def __init__(
        self,
        tier: LLMTier = LLMTier.STANDARD,
        max_attempts: Optional[int] = None,
        backoff_base_seconds: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.tier = tier
        self.max_attempts = max_attempts or settings.tips_generation_max_attempts
        self.backoff_base_seconds = (
            settings.tips_generation_backoff_base_seconds
            if backoff_base_seconds is None
            else backoff_base_seconds
        )
        self._sleep = sleep

    def _build_messages(
        self,
        query: str,
        count: int,
        content_preferences: Optional[Sequence[str]],
        preference_context: str,
        keywords: Optional[Sequence[str]],
        streaming: bool,
    ) -> list[LLMMessage]:
        return [
            LLMMessage(
                role="system",
                content=prompts.build_system_prompt(streaming=streaming),
            ),
            LLMMessage(
                role="user",
                content=prompts.build_user_prompt(
                    query=query,
                    count=count,
                    content_preferences=content_preferences,
                    preference_context=preference_context,
                    keywords=keywords,
                    streaming=streaming,
                ),
            ),
        ]

    @observe()
    async def generate_batch(
        self,
        query: str,
        count: int = 10,
        content_preferences: Optional[Sequence[str]] = None,
        preference_context: str = "",
        keywords: Optional[Sequence[str]] = None,
        display_query: Optional[str] = None,
    ) -> list[GeneratedTip]:
        """배치 팁 생성

        잘못된 응답이나 프로바이더 실패는 지수 백오프로 재시도하고,
        한도 초과(rate limit)는 재시도하지 않습니다.

        Args:
            query: 프롬프트에 넣을 질의 (리프레이밍된 질의일 수 있음)
            count: 요청할 팁 수
            content_preferences: 선호 도메인
            preference_context: 선호 문맥
            keywords: 키워드 핀
            display_query: 기본값/기본 팁에 사용할 원본 질의

        Returns:
            생성된 팁 목록. 모든 시도가 실패하면 기본 팁.
        """
        display_query = display_query or query
        messages = self._build_messages(
            query, count, content_preferences, preference_context, keywords,
            streaming=False,
        )
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff_base_seconds),
            retry=retry_if_exception(is_retryable_generation_error),
            before_sleep=self._log_retry,
            sleep=self._sleep,
            reraise=True,
        )

        try:
            return await retrying(self._generate_once, messages, display_query)
        except (AllProvidersFailedError, TipSynthesisException) as e:
            if isinstance(e, AllProvidersFailedError) and e.rate_limited:
                logger.warning("Rate limit hit, not retrying tip generation")
            logger.error(
                f"All tip generation attempts failed for {display_query!r}, "
                f"using fallback tips (last error: {e})"
            )
            return build_fallback_tips(display_query, count)

    async def _generate_once(
        self, messages: list[LLMMessage], display_query: str
    ) -> list[GeneratedTip]:
        """한 번의 생성 시도 (응답을 파싱하지 못하면 TipSynthesisException)"""
        with measure_time() as timer:
            result = await call_with_fallback(
                tier=self.tier,
                messages=messages,
                temperature=settings.tips_generation_temperature,
                max_tokens=settings.tips_generation_max_tokens,
                timeout=settings.tips_generation_timeout_seconds,
            )
        items = parse_tips_payload(result.content)

        prefix = f"generated_{_now_ms()}"
        tips = [
            format_generated_tip(item, index, display_query, prefix)
            for index, item in enumerate(items)
        ]
        logger.info(
            f"Generated {len(tips)} tips for {display_query!r} "
            f"(model={result.model}, {timer['elapsed_ms']:.0f}ms)"
        )
        return tips

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(error, TipSynthesisException):
            reason = f"unusable output: {error.detail_info.get('info')}"
        else:
            reason = str(error)
        logger.warning(
            f"Tip generation attempt {retry_state.attempt_number}/"
            f"{self.max_attempts} failed ({reason}), retrying in "
            f"{retry_state.next_action.sleep if retry_state.next_action else 0:.1f}s"
        )

    @observe()
    async def stream_tips(
        self,
        query: str,
        on_tip: TipCallback,
        count: int = 5,
        content_preferences: Optional[Sequence[str]] = None,
        preference_context: str = "",
        keywords: Optional[Sequence[str]] = None,
        is_cancelled: Optional[CancelCheck] = None,
        display_query: Optional[str] = None,
    ) -> list[GeneratedTip]:
        """NDJSON 스트리밍 팁 생성

        청크를 버퍼에 모아 줄바꿈이 올 때마다 한 줄씩 파싱합니다.
        잘못된 줄은 버리고, 줄마다 취소 여부를 확인해 취소되면 즉시 중단합니다.
        중단 시 업스트림 스트림도 닫습니다.

        Args:
            query: 프롬프트에 넣을 질의
            on_tip: 팁 하나가 완성될 때마다 호출되는 콜백
            count: 최대 팁 수
            content_preferences: 선호 도메인
            preference_context: 선호 문맥
            keywords: 키워드 핀
            is_cancelled: 취소 여부 확인 함수
            display_query: 기본값에 사용할 원본 질의

        Returns:
            콜백으로 전달된 팁 목록

        Raises:
            AllProvidersFailedError: 스트리밍 시작 전 모든 모델 실패
            LLMProviderError: 스트리밍 도중 실패
        """
        display_query = display_query or query
        cancelled = is_cancelled or (lambda: False)
        messages = self._build_messages(
            query, count, content_preferences, preference_context, keywords,
            streaming=True,
        )

        prefix = f"generated_{_now_ms()}"
        emitted: list[GeneratedTip] = []
        buffer = ""
        started = time.perf_counter()

        async def handle_line(line: str) -> None:
            item = parse_ndjson_line(line)
            if item is None:
                return
            tip = format_generated_tip(item, len(emitted), display_query, prefix)
            if not tip["body"]:
                return
            emitted.append(tip)
            if len(emitted) == 1:
                logger.debug(
                    f"First streamed tip after {elapsed_ms_since(started):.0f}ms"
                )
            await on_tip(tip)

        stream = stream_with_fallback(
            tier=self.tier,
            messages=messages,
            temperature=settings.tips_generation_temperature,
            max_tokens=settings.tips_generation_max_tokens,
            timeout=settings.tips_stream_timeout_seconds,
        )
        try:
            async for chunk in stream:
                buffer += chunk
                while "\n" in buffer:
                    line, buffer = buffer.split("\n", 1)
                    if cancelled():
                        logger.info("Tip stream cancelled by client")
                        return emitted
                    await handle_line(line)
                    if len(emitted) >= count:
                        return emitted

            if buffer.strip() and not cancelled():
                await handle_line(buffer)
        finally:
            await stream.aclose()

        logger.info(
            f"Streamed {len(emitted)} tips for {display_query!r} "
            f"in {elapsed_ms_since(started):.0f}ms"
        )
        return emitted

"""LLM 스트리밍 fallback 단위 테스트"""

from unittest.mock import patch

import pytest

from app.core.llm.fallback import stream_with_fallback
from app.core.llm.types import (
    AllProvidersFailedError,
    LLMMessage,
    LLMProviderError,
    LLMTier,
)

MESSAGES = [LLMMessage(role="user", content="Test")]


def make_stream(chunks, fail_after=None, closed=None):
    """청크를 내보내다가 fail_after 위치에서 실패하는 스트림"""

    async def _stream():
        try:
            for i, chunk in enumerate(chunks):
                if fail_after is not None and i == fail_after:
                    raise LLMProviderError(provider="test", original_error="boom")
                yield chunk
            if fail_after is not None and fail_after >= len(chunks):
                raise LLMProviderError(provider="test", original_error="boom")
        finally:
            if closed is not None:
                closed.append(True)

    return _stream()


@pytest.mark.asyncio
async def test_stream_first_model_success():
    with patch("app.core.llm.fallback.astream_completion_raw") as mock_stream:
        mock_stream.return_value = make_stream(["Hello", " world"])

        chunks = [c async for c in stream_with_fallback(LLMTier.LIGHT, MESSAGES)]

        assert chunks == ["Hello", " world"]
        assert mock_stream.call_count == 1


@pytest.mark.asyncio
async def test_stream_fallback_before_first_chunk():
    """첫 청크 전 실패는 다음 모델로 fallback"""
    with patch("app.core.llm.fallback.astream_completion_raw") as mock_stream:
        mock_stream.side_effect = [
            make_stream(["never"], fail_after=0),
            make_stream(["from", " fallback"]),
        ]

        chunks = [c async for c in stream_with_fallback(LLMTier.LIGHT, MESSAGES)]

        assert chunks == ["from", " fallback"]
        assert mock_stream.call_count == 2


@pytest.mark.asyncio
async def test_stream_mid_stream_error_is_raised():
    """스트리밍 시작 후 실패는 fallback 없이 예외"""
    received = []
    with patch("app.core.llm.fallback.astream_completion_raw") as mock_stream:
        mock_stream.return_value = make_stream(["partial"], fail_after=1)

        with pytest.raises(LLMProviderError):
            async for chunk in stream_with_fallback(LLMTier.LIGHT, MESSAGES):
                received.append(chunk)

        assert received == ["partial"]
        assert mock_stream.call_count == 1


@pytest.mark.asyncio
async def test_stream_all_models_fail():
    with patch("app.core.llm.fallback.astream_completion_raw") as mock_stream:
        mock_stream.side_effect = [
            make_stream(["x"], fail_after=0),
            make_stream(["y"], fail_after=0),
        ]

        with pytest.raises(AllProvidersFailedError):
            async for _ in stream_with_fallback(LLMTier.LIGHT, MESSAGES):
                pass


@pytest.mark.asyncio
async def test_stream_closed_when_consumer_stops():
    """소비자가 중단하면 업스트림 스트림을 닫음"""
    closed: list[bool] = []
    with patch("app.core.llm.fallback.astream_completion_raw") as mock_stream:
        mock_stream.return_value = make_stream(["a", "b", "c"], closed=closed)

        stream = stream_with_fallback(LLMTier.LIGHT, MESSAGES)
        first = await stream.__anext__()
        await stream.aclose()

        assert first == "a"
        assert closed == [True]

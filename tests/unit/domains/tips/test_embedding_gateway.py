"""임베딩 게이트웨이 단위 테스트"""

from unittest.mock import patch

import pytest

from app.core.cache import TTLCache
from app.domains.tips.embedding.gateway import (
    EmbeddingGateway,
    get_embedding_gateway,
    normalize_cache_key,
)
from app.domains.tips.exceptions import EmbeddingFailedException


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gateway(clock):
    return EmbeddingGateway(cache=TTLCache(ttl_seconds=300, clock=clock))


def test_normalize_cache_key():
    assert normalize_cache_key("  Toddler   Bedtime\n") == "toddler bedtime"


@pytest.mark.asyncio
@pytest.mark.mock_ai
async def test_embed_uses_cache_for_normalized_text(gateway, mock_embedding):
    """정규화 결과가 같은 텍스트는 프로바이더를 한 번만 호출"""
    first = await gateway.embed("Toddler  Bedtime ")
    second = await gateway.embed("toddler bedtime")

    assert first == second
    assert mock_embedding.call_count == 1
    # 프로바이더에는 캐시 키가 아닌 원문을 전달
    mock_embedding.assert_called_with("Toddler  Bedtime")


@pytest.mark.asyncio
@pytest.mark.mock_ai
async def test_cached_and_uncached_embed_same_text(gateway, mock_embedding):
    """검색용(캐시)과 저장용(비캐시) 임베딩이 같은 입력을 사용"""
    text = "  Story Walk: Name What You See  "

    await gateway.embed(text)
    await gateway.embed_uncached(text)

    sent = [call.args[0] for call in mock_embedding.call_args_list]
    assert sent == ["Story Walk: Name What You See", "Story Walk: Name What You See"]


@pytest.mark.asyncio
@pytest.mark.mock_ai
async def test_embed_after_ttl_calls_provider_again(gateway, clock, mock_embedding):
    await gateway.embed("bedtime")
    clock.now += 301
    await gateway.embed("bedtime")

    assert mock_embedding.call_count == 2


@pytest.mark.asyncio
@pytest.mark.mock_ai
async def test_embed_uncached_bypasses_cache(gateway, mock_embedding):
    await gateway.embed_uncached("Calm bedtime routine")
    await gateway.embed_uncached("Calm bedtime routine")

    assert mock_embedding.call_count == 2
    assert len(gateway.cache) == 0


@pytest.mark.asyncio
async def test_embed_empty_text_raises(gateway):
    with pytest.raises(EmbeddingFailedException):
        await gateway.embed("   ")


@pytest.mark.asyncio
async def test_provider_failure_is_not_retried(gateway):
    """프로바이더 실패 시 재시도 없이 EmbeddingFailedException"""
    with patch(
        "app.domains.tips.embedding.gateway.create_embedding",
        side_effect=RuntimeError("provider down"),
    ) as mock_create:
        with pytest.raises(EmbeddingFailedException) as exc_info:
            await gateway.embed("bedtime")

    assert mock_create.call_count == 1
    assert "provider down" in exc_info.value.detail_info["info"]
    assert len(gateway.cache) == 0


@pytest.mark.asyncio
@pytest.mark.mock_ai
async def test_purge_expired(gateway, clock):
    await gateway.embed("bedtime")
    clock.now += 301

    assert gateway.purge_expired() == 1


def test_short_text_is_not_truncated(gateway):
    assert gateway.truncate("bedtime routine") == "bedtime routine"


def test_gateway_is_shared():
    assert get_embedding_gateway() is get_embedding_gateway()

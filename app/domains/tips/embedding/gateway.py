"""임베딩 게이트웨이

임베딩 프로바이더 호출을 감싸고, 정규화된 텍스트를 키로 하는
짧은 TTL 캐시를 둡니다. 너무 긴 입력은 토큰 기준으로 잘라냅니다.
"""

import re
from functools import lru_cache
from typing import Optional

import tiktoken

from app.core.cache import TTLCache
from app.core.config import settings
from app.core.llm import create_embedding
from app.core.logging import get_logger
from app.domains.tips.exceptions import EmbeddingFailedException

logger = get_logger(__name__)


def normalize_cache_key(text: str) -> str:
    """캐시 키 정규화 (소문자, 앞뒤 공백 제거, 연속 공백 축소)"""
    return re.sub(r"\s+", " ", (text or "").strip().lower())


class EmbeddingGateway:
    """임베딩 생성 게이트웨이

    Example:
        gateway = EmbeddingGateway()
        vector = await gateway.embed("toddler bedtime routine")
    """

    def __init__(
        self,
        cache: Optional[TTLCache[list[float]]] = None,
        max_tokens: Optional[int] = None,
    ):
        self.cache: TTLCache[list[float]] = cache or TTLCache(
            ttl_seconds=settings.embedding_cache_ttl_seconds,
            max_entries=settings.embedding_cache_max_entries,
        )
        self.max_tokens = max_tokens or settings.embedding_max_tokens
        self._encoding: Optional[tiktoken.Encoding] = None

    @property
    def encoding(self) -> tiktoken.Encoding:
        if self._encoding is None:
            self._encoding = tiktoken.get_encoding("cl100k_base")
        return self._encoding

    def truncate(self, text: str) -> str:
        """토큰 수 제한을 넘는 입력을 앞부분만 남기고 잘라냄"""
        # 토큰 하나는 최소 1바이트
        if len(text.encode("utf-8")) <= self.max_tokens:
            return text

        tokens = self.encoding.encode(text)
        if len(tokens) <= self.max_tokens:
            return text

        logger.debug(
            f"Truncating embedding input from {len(tokens)} "
            f"to {self.max_tokens} tokens"
        )
        return str(self.encoding.decode(tokens[: self.max_tokens]))

    async def embed(self, text: str) -> list[float]:
        """텍스트 임베딩 (캐시 우선)

        캐시 키는 정규화된 텍스트지만, 프로바이더에는 원문(앞뒤 공백 제거)을 보내
        embed_uncached와 같은 벡터를 얻습니다.

        Args:
            text: 임베딩할 텍스트

        Returns:
            list[float]: 임베딩 벡터

        Raises:
            EmbeddingFailedException: 빈 입력이거나 프로바이더 호출 실패 시 (재시도 없음)
        """
        key = normalize_cache_key(text)
        if not key:
            raise EmbeddingFailedException(detail_msg="빈 텍스트는 임베딩할 수 없습니다")

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Embedding cache hit")
            return cached

        vector = await self._create(text.strip())
        self.cache.set(key, vector)
        return vector

    async def embed_uncached(self, text: str) -> list[float]:
        """캐시를 거치지 않는 임베딩 (팁 저장용)"""
        content = (text or "").strip()
        if not content:
            raise EmbeddingFailedException(detail_msg="빈 텍스트는 임베딩할 수 없습니다")
        return await self._create(content)

    async def _create(self, content: str) -> list[float]:
        try:
            return await create_embedding(self.truncate(content))
        except Exception as e:
            logger.error(f"Embedding creation failed: {e}")
            raise EmbeddingFailedException(
                detail_msg=f"임베딩 생성 실패: {str(e)}"
            ) from e

    def purge_expired(self) -> int:
        removed = self.cache.purge()
        if removed:
            logger.debug(f"Purged {removed} expired embedding cache entries")
        return removed


@lru_cache
def get_embedding_gateway() -> EmbeddingGateway:
    """프로세스 전역 임베딩 게이트웨이 (캐시 공유)"""
    return EmbeddingGateway()

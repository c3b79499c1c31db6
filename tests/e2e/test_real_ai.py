"""실제 LLM/임베딩 API 연동 테스트

주의: 이 테스트들은 실제 AI API를 호출하여 과금이 발생합니다.
실행 방법: ENABLE_REAL_AI_TESTS=true pytest -m real_ai
"""

import numpy as np
import pytest

from app.core.config import settings
from app.core.llm import LLMMessage, LLMTier
from app.domains.tips.synthesis import parse_tips_payload
from app.domains.tips.synthesis.prompts import build_system_prompt, build_user_prompt


@pytest.mark.asyncio
@pytest.mark.real_ai
async def test_real_batch_generation_is_parseable(skip_if_no_real_ai):
    """실제 모델 응답이 팁 JSON 배열로 파싱되는지 확인"""
    # autouse mock은 패키지 경로만 교체하므로 fallback 모듈을 직접 사용
    from app.core.llm.fallback import call_with_fallback

    result = await call_with_fallback(
        tier=LLMTier.STANDARD,
        messages=[
            LLMMessage(role="system", content=build_system_prompt()),
            LLMMessage(
                role="user",
                content=build_user_prompt(
                    query="bedtime routine for my toddler",
                    count=3,
                    keywords=["bedtime", "routine", "toddler"],
                ),
            ),
        ],
        temperature=settings.tips_generation_temperature,
        max_tokens=settings.tips_generation_max_tokens,
        timeout=settings.tips_generation_timeout_seconds,
    )

    tips = parse_tips_payload(result.content)

    assert len(tips) > 0
    assert all(tip.get("title") and tip.get("body") for tip in tips)


@pytest.mark.asyncio
@pytest.mark.real_ai
async def test_real_embedding_dimensions(skip_if_no_real_ai):
    from app.core.llm.fallback import create_embedding

    vector = await create_embedding("calm bedtime routine for a toddler")

    assert len(vector) == settings.embedding_dimensions
    assert np.linalg.norm(vector) > 0

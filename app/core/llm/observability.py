"""LangFuse 옵저버빌리티 연동

LANGFUSE 키가 설정된 경우에만 LiteLLM 호출과 팁 합성 함수를 트레이싱합니다.
키가 기본값이면 no-op 데코레이터를 사용합니다.
"""

import os
from typing import Optional

import litellm
from langfuse import Langfuse
from langfuse.decorators import langfuse_context, observe

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

_PLACEHOLDER_KEYS = {"sk-lf-your-secret-key-here", "pk-lf-your-public-key-here"}


def is_langfuse_configured() -> bool:
    return (
        settings.langfuse_secret_key not in _PLACEHOLDER_KEYS
        and settings.langfuse_public_key not in _PLACEHOLDER_KEYS
    )


def initialize_langfuse() -> Optional[Langfuse]:
    """LangFuse 클라이언트 초기화

    Returns:
        초기화된 클라이언트. 키가 없거나 실패하면 None
    """
    if not is_langfuse_configured():
        logger.info("LangFuse keys not configured, tracing disabled")
        return None

    try:
        # LangFuse SDK와 LiteLLM 콜백이 환경 변수를 읽음
        os.environ["LANGFUSE_SECRET_KEY"] = settings.langfuse_secret_key
        os.environ["LANGFUSE_PUBLIC_KEY"] = settings.langfuse_public_key
        os.environ["LANGFUSE_HOST"] = settings.langfuse_host

        litellm.success_callback = ["langfuse"]
        litellm.failure_callback = ["langfuse"]

        client = Langfuse(
            secret_key=settings.langfuse_secret_key,
            public_key=settings.langfuse_public_key,
            host=settings.langfuse_host,
        )
        logger.info(f"LangFuse initialized (host={settings.langfuse_host})")
        return client

    except Exception as e:
        logger.warning(
            f"LangFuse initialization failed: {e}. "
            "Continuing without observability."
        )
        return None


langfuse_client = initialize_langfuse()


def _noop_observe(*args, **kwargs):
    def decorator(func):
        return func

    return decorator


def get_observe_decorator():
    """LangFuse @observe 데코레이터 (비활성화 시 no-op)

    Example:
        observe = get_observe_decorator()

        @observe()
        async def generate_batch(self, query: str):
            ...
    """
    return observe if langfuse_client else _noop_observe


def flush_observability() -> None:
    """종료 전에 남은 트레이스 전송"""
    if langfuse_client is None:
        return
    try:
        langfuse_context.flush()
        langfuse_client.flush()
    except Exception as e:
        logger.warning(f"LangFuse flush failed: {e}")

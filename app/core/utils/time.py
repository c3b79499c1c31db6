"""시간 측정 유틸리티"""

import time
from contextlib import contextmanager
from typing import Generator


def elapsed_ms_since(start: float) -> float:
    """time.perf_counter() 기준 경과 시간 (ms)"""
    return (time.perf_counter() - start) * 1000


@contextmanager
def measure_time() -> Generator[dict[str, float], None, None]:
    """블록 처리 시간 측정

    블록이 끝나면 (예외 포함) timer["elapsed_ms"]가 채워집니다.

    Usage::

        with measure_time() as timer:
            await service.get_enhanced_tips(...)
        logger.info(f"took {timer['elapsed_ms']:.2f}ms")
    """
    timer = {"elapsed_ms": 0.0}
    start = time.perf_counter()
    try:
        yield timer
    finally:
        timer["elapsed_ms"] = elapsed_ms_since(start)

"""유틸리티 모듈"""

from app.core.utils.datetime import UTC, now_utc
from app.core.utils.time import elapsed_ms_since, measure_time

__all__ = [
    "UTC",
    "now_utc",
    "elapsed_ms_since",
    "measure_time",
]

"""날짜/시간 유틸리티"""

from datetime import datetime, timezone

UTC = timezone.utc


def now_utc() -> datetime:
    """timezone-aware 현재 UTC 시각 (생성 팁 ID 타임스탬프 등)"""
    return datetime.now(UTC)

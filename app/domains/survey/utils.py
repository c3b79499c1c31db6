"""설문 값 파싱 유틸리티"""

import json
from typing import Any


def parse_preference_list(raw: Any) -> list[str]:
    """설문 선호 목록 정규화

    - 비어 있으면 []
    - 리스트면 그대로 (빈 값 제외)
    - JSON 배열 문자열이면 파싱
    - 그 외 문자열은 쉼표로 분리

    Example:
        >>> parse_preference_list('["sleep", "routines"]')
        ['sleep', 'routines']
        >>> parse_preference_list("activities, discipline")
        ['activities', 'discipline']
    """
    if raw is None or raw == "" or raw == []:
        return []

    if isinstance(raw, (list, tuple)):
        return [str(item).strip() for item in raw if str(item).strip()]

    if not isinstance(raw, str):
        return [str(raw)]

    text = raw.strip()
    if not text:
        return []

    if text.startswith("["):
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            text = text.strip("[]")
        else:
            if isinstance(parsed, list):
                return [str(item).strip() for item in parsed if str(item).strip()]
            return [str(parsed)]

    items = (item.strip().strip("\"'").strip() for item in text.split(","))
    return [item for item in items if item]

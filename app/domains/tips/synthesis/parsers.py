"""LLM 팁 응답 파싱/포맷팅"""

import json
import re
from typing import Any, Optional

from app.core.logging import get_logger
from app.domains.tips.exceptions import TipSynthesisException
from app.domains.tips.guardrails.sanitize import sanitize_tip_text
from app.domains.tips.types import GeneratedTip

logger = get_logger(__name__)

JSON_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")
CODE_FENCE_PATTERN = re.compile(r"^```[a-z]*$")


def parse_tips_payload(raw: str) -> list[dict]:
    """배치 응답에서 팁 배열 추출

    1. 전체를 JSON으로 파싱
    2. 실패하면 첫 '[' 부터 마지막 ']' 구간을 파싱
    3. 그래도 실패하면 TipSynthesisException

    최상위가 객체이면 "tips" 키의 배열을 사용합니다.

    Raises:
        TipSynthesisException: 배열을 얻지 못했거나 비어 있는 경우
    """
    text = (raw or "").strip()
    if not text:
        raise TipSynthesisException(detail_msg="Empty response from model")

    try:
        parsed: Any = json.loads(text)
    except json.JSONDecodeError:
        match = JSON_ARRAY_PATTERN.search(text)
        if not match:
            raise TipSynthesisException(
                detail_msg="No JSON array found in response"
            )
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise TipSynthesisException(
                detail_msg=f"Malformed JSON array in response: {e.msg}"
            ) from e

    if isinstance(parsed, dict):
        parsed = parsed.get("tips") or []

    tips = [item for item in parsed if isinstance(item, dict)] if isinstance(
        parsed, list
    ) else []
    if not tips:
        raise TipSynthesisException(
            detail_msg="Parsed response does not contain a valid tips array"
        )
    return tips


def parse_ndjson_line(line: str) -> Optional[dict]:
    """NDJSON 한 줄 파싱 (잘못된 줄은 None)"""
    text = line.strip().rstrip(",")
    if not text or CODE_FENCE_PATTERN.match(text) or text in ("[", "]"):
        return None
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        logger.debug(f"Dropping malformed NDJSON line: {text[:80]!r}")
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed


def format_generated_tip(
    item: dict, index: int, query: str, id_prefix: str
) -> GeneratedTip:
    """LLM 출력 항목을 GeneratedTip으로 정규화 + 새니타이즈

    Args:
        item: 파싱된 팁 객체
        index: 응답 내 순번 (0부터)
        query: 원본 질의 (details 기본값에 사용)
        id_prefix: ID 접두사 (예: "generated_1700000000000")
    """
    title = _as_text(item.get("title")) or f"Tip {index + 1}"
    body = _as_text(item.get("body")) or _as_text(item.get("description"))
    details = _as_text(item.get("details")) or f"AI-generated tip about {query}"

    categories = item.get("categories")
    if isinstance(categories, str):
        categories = [categories]
    if not isinstance(categories, list) or not categories:
        categories = ["generated"]

    return GeneratedTip(
        id=f"{id_prefix}_{index}",
        title=sanitize_tip_text(title) or "",
        body=sanitize_tip_text(body) or "",
        details=sanitize_tip_text(details) or "",
        categories=categories,
    )


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()

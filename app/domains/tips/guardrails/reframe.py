"""소프트 리프레이밍 (호출자 정책)

광범위 정책이 non_parenting으로 거절했지만 아이/나이 단서가 있는 질의는
거절 대신 육아 맥락 지시문을 덧붙여 계속 진행합니다.
분류기 자체는 순수 함수로 유지하고, 이 정책은 서비스 계층에서만 적용합니다.
"""

import re
from typing import Optional

from app.domains.tips.guardrails.classifier import (
    GuardrailCategory,
    GuardrailVerdict,
)

REFRAME_CHILD_TERMS = re.compile(
    r"\b(kids?|child|children|toddlers?|baby|babies|infants?|preschool(er)?s?"
    r"|son|daughter|little one)\b"
)
REFRAME_AGE_PATTERNS = [
    re.compile(r"\b\d{1,2}\s?(yo|yrs?|years?)\b"),
    re.compile(r"\b\d{1,2}\s?(-|\s)?year[-\s]?old\b"),
    re.compile(r"\b\d{1,2}\s?(months?|mos?)\s?old\b"),
]

REFRAME_INSTRUCTION = (
    "Context: This question is about my child. Provide age-appropriate, "
    "safe, practical parenting strategies."
)


def has_child_context(text: str) -> bool:
    lowered = (text or "").lower()
    return bool(
        REFRAME_CHILD_TERMS.search(lowered)
        or any(p.search(lowered) for p in REFRAME_AGE_PATTERNS)
    )


def soft_reframe(prompt: str, verdict: GuardrailVerdict) -> Optional[str]:
    """리프레이밍된 질의 반환 (적용 대상이 아니면 None)

    Example:
        >>> soft_reframe("what should we do today with my kid", verdict)
        'what should we do today with my kid\\n\\nContext: ...'
    """
    if verdict.ok or verdict.category != GuardrailCategory.NON_PARENTING.value:
        return None
    if not has_child_context(prompt):
        return None
    return f"{prompt}\n\n{REFRAME_INSTRUCTION}"

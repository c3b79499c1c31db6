"""가드레일: 질의 범위 판정, 출력 새니타이즈, 소프트 리프레이밍"""

from app.domains.tips.guardrails.classifier import (
    FourDomainPolicy,
    GuardrailCategory,
    GuardrailPolicy,
    GuardrailRule,
    GuardrailVerdict,
    ParentingPolicy,
    classify,
    get_policy,
)
from app.domains.tips.guardrails.messages import message_for, suggestions_for
from app.domains.tips.guardrails.reframe import soft_reframe
from app.domains.tips.guardrails.sanitize import sanitize_tip_text

__all__ = [
    "FourDomainPolicy",
    "GuardrailCategory",
    "GuardrailPolicy",
    "GuardrailRule",
    "GuardrailVerdict",
    "ParentingPolicy",
    "classify",
    "get_policy",
    "message_for",
    "sanitize_tip_text",
    "soft_reframe",
    "suggestions_for",
]

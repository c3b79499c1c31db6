"""생성된 팁 텍스트 새니타이즈

LLM 출력에 섞인 URL, 연락처, 욕설을 사용자에게 노출되기 전에 치환합니다.
"""

from typing import Optional

from app.domains.tips.guardrails.vocabulary import (
    CONTACT_DOXXING,
    PROFANITY_HARASSMENT_HATE,
    URL_PATTERN,
)

LINK_PLACEHOLDER = "[link removed]"
CONTACT_PLACEHOLDER = "[contact removed]"
LANGUAGE_PLACEHOLDER = "[language removed]"


def sanitize_tip_text(text: Optional[str]) -> Optional[str]:
    if not text:
        return text

    sanitized = URL_PATTERN.sub(LINK_PLACEHOLDER, text)
    for pattern in CONTACT_DOXXING:
        sanitized = pattern.sub(CONTACT_PLACEHOLDER, sanitized)
    for pattern in PROFANITY_HARASSMENT_HATE:
        sanitized = pattern.sub(LANGUAGE_PLACEHOLDER, sanitized)
    return sanitized

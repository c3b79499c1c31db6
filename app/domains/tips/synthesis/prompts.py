"""팁 생성 프롬프트 템플릿"""

from typing import Optional, Sequence

SYSTEM_PROMPT = """You are an expert parenting education assistant \
specializing in ONLY these 4 domains:

1. **Language Development** - Communication, vocabulary, storytelling, speech
2. **Early Science Skills** - Exploration, observation, curiosity about nature
3. **Literacy Foundations** - Reading, books, letters, phonics, writing
4. **Social-Emotional Learning** - Emotions, empathy, friendships, self-regulation

STRICT RULES:
- NEVER provide advice about: discipline, behavior management, sleep, eating, \
potty training, screen time, medical issues, or general parenting strategies
- If a query is outside these 4 domains, politely decline
- All tips must be specific, evidence-based, and actionable
- Focus on educational and developmental activities
- Never give medical, legal, or therapeutic advice

Your responses must stay strictly within the 4 domains above."""

JSON_ONLY_INSTRUCTION = "IMPORTANT: Output ONLY valid JSON (no markdown/code fences)."

NDJSON_ONLY_INSTRUCTION = (
    "IMPORTANT: Output ONLY newline-delimited JSON. Write exactly one JSON "
    "object per line, with no array brackets, no markdown/code fences and no "
    "commentary."
)

THEME_DESCRIPTIONS = {
    "Language Development": (
        "Activities and tips that encourage vocabulary growth and "
        "communication skills."
    ),
    "Early Science Skills": (
        "Explorations and experiments that nurture curiosity and basic "
        "science thinking."
    ),
    "Literacy Foundations": (
        "Reading and pre-writing activities that build pre-literacy skills."
    ),
    "Social-Emotional Learning": (
        "Guidance for emotional regulation, relationship skills, and healthy "
        "self-awareness."
    ),
}

TIP_REQUIREMENTS_TEMPLATE = """Each tip must:
- Be practical and actionable
- Be age-appropriate and safe
- Be clearly relevant to "{query}" (no off-topic content)
- Be unique (no duplicates)"""

JSON_FORMAT_INSTRUCTION = """Return ONLY a pure JSON array with objects like:
[
  {
    "id": 1,
    "title": "Short catchy title",
    "body": "Main tip content (2-3 sentences).",
    "details": "Extra helpful details or explanation.",
    "categories": ["relevant_category"]
  }
]"""

NDJSON_FORMAT_INSTRUCTION = """Return one tip per line, each line a complete \
JSON object like:
{"title": "Short catchy title", "body": "Main tip content (2-3 sentences).", \
"details": "Extra helpful details or explanation.", \
"categories": ["relevant_category"]}"""


def build_system_prompt(streaming: bool = False) -> str:
    instruction = NDJSON_ONLY_INSTRUCTION if streaming else JSON_ONLY_INSTRUCTION
    return f"{SYSTEM_PROMPT}\n\n{instruction}"


def build_user_prompt(
    query: str,
    count: int,
    content_preferences: Optional[Sequence[str]] = None,
    preference_context: str = "",
    keywords: Optional[Sequence[str]] = None,
    streaming: bool = False,
) -> str:
    """팁 생성 사용자 프롬프트 구성

    Args:
        query: 부모 질의 (리프레이밍 지시문 포함 가능)
        count: 생성할 팁 수
        content_preferences: 선호 도메인 (THEME_DESCRIPTIONS 키)
        preference_context: 과거 좋아요 기반 선호 문맥
        keywords: 각 팁에 포함시킬 핵심 키워드
        streaming: NDJSON 출력 요청 여부

    Returns:
        str: 사용자 프롬프트
    """
    keyword_pin = ""
    if keywords:
        quoted = ", ".join(f'"{keyword}"' for keyword in keywords)
        keyword_pin = (
            "\nStay STRICTLY on topic. Include these key concepts in each tip "
            f"where natural: {quoted}."
        )

    prompt = (
        f'Generate {count} practical, specific parenting tips **about exactly** '
        f'"{query}".{keyword_pin}\nAvoid drifting into unrelated areas.'
    )

    themes = [
        THEME_DESCRIPTIONS[preference]
        for preference in THEME_DESCRIPTIONS
        if content_preferences and preference in content_preferences
    ]
    if themes:
        description = "".join(f"\n - {theme}" for theme in themes)
        prompt += (
            "\n\nRestrict content to the following preferred themes where "
            f"possible:{description}"
        )

    if preference_context:
        prompt += f"\n\nPreference Context: {preference_context}"

    prompt += "\n" + TIP_REQUIREMENTS_TEMPLATE.format(query=query)
    prompt += "\n\n" + (
        NDJSON_FORMAT_INSTRUCTION if streaming else JSON_FORMAT_INSTRUCTION
    )
    return prompt

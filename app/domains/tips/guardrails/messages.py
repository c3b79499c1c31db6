"""가드레일 거절 응답 문구"""

GENERIC_REFUSAL = "We only provide parenting tips."

SELF_HARM_MESSAGE = (
    "If you’re thinking about self-harm, you’re not alone. "
    "If you’re in immediate danger, call your local emergency number. "
    "In the U.S., you can dial or text 988 for support."
)

AGE_OUT_OF_SCOPE_MESSAGE = "This app is for ages 0–5."

HARMFUL_CONTENT_MESSAGE = (
    "We cannot provide advice on this topic. Our focus is on positive, "
    "safe parenting strategies in Language Development, Early Science "
    "Skills, Literacy Foundations, and Social-Emotional Learning."
)

OUT_OF_SCOPE_MESSAGE = (
    "This topic is outside our 4 core domains: Language Development, "
    "Early Science Skills, Literacy Foundations, and Social-Emotional "
    "Learning."
)

UNCLEAR_DOMAIN_MESSAGE = (
    "Please ask about Language Development, Early Science Skills, "
    "Literacy Foundations, or Social-Emotional Learning."
)


# 거절 시 함께 내려주는 추천 질문
SUGGESTIONS = [
    "Ask about a calming bedtime routine",
    "Activities for a 3-year-old on a rainy day",
    "Sharing and turn-taking tips",
    "Gentle discipline ideas for toddlers",
]

FOUR_DOMAIN_SUGGESTIONS = [
    "Storytelling games to build my toddler's vocabulary",
    "Simple nature experiments for a 4-year-old",
    "Fun ways to practice letters and phonics with my preschooler",
    "Helping my child name big feelings",
]

CATEGORY_MESSAGES = {
    "self_harm": SELF_HARM_MESSAGE,
    "age_out_of_scope": AGE_OUT_OF_SCOPE_MESSAGE,
    "harmful_content": HARMFUL_CONTENT_MESSAGE,
    "out_of_scope": OUT_OF_SCOPE_MESSAGE,
    "unclear_domain": UNCLEAR_DOMAIN_MESSAGE,
}


def message_for(category: str) -> str:
    """카테고리별 사용자 안내 문구 (미정의 카테고리는 일반 거절 문구)"""
    return CATEGORY_MESSAGES.get(category, GENERIC_REFUSAL)


def suggestions_for(policy_name: str) -> list[str]:
    """거절 응답에 넣을 추천 질문 (정책별)"""
    if policy_name == "four_domain":
        return list(FOUR_DOMAIN_SUGGESTIONS)
    return list(SUGGESTIONS)

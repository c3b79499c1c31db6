"""질의 키워드 핀 추출

키워드 핀이 있으면 검색/생성된 팁의 제목+본문에 핀이 하나 이상 포함되어야 합니다.
"""

import re

STOPWORDS = frozenset(
    {
        "the", "and", "for", "with", "that", "this", "your", "about",
        "from", "into", "over", "under", "when", "what", "kids", "child",
        "children", "parenting",
    }
)

MAX_UNIGRAMS = 6
MAX_BIGRAMS = 4
MIN_BIGRAM_LENGTH = 6


def extract_query_keywords(query: str) -> list[str]:
    """질의에서 키워드 핀 추출

    - 소문자 변환 후 영문/숫자/공백/하이픈 외 문자는 공백으로 치환
    - 길이 3 이상, 불용어가 아닌 단어만 사용
    - 고유 단어 최대 6개 + 연속 단어 bigram(길이 6 이상) 최대 4개

    Example:
        >>> extract_query_keywords("Bedtime routine for my toddler")
        ['bedtime', 'routine', 'toddler', 'bedtime routine', 'routine toddler']
    """
    cleaned = re.sub(r"[^a-z0-9\s-]", " ", (query or "").lower())
    words = [
        word
        for word in cleaned.split()
        if len(word) > 2 and word not in STOPWORDS
    ]

    unigrams = list(dict.fromkeys(words))[:MAX_UNIGRAMS]

    bigrams = [
        f"{first} {second}"
        for first, second in zip(words, words[1:])
    ]
    bigrams = [
        bigram for bigram in dict.fromkeys(bigrams)
        if len(bigram) >= MIN_BIGRAM_LENGTH
    ][:MAX_BIGRAMS]

    return unigrams + bigrams


def contains_any_pin(text: str, pins: list[str]) -> bool:
    lowered = (text or "").lower()
    return any(pin in lowered for pin in pins)

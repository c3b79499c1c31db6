"""설문 기반 점수 가산 및 생성 문맥"""

from typing import Any, Optional, Sequence

from app.domains.survey.lexicon import (
    CHALLENGE_KEYWORDS,
    CONTENT_KEYWORDS,
    GOAL_KEYWORDS,
)
from app.domains.survey.utils import parse_preference_list

CONTENT_MATCH_BOOST = 0.05
CHALLENGE_MATCH_BOOST = 0.08
GOAL_MATCH_BOOST = 0.06
MAX_SCORE = 1.0
DEFAULT_SCORE = 0.5


def _count_matches(text: str, keywords: Sequence[str]) -> int:
    return sum(1 for keyword in keywords if keyword in text)


def survey_boost(
    text: str,
    content_preferences: Sequence[str],
    challenge_areas: Sequence[str],
    parenting_goals: Sequence[str],
) -> float:
    """팁 텍스트와 설문 키워드 매칭 가산점"""
    text = text.lower()
    boost = 0.0
    for preference in content_preferences:
        boost += CONTENT_MATCH_BOOST * _count_matches(
            text, CONTENT_KEYWORDS.get(preference, [])
        )
    for challenge in challenge_areas:
        boost += CHALLENGE_MATCH_BOOST * _count_matches(
            text, CHALLENGE_KEYWORDS.get(challenge, [])
        )
    for goal in parenting_goals:
        boost += GOAL_MATCH_BOOST * _count_matches(
            text, GOAL_KEYWORDS.get(goal, [])
        )
    return boost


def apply_survey_scoring(
    tips: Sequence[dict],
    content_preferences: Any,
    challenge_areas: Any,
    parenting_goals: Any,
) -> list[dict]:
    """설문 키워드 가산점 적용 후 재정렬

    similarity_score에 가산점을 더하고 1.0으로 제한합니다.
    강한 매칭 팁이 먼저 오는 순서는 유지하고, 같은 그룹 안에서 점수 내림차순으로 정렬합니다.

    Returns:
        survey_boost, has_survey_boost 필드가 추가된 팁 목록
    """
    contents = parse_preference_list(content_preferences)
    challenges = parse_preference_list(challenge_areas)
    goals = parse_preference_list(parenting_goals)

    boosted = []
    for index, tip in enumerate(tips):
        text = f"{tip.get('title', '')} {tip.get('body', '')} {tip.get('details') or ''}"
        boost = survey_boost(text, contents, challenges, goals)
        score = min(tip.get("similarity_score", DEFAULT_SCORE) + boost, MAX_SCORE)
        boosted.append(
            (
                index,
                {
                    **tip,
                    "similarity_score": score,
                    "survey_boost": boost,
                    "has_survey_boost": boost > 0,
                },
            )
        )

    boosted.sort(
        key=lambda item: (
            not item[1].get("is_strong_match", False),
            -item[1]["similarity_score"],
            item[0],
        )
    )
    return [tip for _, tip in boosted]


def build_survey_context(
    content_preferences: Any,
    challenge_areas: Any,
    parenting_goals: Any,
    current_challenge: Optional[str] = None,
) -> str:
    """생성 프롬프트에 덧붙일 설문 문맥

    Example:
        >>> build_survey_context(["sleep"], ["bedtime"], [], None)
        'User prefers sleep type content. Current challenges include: bedtime.'
    """
    contents = parse_preference_list(content_preferences)
    challenges = parse_preference_list(challenge_areas)
    goals = parse_preference_list(parenting_goals)

    parts = []
    if contents:
        parts.append(f"User prefers {', '.join(contents)} type content.")
    if challenges:
        parts.append(f"Current challenges include: {', '.join(challenges)}.")
    if goals:
        parts.append(f"Parenting goals: {', '.join(goals)}.")
    if current_challenge:
        parts.append(f"Specific current challenge: {current_challenge}.")
    return " ".join(parts)

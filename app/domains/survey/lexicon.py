"""설문 옵션 어휘

- DESCRIPTIVE_TEXTS: 옵션별 임베딩용 설명 문장
- *_KEYWORDS: 설문 기반 점수 가산용 키워드
"""

DESCRIPTIVE_TEXTS: dict[str, dict[str, str]] = {
    "content": {
        "activities": "fun educational activities and games for children play time learning",
        "discipline": "positive discipline strategies behavior management parenting techniques",
        "emotional": "emotional support connection empathy understanding child feelings",
        "routines": "daily routines structure schedules consistency parenting habits",
        "sleep": "sleep help bedtime routines rest nighttime parenting",
        "nutrition": "healthy eating nutrition meals food parenting feeding",
        "potty": "potty training toilet training bathroom independence",
        "screen-time": "screen time management technology devices digital parenting",
        "travel": "traveling with kids family trips vacation parenting",
        "big-feelings": "managing big emotions anxiety anger sadness parenting support",
    },
    "challenge": {
        "tantrums": "tantrum meltdown crying screaming upset child behavior",
        "bedtime": "bedtime struggles sleep problems nighttime routine",
        "picky-eating": "picky eating food battles mealtime struggles nutrition",
        "sibling-rivalry": "sibling fighting rivalry jealousy sharing problems",
        "screen-battles": "screen time battles technology device conflicts",
        "public-behavior": "public behavior store restaurant outings social situations",
        "homework": "homework resistance school work study struggles",
        "transitions": "transitions difficulty changing activities leaving",
    },
    "goal": {
        "patience": "patience calm gentle understanding mindful parenting",
        "connection": "connection bonding relationship closeness family time",
        "independence": "independence self-reliance confidence capability building",
        "confidence": "confidence self-esteem pride capability child development",
        "consistency": "consistency routine structure reliable predictable parenting",
        "communication": "communication talking listening understanding dialogue",
        "balance": "work-life balance time management organization family",
        "stress": "stress reduction calm peaceful relaxed parenting",
    },
}

CONTENT_KEYWORDS: dict[str, list[str]] = {
    "activities": ["activity", "play", "game", "fun", "creative"],
    "discipline": ["discipline", "behavior", "rules", "consequences"],
    "emotional": ["emotion", "feeling", "comfort", "support"],
    "routines": ["routine", "schedule", "consistency"],
    "sleep": ["sleep", "bedtime", "nap"],
    "nutrition": ["food", "eating", "meal", "healthy"],
    "potty": ["potty", "toilet", "bathroom"],
    "screen-time": ["screen", "technology", "device"],
    "travel": ["travel", "car", "trip"],
    "big-feelings": ["anxiety", "anger", "frustrated"],
}

CHALLENGE_KEYWORDS: dict[str, list[str]] = {
    "tantrums": ["tantrum", "meltdown", "crying", "upset"],
    "bedtime": ["bedtime", "sleep", "night"],
    "picky-eating": ["picky", "eating", "food"],
    "sibling-rivalry": ["sibling", "fighting", "sharing"],
    "screen-battles": ["screen", "device", "technology"],
    "public-behavior": ["public", "store", "restaurant"],
    "homework": ["homework", "school", "study"],
    "transitions": ["transition", "change", "leaving"],
}

GOAL_KEYWORDS: dict[str, list[str]] = {
    "patience": ["patience", "calm", "gentle"],
    "connection": ["connection", "bond", "relationship"],
    "independence": ["independence", "self-reliant", "confident"],
    "confidence": ["confidence", "self-esteem", "proud"],
    "consistency": ["consistency", "routine", "structure"],
    "communication": ["communication", "talking", "listening"],
    "balance": ["balance", "time", "manage"],
    "stress": ["stress", "calm", "relax"],
}


def get_descriptive_text(preference_type: str, value: str) -> str:
    """옵션 설명 문장 (사전에 없으면 일반 문장)"""
    text = DESCRIPTIVE_TEXTS.get(preference_type, {}).get(value)
    if text:
        return text
    return f"{preference_type} {value} parenting help advice"

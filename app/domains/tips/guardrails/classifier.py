"""육아 질의 가드레일 분류기

질의가 서비스 범위 안에 있는지 판정하는 순수 함수 모음입니다.
두 가지 정책을 제공합니다.

- parenting: 0~5세 육아 전반 (광범위 정책)
- four_domain: 언어 발달, 초기 과학, 문해력 기초, 사회정서 학습 4개 영역 한정

four_domain 정책은 parenting 정책을 먼저 통과해야 하므로
four_domain이 허용하는 질의는 항상 parenting도 허용합니다.

Example:
    verdict = get_policy("parenting").classify("bedtime tips for my 3 yo")
    if not verdict.ok:
        print(verdict.category, verdict.message)
"""

import base64
import binascii
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, NamedTuple, Optional, Protocol

from app.domains.tips.guardrails import vocabulary as v
from app.domains.tips.guardrails.messages import message_for

MAX_DECODE_DEPTH = 3


class GuardrailCategory(str, Enum):
    """가드레일 판정 카테고리"""

    OK = "ok"
    AGE_OUT_OF_SCOPE = "age_out_of_scope"
    ILLEGAL_ACTIVITY = "illegal_activity"
    SELF_HARM = "self_harm"
    ADULT_CONTENT = "adult_content"
    ADULT_RELATIONSHIPS = "adult_relationships"
    HARASSMENT_HATE = "harassment_hate"
    VIOLENCE_ILLEGAL = "violence_illegal"
    DRUGS_ALCOHOL = "drugs_alcohol"
    FINANCE_INVESTING = "finance_investing"
    POLITICS = "politics"
    GAMBLING = "gambling"
    CAREER_JOBS = "career_jobs"
    SOFTWARE_IT = "software_it"
    MEDICAL_LEGAL = "medical_legal"
    NON_PARENTING = "non_parenting"
    # four_domain 정책 전용
    HARMFUL_CONTENT = "harmful_content"
    OUT_OF_SCOPE = "out_of_scope"
    UNCLEAR_DOMAIN = "unclear_domain"


@dataclass(frozen=True)
class GuardrailVerdict:
    """가드레일 판정 결과

    Attributes:
        ok: 허용 여부
        category: 판정 카테고리 (허용 시 "ok")
        age: 질의에서 추출한 아이 나이 (년)
        domain: four_domain 정책에서 매칭된 영역
    """

    ok: bool
    category: str
    age: Optional[int] = None
    domain: Optional[str] = None

    @property
    def message(self) -> str:
        return "ok" if self.ok else message_for(self.category)

    @classmethod
    def reject(cls, category: GuardrailCategory) -> "GuardrailVerdict":
        return cls(ok=False, category=category.value)


class GuardrailRule(NamedTuple):
    """(카테고리, 판정 함수) 쌍. 선언 순서대로 평가하며 처음 매칭된 규칙이 우선"""

    category: GuardrailCategory
    predicate: Callable[[str], bool]


class GuardrailPolicy(Protocol):
    name: str

    def classify(self, query: str) -> GuardrailVerdict:
        ...


# --- 헬퍼 ---


def normalize(text: Optional[str]) -> str:
    return (text or "").lower().strip()


def extract_age_years(text: str) -> Optional[int]:
    """'3yo', '4 years', '2-year-old' 형태의 나이 추출"""
    for pattern in v.AGE_YEARS_PATTERNS:
        match = pattern.search(text)
        if match:
            return int(match.group(1))
    return None


def has_child_term(text: str) -> bool:
    return v.CHILD_TERM_PATTERN.search(text) is not None


def has_topic_term(text: str) -> bool:
    return v.PARENTING_TOPIC_PATTERN.search(text) is not None


def looks_parenting_related(text: str) -> bool:
    """육아 관련 질의인지 판정

    (아이 용어 + 주제) 또는 (보호자 용어 + 주제) 또는 (주제 + 5세 이하 나이)
    """
    has_topic = has_topic_term(text) or v.CORE_TOPIC.search(text) is not None
    if not has_topic:
        return False

    if has_child_term(text) or v.GENERIC_CAREGIVER.search(text):
        return True

    age = extract_age_years(text)
    return bool(
        v.YOUNG_AGE_MENTION.search(text) or (age is not None and age <= 5)
    )


def _matches_loose(text: str, words: list[str]) -> bool:
    return any(v.loose_word_pattern(word).search(text) for word in words)


def _is_allowlisted(text: str) -> bool:
    return v.ALLOWLIST_PATTERN.search(text) is not None


def _printable_ratio(text: str) -> float:
    if not text:
        return 0.0
    printable = sum(1 for ch in text if ch.isprintable() or ch.isspace())
    return printable / len(text)


def decode_candidates(raw: str) -> list[str]:
    """base64/hex로 인코딩된 입력의 디코딩 후보 반환

    디코딩 결과가 유효한 UTF-8이고 대부분 출력 가능한 문자일 때만 후보로 인정합니다.
    """
    compact = re.sub(r"\s+", "", raw)
    candidates = []

    if (
        len(compact) >= 12
        and len(compact) % 4 == 0
        and re.fullmatch(r"[A-Za-z0-9+/]+={0,2}", compact)
    ):
        try:
            decoded = base64.b64decode(compact, validate=True).decode("utf-8")
            if _printable_ratio(decoded) >= 0.9:
                candidates.append(decoded)
        except (binascii.Error, UnicodeDecodeError):
            pass

    hex_body = compact[2:] if compact.lower().startswith("0x") else compact
    if (
        len(hex_body) >= 16
        and len(hex_body) % 2 == 0
        and re.fullmatch(r"[0-9a-fA-F]+", hex_body)
    ):
        try:
            decoded = bytes.fromhex(hex_body).decode("utf-8")
            if _printable_ratio(decoded) >= 0.9:
                candidates.append(decoded)
        except (ValueError, UnicodeDecodeError):
            pass

    return candidates


# --- 거절 규칙 ---


def _is_dangerous(text: str) -> bool:
    # 자해 표현은 위기 안내 문구가 나가도록 self_harm 규칙에 맡김
    if v.SELF_HARM.search(text):
        return False
    return any(p.search(text) for p in v.DANGEROUS_PATTERNS)


def _is_self_harm(text: str) -> bool:
    return v.SELF_HARM.search(text) is not None


def _is_adult_content(text: str) -> bool:
    if _is_allowlisted(text):
        return False
    return bool(
        v.SEXUAL.search(text) or _matches_loose(text, v.LOOSE_ADULT_WORDS)
    )


def _is_adult_relationship(text: str) -> bool:
    if _is_allowlisted(text):
        return False
    return bool(
        v.ADULT_REL.search(text)
        or _matches_loose(text, v.LOOSE_RELATIONSHIP_WORDS)
    )


def _is_harassment(text: str) -> bool:
    return any(p.search(text) for p in v.PROFANITY_HARASSMENT_HATE)


def _is_violence(text: str) -> bool:
    stripped = v.BENIGN_COMPOUNDS.sub(" ", text)
    return bool(
        v.VIOLENCE_WEAPONS.search(stripped)
        or _matches_loose(stripped, v.LOOSE_VIOLENCE_WORDS)
    )


def _is_drugs(text: str) -> bool:
    return bool(v.DRUGS.search(text) or _matches_loose(text, v.LOOSE_DRUG_WORDS))


def _is_finance(text: str) -> bool:
    return bool(
        v.FINANCE.search(text)
        or v.FINANCIAL_ACTION.search(text)
        or _matches_loose(text, v.LOOSE_FINANCE_WORDS)
    )


def _is_gambling(text: str) -> bool:
    return bool(
        v.GAMBLING.search(text) or _matches_loose(text, v.LOOSE_GAMBLING_WORDS)
    )


def _is_illegal(text: str) -> bool:
    return bool(
        v.ILLEGAL.search(text)
        or v.EXPLOIT_ILLEGAL.search(text)
        or _matches_loose(text, v.LOOSE_ILLEGAL_WORDS)
    )


def _is_medical_legal(text: str) -> bool:
    return bool(
        v.MEDICAL_LEGAL.search(text)
        or any(p.search(text) for p in v.MEDICAL_LEGAL_PATTERNS)
    )


def _is_unanchored_hypothetical(text: str) -> bool:
    if not v.HYPOTHETICAL_FRAMING.search(text):
        return False
    return not (has_child_term(text) and has_topic_term(text))


PARENTING_RULES: list[GuardrailRule] = [
    GuardrailRule(GuardrailCategory.ILLEGAL_ACTIVITY, _is_dangerous),
    GuardrailRule(GuardrailCategory.SELF_HARM, _is_self_harm),
    GuardrailRule(GuardrailCategory.ADULT_CONTENT, _is_adult_content),
    GuardrailRule(GuardrailCategory.ADULT_RELATIONSHIPS, _is_adult_relationship),
    GuardrailRule(GuardrailCategory.HARASSMENT_HATE, _is_harassment),
    GuardrailRule(GuardrailCategory.VIOLENCE_ILLEGAL, _is_violence),
    GuardrailRule(GuardrailCategory.DRUGS_ALCOHOL, _is_drugs),
    GuardrailRule(GuardrailCategory.FINANCE_INVESTING, _is_finance),
    GuardrailRule(
        GuardrailCategory.POLITICS, lambda t: v.POLITICS.search(t) is not None
    ),
    GuardrailRule(GuardrailCategory.GAMBLING, _is_gambling),
    GuardrailRule(
        GuardrailCategory.CAREER_JOBS, lambda t: v.CAREER.search(t) is not None
    ),
    GuardrailRule(GuardrailCategory.ILLEGAL_ACTIVITY, _is_illegal),
    GuardrailRule(
        GuardrailCategory.SOFTWARE_IT,
        lambda t: v.SOFTWARE_IT.search(t) is not None,
    ),
    GuardrailRule(GuardrailCategory.MEDICAL_LEGAL, _is_medical_legal),
    GuardrailRule(GuardrailCategory.NON_PARENTING, _is_unanchored_hypothetical),
    GuardrailRule(
        GuardrailCategory.NON_PARENTING,
        lambda t: not looks_parenting_related(t),
    ),
]


class ParentingPolicy:
    """광범위 육아 정책 (0~5세 육아 전반)"""

    name = "parenting"

    def __init__(self, rules: Optional[list[GuardrailRule]] = None):
        self.rules = rules if rules is not None else PARENTING_RULES

    def classify(self, query: str) -> GuardrailVerdict:
        return self._classify(query or "", depth=0)

    def _classify(self, raw: str, depth: int) -> GuardrailVerdict:
        text = normalize(raw)

        # 인코딩된 변형을 먼저 재귀 검사
        if depth < MAX_DECODE_DEPTH:
            for decoded in decode_candidates(raw.strip()):
                sub = self._classify(decoded, depth + 1)
                if not sub.ok:
                    return sub

        age = extract_age_years(text)
        if age is not None and age > 5:
            return GuardrailVerdict.reject(GuardrailCategory.AGE_OUT_OF_SCOPE)

        for rule in self.rules:
            if rule.predicate(text):
                return GuardrailVerdict.reject(rule.category)

        return GuardrailVerdict(ok=True, category=GuardrailCategory.OK.value, age=age)


# --- four_domain 정책 ---

# 앞의 두 패턴은 유해 콘텐츠, 나머지는 범위 밖 주제
FOUR_DOMAIN_EXCLUSIONS = [
    re.compile(
        r"\b(kill|murder|hurt|harm|attack|violent|weapon|gun|knife|death|die"
        r"|suicide)\b"
    ),
    re.compile(r"\b(abuse|neglect|poison|dangerous|unsafe|illegal)\b"),
    re.compile(
        r"\b(discipline|punishment|consequence|timeout|reward|chart"
        r"|behavior modification)\b"
    ),
    re.compile(r"\b(tantrum|meltdown|defiance|backtalk|hitting|biting|kicking)\b"),
    re.compile(r"\b(sleep|bedtime|nap|nighttime|wake|insomnia)\b"),
    re.compile(
        r"\b(eating|food|meal|nutrition|picky eater|snack|diet|feeding)\b"
    ),
    re.compile(r"\b(potty|toilet|diaper|bathroom|pee|poop|training)\b"),
    re.compile(
        r"\b(screen time|tablet|ipad|tv|television|video game|youtube)\b"
    ),
    re.compile(
        r"\b(homework|grade|test|quiz|school meeting|teacher conference)\b"
    ),
    re.compile(r"\b(travel|vacation|flight|hotel|car seat|stroller)\b"),
    re.compile(
        r"\b(diagnos|symptom|treatment|medicine|medication|doctor|illness"
        r"|disease|injury|medical)\b"
    ),
    re.compile(
        r"\b(fever|rash|cough|cold|flu|allergy|asthma|adhd|autism|delay)\b"
    ),
    re.compile(
        r"\b(custody|divorce|lawyer|legal|court|financial|money|budget|cost)\b"
    ),
    re.compile(r"\b(sex|dating|relationship with partner|marriage counseling)\b"),
]
HARMFUL_EXCLUSION_COUNT = 2

ALLOWED_DOMAINS: dict[str, dict[str, list]] = {
    "Language Development": {
        "keywords": [
            "talk", "speak", "language", "vocabulary", "word", "communicate",
            "conversation", "speech", "verbal", "storytelling", "listening",
            "pronunciation", "bilingual", "reading aloud", "narration",
            "questions", "describing", "rhyme", "song", "singing",
        ],
        "patterns": [
            re.compile(r"\b(language|speech|talk|word|vocabulary|communicate)\b"),
            re.compile(r"\b(storytelling|narrat|conversation|verbal)\b"),
            re.compile(r"\b(bilingual|pronunciation|listening)\b"),
        ],
    },
    "Early Science Skills": {
        "keywords": [
            "science", "experiment", "explore", "discover", "observe",
            "investigate", "nature", "plants", "animals", "weather",
            "seasons", "biology", "physics", "chemistry", "stem",
            "curiosity", "wonder", "hypothesis", "predict", "measure",
            "compare", "classify", "scientific",
        ],
        "patterns": [
            re.compile(r"\b(science|experiment|stem|discover|observe)\b"),
            re.compile(r"\b(nature|plants?|animals?|weather|seasons?)\b"),
            re.compile(r"\b(hypothesis|predict|measure|investigate)\b"),
        ],
    },
    "Literacy Foundations": {
        "keywords": [
            "read", "reading", "book", "letter", "alphabet", "phonics",
            "literacy", "writing", "story", "print", "text", "comprehension",
            "author", "illustration", "library", "spell", "recognize",
            "sight word", "pre-reading", "emergent literacy",
            "print awareness",
        ],
        "patterns": [
            re.compile(r"\b(read|literacy|book|story|letter|alphabet)\b"),
            re.compile(r"\b(phonics|writing|spell|print|text)\b"),
            re.compile(r"\b(comprehension|sight word|pre-reading)\b"),
        ],
    },
    "Social-Emotional Learning": {
        "keywords": [
            "emotion", "emotions", "feeling", "feelings", "empathy", "social",
            "friend", "share", "turn-taking", "cooperation", "kindness",
            "self-regulation", "calm", "upset", "angry", "sad", "happy",
            "scared", "frustrated", "conflict", "resolution", "relationship",
            "self-awareness", "self-control", "coping", "mindfulness",
            "patience", "understanding", "compassion", "jealous", "proud",
            "activity", "activities",
        ],
        "patterns": [
            re.compile(
                r"\b(emotion|emotions|feeling|feelings|empathy|social|friend)\b"
            ),
            re.compile(r"\b(share|sharing|turn-taking|cooperation|kindness)\b"),
            re.compile(r"\b(self-regulation|calm|upset|angry|sad|frustrated)\b"),
            re.compile(r"\b(conflict|relationship|coping|mindfulness)\b"),
            re.compile(r"\b(activity|activities)\b"),
        ],
    },
}
MIN_DOMAIN_SCORE = 2


def score_domains(text: str) -> tuple[Optional[str], int]:
    """4개 영역별 매칭 점수 계산

    키워드 포함 +1, 패턴 매칭 +2. 동점이면 먼저 선언된 영역이 우선합니다.

    Returns:
        (최고 점수 영역, 점수)
    """
    best_domain: Optional[str] = None
    best_score = 0
    for domain, config in ALLOWED_DOMAINS.items():
        score = sum(1 for keyword in config["keywords"] if keyword in text)
        score += sum(2 for pattern in config["patterns"] if pattern.search(text))
        if score > best_score:
            best_domain, best_score = domain, score
    return best_domain, best_score


class FourDomainPolicy:
    """4개 학습 영역 한정 정책

    순서: parenting 정책 → 범위 밖 주제 목록 → 영역 점수(2점 이상)
    """

    name = "four_domain"

    def __init__(self, base: Optional[ParentingPolicy] = None):
        self.base = base or ParentingPolicy()

    def classify(self, query: str) -> GuardrailVerdict:
        verdict = self.base.classify(query)
        if not verdict.ok:
            return verdict

        text = normalize(query)
        for index, pattern in enumerate(FOUR_DOMAIN_EXCLUSIONS):
            if pattern.search(text):
                if index < HARMFUL_EXCLUSION_COUNT:
                    return GuardrailVerdict.reject(
                        GuardrailCategory.HARMFUL_CONTENT
                    )
                return GuardrailVerdict.reject(GuardrailCategory.OUT_OF_SCOPE)

        domain, score = score_domains(text)
        if score < MIN_DOMAIN_SCORE:
            return GuardrailVerdict.reject(GuardrailCategory.UNCLEAR_DOMAIN)

        return GuardrailVerdict(
            ok=True,
            category=GuardrailCategory.OK.value,
            age=verdict.age,
            domain=domain,
        )


POLICIES: dict[str, GuardrailPolicy] = {
    ParentingPolicy.name: ParentingPolicy(),
    FourDomainPolicy.name: FourDomainPolicy(),
}


def get_policy(name: str) -> GuardrailPolicy:
    """이름으로 가드레일 정책 조회

    Raises:
        ValueError: 등록되지 않은 정책 이름
    """
    try:
        return POLICIES[name]
    except KeyError:
        raise ValueError(f"Unknown guardrail policy: {name}") from None


def classify(query: str, policy: str = ParentingPolicy.name) -> GuardrailVerdict:
    return get_policy(policy).classify(query)

"""가드레일 어휘 및 패턴

분류기가 사용하는 정규식과 용어 목록입니다. 모든 패턴은 소문자로 정규화된
텍스트를 대상으로 합니다.
"""

import re
from typing import Iterable

# --- 위험/차단 패턴 ---

DANGEROUS_PATTERNS = [
    # 폭력 / 불법
    re.compile(
        r"\b(kill|murder|harm|poison|assault|stab|shoot|buy\s*gun|make\s*bomb"
        r"|arson|break\s?in|burglary|steal|kidnap|abduct|stalking|stalker"
        r"|beat\s+(?:him|her|them|my|up))\b"
    ),
    # 성인 콘텐츠
    re.compile(
        r"\b(porn|nsfw|onlyfans|nude|nudes|erotic|fetish|sex\s*positions?"
        r"|blowjob|handjob)\b"
    ),
    # 약물
    re.compile(
        r"\b(cocaine|heroin|meth(amphetamine)?|lsd|ecstasy|mdma|fentanyl"
        r"|ketamine|weed|marijuana|how to get high|vape)\b"
    ),
    # 무기 / 폭발물
    re.compile(
        r"\b(suppressor|ghost gun|tannerite|homemade\s*(gun|explosive|grenade)"
        r"|anfo)\b"
    ),
    # 해킹 / 사이버 범죄
    re.compile(
        r"\b(hack|ddos|phish|crack\s*passwords?|botnet|keylogger|malware"
        r"|ransomware)\b"
    ),
]

SELF_HARM = re.compile(
    r"\b(suicide|suicidal|self[-\s]?harm(ing)?|self[-\s]?injur(y|e|ing)"
    r"|kill myself|end my life|cutting myself|hurt myself|want to die)\b"
)

SEXUAL = re.compile(
    r"\b(sex|anal|fetish|kink|orgasm|nude|porn|nsfw|sexting)\b"
)
ADULT_REL = re.compile(r"\b(dating|boyfriend|girlfriend|hookup|sext)\b")

PROFANITY_HARASSMENT_HATE = [
    re.compile(r"\b(fuck\w*|shit\w*|bitch\w*|asshole|bastard)\b"),
    re.compile(r"\b(kill yourself|kys|go die)\b"),
]

VIOLENCE_WEAPONS = re.compile(
    r"\b(kill|murder|stab|shoot|bomb|grenade|gun|pistol|rifle|ammo|arson"
    r"|beat\s+(?:him|her|them|my|up))\b"
)
# 폭력 패턴과 겹치는 일상적인 육아 표현
BENIGN_COMPOUNDS = re.compile(
    r"\b(water\s*guns?|nerf\s*guns?|glue\s*guns?|squirt\s*guns?"
    r"|bath\s*bombs?|butter\s*knife|play\s*knife)\b"
)

DRUGS = re.compile(
    r"\b(heroin|cocaine|meth|mdma|lsd|fentanyl|opioid|weed|marijuana|vape"
    r"|alcohol|vodka|whiskey|beer)\b"
)

FINANCE = re.compile(
    r"\b(stocks?|crypto|bitcoin|ether(eum)?|nft|portfolio|dividends?"
    r"|shorting|forex|trading|invest(ing|ment|ments)?)\b"
)
FINANCIAL_ACTION = re.compile(
    r"\b((buy|sell|hold|short)\s+(shares?|stocks?|calls?|puts?|options?"
    r"|coins?|tokens?)|leverage|strike price|stop[-\s]?loss)\b"
)

POLITICS = re.compile(
    r"\b(election|vote\s+for|president|senate|congress|democrat|republican"
    r"|liberal|conservative|politics|political)\b"
)
GAMBLING = re.compile(
    r"\b(gambl(e|ing)|casino|bet(s|ting)|blackjack|roulette|poker"
    r"|sportsbook|odds|parlay|lottery)\b"
)
CAREER = re.compile(
    r"\b(resume|cv|cover letter|job\s+(interview|offer|search|hunting"
    r"|application)|salary|promotion at work|career|recruit(er|ing)"
    r"|linkedin)\b"
)

ILLEGAL = re.compile(
    r"\b(steal|shoplift|counterfeit|fake id|piracy|torrent|crack(ed)? key"
    r"|carding)\b"
)
EXPLOIT_ILLEGAL = re.compile(
    r"\b(hack(ing)?|exploit|sql injection|ddos|malware|shellcode|rootkit"
    r"|zero[-\s]?day)\b"
)

SOFTWARE_IT = re.compile(
    r"\b(algorithm|coding|programming|software|api|debug(ging)?|deploy"
    r"|kubernetes|docker|python|javascript)\b"
)

MEDICAL_LEGAL = re.compile(
    r"\b(dose|dosage|diagnos(is|e)|prescribe|antibiotic|legal advice"
    r"|lawsuit|attorney|will\s+draft)\b"
)
MEDICAL_LEGAL_PATTERNS = [
    re.compile(
        r"\b(diagnos(e|is)|prescrib(e|ing)|dosage|antibiotic|treatment"
        r"|medication|medicine|vaccine|contraindications?)\b"
    ),
    re.compile(
        r"\b(legal advice|contract law|sue\s+(them|him|her|someone|the|my)"
        r"|lawsuit|tax advice|deduction|withholding|investment advice)\b"
    ),
]

HYPOTHETICAL_FRAMING = re.compile(
    r"\b(hypothetical(ly)?|assume|let'?s say|consider|imagine"
    r"|for (the )?sake of argument|suppose)\b"
)

# --- 새니타이즈 패턴 ---

URL_PATTERN = re.compile(r"(https?://|www\.)\S+", re.IGNORECASE)

CONTACT_DOXXING = [
    re.compile(
        r"\b(phone|email|whatsapp|snap(chat)?|instagram|address"
        r"|home\s*address|social\s*media)\b",
        re.IGNORECASE,
    ),
    re.compile(r"\b(dm me|text me|call me)\b", re.IGNORECASE),
    re.compile(r"\b\d{3}[-.\s]?\d{3}[-.\s]?\d{4}\b"),
]

# --- 허용 어휘 ---

PARENTING_TOPICS = [
    "bath", "bathe", "bath time", "bathtime", "hygiene", "teeth",
    "toothbrushing", "brush teeth", "potty", "toilet", "diaper", "nappy",
    "toilet training", "potty training", "sleep", "bedtime", "nap",
    "naptime", "routine", "morning routine", "bedtime routine", "tantrum",
    "meltdown", "big feelings", "emotion", "feelings", "self-regulation",
    "calm down", "sharing", "turn-taking", "social skills", "play",
    "playtime", "independent play", "reading", "storytime", "story",
    "storytelling", "book", "letters", "alphabet", "phonics", "rhyme",
    "song", "language", "vocabulary", "talking", "words", "screen time",
    "tv", "tablet", "safety", "stranger danger", "car seat", "booster seat",
    "seatbelt", "feeding", "mealtime", "picky eating", "snack", "water",
    "bottle", "cup", "wean", "weaning", "clothes", "dressing", "undressing",
    "shoes", "toys", "cleanup", "chores", "daycare", "preschool",
    "drop-off", "separation anxiety", "transition", "gross motor",
    "fine motor", "milestone", "activity", "activities", "indoor activity",
    "outdoor activity", "behavior", "discipline", "homework", "literacy",
    "speech", "picky eater", "vegetables", "social", "bullying", "focus",
    "study", "grades", "friends", "empathy", "kindness", "science",
    "experiment", "nature", "curiosity", "breastfeeding",
]

CHILD_TERMS = [
    "baby", "infant", "newborn", "toddler", "preschooler", "preschool",
    "kid", "child", "children", "son", "daughter", "little one",
    "1-year-old", "2-year-old", "3-year-old", "4-year-old", "5-year-old",
    "1 yo", "2 yo", "3 yo", "4 yo", "5 yo", "age 1", "age 2", "age 3",
    "age 4", "age 5", "1 yr", "2 yr", "3 yr", "4 yr", "5 yr", "1 year",
    "2 year", "3 year", "4 year", "5 year",
]

ALLOWLIST_SENSITIVE_PARENTING = [
    "breastfeed", "breastfeeding", "nursing", "latch", "wean", "weaning",
]

GENERIC_CAREGIVER = re.compile(
    r"\b(parent(ing|s)?|caregivers?|moms?|mother|dads?|father)\b"
)
CORE_TOPIC = re.compile(
    r"\b(routines?|bedtime|tantrums?|potty|toilet|bath|naps?|play)\b"
)
YOUNG_AGE_MENTION = re.compile(r"\b(age\s?[0-5]|[1-5]\s?yo)\b")

AGE_YEARS_PATTERNS = [
    re.compile(r"\b(\d{1,2})\s?(yo|yrs?|years?)\b"),
    re.compile(r"\b(\d{1,2})\s?(-|\s)?year[-\s]?old\b"),
]

# 관대한 매칭 (난독화 대응: "s e x", "p.o.r.n")
LOOSE_ADULT_WORDS = ["sex", "porn", "nude", "orgasm", "fetish", "kink"]
LOOSE_RELATIONSHIP_WORDS = ["dating", "hookup"]
LOOSE_VIOLENCE_WORDS = [
    "kill", "murder", "shoot", "bomb", "weapon", "gun", "knife",
]
LOOSE_DRUG_WORDS = [
    "weed", "marijuana", "cocaine", "heroin", "meth", "lsd", "mdma",
    "fentanyl", "vape", "alcohol",
]
LOOSE_FINANCE_WORDS = [
    "crypto", "bitcoin", "ethereum", "stock", "forex", "trading", "invest",
]
LOOSE_GAMBLING_WORDS = [
    "casino", "poker", "blackjack", "bet", "parlay", "sportsbook", "lottery",
]
LOOSE_ILLEGAL_WORDS = [
    "hack", "exploit", "ddos", "malware", "sql injection", "rootkit",
    "zero day",
]


def term_pattern(terms: Iterable[str]) -> re.Pattern[str]:
    """용어 목록을 단어 경계 기반 정규식으로 변환 (복수형 허용)"""
    alternation = "|".join(
        re.escape(term) for term in sorted(set(terms), key=len, reverse=True)
    )
    return re.compile(rf"(?<![a-z0-9])(?:{alternation})(?:s|es)?(?![a-z0-9])")


def loose_word_pattern(word: str) -> re.Pattern[str]:
    """글자 사이에 최대 3개의 비문자를 허용하는 정규식 생성

    Example:
        loose_word_pattern("sex").search("s * e x")  # match
        loose_word_pattern("kill").search("social skills")  # None
    """
    letters = [re.escape(ch) for ch in word.lower() if not ch.isspace()]
    return re.compile(r"\b" + r"[^a-z]{0,3}".join(letters) + r"s?\b")


PARENTING_TOPIC_PATTERN = term_pattern(PARENTING_TOPICS)
CHILD_TERM_PATTERN = term_pattern(CHILD_TERMS)
ALLOWLIST_PATTERN = term_pattern(ALLOWLIST_SENSITIVE_PARENTING)

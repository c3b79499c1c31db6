"""Tips 도메인 타입 정의"""

from dataclasses import dataclass, field
from typing import Optional, TypedDict


@dataclass
class TipCandidate:
    """점수 계산 대상 팁

    Attributes:
        id: 팁 ID (저장된 팁은 숫자 문자열, 생성된 팁은 "generated_..." 형태)
        title: 제목
        body: 본문
        details: 부가 설명
        category: 대표 카테고리
        categories: 세부 카테고리 목록
        embedding: 팁 임베딩
        source: 출처 ("catalog" 또는 "ai")
    """

    id: str
    title: str
    body: str
    details: Optional[str] = None
    category: Optional[str] = None
    categories: list = field(default_factory=list)
    embedding: Optional[list[float]] = None
    source: str = "catalog"

    @property
    def pin_text(self) -> str:
        """키워드 핀 검사 대상 텍스트"""
        return f"{self.title} {self.body}".lower()


class RankedTip(TypedDict):
    """점수가 매겨진 팁

    Attributes:
        id: 팁 ID
        title: 제목
        body: 본문
        details: 부가 설명
        category: 대표 카테고리
        categories: 세부 카테고리 목록
        source: 출처
        query_sim: 질의 유사도
        personal_score: 선호 벡터 유사도 (선호 벡터 없으면 0.5)
        dislike_penalty: 비선호 패널티 (가중치 적용 전)
        similarity_score: 최종 결합 점수
        is_strong_match: 강한 질의 매칭 여부
    """

    id: str
    title: str
    body: str
    details: Optional[str]
    category: Optional[str]
    categories: list
    source: str
    query_sim: float
    personal_score: float
    dislike_penalty: float
    similarity_score: float
    is_strong_match: bool


class GeneratedTip(TypedDict):
    """LLM이 생성하고 포맷팅을 마친 팁"""

    id: str
    title: str
    body: str
    details: str
    categories: list


class TipsResult(TypedDict):
    """팁 조회/생성 결과

    Attributes:
        tips: 정렬된 팁
        is_personalized: 선호 벡터(또는 설문) 반영 여부
        is_generated: 생성 팁 여부
        source: 결과 출처 (ai_generated, database_search, database_found,
            ai_generated_fallback, no_results, *_with_survey)
        message: 사용자 안내 문구
        original_query: 리프레이밍 전 원본 질의
        preference_context: 생성 프롬프트에 사용한 선호 문맥
    """

    tips: list[RankedTip]
    is_personalized: bool
    is_generated: bool
    source: str
    message: str
    original_query: str
    preference_context: Optional[str]


class PopularTip(TypedDict):
    """좋아요 수 기준 인기 팁"""

    id: str
    title: str
    body: str
    details: Optional[str]
    category: Optional[str]
    source: str
    like_count: int

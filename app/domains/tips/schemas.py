"""Tips 도메인 Pydantic 스키마
"""

from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.domains.survey.utils import parse_preference_list


class TipPayload(BaseModel):
    """생성 팁 저장용 payload"""

    title: str
    body: str
    details: Optional[str] = None
    categories: list[Any] = Field(
        default_factory=list,
        description='문자열 또는 {"type", "value", "confidence"} 객체 목록',
    )


class TipsQueryRequest(BaseModel):
    """팁 조회/생성 요청"""

    user_id: Optional[int] = Field(None, description="사용자 ID (개인화 대상)")
    prompt: str = Field(..., min_length=1, description="질의")
    content_preferences: list[str] = Field(
        default_factory=list, description="선호 도메인/카테고리"
    )
    generate_mode: str = Field(
        "hybrid",
        description="generate, database, hybrid",
        pattern="^(generate|database|hybrid)$",
    )
    policy: Optional[str] = Field(
        None,
        description="가드레일 정책 (parenting, four_domain)",
        pattern="^(parenting|four_domain)$",
    )

    @field_validator("content_preferences", mode="before")
    @classmethod
    def parse_preferences(cls, v):
        return parse_preference_list(v)


class SurveyTipsRequest(TipsQueryRequest):
    """설문 반영 팁 요청"""

    user_id: int = Field(..., description="사용자 ID")  # type: ignore[assignment]


class GenerateTipsRequest(BaseModel):
    """생성 전용 요청"""

    user_id: Optional[int] = Field(None, description="사용자 ID")
    prompt: str = Field(..., min_length=1)
    count: int = Field(5, ge=1, le=10, description="생성할 팁 수")
    content_preferences: list[str] = Field(default_factory=list)
    policy: Optional[str] = Field(None, pattern="^(parenting|four_domain)$")

    @field_validator("content_preferences", mode="before")
    @classmethod
    def parse_preferences(cls, v):
        return parse_preference_list(v)


class StreamQueryMessage(BaseModel):
    """WebSocket 질의 메시지 ({"type": "query", ...})"""

    model_config = ConfigDict(str_strip_whitespace=True)

    type: str = Field("query", pattern="^query$")
    prompt: str = Field(..., min_length=1)
    content_preferences: list[str] = Field(default_factory=list)
    limit: int = Field(5, ge=1, le=10, description="최대 팁 수")
    policy: Optional[str] = Field(None, pattern="^(parenting|four_domain)$")

    @field_validator("content_preferences", mode="before")
    @classmethod
    def parse_preferences(cls, v):
        return parse_preference_list(v)


class RankedTipResponse(BaseModel):
    """점수가 매겨진 팁"""

    id: str
    title: str
    body: str
    details: Optional[str] = None
    category: Optional[str] = None
    categories: list[Any] = Field(default_factory=list)
    source: str
    query_sim: float = Field(..., description="질의 유사도")
    personal_score: float = Field(..., description="선호 유사도 (중립 0.5)")
    dislike_penalty: float = 0.0
    similarity_score: float = Field(..., description="최종 점수")
    is_strong_match: bool = False
    survey_boost: Optional[float] = None
    has_survey_boost: Optional[bool] = None


class TipsResponse(BaseModel):
    """팁 조회/생성 응답"""

    tips: list[RankedTipResponse]
    is_personalized: bool
    is_generated: bool
    source: str
    message: str
    original_query: str
    preference_context: Optional[str] = None


class GenerationStats(BaseModel):
    avg_personal_match: float


class GenerateTipsResponse(TipsResponse):
    generation_stats: GenerationStats


class SurveyTipsResponse(TipsResponse):
    has_survey_personalization: bool
    survey_context: str = ""


class PopularTipResponse(BaseModel):
    id: str
    title: str
    body: str
    details: Optional[str] = None
    category: Optional[str] = None
    source: str
    like_count: int


class RecommendationsResponse(BaseModel):
    """추천 피드 응답 (개인화되지 않으면 인기 팁)"""

    user_id: int
    is_personalized: bool
    tips: list[Union[RankedTipResponse, PopularTipResponse]]


class InteractionRequest(BaseModel):
    """상호작용 기록 요청"""

    user_id: int = Field(..., description="사용자 ID")
    tip_id: Union[int, str] = Field(
        ..., description='저장된 팁 ID 또는 "generated_..." ID'
    )
    interaction_type: str = Field(
        ..., description="like, dislike, save, unsave"
    )
    tip_payload: Optional[TipPayload] = Field(
        None, description="생성 팁일 때 필요한 팁 내용"
    )


class InteractionResponse(BaseModel):
    user_id: int
    tip_id: int
    interaction_type: str
    inserted: bool
    removed: int


class BatchInteractionItem(BaseModel):
    """일괄 기록 항목 (interaction_type 대신 kind도 허용)"""

    tip_id: Optional[Union[int, str]] = None
    interaction_type: Optional[str] = None
    kind: Optional[str] = None
    tip_payload: Optional[TipPayload] = None


class BatchInteractionRequest(BaseModel):
    user_id: int
    interactions: list[BatchInteractionItem] = Field(default_factory=list)


class BatchInteractionResponse(BaseModel):
    user_id: int
    saved: int


class ProfileSummaryResponse(BaseModel):
    """선호 프로필 요약"""

    user_id: int
    total_interactions: int
    last_updated: Optional[datetime] = None
    has_preferences: bool
    has_survey: bool = False
    likes: int = 0
    dislikes: int = 0
    saves: int = 0

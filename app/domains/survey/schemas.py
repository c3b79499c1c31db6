"""Survey 도메인 Pydantic 스키마"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.domains.survey.utils import parse_preference_list

VALID_FREQUENCIES = ["daily", "few-times-week", "weekly", "on-demand"]


class SurveyData(BaseModel):
    """설문 응답 본문"""

    content_preferences: list[str] = Field(
        default_factory=list, description="선호 콘텐츠 유형 (예: sleep, activities)"
    )
    challenge_areas: list[str] = Field(
        default_factory=list, description="현재 어려움 (예: tantrums, bedtime)"
    )
    parenting_goals: list[str] = Field(
        default_factory=list, description="양육 목표 (예: patience, connection)"
    )
    engagement_frequency: str = Field(
        ..., description="daily, few-times-week, weekly, on-demand"
    )
    current_challenge: Optional[str] = Field(None, description="구체적인 현재 어려움")
    additional_notes: Optional[str] = Field(None, description="추가 메모")

    @field_validator(
        "content_preferences", "challenge_areas", "parenting_goals", mode="before"
    )
    @classmethod
    def parse_list(cls, v):
        return parse_preference_list(v)


class SurveySaveRequest(BaseModel):
    """설문 저장 요청"""

    user_id: int = Field(..., description="사용자 ID")
    survey_data: SurveyData


class SurveySummary(BaseModel):
    content_preferences: list[str]
    challenge_areas: list[str]
    parenting_goals: list[str]
    engagement_frequency: str
    has_current_challenge: bool
    has_additional_notes: bool


class SurveySaveResponse(BaseModel):
    user_id: int
    survey_data: SurveySummary
    embedded_options: int = Field(..., description="임베딩된 설문 옵션 수")


class SurveyResponse(BaseModel):
    """설문 조회 응답"""

    user_id: int
    has_completed_survey: bool = True
    content_preferences: list[str]
    challenge_areas: list[str]
    parenting_goals: list[str]
    engagement_frequency: str
    current_challenge: Optional[str] = None
    additional_notes: Optional[str] = None
    completed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SurveyStatusResponse(BaseModel):
    user_id: int
    has_completed_survey: bool
    completed_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None

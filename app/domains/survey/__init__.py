"""Survey 도메인 모듈

초기 설문(선호 콘텐츠, 어려움, 양육 목표)을 저장하고
선택한 옵션의 임베딩을 선호 프로필에 혼합합니다.
"""

from app.domains.survey.models import SurveyPreferenceEmbedding, UserSurveyResponse
from app.domains.survey.service import SurveyService

__all__ = [
    "SurveyPreferenceEmbedding",
    "SurveyService",
    "UserSurveyResponse",
]

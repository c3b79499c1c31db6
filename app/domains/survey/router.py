"""Survey 도메인 라우터

/api/v1/tips/survey 아래에 설문 저장/조회/상태 엔드포인트를 둡니다.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import verify_internal_api_key
from app.core.schemas import APIResponse, create_response
from app.domains.survey.schemas import (
    SurveyResponse,
    SurveySaveRequest,
    SurveySaveResponse,
    SurveyStatusResponse,
)
from app.domains.survey.service import SurveyService

router = APIRouter()


def get_survey_service(session: AsyncSession = Depends(get_db)) -> SurveyService:
    return SurveyService(session)


@router.post(
    "",
    response_model=APIResponse[SurveySaveResponse],
    dependencies=[Depends(verify_internal_api_key)],
)
async def save_survey(
    request: SurveySaveRequest,
    service: SurveyService = Depends(get_survey_service),
):
    """설문 저장 (기존 응답 덮어쓰기)"""
    result = await service.save_survey(request.user_id, request.survey_data)
    return create_response(data=result, message="Survey saved successfully")


@router.get(
    "",
    response_model=APIResponse[SurveyResponse],
    dependencies=[Depends(verify_internal_api_key)],
)
async def get_survey(
    user_id: int = Query(..., description="사용자 ID"),
    service: SurveyService = Depends(get_survey_service),
):
    """설문 응답 조회"""
    survey = await service.get_survey(user_id)
    return create_response(data=survey, message="설문 조회 성공")


@router.get(
    "/status",
    response_model=APIResponse[SurveyStatusResponse],
    dependencies=[Depends(verify_internal_api_key)],
)
async def get_survey_status(
    user_id: int = Query(..., description="사용자 ID"),
    service: SurveyService = Depends(get_survey_service),
):
    status = await service.get_status(user_id)
    return create_response(data=status, message="설문 상태 조회 성공")

"""API v1 라우터"""

from typing import Any

from fastapi import APIRouter

from app.core.schemas import APIResponse
from app.domains.survey.router import router as survey_router
from app.domains.tips.router import router as tips_router

api_router = APIRouter()

# 도메인 라우터 등록 (설문은 tips 하위 경로)
api_router.include_router(survey_router, prefix="/tips/survey", tags=["Survey"])
api_router.include_router(tips_router, prefix="/tips", tags=["Tips"])


@api_router.get("/", response_model=APIResponse[dict[str, Any]])
async def api_v1_root():
    """API v1 루트 엔드포인트"""
    return APIResponse(
        success=True,
        message="Parenting Tips Engine API v1",
        data={
            "version": "1.0.0",
            "docs": "/docs",
        },
    )

"""Tips 도메인 라우터

팁 조회/생성, 상호작용 기록, 추천, 스트리밍 API 엔드포인트입니다.
세션 발급은 외부 인증 서비스 담당이므로 사용자 ID는 요청에 명시적으로 전달합니다.
"""

import asyncio
from typing import Any, Callable, Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import async_session_maker, get_db
from app.core.dependencies import is_valid_internal_api_key, verify_internal_api_key
from app.core.exceptions import BaseAPIException
from app.core.logging import get_logger
from app.core.middlewares.context import set_request_id
from app.core.schemas import APIResponse, ErrorResponse, create_response
from app.domains.tips.schemas import (
    BatchInteractionRequest,
    BatchInteractionResponse,
    GenerateTipsRequest,
    GenerateTipsResponse,
    GenerationStats,
    InteractionRequest,
    InteractionResponse,
    PopularTipResponse,
    ProfileSummaryResponse,
    RecommendationsResponse,
    StreamQueryMessage,
    SurveyTipsRequest,
    SurveyTipsResponse,
    TipsQueryRequest,
    TipsResponse,
)
from app.domains.tips.service import TipsService

logger = get_logger(__name__)

router = APIRouter()

WS_AUTH_TIMEOUT_SECONDS = 10.0
WS_POLICY_VIOLATION = status.WS_1008_POLICY_VIOLATION

# 가드레일 거절 (400) 응답 문서화
QUERY_RESPONSES: dict = {400: {"model": ErrorResponse, "description": "범위 밖 질의"}}


def get_tips_service(session: AsyncSession = Depends(get_db)) -> TipsService:
    """요청마다 새로운 서비스 인스턴스를 생성"""
    return TipsService(session)


def get_session_factory() -> async_sessionmaker:
    """WebSocket 질의마다 세션을 여는 팩토리 (테스트에서 교체)"""
    return async_session_maker


def get_stream_service_builder() -> Callable[[AsyncSession], TipsService]:
    return TipsService


@router.post(
    "/enhanced",
    response_model=APIResponse[TipsResponse],
    responses=QUERY_RESPONSES,
    dependencies=[Depends(verify_internal_api_key)],
)
async def get_enhanced_tips(
    request: TipsQueryRequest,
    service: TipsService = Depends(get_tips_service),
):
    """검색/생성/하이브리드 팁 조회"""
    result = await service.get_enhanced_tips(
        user_id=request.user_id,
        prompt=request.prompt,
        content_preferences=request.content_preferences,
        generate_mode=request.generate_mode,
        policy=request.policy,
    )
    return create_response(
        data=TipsResponse.model_validate(result),
        message=result["message"],
    )


@router.post(
    "/generate",
    response_model=APIResponse[GenerateTipsResponse],
    responses=QUERY_RESPONSES,
    dependencies=[Depends(verify_internal_api_key)],
)
async def generate_tips(
    request: GenerateTipsRequest,
    service: TipsService = Depends(get_tips_service),
):
    """생성 전용 팁"""
    result, avg_personal_match = await service.generate_only(
        user_id=request.user_id,
        prompt=request.prompt,
        count=request.count,
        content_preferences=request.content_preferences,
        policy=request.policy,
    )
    response = GenerateTipsResponse(
        **result,
        generation_stats=GenerationStats(avg_personal_match=avg_personal_match),
    )
    return create_response(data=response, message=result["message"])


@router.post(
    "/enhanced-survey",
    response_model=APIResponse[SurveyTipsResponse],
    responses=QUERY_RESPONSES,
    dependencies=[Depends(verify_internal_api_key)],
)
async def get_survey_enhanced_tips(
    request: SurveyTipsRequest,
    service: TipsService = Depends(get_tips_service),
):
    """설문 응답을 반영한 팁 조회"""
    result, survey_context, has_survey = await service.get_survey_enhanced_tips(
        user_id=request.user_id,
        prompt=request.prompt,
        content_preferences=request.content_preferences,
        generate_mode=request.generate_mode,
        policy=request.policy,
    )
    response = SurveyTipsResponse(
        **result,
        has_survey_personalization=has_survey,
        survey_context=survey_context,
    )
    return create_response(data=response, message=result["message"])


@router.get(
    "/recommendations",
    response_model=APIResponse[RecommendationsResponse],
    dependencies=[Depends(verify_internal_api_key)],
)
async def get_recommendations(
    user_id: int = Query(..., description="사용자 ID"),
    limit: int = Query(10, ge=1, le=50),
    service: TipsService = Depends(get_tips_service),
):
    """선호 벡터 기반 추천 (프로필이 없으면 인기 팁)"""
    tips, is_personalized = await service.get_recommendations(user_id, limit)
    return create_response(
        data=RecommendationsResponse(
            user_id=user_id, is_personalized=is_personalized, tips=tips
        ),
        message="추천 팁 조회 성공",
    )


@router.get(
    "/popular",
    response_model=APIResponse[list[PopularTipResponse]],
    dependencies=[Depends(verify_internal_api_key)],
)
async def get_popular_tips(
    limit: int = Query(10, ge=1, le=50),
    service: TipsService = Depends(get_tips_service),
):
    """좋아요 수 기준 인기 팁"""
    tips = await service.get_popular(limit)
    return create_response(
        data=[PopularTipResponse.model_validate(tip) for tip in tips],
        message="인기 팁 조회 성공",
    )


@router.post(
    "/interactions",
    response_model=APIResponse[InteractionResponse],
    dependencies=[Depends(verify_internal_api_key)],
)
async def record_interaction(
    request: InteractionRequest,
    service: TipsService = Depends(get_tips_service),
):
    """상호작용 기록 (생성 팁은 먼저 저장)"""
    result = await service.record_interaction(
        user_id=request.user_id,
        tip_id=request.tip_id,
        interaction_type=request.interaction_type,
        tip_payload=request.tip_payload.model_dump() if request.tip_payload else None,
    )
    return create_response(
        data=InteractionResponse.model_validate(result),
        message="상호작용이 기록되었습니다.",
    )


@router.post(
    "/interactions/batch",
    response_model=APIResponse[BatchInteractionResponse],
    dependencies=[Depends(verify_internal_api_key)],
)
async def record_batch_interactions(
    request: BatchInteractionRequest,
    service: TipsService = Depends(get_tips_service),
):
    """상호작용 일괄 기록 (잘못된 항목은 건너뜀)"""
    saved = await service.record_batch(
        request.user_id,
        [item.model_dump() for item in request.interactions],
    )
    return create_response(
        data=BatchInteractionResponse(user_id=request.user_id, saved=saved),
        message=f"{saved}건의 상호작용이 기록되었습니다.",
    )


@router.get(
    "/profile",
    response_model=APIResponse[ProfileSummaryResponse],
    dependencies=[Depends(verify_internal_api_key)],
)
async def get_profile_summary(
    user_id: int = Query(..., description="사용자 ID"),
    service: TipsService = Depends(get_tips_service),
):
    """선호 프로필 요약"""
    summary = await service.get_profile_summary(user_id)
    return create_response(
        data=ProfileSummaryResponse(user_id=user_id, **summary),
        message="프로필 조회 성공",
    )


# --- WebSocket 스트리밍 ---


def _error_event(code: str, message: str, detail: Optional[dict] = None) -> dict:
    return {
        "type": "error",
        "error": {"code": code, "message": message, "detail": detail or {}},
    }


@router.websocket("/stream")
async def stream_tips(
    websocket: WebSocket,
    session_factory: async_sessionmaker = Depends(get_session_factory),
    build_service: Callable[[AsyncSession], TipsService] = Depends(
        get_stream_service_builder
    ),
):
    """스트리밍 팁 생성

    1. 첫 메시지로 {"type": "auth", "api_key", "user_id"} 인증
    2. 이후 {"type": "query", "prompt", "content_preferences", "limit", "policy"}마다
       phase/tip/batch/done/error 이벤트 전송
    3. 스트리밍 중 {"type": "cancel"} 또는 연결 종료 시 생성 중단
    """
    await websocket.accept()
    set_request_id(websocket.headers.get("x-request-id"))

    try:
        auth = await asyncio.wait_for(
            websocket.receive_json(), timeout=WS_AUTH_TIMEOUT_SECONDS
        )
    except (asyncio.TimeoutError, ValueError):
        await websocket.send_json(
            _error_event("UNAUTHORIZED", "인증 메시지가 필요합니다.")
        )
        await websocket.close(code=WS_POLICY_VIOLATION)
        return
    except WebSocketDisconnect:
        return

    if (
        not isinstance(auth, dict)
        or auth.get("type") != "auth"
        or not is_valid_internal_api_key(auth.get("api_key"))
    ):
        logger.warning("Rejected WebSocket connection with invalid auth message")
        await websocket.send_json(
            _error_event("INVALID_API_KEY", "유효하지 않은 API 키입니다.")
        )
        await websocket.close(code=WS_POLICY_VIOLATION)
        return

    user_id = auth.get("user_id")
    await websocket.send_json({"type": "ready", "user_id": user_id})

    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                await websocket.send_json(
                    _error_event("BAD_REQUEST", "JSON 메시지만 지원합니다.")
                )
                continue

            if not isinstance(message, dict) or message.get("type") != "query":
                await websocket.send_json(
                    _error_event("BAD_REQUEST", "지원하지 않는 메시지 유형입니다.")
                )
                continue

            try:
                query = StreamQueryMessage.model_validate(message)
            except ValidationError as exc:
                await websocket.send_json(
                    _error_event(
                        "BAD_REQUEST",
                        "잘못된 질의 메시지입니다.",
                        {"errors": _message_errors(exc)},
                    )
                )
                continue

            connected = await _run_stream_query(
                websocket, session_factory, build_service, user_id, query
            )
            if not connected:
                break
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected (user_id={user_id})")


def _message_errors(exc: ValidationError) -> list[dict[str, Any]]:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]


async def _run_stream_query(
    websocket: WebSocket,
    session_factory: async_sessionmaker,
    build_service: Callable[[AsyncSession], TipsService],
    user_id: Optional[int],
    query: StreamQueryMessage,
) -> bool:
    """질의 하나를 스트리밍 처리

    Returns:
        연결 유지 여부
    """
    queue: asyncio.Queue[dict | None] = asyncio.Queue()
    cancelled = asyncio.Event()
    disconnected = False

    async def emit(event: dict) -> None:
        await queue.put(event)

    async def runner() -> None:
        async with session_factory() as session:
            try:
                service = build_service(session)
                await service.stream_tips(
                    user_id=user_id,
                    prompt=query.prompt,
                    emit=emit,
                    content_preferences=query.content_preferences,
                    limit=query.limit,
                    policy=query.policy,
                    is_cancelled=cancelled.is_set,
                )
                await session.commit()
            except BaseAPIException as exc:
                await session.rollback()
                await queue.put(
                    _error_event(exc.error_code, exc.detail, exc.detail_info)
                )
            except Exception as exc:  # noqa: BLE001
                await session.rollback()
                logger.error(f"Streaming query failed: {exc}", exc_info=True)
                await queue.put(
                    _error_event(
                        "INTERNAL_ERROR", "팁 생성 중 오류가 발생했습니다."
                    )
                )
            finally:
                await queue.put(None)

    async def listener() -> None:
        nonlocal disconnected
        try:
            while True:
                try:
                    incoming = await websocket.receive_json()
                except ValueError:
                    await queue.put(
                        _error_event("BAD_REQUEST", "JSON 메시지만 지원합니다.")
                    )
                    continue
                if isinstance(incoming, dict) and incoming.get("type") == "cancel":
                    logger.info("Client cancelled streaming query")
                    cancelled.set()
                    return
                await queue.put(
                    _error_event(
                        "BAD_REQUEST", "질의 처리 중에는 cancel 메시지만 지원합니다."
                    )
                )
        except WebSocketDisconnect:
            disconnected = True
            cancelled.set()

    task = asyncio.create_task(runner())
    listener_task = asyncio.create_task(listener())

    try:
        while True:
            event = await queue.get()
            if event is None:
                break
            if cancelled.is_set():
                continue
            await websocket.send_json(event)
    except WebSocketDisconnect:
        disconnected = True
        cancelled.set()
    finally:
        if disconnected and not task.done():
            task.cancel()
        listener_task.cancel()
        await asyncio.gather(task, listener_task, return_exceptions=True)

    if cancelled.is_set() and not disconnected:
        await websocket.send_json({"type": "done", "cancelled": True})
    return not disconnected

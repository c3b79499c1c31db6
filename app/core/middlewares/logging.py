"""요청/응답 로깅 미들웨어"""

from typing import Callable, cast

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.logging import get_logger
from app.core.middlewares.context import set_request_id
from app.core.utils.time import measure_time

logger = get_logger(__name__)

# 로깅 제외 경로
EXCLUDE_PATHS = {"/health", "/docs", "/redoc", "/openapi.json", "/favicon.ico"}

# 느린 요청 경고 기준 (팁 생성은 LLM 호출을 포함)
SLOW_REQUEST_MS = 10_000.0


class LoggingMiddleware(BaseHTTPMiddleware):
    """요청 ID 부여, 처리 시간 측정, 요청/응답 로깅

    응답 헤더:
        X-Request-ID: 요청 헤더 값 또는 새로 생성한 UUID
        X-Process-Time: 처리 시간 (예: "12.34ms")
    """

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        if request.url.path in EXCLUDE_PATHS:
            return cast(Response, await call_next(request))

        request_id = set_request_id(request.headers.get("X-Request-ID"))
        route = f"{request.method} {request.url.path}"
        logger.info(
            f"→ {route} | Client: {request.client.host if request.client else 'unknown'}"
        )

        with measure_time() as timer:
            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(
                    f"✗ {route} | Error: {e} | Time: {timer['elapsed_ms']:.2f}ms"
                )
                raise

        elapsed = timer["elapsed_ms"]
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{elapsed:.2f}ms"

        if response.status_code >= 400:
            logger.warning(f"✗ {route} | Status: {response.status_code} | Time: {elapsed:.2f}ms")
        elif elapsed > SLOW_REQUEST_MS:
            logger.warning(f"✓ {route} | Status: {response.status_code} | Slow: {elapsed:.2f}ms")
        else:
            logger.info(f"✓ {route} | Status: {response.status_code} | Time: {elapsed:.2f}ms")

        return cast(Response, response)

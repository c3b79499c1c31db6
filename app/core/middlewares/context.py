"""요청 ID 컨텍스트 관리

HTTP 요청과 WebSocket 연결 모두 같은 컨텍스트 변수를 사용하며,
로그 포맷의 %(request_id)s 값으로 출력됩니다.
"""

import contextvars
import uuid
from typing import Optional

request_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "request_id", default=None
)


def get_request_id() -> Optional[str]:
    return request_id_ctx.get()


def set_request_id(request_id: Optional[str] = None) -> str:
    """요청 ID 설정 (없으면 UUID4 생성)"""
    if not request_id:
        request_id = str(uuid.uuid4())
    request_id_ctx.set(request_id)
    return request_id

"""WebSocket 스트리밍 통합 테스트 (DB 없이 서비스 교체)"""

import asyncio
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app.core.config import settings
from app.domains.tips.router import get_session_factory, get_stream_service_builder
from app.domains.tips.service import TipsService
from app.main import app

STREAM_PATH = "/api/v1/tips/stream"

RANKED_TIP = {
    "id": "generated_1_0",
    "title": "Story walk",
    "body": "Name what you see on a walk.",
    "details": None,
    "category": "generated",
    "categories": [],
    "source": "ai",
    "query_sim": 0.9,
    "personal_score": 0.5,
    "dislike_penalty": 0.0,
    "similarity_score": 0.76,
    "is_strong_match": True,
}


def fake_session_factory():
    session = AsyncMock()

    @asynccontextmanager
    async def _factory():
        yield session

    return _factory, session


@pytest.fixture
def session():
    factory, session = fake_session_factory()
    app.dependency_overrides[get_session_factory] = lambda: factory
    yield session
    app.dependency_overrides.clear()


@pytest.fixture
def ws_client(session):
    return TestClient(app)


def use_service(stream_tips):
    """stream_tips만 교체한 서비스 빌더 등록"""
    service = MagicMock()
    service.stream_tips = stream_tips
    app.dependency_overrides[get_stream_service_builder] = lambda: (lambda _session: service)
    return service


def authenticate(websocket, api_key=None, user_id=7):
    websocket.send_json(
        {"type": "auth", "api_key": api_key or settings.internal_api_key, "user_id": user_id}
    )
    return websocket.receive_json()


class TestStreamHandshake:
    """인증 핸드셰이크 테스트"""

    def test_valid_auth_returns_ready(self, ws_client):
        with ws_client.websocket_connect(STREAM_PATH) as websocket:
            assert authenticate(websocket) == {"type": "ready", "user_id": 7}

    def test_invalid_key_closes_connection(self, ws_client):
        with ws_client.websocket_connect(STREAM_PATH) as websocket:
            event = authenticate(websocket, api_key="invalid-key")

            assert event["type"] == "error"
            assert event["error"]["code"] == "INVALID_API_KEY"
            with pytest.raises(WebSocketDisconnect) as exc_info:
                websocket.receive_json()
            assert exc_info.value.code == 1008

    def test_first_message_must_be_auth(self, ws_client):
        with ws_client.websocket_connect(STREAM_PATH) as websocket:
            websocket.send_json({"type": "query", "prompt": "bedtime"})
            event = websocket.receive_json()

            assert event["error"]["code"] == "INVALID_API_KEY"


class TestStreamQuery:
    """질의 스트리밍 테스트"""

    def test_events_are_forwarded_in_order(self, ws_client, session):
        async def stream_tips(**kwargs):
            emit = kwargs["emit"]
            await emit({"type": "phase", "phase": "validating"})
            await emit({"type": "tip", "tip": RANKED_TIP})
            await emit(
                {"type": "batch", "tips": [RANKED_TIP], "is_personalized": False,
                 "source": "streaming", "original_query": kwargs["prompt"]}
            )
            await emit({"type": "done", "count": 1})
            return [RANKED_TIP]

        use_service(stream_tips)

        with ws_client.websocket_connect(STREAM_PATH) as websocket:
            authenticate(websocket)
            websocket.send_json({"type": "query", "prompt": "story walk ideas", "limit": 3})

            events = [websocket.receive_json() for _ in range(4)]

        assert [event["type"] for event in events] == ["phase", "tip", "batch", "done"]
        assert events[2]["original_query"] == "story walk ideas"
        session.commit.assert_awaited_once()

    def test_rejected_query_sends_error_event(self, ws_client, session):
        """거절된 질의는 error 이벤트 후 다음 질의를 받을 수 있음"""
        app.dependency_overrides[get_stream_service_builder] = lambda: TipsService

        with ws_client.websocket_connect(STREAM_PATH) as websocket:
            authenticate(websocket)
            websocket.send_json({"type": "query", "prompt": "best pizza recipe"})

            phase = websocket.receive_json()
            error = websocket.receive_json()

            websocket.send_json({"type": "query", "prompt": ""})
            empty = websocket.receive_json()

        assert phase == {"type": "phase", "phase": "validating"}
        assert error["type"] == "error"
        assert error["error"]["code"] == "non_parenting"
        assert error["error"]["detail"]["suggestions"]
        assert empty["error"]["code"] == "BAD_REQUEST"
        session.rollback.assert_awaited()

    def test_unsupported_message_type(self, ws_client):
        with ws_client.websocket_connect(STREAM_PATH) as websocket:
            authenticate(websocket)
            websocket.send_json({"type": "subscribe"})

            event = websocket.receive_json()

        assert event["error"]["code"] == "BAD_REQUEST"


class TestStreamQueryValidation:
    """질의 메시지 검증 테스트"""

    @pytest.mark.parametrize("limit", [-1, 0, 11, "abc", 1_000_000])
    def test_out_of_range_limit_is_rejected(self, ws_client, limit):
        stream_tips = AsyncMock(return_value=[])
        use_service(stream_tips)

        with ws_client.websocket_connect(STREAM_PATH) as websocket:
            authenticate(websocket)
            websocket.send_json({"type": "query", "prompt": "bedtime", "limit": limit})

            event = websocket.receive_json()

        assert event["error"]["code"] == "BAD_REQUEST"
        assert ["limit"] in [error["loc"] for error in event["error"]["detail"]["errors"]]
        stream_tips.assert_not_called()

    def test_unknown_policy_is_rejected(self, ws_client):
        use_service(AsyncMock(return_value=[]))

        with ws_client.websocket_connect(STREAM_PATH) as websocket:
            authenticate(websocket)
            websocket.send_json({"type": "query", "prompt": "bedtime", "policy": "anything"})

            event = websocket.receive_json()

        assert event["error"]["code"] == "BAD_REQUEST"

    def test_valid_fields_are_passed_to_service(self, ws_client):
        async def emit_done(**kwargs):
            await kwargs["emit"]({"type": "done", "count": 0})
            return []

        stream_tips = AsyncMock(side_effect=emit_done)
        use_service(stream_tips)

        with ws_client.websocket_connect(STREAM_PATH) as websocket:
            authenticate(websocket)
            websocket.send_json(
                {
                    "type": "query",
                    "prompt": "  story walk ideas  ",
                    "limit": 3,
                    "policy": "parenting",
                    "content_preferences": "activities, language",
                }
            )
            assert websocket.receive_json() == {"type": "done", "count": 0}

        kwargs = stream_tips.await_args.kwargs
        assert kwargs["prompt"] == "story walk ideas"
        assert kwargs["limit"] == 3
        assert kwargs["policy"] == "parenting"
        assert kwargs["content_preferences"] == ["activities", "language"]
        assert kwargs["user_id"] == 7


class TestStreamListener:
    """스트리밍 중 수신 메시지 처리 테스트"""

    def test_bad_frames_keep_cancel_working(self, ws_client):
        """잘못된 메시지에는 error로 답하고 이후 cancel도 처리"""

        async def stream_tips(**kwargs):
            await kwargs["emit"]({"type": "phase", "phase": "generating"})
            for _ in range(500):
                if kwargs["is_cancelled"]():
                    return []
                await asyncio.sleep(0.01)
            return []

        use_service(stream_tips)

        with ws_client.websocket_connect(STREAM_PATH) as websocket:
            authenticate(websocket)
            websocket.send_json({"type": "query", "prompt": "bedtime"})
            phase = websocket.receive_json()

            websocket.send_text("not json")
            not_json = websocket.receive_json()

            websocket.send_json({"type": "query", "prompt": "another"})
            overlapping = websocket.receive_json()

            websocket.send_json({"type": "cancel"})
            done = websocket.receive_json()

        assert phase == {"type": "phase", "phase": "generating"}
        assert not_json["error"]["code"] == "BAD_REQUEST"
        assert overlapping["error"]["code"] == "BAD_REQUEST"
        assert done == {"type": "done", "cancelled": True}

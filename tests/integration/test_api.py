"""API 통합 테스트 - 인증, 응답 구조, 미들웨어 검증"""

import pytest

PROTECTED_ENDPOINTS = [
    ("GET", "/api/v1/tips/popular"),
    ("GET", "/api/v1/tips/recommendations?user_id=1"),
    ("GET", "/api/v1/tips/profile?user_id=1"),
    ("GET", "/api/v1/tips/survey/status?user_id=1"),
]


class TestHealthCheck:
    """헬스 체크 API 테스트"""

    @pytest.mark.asyncio
    async def test_health_check_response_structure(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["data"]["status"] == "healthy"
        # /health는 로깅 제외 경로
        assert "x-request-id" not in response.headers

    @pytest.mark.asyncio
    async def test_api_v1_root(self, client):
        response = await client.get("/api/v1/")

        assert response.status_code == 200
        assert "version" in response.json()["data"]


class TestAuthenticationRequired:
    """API Key 인증 필수 테스트"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method,path", PROTECTED_ENDPOINTS)
    async def test_missing_api_key_returns_422(self, client, method, path):
        """API Key 없이 요청하면 422 반환"""
        response = await client.request(method, path)

        assert response.status_code == 422

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method,path", PROTECTED_ENDPOINTS)
    async def test_invalid_api_key_returns_401(self, client, method, path):
        """잘못된 API Key로 요청하면 401 반환"""
        headers = {"X-Internal-Api-Key": "invalid-key"}
        response = await client.request(method, path, headers=headers)

        assert response.status_code == 401
        data = response.json()
        assert data["success"] is False
        assert data["error"]["code"] == "INVALID_API_KEY"

    @pytest.mark.asyncio
    async def test_post_endpoint_requires_api_key(self, client):
        response = await client.post(
            "/api/v1/tips/enhanced",
            json={"prompt": "bedtime routine for my toddler"},
            headers={"X-Internal-Api-Key": "invalid-key"},
        )

        assert response.status_code == 401


class TestMiddleware:
    """미들웨어 테스트"""

    @pytest.mark.asyncio
    async def test_request_id_and_process_time_headers(self, client):
        response = await client.get("/api/v1/")

        assert len(response.headers["x-request-id"]) == 36  # UUID 형식
        assert "ms" in response.headers["x-process-time"]

    @pytest.mark.asyncio
    async def test_custom_request_id_forwarded(self, client):
        """클라이언트가 보낸 X-Request-ID가 응답에 유지되는지"""
        response = await client.get(
            "/api/v1/", headers={"X-Request-ID": "custom-request-id-12345"}
        )

        assert response.headers["x-request-id"] == "custom-request-id-12345"


class TestErrorStructure:
    @pytest.mark.asyncio
    async def test_validation_error_structure(self, client, api_key_header):
        """요청 검증 실패 응답 구조"""
        response = await client.post(
            "/api/v1/tips/enhanced",
            json={"prompt": "bedtime", "generate_mode": "random"},
            headers=api_key_header,
        )

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["detail"]["errors"][0]["loc"] == ["body", "generate_mode"]

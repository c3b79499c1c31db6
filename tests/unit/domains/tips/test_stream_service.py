"""TipsService 스트리밍 단위 테스트 (DB/LLM 없이 게이트웨이·저장소·생성기 교체)"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.llm import AllProvidersFailedError
from app.domains.tips.preferences.service import PreferenceState
from app.domains.tips.scoring.scorer import RetrievalScorer
from app.domains.tips.service import TipsService
from app.domains.tips.types import TipCandidate

PROMPT = "bedtime routine for my toddler"
ON_TOPIC = [1.0, 0.0]
OFF_TOPIC = [0.0, 1.0]


class FakeGateway:
    """'bedtime'이 들어간 텍스트만 질의와 같은 방향의 벡터"""

    async def embed(self, text: str) -> list[float]:
        return ON_TOPIC if "bedtime" in text.lower() else OFF_TOPIC


class FakeSynthesizer:
    """준비된 팁을 count개까지 콜백으로 전달"""

    def __init__(self, tips=None, error=None):
        self.tips = tips or []
        self.error = error
        self.calls: list[dict] = []

    async def stream_tips(self, query, on_tip, count=5, is_cancelled=None, **kwargs):
        self.calls.append({"query": query, "count": count, **kwargs})
        if self.error is not None:
            raise self.error
        for tip in self.tips[:count]:
            if is_cancelled is not None and is_cancelled():
                break
            await on_tip(tip)
        return self.tips[:count]


def stored_tip(tip_id: str) -> TipCandidate:
    return TipCandidate(
        id=tip_id,
        title=f"Bedtime idea {tip_id}",
        body="Read one short book before bedtime.",
        category="sleep",
        embedding=ON_TOPIC,
    )


def generated_tip(index: int, title: str, body: str, details: str = "") -> dict:
    return {
        "id": f"generated_1_{index}",
        "title": title,
        "body": body,
        "details": details,
        "categories": ["generated"],
    }


def build_service(synthesizer, stored=None) -> TipsService:
    preferences = AsyncMock()
    preferences.get_state.return_value = PreferenceState(
        preference=None, dislike_centroid=None
    )
    service = TipsService(
        MagicMock(),
        gateway=FakeGateway(),
        synthesizer=synthesizer,
        scorer=RetrievalScorer(),
        preference_store=preferences,
    )
    service.tips = AsyncMock()
    service.tips.get_candidates.return_value = stored or []
    return service


async def run_stream(service, limit=3, is_cancelled=None, on_event=None):
    events: list[dict] = []

    async def emit(event: dict) -> None:
        events.append(event)
        if on_event is not None:
            on_event(event)

    result = await service.stream_tips(
        user_id=None,
        prompt=PROMPT,
        emit=emit,
        limit=limit,
        policy="parenting",
        is_cancelled=is_cancelled,
    )
    return result, events


def tip_ids(events: list[dict]) -> list[str]:
    return [event["tip"]["id"] for event in events if event["type"] == "tip"]


def batch_of(events: list[dict]) -> dict:
    return next(event for event in events if event["type"] == "batch")


class TestStreamGenerationBudget:
    """검색 결과에 따른 생성 여부 테스트"""

    @pytest.mark.asyncio
    async def test_retrieval_fills_limit_skips_generation(self):
        synthesizer = FakeSynthesizer(
            tips=[generated_tip(0, "Bedtime song", "Sing softly at bedtime.")]
        )
        service = build_service(synthesizer, [stored_tip(str(i)) for i in range(3)])

        result, events = await run_stream(service, limit=3)

        assert synthesizer.calls == []
        phases = [event["phase"] for event in events if event["type"] == "phase"]
        assert phases == ["validating", "retrieving", "scoring"]
        assert sorted(tip_ids(events)) == ["0", "1", "2"]
        assert [tip["id"] for tip in result] == [tip["id"] for tip in batch_of(events)["tips"]]

    @pytest.mark.asyncio
    async def test_generation_requests_only_remaining(self):
        """스트리밍으로 보낸 팁은 모두 batch에 포함"""
        synthesizer = FakeSynthesizer(
            tips=[
                generated_tip(i, f"Bedtime song {i}", "Sing softly at bedtime.")
                for i in range(3)
            ]
        )
        service = build_service(synthesizer, [stored_tip("1")])

        _, events = await run_stream(service, limit=3)

        assert synthesizer.calls[0]["count"] == 2
        streamed = tip_ids(events)
        assert streamed == ["1", "generated_1_0", "generated_1_1"]
        assert sorted(tip["id"] for tip in batch_of(events)["tips"]) == sorted(streamed)
        assert events[-1] == {"type": "done", "count": 3}


class TestStreamGating:
    """생성 팁 관련도 판정 테스트"""

    @pytest.mark.asyncio
    async def test_streamed_tips_are_gated_like_retrieval(self):
        synthesizer = FakeSynthesizer(
            tips=[
                generated_tip(0, "Bedtime song", "Sing softly at bedtime."),
                # 키워드 핀(routine)은 있지만 관련도 하한선 미달
                generated_tip(1, "Morning routine", "Lay out clothes the night before."),
                # 임베딩은 관련 있지만 제목/본문에 키워드 핀 없음
                generated_tip(2, "Quiet voice", "Whisper the last story.", "Helps at bedtime."),
                generated_tip(3, "Bedtime lights", "Dim the lamp at bedtime."),
            ]
        )
        service = build_service(synthesizer)

        _, events = await run_stream(service, limit=4)

        assert tip_ids(events) == ["generated_1_0", "generated_1_3"]
        batch = batch_of(events)
        assert sorted(tip["id"] for tip in batch["tips"]) == ["generated_1_0", "generated_1_3"]
        assert all(tip["query_sim"] >= 0.40 for tip in batch["tips"])
        assert batch["source"] == "streaming"

    @pytest.mark.asyncio
    async def test_provider_failure_uses_fallback_tips(self):
        """모든 모델 실패 시 기본 팁도 같은 판정을 거쳐 전달"""
        synthesizer = FakeSynthesizer(
            error=AllProvidersFailedError(tier="standard", attempts=["gpt-4o"])
        )
        service = build_service(synthesizer)

        result, events = await run_stream(service, limit=3)

        assert len(result) == 2
        assert all(tip["id"].startswith("fallback_") for tip in result)
        assert len(tip_ids(events)) == 2
        assert batch_of(events)["source"] == "streaming"

    @pytest.mark.asyncio
    async def test_no_tips_above_floor(self):
        synthesizer = FakeSynthesizer(
            tips=[generated_tip(0, "Morning routine", "Lay out clothes.")]
        )
        service = build_service(synthesizer)

        result, events = await run_stream(service, limit=3)

        assert result == []
        assert tip_ids(events) == []
        assert batch_of(events)["source"] == "no_results"


class TestStreamCancellation:
    @pytest.mark.asyncio
    async def test_cancel_stops_without_batch(self):
        """첫 생성 팁 이후 취소되면 batch/done 없이 빈 결과"""
        synthesizer = FakeSynthesizer(
            tips=[
                generated_tip(i, f"Bedtime song {i}", "Sing softly at bedtime.")
                for i in range(3)
            ]
        )
        service = build_service(synthesizer)
        state = {"cancelled": False}

        def on_event(event: dict) -> None:
            if event["type"] == "tip":
                state["cancelled"] = True

        result, events = await run_stream(
            service, is_cancelled=lambda: state["cancelled"], on_event=on_event
        )

        assert result == []
        assert tip_ids(events) == ["generated_1_0"]
        assert not any(event["type"] in ("batch", "done") for event in events)

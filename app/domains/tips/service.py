"""Tips 도메인 서비스

질의 판정 → 임베딩 → 검색/생성 → 점수 계산 → 결과 구성을 조율합니다.

모드:
- generate: 생성만 (최대 5개)
- database: 저장된 팁 검색만 (최대 3개)
- hybrid: 검색 후 결과가 없으면 생성 (각 최대 3개)

키워드 핀과 질의 임베딩은 항상 원본 질의로 계산하고,
리프레이밍된 질의는 생성 프롬프트에만 사용합니다.
"""

import asyncio
import hashlib
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import BaseAPIException
from app.core.llm import AllProvidersFailedError
from app.core.logging import get_logger
from app.domains.survey.repository import SurveyRepository
from app.domains.survey.scoring import apply_survey_scoring, build_survey_context
from app.domains.tips.embedding.gateway import EmbeddingGateway, get_embedding_gateway
from app.domains.tips.exceptions import (
    InvalidInteractionException,
    InvalidTipPayloadException,
    QueryRejectedException,
    TipNotFoundException,
)
from app.domains.tips.guardrails import (
    GuardrailVerdict,
    classify,
    soft_reframe,
    suggestions_for,
)
from app.domains.tips.interactions.service import (
    InteractionLedger,
    InteractionResult,
    is_valid_interaction_type,
)
from app.domains.tips.preferences.service import PreferenceState, PreferenceStore
from app.domains.tips.repository import TipRepository
from app.domains.tips.scoring.keywords import extract_query_keywords
from app.domains.tips.scoring.scorer import RetrievalScorer
from app.domains.tips.synthesis import TipSynthesizer, build_fallback_tips
from app.domains.tips.types import (
    GeneratedTip,
    PopularTip,
    RankedTip,
    TipCandidate,
    TipsResult,
)

logger = get_logger(__name__)

GENERATE_MODE_LIMIT = 5
DATABASE_MODE_LIMIT = 3
HYBRID_MODE_LIMIT = 3
SURVEY_MODE_LIMIT = 5
GENERATION_OVERSAMPLE = 3

MAX_TITLE_LENGTH = 100
MAX_STORED_CATEGORIES = 12
GENERATED_ID_PREFIXES = ("generated_", "fallback_")

EventEmitter = Callable[[dict], Awaitable[None]]
CancelCheck = Callable[[], bool]


@dataclass(frozen=True)
class ScreenedQuery:
    """가드레일을 통과한 질의

    Attributes:
        original: 사용자가 입력한 질의
        effective: 생성 프롬프트에 넣을 질의 (리프레이밍 시 맥락 지시문 포함)
        verdict: 가드레일 판정
        policy: 적용한 정책 이름
    """

    original: str
    effective: str
    verdict: GuardrailVerdict
    policy: str

    @property
    def reframed(self) -> bool:
        return self.original != self.effective


def content_hash_for(title: str, body: str, details: str) -> str:
    return hashlib.sha256(f"{title}|{body}|{details}".encode("utf-8")).hexdigest()


def normalize_tip_categories(raw: Any) -> list[tuple[str, str, float]]:
    """생성 팁 카테고리 정규화

    문자열("activities") 또는 객체({type, value|name|category, confidence})를
    (type, value, confidence)로 변환합니다. 앞의 12개만 사용합니다.
    """
    if not isinstance(raw, list):
        return []

    rows: list[tuple[str, str, float]] = []
    for item in raw[:MAX_STORED_CATEGORIES]:
        if not item:
            continue
        if isinstance(item, str):
            value = item.strip().lower()
            if value:
                rows.append(("content", value, 1.0))
            continue
        if not isinstance(item, dict):
            continue

        category_type = str(item.get("type") or "content").strip().lower()
        value = item.get("value")
        if value is None:
            value = item.get("name")
        if value is None:
            value = item.get("category")
        value = str(value or "").strip().lower()
        if not value:
            continue

        confidence = item.get("confidence")
        if isinstance(confidence, (int, float)) and not isinstance(confidence, bool):
            confidence = max(0.0, min(1.0, float(confidence)))
        else:
            confidence = 1.0
        rows.append((category_type, value, confidence))
    return rows


def tip_embedding_text(title: str, body: str, details: Optional[str]) -> str:
    return " ".join(part for part in (title, body, details) if part)


class TipsService:
    """팁 조회/생성/상호작용 서비스

    Example:
        service = TipsService(session)
        result = await service.get_enhanced_tips(
            user_id=1, prompt="bedtime routine for my 3 year old"
        )
    """

    def __init__(
        self,
        session: AsyncSession,
        gateway: Optional[EmbeddingGateway] = None,
        synthesizer: Optional[TipSynthesizer] = None,
        scorer: Optional[RetrievalScorer] = None,
        preference_store: Optional[PreferenceStore] = None,
    ):
        self.session = session
        self.gateway = gateway or get_embedding_gateway()
        self.synthesizer = synthesizer or TipSynthesizer()
        self.scorer = scorer or RetrievalScorer()
        self.preferences = preference_store or PreferenceStore(session)
        self.tips = TipRepository(session)
        self.surveys = SurveyRepository(session)
        self.ledger = InteractionLedger(session, preference_store=self.preferences)

    # --- 질의 판정 ---

    def screen_query(self, prompt: str, policy: Optional[str] = None) -> ScreenedQuery:
        """가드레일 판정 + 소프트 리프레이밍

        Raises:
            QueryRejectedException: 범위 밖 질의 (리프레이밍 대상도 아닌 경우)
        """
        policy_name = policy or settings.guardrail_policy_default
        verdict = classify(prompt, policy_name)
        if verdict.ok:
            return ScreenedQuery(prompt, prompt, verdict, policy_name)

        reframed = soft_reframe(prompt, verdict)
        if reframed is not None:
            logger.info(f"Soft-reframed query as parenting: {prompt!r}")
            return ScreenedQuery(prompt, reframed, verdict, policy_name)

        logger.info(
            f"Rejected query by {policy_name} policy "
            f"(category={verdict.category}): {prompt!r}"
        )
        raise QueryRejectedException(
            category=verdict.category,
            message=verdict.message,
            original_query=prompt,
            suggestions=suggestions_for(policy_name),
        )

    # --- 검색 / 생성 ---

    async def _load_state(self, user_id: Optional[int]) -> PreferenceState:
        return await self.preferences.get_state(user_id)

    async def search_tips(
        self,
        query_embedding: list[float],
        keywords: list[str],
        state: PreferenceState,
        limit: int,
        user_id: Optional[int] = None,
        content_preferences: Optional[Sequence[str]] = None,
    ) -> list[RankedTip]:
        """저장된 팁 검색 후 점수 계산"""
        candidates = await self.tips.get_candidates(
            user_id=user_id,
            query_embedding=query_embedding,
            category_filter=list(content_preferences or []) or None,
        )
        ranked = self.scorer.score_and_rank(
            query_embedding,
            candidates,
            user_preference=state.preference,
            dislike_centroid=state.dislike_centroid,
            keyword_pins=keywords,
            limit=limit,
        )
        logger.info(
            f"Retrieved {len(ranked)}/{len(candidates)} on-topic tips "
            f"(personalized={state.is_personalized})"
        )
        return ranked

    async def _to_candidates(
        self, generated: Sequence[GeneratedTip]
    ) -> list[TipCandidate]:
        embeddings = await asyncio.gather(
            *(
                self.gateway.embed(
                    tip_embedding_text(tip["title"], tip["body"], tip["details"])
                )
                for tip in generated
            )
        )
        return [
            TipCandidate(
                id=tip["id"],
                title=tip["title"],
                body=tip["body"],
                details=tip["details"],
                category="generated",
                categories=list(tip["categories"]),
                embedding=embedding,
                source="ai",
            )
            for tip, embedding in zip(generated, embeddings)
        ]

    async def generate_tips(
        self,
        screened: ScreenedQuery,
        query_embedding: list[float],
        keywords: list[str],
        state: PreferenceState,
        limit: int,
        content_preferences: Optional[Sequence[str]] = None,
        preference_context: str = "",
        prompt_suffix: str = "",
    ) -> list[RankedTip]:
        """생성 팁을 검색 팁과 동일한 점수 파이프라인으로 걸러냄

        limit의 3배를 요청한 뒤 관련도 하한선과 키워드 핀으로 필터링합니다.
        """
        generated = await self.synthesizer.generate_batch(
            query=f"{screened.effective}{prompt_suffix}",
            count=limit * GENERATION_OVERSAMPLE,
            content_preferences=content_preferences,
            preference_context=preference_context,
            keywords=keywords,
            display_query=screened.original,
        )
        if not generated:
            return []

        candidates = await self._to_candidates(generated)
        ranked = self.scorer.score_and_rank(
            query_embedding,
            candidates,
            user_preference=state.preference,
            dislike_centroid=state.dislike_centroid,
            keyword_pins=keywords,
            limit=limit,
        )
        logger.info(
            f"Kept {len(ranked)}/{len(generated)} generated tips after on-topic gating"
        )
        return ranked

    async def _preference_context(
        self, user_id: Optional[int], state: PreferenceState
    ) -> str:
        if user_id is None or not state.is_personalized:
            return ""
        return await self.preferences.analyze_user_preferences(user_id)

    async def get_enhanced_tips(
        self,
        user_id: Optional[int],
        prompt: str,
        content_preferences: Optional[Sequence[str]] = None,
        generate_mode: str = "hybrid",
        policy: Optional[str] = None,
    ) -> TipsResult:
        """모드별 팁 조회/생성

        Raises:
            QueryRejectedException: 범위 밖 질의 (프로바이더 호출 없음)
            EmbeddingFailedException: 질의 임베딩 실패
        """
        screened = self.screen_query(prompt, policy)
        logger.info(
            f"Validated parenting query (mode={generate_mode}) "
            f"original={prompt!r} reframed={screened.reframed}"
        )

        keywords = extract_query_keywords(prompt)
        query_embedding = await self.gateway.embed(prompt)
        state = await self._load_state(user_id)

        if generate_mode == "generate":
            context = await self._preference_context(user_id, state)
            tips = await self.generate_tips(
                screened, query_embedding, keywords, state,
                GENERATE_MODE_LIMIT, content_preferences, context,
            )
            if tips:
                message = (
                    f'Generated {len(tips)} personalized parenting tips about "{prompt}" just for you!'
                    if state.is_personalized
                    else f'Generated {len(tips)} parenting tips about "{prompt}"'
                )
                return self._result(
                    tips, state.is_personalized, True, "ai_generated",
                    message, prompt, context,
                )

        elif generate_mode == "database":
            tips = await self.search_tips(
                query_embedding, keywords, state, DATABASE_MODE_LIMIT,
                user_id, content_preferences,
            )
            if tips:
                return self._result(
                    tips, state.is_personalized, False, "database_search",
                    f'Found {len(tips)} relevant parenting tips about "{prompt}" in our database',
                    prompt,
                )

        else:
            tips = await self.search_tips(
                query_embedding, keywords, state, HYBRID_MODE_LIMIT,
                user_id, content_preferences,
            )
            if tips:
                message = (
                    f'Found {len(tips)} relevant parenting tips about "{prompt}" tailored to your preferences'
                    if state.is_personalized
                    else f'Found {len(tips)} relevant parenting tips about "{prompt}"'
                )
                return self._result(
                    tips, state.is_personalized, False, "database_found",
                    message, prompt,
                )

            logger.info(f"No stored tips matched, generating for {prompt!r}")
            context = await self._preference_context(user_id, state)
            tips = await self.generate_tips(
                screened, query_embedding, keywords, state,
                HYBRID_MODE_LIMIT, content_preferences, context,
            )
            if tips:
                message = (
                    f'Generated {len(tips)} personalized parenting tips about "{prompt}" just for you!'
                    if state.is_personalized
                    else f'Generated {len(tips)} custom parenting tips about "{prompt}"'
                )
                return self._result(
                    tips, state.is_personalized, True, "ai_generated_fallback",
                    message, prompt, context,
                )

        logger.info(f"No on-topic tips found or generated for {prompt!r}")
        return self._result(
            [], state.is_personalized, False, "no_results",
            f"Sorry, I couldn't find or generate parenting tips about \"{prompt}\". "
            "Try asking about more general parenting topics like bedtime routines, "
            "activities for your child's age, or developmental milestones.",
            prompt,
        )

    async def generate_only(
        self,
        user_id: Optional[int],
        prompt: str,
        count: int = GENERATE_MODE_LIMIT,
        content_preferences: Optional[Sequence[str]] = None,
        policy: Optional[str] = None,
    ) -> tuple[TipsResult, float]:
        """생성 전용

        Returns:
            (결과, 평균 personal_score)
        """
        screened = self.screen_query(prompt, policy)
        keywords = extract_query_keywords(prompt)
        query_embedding = await self.gateway.embed(prompt)
        state = await self._load_state(user_id)
        context = await self._preference_context(user_id, state)

        tips = await self.generate_tips(
            screened, query_embedding, keywords, state, count,
            content_preferences, context,
        )
        message = (
            f'Generated {len(tips)} personalized parenting tips about "{prompt}" based on your preferences!'
            if state.is_personalized
            else f'Generated {len(tips)} parenting tips about "{prompt}"'
        )
        avg_personal_match = (
            sum(tip["personal_score"] for tip in tips) / len(tips) if tips else 0.0
        )
        result = self._result(
            tips, state.is_personalized, True, "ai_generated", message, prompt, context
        )
        return result, avg_personal_match

    async def get_survey_enhanced_tips(
        self,
        user_id: int,
        prompt: str,
        content_preferences: Optional[Sequence[str]] = None,
        generate_mode: str = "hybrid",
        policy: Optional[str] = None,
    ) -> tuple[TipsResult, str, bool]:
        """설문 응답을 반영한 팁 조회/생성

        저장된 팁을 먼저 검색하고(database, hybrid) 결과가 없으면 생성합니다(generate, hybrid).
        설문이 있으면 선호 도메인을 합치고 생성 프롬프트에 설문 문맥을 덧붙이며
        키워드 가산점으로 재정렬합니다.

        Returns:
            (결과, 설문 문맥, 설문 반영 여부)
        """
        screened = self.screen_query(prompt, policy)
        keywords = extract_query_keywords(prompt)
        query_embedding = await self.gateway.embed(prompt)
        state = await self._load_state(user_id)

        survey = await self.surveys.get(user_id)
        has_survey = survey is not None
        merged_preferences = list(dict.fromkeys(content_preferences or []))
        survey_context = ""
        if survey is not None:
            merged_preferences = list(
                dict.fromkeys([*merged_preferences, *(survey.content_preferences or [])])
            )
            survey_context = build_survey_context(
                survey.content_preferences,
                survey.challenge_areas,
                survey.parenting_goals,
                survey.current_challenge,
            )

        is_personalized = state.is_personalized or has_survey

        def boosted(tips: list[RankedTip]) -> list[RankedTip]:
            if survey is None:
                return tips
            return apply_survey_scoring(  # type: ignore[return-value]
                tips,
                survey.content_preferences,
                survey.challenge_areas,
                survey.parenting_goals,
            )

        if generate_mode in ("database", "hybrid"):
            tips = await self.search_tips(
                query_embedding, keywords, state, SURVEY_MODE_LIMIT,
                user_id, merged_preferences,
            )
            if tips:
                result = self._result(
                    boosted(tips), is_personalized, False,
                    "database_search_with_survey",
                    f'Found {len(tips)} relevant parenting tips about "{prompt}"',
                    prompt,
                )
                return result, survey_context, has_survey

        if generate_mode in ("generate", "hybrid"):
            context = await self._preference_context(user_id, state)
            suffix = f"\n\nUser Context: {survey_context}" if survey_context else ""
            tips = await self.generate_tips(
                screened, query_embedding, keywords, state, SURVEY_MODE_LIMIT,
                merged_preferences, context, prompt_suffix=suffix,
            )
            if tips:
                message = (
                    f'Generated {len(tips)} personalized parenting tips about "{prompt}" based on your survey preferences!'
                    if has_survey
                    else f'Generated {len(tips)} parenting tips about "{prompt}"'
                )
                result = self._result(
                    boosted(tips), is_personalized, True,
                    "ai_generated_with_survey", message, prompt, context,
                )
                return result, survey_context, has_survey

        result = self._result(
            [], is_personalized, False, "no_results",
            f"Sorry, I couldn't find parenting tips about \"{prompt}\". "
            "Try asking about bedtime routines, activities, or developmental milestones.",
            prompt,
        )
        return result, survey_context, has_survey

    @staticmethod
    def _result(
        tips: list[RankedTip],
        is_personalized: bool,
        is_generated: bool,
        source: str,
        message: str,
        original_query: str,
        preference_context: Optional[str] = None,
    ) -> TipsResult:
        return TipsResult(
            tips=tips,
            is_personalized=is_personalized,
            is_generated=is_generated,
            source=source,
            message=message,
            original_query=original_query,
            preference_context=preference_context or None,
        )

    # --- 추천 / 인기 ---

    async def get_popular(
        self, limit: int = 10, exclude_user_id: Optional[int] = None
    ) -> list[PopularTip]:
        rows = await self.tips.get_popular(limit=limit, exclude_user_id=exclude_user_id)
        return [
            PopularTip(
                id=str(tip.id),
                title=tip.title,
                body=tip.body,
                details=tip.details,
                category=tip.category,
                source=tip.source,
                like_count=like_count,
            )
            for tip, like_count in rows
        ]

    async def get_recommendations(
        self, user_id: int, limit: int = 10
    ) -> tuple[list[Any], bool]:
        """선호 벡터 기반 추천 피드

        선호 프로필이 없거나 후보가 없으면 인기 팁으로 대체합니다.

        Returns:
            (팁 목록, 개인화 여부)
        """
        state = await self._load_state(user_id)
        if state.preference is None:
            logger.info(
                f"No preference profile for user_id={user_id}, "
                "falling back to popular tips"
            )
            return list(await self.get_popular(limit)), False

        candidates = await self.tips.get_candidates(
            user_id=user_id, query_embedding=state.preference
        )
        if not candidates:
            logger.info(f"No unseen tips for user_id={user_id}, using popular tips")
            return list(await self.get_popular(limit, exclude_user_id=user_id)), False

        ranked = self.scorer.rank_by_preference(
            state.preference,
            candidates,
            dislike_centroid=state.dislike_centroid,
            limit=limit,
        )
        return list(ranked), True

    # --- 생성 팁 저장 / 상호작용 ---

    async def upsert_generated_tip(self, payload: Optional[dict]) -> int:
        """생성 팁 저장 (동일 내용은 기존 ID 재사용)

        Raises:
            InvalidTipPayloadException: title/body 누락
            EmbeddingFailedException: 임베딩 생성 실패
        """
        if not payload or not payload.get("title") or not payload.get("body"):
            raise InvalidTipPayloadException()

        title = str(payload["title"]).strip()[:MAX_TITLE_LENGTH]
        body = str(payload["body"]).strip()
        details = str(payload.get("details") or "").strip()
        content_hash = content_hash_for(title, body, details)

        existing = await self.tips.get_by_content_hash(content_hash)
        if existing is not None:
            logger.debug(f"Reusing stored tip id={existing.id} for generated tip")
            return int(existing.id)

        tip_id = await self.tips.insert_tip(
            title=title,
            body=body,
            details=details or None,
            category="generated",
            source="ai",
            content_hash=content_hash,
        )
        await self.tips.add_categories(
            tip_id, normalize_tip_categories(payload.get("categories"))
        )

        if not await self.tips.has_embedding(tip_id):
            embedding = await self.gateway.embed_uncached(
                tip_embedding_text(title, body, details)
            )
            await self.tips.save_embedding(tip_id, embedding, settings.embedding_model)

        logger.info(f"Stored generated tip as id={tip_id}")
        return tip_id

    async def resolve_tip_id(
        self, tip_id: Any, tip_payload: Optional[dict] = None
    ) -> int:
        """요청의 팁 ID를 저장된 팁 ID로 변환

        "generated_..."/"fallback_..." ID는 payload로 먼저 저장합니다.

        Raises:
            TipNotFoundException: 숫자도 생성 ID도 아닌 경우
        """
        raw = str(tip_id).strip() if tip_id is not None else ""
        if raw.startswith(GENERATED_ID_PREFIXES):
            return await self.upsert_generated_tip(tip_payload)
        if raw.isdigit():
            return int(raw)
        raise TipNotFoundException(raw or None)

    async def record_interaction(
        self,
        user_id: int,
        tip_id: Any,
        interaction_type: str,
        tip_payload: Optional[dict] = None,
    ) -> InteractionResult:
        """상호작용 기록 (생성 팁 ID는 먼저 저장)

        Raises:
            InvalidInteractionException: 지원하지 않는 유형
            InvalidTipPayloadException: 생성 팁 payload 누락
            TipNotFoundException, UserNotFoundException
        """
        if not is_valid_interaction_type(interaction_type):
            raise InvalidInteractionException(interaction_type)
        stored_id = await self.resolve_tip_id(tip_id, tip_payload)
        return await self.ledger.record_interaction(user_id, stored_id, interaction_type)

    async def record_batch(self, user_id: int, items: Iterable[dict]) -> int:
        """상호작용 일괄 기록

        항목마다 savepoint를 두고, 잘못된 항목이나 실패한 항목은 건너뜁니다.

        Returns:
            기록된 항목 수
        """
        saved = 0
        for item in items:
            interaction_type = item.get("interaction_type") or item.get("kind")
            tip_id = item.get("tip_id")
            if tip_id is None or not is_valid_interaction_type(interaction_type):
                logger.debug(f"Skipping invalid batch interaction: {item}")
                continue
            try:
                async with self.session.begin_nested():
                    await self.record_interaction(
                        user_id, tip_id, interaction_type, item.get("tip_payload")
                    )
                saved += 1
            except (BaseAPIException, SQLAlchemyError) as e:
                logger.warning(
                    f"Batch interaction failed for user_id={user_id}, "
                    f"tip_id={tip_id}: {e}"
                )
        logger.info(f"Saved {saved} batch interactions for user_id={user_id}")
        return saved

    async def get_profile_summary(self, user_id: int) -> dict:
        return await self.preferences.get_profile_summary(user_id)

    # --- 스트리밍 ---

    async def stream_tips(
        self,
        user_id: Optional[int],
        prompt: str,
        emit: EventEmitter,
        content_preferences: Optional[Sequence[str]] = None,
        limit: int = GENERATE_MODE_LIMIT,
        policy: Optional[str] = None,
        is_cancelled: Optional[CancelCheck] = None,
    ) -> list[RankedTip]:
        """스트리밍 팁 생성

        이벤트 순서: phase(validating) → phase(retrieving) → tip* →
        phase(generating) → tip* → phase(scoring) → batch → done

        검색 결과가 limit을 채우면 생성 단계는 건너뛰고, 아니면 남은 수만큼만 생성합니다.
        tip 이벤트로 보낸 팁은 모두 batch에 포함됩니다.

        생성 팁은 한 줄씩 도착할 때마다 점수를 계산해 통과한 팁만 tip 이벤트로 보냅니다.
        모든 모델이 실패하면 기본 팁을 같은 방식으로 처리합니다.

        Raises:
            QueryRejectedException: 범위 밖 질의
            EmbeddingFailedException: 질의 임베딩 실패
        """
        cancelled = is_cancelled or (lambda: False)
        policy_name = policy or settings.guardrail_policy_stream

        await emit({"type": "phase", "phase": "validating"})
        screened = self.screen_query(prompt, policy_name)
        keywords = extract_query_keywords(prompt)

        await emit({"type": "phase", "phase": "retrieving"})
        query_embedding = await self.gateway.embed(prompt)
        state = await self._load_state(user_id)
        stored = await self.tips.get_candidates(
            user_id=user_id,
            query_embedding=query_embedding,
            category_filter=list(content_preferences or []) or None,
        )
        retrieved = self.scorer.score_and_rank(
            query_embedding,
            stored,
            user_preference=state.preference,
            dislike_centroid=state.dislike_centroid,
            keyword_pins=keywords,
            limit=limit,
        )
        retrieved_ids = {tip["id"] for tip in retrieved}
        accepted = [candidate for candidate in stored if candidate.id in retrieved_ids]
        for tip in retrieved:
            if cancelled():
                return []
            await emit({"type": "tip", "tip": tip})

        remaining = limit - len(accepted)
        if remaining > 0:
            await emit({"type": "phase", "phase": "generating"})
            await self._stream_generated(
                screened,
                query_embedding,
                keywords,
                state,
                accepted,
                limit,
                emit,
                content_preferences,
                await self._preference_context(user_id, state),
                cancelled,
            )
        else:
            logger.info(f"Retrieval filled {limit} tips, skipping generation")

        if cancelled():
            logger.info(f"Stream cancelled before scoring for {prompt!r}")
            return []

        await emit({"type": "phase", "phase": "scoring"})
        final = self.scorer.score_and_rank(
            query_embedding,
            accepted,
            user_preference=state.preference,
            dislike_centroid=state.dislike_centroid,
            keyword_pins=keywords,
            limit=limit,
        )
        await emit(
            {
                "type": "batch",
                "tips": final,
                "is_personalized": state.is_personalized,
                "source": "streaming" if final else "no_results",
                "original_query": prompt,
            }
        )
        await emit({"type": "done", "count": len(final)})
        return final

    async def _stream_generated(
        self,
        screened: ScreenedQuery,
        query_embedding: list[float],
        keywords: list[str],
        state: PreferenceState,
        accepted: list[TipCandidate],
        limit: int,
        emit: EventEmitter,
        content_preferences: Optional[Sequence[str]],
        preference_context: str,
        cancelled: CancelCheck,
    ) -> None:
        """남은 자리만큼 팁을 스트리밍 생성해 accepted에 추가

        생성 팁은 도착할 때마다 검색 팁과 같은 기준으로 점수를 계산하고,
        통과한 팁만 tip 이벤트로 보냅니다. accepted는 limit을 넘지 않습니다.
        """

        async def on_generated(tip: GeneratedTip) -> None:
            if len(accepted) >= limit or cancelled():
                return
            candidates = await self._to_candidates([tip])
            ranked = self.scorer.score_and_rank(
                query_embedding,
                candidates,
                user_preference=state.preference,
                dislike_centroid=state.dislike_centroid,
                keyword_pins=keywords,
            )
            if not ranked or cancelled():
                logger.debug(f"Dropped off-topic streamed tip: {tip['title']!r}")
                return
            accepted.append(candidates[0])
            await emit({"type": "tip", "tip": ranked[0]})

        remaining = limit - len(accepted)
        try:
            await self.synthesizer.stream_tips(
                query=screened.effective,
                on_tip=on_generated,
                count=remaining,
                content_preferences=content_preferences,
                preference_context=preference_context,
                keywords=keywords,
                is_cancelled=cancelled,
                display_query=screened.original,
            )
        except AllProvidersFailedError as e:
            logger.warning(f"Streaming generation failed, using fallback tips: {e}")
            for fallback in build_fallback_tips(screened.original, remaining):
                if cancelled():
                    break
                await on_generated(fallback)

"""선호 벡터 계산 단위 테스트"""

from unittest.mock import AsyncMock, MagicMock

import numpy as np
import pytest

from app.domains.tips.exceptions import EmbeddingDimensionMismatchException
from app.domains.tips.preferences.service import (
    PreferenceState,
    PreferenceStore,
    blend_with_survey,
    combine_preference,
    survey_weight_for,
)


class TestCombinePreference:
    def test_likes_only(self):
        assert combine_preference([1.0, 0.0], None, 0.6) == [1.0, 0.0]

    def test_dislikes_only(self):
        assert combine_preference(None, [0.0, 1.0], 0.6) == [0.0, 1.0]

    def test_likes_minus_weighted_dislikes(self):
        pref = combine_preference([1.0, 0.5], [0.0, 0.5], 0.6)

        assert pref == pytest.approx([1.0, 0.2])

    def test_no_history(self):
        assert combine_preference(None, None, 0.6) is None

    def test_dimension_mismatch(self):
        with pytest.raises(EmbeddingDimensionMismatchException):
            combine_preference([1.0, 0.0], [1.0, 0.0, 0.0], 0.6)


class TestSurveyBlend:
    """설문 벡터 혼합 테스트"""

    @pytest.mark.parametrize(
        "interactions,expected",
        [(0, 0.7), (5, 0.6), (20, 0.3), (100, 0.3)],
    )
    def test_survey_weight_decays_to_floor(self, interactions, expected):
        assert survey_weight_for(interactions) == pytest.approx(expected)

    def test_blend_is_unit_norm(self):
        vector = blend_with_survey([3.0, 0.0], [0.0, 4.0], 0.7)

        assert np.linalg.norm(vector) == pytest.approx(1.0)
        # 설문 쪽 가중치가 더 크므로 y 성분이 큼
        assert vector[1] > vector[0]

    def test_survey_only(self):
        assert blend_with_survey(None, [0.0, 2.0], 1.0) == pytest.approx([0.0, 1.0])


def test_preference_state_personalization():
    assert PreferenceState(preference=None, dislike_centroid=None).is_personalized is False
    assert PreferenceState(preference=[1.0], dislike_centroid=None).is_personalized is True


class TestRecomputeProfile:
    """선호 벡터 재계산 (리포지토리 Mock)"""

    @pytest.fixture
    def store(self):
        store = PreferenceStore(MagicMock(), alpha=0.6)
        store.interactions = AsyncMock()
        store.profiles = AsyncMock()
        return store

    @pytest.mark.asyncio
    async def test_no_history_resets_count_only(self, store):
        store.interactions.get_embeddings_by_type.return_value = []
        store.profiles.get.return_value = MagicMock(survey_embedding=None)

        assert await store.recompute_profile(1) is None
        store.profiles.upsert.assert_awaited_once_with(1, total_interactions=0)

    @pytest.mark.asyncio
    async def test_no_history_without_profile_writes_nothing(self, store):
        store.interactions.get_embeddings_by_type.return_value = []
        store.profiles.get.return_value = None

        assert await store.recompute_profile(1) is None
        store.profiles.upsert.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_dislikes_only_is_persisted_normalized(self, store):
        store.interactions.get_embeddings_by_type.side_effect = [[], [[0.0, 3.0]]]
        store.profiles.get.return_value = None

        vector = await store.recompute_profile(1)

        assert vector == pytest.approx([0.0, 1.0])
        store.profiles.upsert.assert_awaited_once_with(
            1, preference_embedding=vector, total_interactions=1
        )

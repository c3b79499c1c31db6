"""설문 유틸리티 및 가산점 단위 테스트"""

import pytest
from pydantic import ValidationError

from app.domains.survey.lexicon import get_descriptive_text
from app.domains.survey.schemas import SurveyData
from app.domains.survey.scoring import (
    apply_survey_scoring,
    build_survey_context,
    survey_boost,
)
from app.domains.survey.utils import parse_preference_list


class TestParsePreferenceList:
    """설문 선호 목록 파싱 테스트"""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            (None, []),
            ("", []),
            ([], []),
            (["sleep", " ", "routines"], ["sleep", "routines"]),
            ('["sleep", "routines"]', ["sleep", "routines"]),
            ("activities, discipline", ["activities", "discipline"]),
            ("['sleep', 'potty']", ["sleep", "potty"]),
            ('"sleep"', ["sleep"]),
            (3, ["3"]),
        ],
    )
    def test_parse(self, raw, expected):
        assert parse_preference_list(raw) == expected


class TestSurveyBoost:
    """설문 키워드 가산점 테스트"""

    def test_boost_per_matched_keyword(self):
        boost = survey_boost(
            "A calm bedtime routine", ["sleep"], ["bedtime"], ["patience"]
        )

        # sleep: bedtime(0.05), bedtime: bedtime(0.08), patience: calm(0.06)
        assert boost == pytest.approx(0.05 + 0.08 + 0.06)

    def test_unknown_options_add_nothing(self):
        assert survey_boost("A calm bedtime routine", ["unknown"], [], []) == 0.0

    def test_apply_caps_score_and_marks_boost(self):
        tips = [
            {"id": "1", "title": "Snack plan", "body": "Cut fruit", "similarity_score": 0.7},
            {"id": "2", "title": "Bedtime", "body": "Sleep cues", "similarity_score": 0.98},
        ]

        boosted = apply_survey_scoring(tips, ["sleep"], [], [])

        assert [tip["id"] for tip in boosted] == ["2", "1"]
        assert boosted[0]["similarity_score"] == 1.0
        assert boosted[0]["has_survey_boost"] is True
        assert boosted[1]["survey_boost"] == 0.0
        assert boosted[1]["has_survey_boost"] is False

    def test_strong_matches_stay_first(self):
        """가산점이 커도 강한 매칭 그룹 순서는 유지"""
        tips = [
            {"id": "strong", "title": "Walk", "body": "Talk", "similarity_score": 0.6,
             "is_strong_match": True},
            {"id": "weak", "title": "Bedtime", "body": "Sleep nap", "similarity_score": 0.55,
             "is_strong_match": False},
        ]

        boosted = apply_survey_scoring(tips, ["sleep"], [], [])

        assert [tip["id"] for tip in boosted] == ["strong", "weak"]

    def test_accepts_json_string_preferences(self):
        tips = [{"id": "1", "title": "Bedtime", "body": "", "similarity_score": 0.5}]

        boosted = apply_survey_scoring(tips, '["sleep"]', None, "")

        assert boosted[0]["survey_boost"] == pytest.approx(0.05)


class TestSurveyContext:
    def test_full_context(self):
        context = build_survey_context(
            ["sleep"], ["bedtime"], ["patience"], "Wakes up at 5am"
        )

        assert context == (
            "User prefers sleep type content. "
            "Current challenges include: bedtime. "
            "Parenting goals: patience. "
            "Specific current challenge: Wakes up at 5am."
        )

    def test_empty_context(self):
        assert build_survey_context([], None, "", None) == ""


class TestSurveySchemas:
    def test_survey_data_parses_string_lists(self):
        data = SurveyData(
            content_preferences="sleep, routines",
            challenge_areas='["bedtime"]',
            engagement_frequency="daily",
        )

        assert data.content_preferences == ["sleep", "routines"]
        assert data.challenge_areas == ["bedtime"]
        assert data.parenting_goals == []

    def test_engagement_frequency_required(self):
        with pytest.raises(ValidationError):
            SurveyData(content_preferences=["sleep"])


def test_descriptive_text_fallback():
    assert get_descriptive_text("content", "sleep").startswith("sleep help")
    assert get_descriptive_text("goal", "unknown") == "goal unknown parenting help advice"

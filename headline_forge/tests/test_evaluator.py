"""
Tests for headline quality evaluation.

Tests:
- Six-axis scores stay within bounds and are deterministic
- Hard gate messages (length, include/exclude, red flags)
- Reason ordering and recommendation limits
- Caching and the error fallback
"""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from headline_forge.analyzer import analyze_content
from headline_forge.cache import CacheManager
from headline_forge.evaluator import (
    AXES,
    SCORE_WEIGHTS,
    TitleQualityEvaluator,
    overall_score,
    split_words,
)
from headline_forge.models import Filters, Guidelines


ARTICLE = """# 생성형 AI 반도체 시장, 2025년 30% 성장 전망

삼성전자와 NVIDIA가 생성형 AI 반도체 경쟁을 본격화하고 있다. 시장조사기관에 따르면 생성형 AI 반도체 시장은 올해 30% 성장해 500억 달러 규모에 이를 전망이다. 업계는 AI 수요 증가가 반도체 업황 개선을 이끌 것으로 기대한다.

## 시장 동향

NVIDIA는 데이터센터용 GPU 판매 확대로 매출이 3배 증가했다. 삼성전자는 HBM 생산을 확대하며 NVIDIA 공급망 진입을 추진하고 있다.

## 향후 전망

전문가들은 생성형 AI 기술 혁신이 반도체 시장 성장을 지속적으로 견인할 것이라고 분석했다. 다만 공급 부족 우려도 제기된다.
"""

# Mostly Hangul with one Latin token, numbers, keywords and an entity
PASSING_TITLE = "생성형 AI 반도체 시장 30% 성장 전망과 삼성전자 생산 확대 움직임"

FIXED_NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def make_evaluator(filters=None, guidelines=None, cache=None, with_analysis=True):
    analysis = analyze_content(ARTICLE, ["AI", "반도체"], fingerprint="article") if with_analysis else None
    return TitleQualityEvaluator(analysis, filters, guidelines, cache=cache, clock=lambda: FIXED_NOW)


class TestScoring:
    """Tests for the axis scores."""

    def test_weights_sum_to_one(self):
        assert sum(SCORE_WEIGHTS.values()) == pytest.approx(1.0)

    def test_overall_is_weighted_average(self):
        assert overall_score({axis: 1.0 for axis in AXES}) == pytest.approx(1.0)
        assert overall_score({"relevance": 0.6}) == pytest.approx(0.6)
        assert overall_score({}) == 0.0

    @pytest.mark.parametrize("title", [
        PASSING_TITLE,
        "",
        "AI",
        "!!!!!!!!!!!!",
        "충격 대박 소름 미쳤다 AI 반도체 레전드",
        "A" * 150,
        "AI 반도체 시장?? 정말 놀라운 100% 성장!!",
    ])
    def test_scores_within_bounds(self, title):
        result = make_evaluator().evaluate_title(title)

        assert set(result.scores) == set(AXES)
        for score in result.scores.values():
            assert 0.0 <= score <= 1.0
        assert 0.0 <= result.overall_score <= 1.0

    def test_deterministic(self):
        first = make_evaluator().evaluate_title(PASSING_TITLE)
        second = make_evaluator().evaluate_title(PASSING_TITLE)

        assert first.to_dict() == second.to_dict()

    def test_relevance_without_analysis(self):
        evaluator = make_evaluator(with_analysis=False)

        assert evaluator.relevance_score(PASSING_TITLE) == pytest.approx(0.1)

    def test_relevant_title_scores_higher(self):
        evaluator = make_evaluator()

        assert evaluator.relevance_score(PASSING_TITLE) > evaluator.relevance_score("오늘의 날씨와 여행 소식 정리")

    def test_length_prefers_window(self):
        evaluator = make_evaluator()

        assert evaluator.length_score("AI 뉴스") < evaluator.length_score(PASSING_TITLE)

    def test_clickbait_lowers_compliance(self):
        evaluator = make_evaluator()

        assert evaluator.compliance_score("충격 AI 반도체 시장 전망") < evaluator.compliance_score(PASSING_TITLE)
        assert evaluator.compliance_score(PASSING_TITLE) == pytest.approx(0.8)

    def test_clickbait_check_can_be_disabled(self):
        strict = make_evaluator()
        relaxed = make_evaluator(guidelines=Guidelines(clickbait_avoidance=False))
        title = "놀라운 AI 반도체 시장 변화"

        assert relaxed.compliance_score(title) > strict.compliance_score(title)

    def test_split_words_keeps_edges(self):
        assert split_words(" AI 칩 ") == ["", "AI", "칩", ""]


class TestGate:
    """Tests for the hard filter gate."""

    def test_good_title_passes(self):
        result = make_evaluator().evaluate_title(PASSING_TITLE)

        assert result.failed_filters == []
        assert result.passes_filters is True
        assert result.overall_score >= 0.4

    def test_banned_keyword_fails_even_when_scores_are_fine(self):
        result = make_evaluator(filters=Filters(must_exclude=["충격"])).evaluate_title("충격적인 AI 반도체 시장 변화")

        assert result.passes_filters is False
        assert "금지 키워드 포함: 충격" in result.failed_filters
        assert "금지 키워드 포함: 충격" in result.reasons

    def test_length_violation(self):
        result = make_evaluator(filters=Filters(title_len={"min": 50, "max": 60})).evaluate_title(PASSING_TITLE)

        assert result.passes_filters is False
        assert result.failed_filters[0] == f"길이 기준 미달 ({len(PASSING_TITLE)}자, 기준: 50-60자)"

    def test_missing_required_keyword(self):
        result = make_evaluator(filters=Filters(must_include=["HBM", "AI"])).evaluate_title(PASSING_TITLE)

        assert "필수 키워드 누락: HBM" in result.failed_filters

    def test_phrase_rules(self):
        filters = Filters(phrase_include=["업계 분석"], phrase_exclude=["성장 전망"])
        result = make_evaluator(filters=filters).evaluate_title(PASSING_TITLE)

        assert "필수 구문 누락: 업계 분석" in result.failed_filters
        assert "금지 구문 포함: 성장 전망" in result.failed_filters

    def test_axis_minimum(self):
        result = make_evaluator(filters=Filters(min_engagement_score=0.99)).evaluate_title(PASSING_TITLE)

        assert any(f.startswith("참여도 점수 미달") for f in result.failed_filters)

    def test_mixed_script_red_flag(self):
        result = make_evaluator().evaluate_title("삼성전자 HBM 생산 확대 발표")

        assert "언어 일관성 부족" in result.failed_filters

    def test_meaningless_title(self):
        result = make_evaluator().evaluate_title("!!!!!!!!!!!!")

        assert "의미 없는 제목" in result.failed_filters
        assert "과도한 특수문자 사용" in result.failed_filters

    def test_repeated_words(self):
        result = make_evaluator().evaluate_title("AI AI AI AI AI 반도체")

        assert "중복 제목" in result.failed_filters


class TestExplanations:
    """Tests for reasons and recommendations."""

    def test_failed_filters_lead_the_reasons(self):
        result = make_evaluator(filters=Filters(must_include=["HBM"])).evaluate_title(PASSING_TITLE)

        assert result.reasons[:len(result.failed_filters)] == result.failed_filters
        assert len(result.reasons) > len(result.failed_filters)

    def test_recommendations_are_unique_and_capped(self):
        result = make_evaluator().evaluate_title("AI")

        assert 0 < len(result.recommendations) <= 8
        assert len(result.recommendations) == len(set(result.recommendations))

    def test_weakest_axis(self):
        result = make_evaluator().evaluate_title("AI")

        assert result.weakest_axis == min(result.scores, key=result.scores.get)

    def test_metadata(self):
        result = make_evaluator().evaluate_title(PASSING_TITLE)

        assert result.metadata["title_length"] == len(PASSING_TITLE)
        assert result.metadata["word_count"] == 11
        assert result.metadata["evaluated_at"] == FIXED_NOW.isoformat()


class TestEntryPoints:
    """Tests for batch helpers, caching and error handling."""

    def test_evaluate_titles_sorted(self):
        results = make_evaluator().evaluate_titles(["AI", PASSING_TITLE, "충격 AI 반도체 시장 전망"])
        overall = [r.overall_score for r in results]

        assert overall == sorted(overall, reverse=True)

    def test_best_passing_keeps_input_order(self):
        evaluator = make_evaluator()

        best = evaluator.best_passing(["충격 AI 반도체 시장 전망", PASSING_TITLE])

        assert best is not None
        assert best.title == PASSING_TITLE
        assert evaluator.best_passing(["AI", "대박"]) is None

    def test_result_is_cached(self):
        cache = CacheManager()
        evaluator = make_evaluator(cache=cache)

        first = evaluator.evaluate_title(PASSING_TITLE)
        second = evaluator.evaluate_title(PASSING_TITLE)

        assert first is second
        assert cache.caches["evaluation"].stats.hits == 1

    def test_different_filters_are_not_shared(self):
        cache = CacheManager()
        loose = make_evaluator(cache=cache).evaluate_title(PASSING_TITLE)
        strict = make_evaluator(filters=Filters(must_include=["HBM"]), cache=cache).evaluate_title(PASSING_TITLE)

        assert loose.passes_filters is True
        assert strict.passes_filters is False

    def test_error_yields_minimal_result(self):
        evaluator = make_evaluator()

        with patch.object(evaluator, "relevance_score", side_effect=RuntimeError("boom")):
            result = evaluator.evaluate_title(PASSING_TITLE)

        assert result.passes_filters is False
        assert all(score == pytest.approx(0.1) for score in result.scores.values())
        assert result.failed_filters == ["평가 중 오류 발생: boom"]

"""
Tests for headline orchestration.

Tests:
- Provider selection order and the quality-gated pipeline
- Each fallback stage and its step trace
- Emergency response on unexpected errors
- Diagnostics visibility and monitoring
"""

import asyncio
from unittest.mock import AsyncMock

from headline_forge.config import Settings
from headline_forge.context import PipelineContext
from headline_forge.models import EnhanceRequest, Filters
from headline_forge.orchestrator import (
    EMERGENCY_ERROR,
    FINAL_DEFAULT_TITLE,
    FallbackTrace,
    HeadlineOrchestrator,
    emergency_title,
    filter_candidates_by_rules,
    score_ai_candidates,
    strip_auto_marker,
)
from headline_forge.providers import TextProvider


ARTICLE = """# 생성형 AI 반도체 시장, 2025년 30% 성장 전망

삼성전자와 NVIDIA가 생성형 AI 반도체 경쟁을 본격화하고 있다. 시장조사기관에 따르면 생성형 AI 반도체 시장은 올해 30% 성장해 500억 달러 규모에 이를 전망이다. 업계는 AI 수요 증가가 반도체 업황 개선을 이끌 것으로 기대한다.

## 시장 동향

NVIDIA는 데이터센터용 GPU 판매 확대로 매출이 3배 증가했다. 삼성전자는 HBM 생산을 확대하며 NVIDIA 공급망 진입을 추진하고 있다.

## 향후 전망

전문가들은 생성형 AI 기술 혁신이 반도체 시장 성장을 지속적으로 견인할 것이라고 분석했다. 다만 공급 부족 우려도 제기된다.
"""

TAGS = ["AI", "반도체"]

GOOD_TITLE = "생성형 AI 반도체 시장 30% 성장 전망과 삼성전자 생산 확대 움직임"

HBM_TITLE = "삼성전자 HBM 생산 확대로 AI 반도체 공급망 재편 가속"

SUGGESTION = {
    "candidates": [
        {"title": "충격 AI 반도체 시장의 민낯", "novelty": 0.9, "specificity": 0.9, "actionability": 0.9,
         "includes_primary_tag": True},
        {"title": GOOD_TITLE, "novelty": 0.6, "specificity": 0.8, "actionability": 0.3,
         "includes_primary_tag": True},
    ],
    "meta_description": "생성형 AI 반도체 시장이 올해 30% 성장할 전망이다.",
}


class FakeProvider(TextProvider):
    """Provider stub that counts calls."""

    def __init__(self, name, response=None, available=True):
        self.name = name
        self.response = response
        self._available = available
        self.calls = 0

    @property
    def available(self) -> bool:
        return self._available

    async def suggest(self, request):
        self.calls += 1
        return self.response


def make_orchestrator(providers=None, app_env="development") -> HeadlineOrchestrator:
    settings = Settings(app_env=app_env, text_provider=None)
    context = PipelineContext.create(settings, providers=providers or {})
    return HeadlineOrchestrator(context)


def enhance(orchestrator: HeadlineOrchestrator, request):
    return asyncio.run(orchestrator.enhance(request))


class TestProviderTitleRules:
    """Tests for provider title filtering and ranking."""

    def test_filter_drops_banned_short_and_duplicates(self):
        candidates = [
            "AI 반도체 시장의 반전 드라마 시작",
            {"title": "AI 반도체 시장 30% 성장 전망"},
            "AI 반도체 시장 30% 성장 전망",
            "짧다",
        ]

        assert filter_candidates_by_rules(candidates, Filters()) == ["AI 반도체 시장 30% 성장 전망"]

    def test_filter_requires_terms_and_phrases(self):
        candidates = ["AI 반도체 시장 30% 성장 전망", "AI 반도체 공급망 재편 가속"]

        assert filter_candidates_by_rules(candidates, Filters(must_include=["HBM"])) == []
        assert filter_candidates_by_rules(candidates, Filters(phrase_include=["공급망"])) == [
            "AI 반도체 공급망 재편 가속"
        ]
        assert filter_candidates_by_rules(candidates, Filters(phrase_exclude=["성장 전망"])) == [
            "AI 반도체 공급망 재편 가속"
        ]

    def test_score_ai_candidates(self):
        candidates = [
            {"title": "반도체 경쟁 심화 속 시장 재편", "novelty": 0.9, "specificity": 0.9},
            {"title": "AI 칩 수요 급증 전망 분석", "novelty": 0.1},
            {"title": "짧음", "novelty": 1.0},
            "문자열 후보는 점수가 없습니다",
        ]

        ranked = score_ai_candidates(candidates, ["AI"], Filters())

        assert ranked == ["AI 칩 수요 급증 전망 분석", "반도체 경쟁 심화 속 시장 재편"]


class TestHelpers:
    """Tests for title helpers."""

    def test_strip_auto_marker(self):
        assert strip_auto_marker("AI 칩 시장 전망 - 자동 생성") == "AI 칩 시장 전망"
        assert strip_auto_marker("AI 칩 시장 전망") == "AI 칩 시장 전망"

    def test_emergency_title_default(self):
        assert emergency_title("", []) == "뉴스"
        assert emergency_title(None, ["AI"]) == "AI 뉴스"

    def test_emergency_title_truncates_first_line(self):
        content = "짧음\n이것은 꽤 긴 첫 번째 줄입니다 정말로 길게 작성된 문장입니다"

        title = emergency_title(content, ["AI"])

        assert title.startswith("AI 이것은")
        assert title.endswith("...")
        assert len(title) == len("AI ") + 30

    def test_trace_numbering(self):
        trace = FallbackTrace()
        trace.add("시작")
        trace.add("끝")

        assert trace.steps == ["Step 1: 시작", "Step 2: 끝"]


class TestPipelineSelection:
    """Tests for the quality-gated pipeline stage."""

    def test_content_only_run(self):
        """Without providers the title comes from the article itself."""
        response = enhance(make_orchestrator(), {"content": ARTICLE, "tags": TAGS})

        assert response.title
        assert response.title in response.candidates
        assert response.source == "content_analysis"
        assert any("AI" in c for c in response.candidates)
        evaluations = response.diagnostics["evaluations"]
        assert any("AI" in e["title"] and e["scores"]["length"] > 0 for e in evaluations)
        assert response.seo.description == "AI 관련 이슈를 분석한 기사."

    def test_provider_titles_are_filtered_and_gated(self):
        provider = FakeProvider("openai", SUGGESTION)
        response = enhance(make_orchestrator({"openai": provider}), {"content": ARTICLE, "tags": TAGS})

        assert response.title == GOOD_TITLE
        assert response.source == "ai_generation"
        assert all("충격" not in c for c in response.candidates)
        assert response.meta_description == SUGGESTION["meta_description"]
        assert response.seo.description == SUGGESTION["meta_description"]
        assert response.diagnostics["provider"] == "openai"

    def test_preferred_provider_first(self):
        openai = FakeProvider("openai", SUGGESTION)
        claude = FakeProvider("claude", SUGGESTION)
        orchestrator = make_orchestrator({"openai": openai, "claude": claude})

        response = enhance(orchestrator, {"content": ARTICLE, "tags": TAGS, "textProvider": "claude"})

        assert claude.calls == 1
        assert openai.calls == 0
        assert response.diagnostics["provider"] == "claude"

    def test_falls_through_empty_and_unavailable_providers(self):
        openai = FakeProvider("openai", None)
        claude = FakeProvider("claude", SUGGESTION, available=False)
        gemini = FakeProvider("gemini", SUGGESTION)
        orchestrator = make_orchestrator({"openai": openai, "claude": claude, "gemini": gemini})

        response = enhance(orchestrator, {"content": ARTICLE, "tags": TAGS})

        assert openai.calls == 1
        assert claude.calls == 0
        assert gemini.calls == 1
        assert response.diagnostics["provider"] == "gemini"

    def test_injected_titles(self):
        response = enhance(make_orchestrator(), {"content": ARTICLE, "tags": TAGS, "injectedAITitles": [GOOD_TITLE]})

        assert response.title == GOOD_TITLE
        assert response.source == "ai_generation"

    def test_accepts_model_request(self):
        response = enhance(make_orchestrator(), EnhanceRequest(content=ARTICLE, tags=TAGS))

        assert response.title


class TestFallbackChain:
    """Tests for the fallback stages."""

    def test_impossible_filters_use_content_heading(self):
        request = {"content": ARTICLE, "tags": TAGS, "filters": {"mustInclude": ["존재하지않는단어"]}}

        response = enhance(make_orchestrator(), request)

        assert response.title == "생성형 AI 반도체 시장, 2025년 30% 성장 전망"
        assert response.source == "content_fallback"
        assert len(response.diagnostics["steps"]) > 1
        assert response.diagnostics["steps"][0].startswith("Step 1: ")

    def test_provider_rules_stage(self):
        """Provider titles are used directly when the pipeline yields nothing."""
        suggestion = {"candidates": [{"title": "존재하지않는단어 반도체 공급망 재편"}], "meta_description": ""}
        request = {"content": ARTICLE, "tags": TAGS, "filters": {"mustInclude": ["존재하지않는단어"]}}
        orchestrator = make_orchestrator({"openai": FakeProvider("openai", suggestion)})
        orchestrator.select_with_pipeline = lambda run: False

        response = enhance(orchestrator, request)

        assert response.title == "존재하지않는단어 반도체 공급망 재편"
        assert response.source == "provider_rules"

    def test_template_from_tag(self):
        request = {"content": "짧은 글", "tags": ["로봇"], "filters": {"mustInclude": ["존재하지않는단어"]}}

        response = enhance(make_orchestrator(), request)

        assert response.title == "로봇 업계 동향: 최신 분석"
        assert response.source == "template_fallback"
        assert response.candidates == [response.title]

    def test_template_from_content_keyword(self):
        request = {"content": "짧은 글", "filters": {"mustInclude": ["존재하지않는단어"]}}

        assert enhance(make_orchestrator(), request).title == "짧은 관련 최신 뉴스"

    def test_unreachable_length_and_score(self):
        request = {
            "content": ARTICLE,
            "tags": TAGS,
            "filters": {"titleLen": {"min": 200, "max": 250}, "minOverallScore": 0.95},
        }

        response = enhance(make_orchestrator(), request)

        assert response.title
        assert len(response.diagnostics["steps"]) > 1

    def test_empty_request_with_default_filters(self):
        response = enhance(make_orchestrator(), {"content": "", "tags": [], "subject": ""})

        assert response.title
        assert response.candidates
        assert len(response.diagnostics["steps"]) > 1

    def test_final_default(self):
        request = {"content": "", "filters": {"mustInclude": ["존재하지않는단어"]}}

        assert enhance(make_orchestrator(), request).title == FINAL_DEFAULT_TITLE


class TestErrorsAndReporting:
    """Tests for the emergency path, diagnostics and monitoring."""

    def test_unexpected_error_returns_emergency_title(self):
        orchestrator = make_orchestrator()
        orchestrator.collect_suggestions = AsyncMock(side_effect=RuntimeError("boom"))

        response = enhance(orchestrator, {"content": ARTICLE, "tags": TAGS})

        assert response.title == "AI 생성형 AI 반도체 시장, 2025년 30% 성장 전망"
        assert response.source == "emergency"
        assert response.error == EMERGENCY_ERROR
        assert response.diagnostics["error"] == "boom"
        assert orchestrator.context.monitor.failed_requests == 1

    def test_invalid_length_range_keeps_constraints(self):
        """A malformed lengthRange must not discard filters or injected titles."""
        request = {
            "content": ARTICLE,
            "tags": TAGS,
            "lengthRange": {"min": "많이"},
            "filters": {"mustInclude": ["HBM"]},
            "injectedAITitles": [HBM_TITLE],
        }

        response = enhance(make_orchestrator(), request)

        assert "HBM" in response.title
        assert response.source != "emergency"
        assert response.diagnostics["ai_titles"] == [HBM_TITLE]

    def test_non_mapping_request(self):
        response = enhance(make_orchestrator(), ["본문"])

        assert response.title
        assert response.source != "emergency"

    def test_production_hides_diagnostics(self):
        response = enhance(make_orchestrator(app_env="production"), {"content": ARTICLE, "tags": TAGS})

        assert response.diagnostics is None
        assert "diagnostics" not in response.model_dump(by_alias=True, exclude_none=True)

    def test_requests_are_monitored(self):
        orchestrator = make_orchestrator()
        enhance(orchestrator, {"content": ARTICLE, "tags": TAGS})

        snapshot = orchestrator.context.monitor.snapshot()

        assert snapshot["total_requests"] == 1
        assert snapshot["successful_requests"] == 1
        assert "content_analysis" in snapshot["by_source"]

    def test_monitoring_failure_does_not_break_response(self):
        orchestrator = make_orchestrator()
        orchestrator.context.monitor.record = lambda *args, **kwargs: 1 / 0

        response = enhance(orchestrator, {"content": ARTICLE, "tags": TAGS})

        assert response.title
        assert response.source != "emergency"

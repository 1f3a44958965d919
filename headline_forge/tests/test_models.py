"""
Tests for request, filter and guideline models.

Tests:
- Option normalization from strings, mappings and CSV
- camelCase aliases and defaults
- Lenient fallbacks for invalid input
"""

from headline_forge.lexicons import DEFAULT_BANNED
from headline_forge.models import (
    EnhanceRequest,
    EnhanceResponse,
    FilterOption,
    Filters,
    Guidelines,
    LengthRange,
    SeoBlock,
    TitleLength,
    normalize_options,
)


class TestNormalizeOptions:
    """Tests for the option union resolution."""

    def test_plain_strings(self):
        options = normalize_options(["AI", "반도체"])

        assert [o.value for o in options] == ["AI", "반도체"]
        assert options[0].label == "AI"
        assert options[0].count == 0

    def test_mappings(self):
        options = normalize_options([{"value": "AI", "label": "인공지능", "count": 4}])

        assert options == [FilterOption(value="AI", label="인공지능", count=4)]

    def test_csv_string(self):
        options = normalize_options(" AI, 반도체 ,,AI")

        assert [o.value for o in options] == ["AI", "반도체"]

    def test_mixed_and_blank_items(self):
        options = normalize_options(["AI", {"value": ""}, None, "  ", {"value": "칩"}])

        assert [o.value for o in options] == ["AI", "칩"]

    def test_none_and_scalars(self):
        assert normalize_options(None) == []
        assert [o.value for o in normalize_options(5)] == ["5"]


class TestFilters:
    """Tests for the Filters model."""

    def test_defaults(self):
        filters = Filters()

        assert filters.title_len.min == 10
        assert filters.title_len.max == 100
        assert filters.exclude_terms == list(DEFAULT_BANNED)
        assert filters.include_terms == []
        assert filters.min_overall_score == 0.4
        assert filters.min_compliance_score == 0.5

    def test_camel_case_input(self):
        filters = Filters.model_validate({
            "titleLen": {"min": 20, "max": 40},
            "mustInclude": "AI",
            "mustExclude": [{"value": "충격"}],
            "phraseExclude": ["단독"],
            "minSEOScore": 0.5,
        })

        assert filters.title_len.min == 20
        assert filters.include_terms == ["AI"]
        assert filters.exclude_terms == ["충격"]
        assert filters.phrase_exclude_terms == ["단독"]
        assert filters.min_seo_score == 0.5

    def test_snake_case_input(self):
        filters = Filters.model_validate({"must_include": ["칩"], "min_seo_score": 0.1})

        assert filters.include_terms == ["칩"]
        assert filters.min_seo_score == 0.1

    def test_swapped_title_bounds_are_reordered(self):
        assert TitleLength(min=80, max=20).min == 20

    def test_from_raw_falls_back_on_invalid(self):
        filters = Filters.from_raw({"minOverallScore": 7})

        assert filters == Filters()

    def test_from_raw_passthrough(self):
        filters = Filters(must_include=["AI"])

        assert Filters.from_raw(filters) is filters
        assert Filters.from_raw(None) == Filters()

    def test_minimums_keyed_by_axis(self):
        minimums = Filters().minimums()

        assert set(minimums) == {"relevance", "length", "readability", "seo", "engagement", "compliance"}
        assert minimums["seo"] == 0.2


class TestGuidelines:
    """Tests for the Guidelines model."""

    def test_defaults(self):
        g = Guidelines()

        assert g.brand_tone == "neutral"
        assert g.clickbait_avoidance is True
        assert g.num_facts_min == 2

    def test_unknown_brand_tone_coerces_to_neutral(self):
        assert Guidelines(brand_tone="sarcastic").brand_tone == "neutral"
        assert Guidelines.model_validate({"brandTone": "Positive"}).brand_tone == "positive"


class TestEnhanceModels:
    """Tests for the request and response envelopes."""

    def test_request_defaults(self):
        request = EnhanceRequest(content="본문")

        assert request.tone == "객관적"
        assert request.length_range.min == 1000
        assert request.filters == Filters()
        assert request.text_provider is None

    def test_request_camel_case(self):
        request = EnhanceRequest.model_validate({
            "content": "본문",
            "tags": "AI,반도체",
            "textProvider": "Claude",
            "injectedAITitles": ["AI 칩 시장 30% 성장"],
            "filters": {"mustExclude": ["충격"]},
            "guidelines": {"dataBacked": True},
        })

        assert request.tags == ["AI", "반도체"]
        assert request.text_provider == "claude"
        assert request.injected_ai_titles == ["AI 칩 시장 30% 성장"]
        assert request.filters.exclude_terms == ["충격"]
        assert request.guidelines.data_backed is True

    def test_invalid_length_range_keeps_other_fields(self):
        request = EnhanceRequest.model_validate({
            "content": "본문",
            "tags": ["생성형 AI"],
            "lengthRange": {"min": "많이"},
            "filters": {"mustInclude": ["ChatGPT"], "mustExclude": ["충격"]},
            "injectedAITitles": ["ChatGPT 기업 도입 가속"],
        })

        assert request.length_range == LengthRange()
        assert request.tags == ["생성형 AI"]
        assert request.filters.include_terms == ["ChatGPT"]
        assert request.filters.exclude_terms == ["충격"]
        assert request.injected_ai_titles == ["ChatGPT 기업 도입 가속"]

    def test_request_tolerates_nulls(self):
        request = EnhanceRequest.model_validate({"content": None, "tone": None, "filters": None})

        assert request.content == ""
        assert request.tone == "객관적"
        assert request.filters == Filters()

    def test_response_serializes_camel_case(self):
        response = EnhanceResponse(
            title="제목",
            seo=SeoBlock(title="제목", description="설명"),
            candidates=["제목"],
            meta_description="설명",
        )

        data = response.model_dump(by_alias=True, exclude_none=True)

        assert data["metaDescription"] == "설명"
        assert "error" not in data
        assert data["source"] == "fallback"

"""
Tests for the text providers.

Tests:
- JSON extraction and suggestion normalization
- Prompt construction and prompt keys
- Provider order and retry classification
- OpenAI, Claude and Gemini adapters with mocked clients
"""

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from headline_forge.config import Settings
from headline_forge.models import EnhanceRequest, Filters, Guidelines
from headline_forge.providers import (
    CLAUDE_JSON_SUFFIX,
    GEMINI_JSON_SUFFIX,
    TITLE_SYSTEM_PROMPT,
    ClaudeProvider,
    GeminiProvider,
    OpenAIProvider,
    ProviderRequest,
    build_constraint_text,
    build_providers,
    is_retryable,
    normalize_suggestion,
    provider_order,
    safe_parse_json,
)


SUGGESTION = {
    "candidates": [
        {"title": "AI 반도체 시장 30% 성장 전망", "novelty": 0.7, "specificity": 0.9, "actionability": 0.4,
         "includes_primary_tag": True},
        {"title": "삼성전자 HBM 증산, NVIDIA 공급 확대", "novelty": "0.5", "specificity": None},
    ],
    "meta_description": "생성형 AI 반도체 시장이 올해 30% 성장할 전망이다.",
}


def no_key_settings() -> Settings:
    return Settings(openai_api_key=None, anthropic_api_key=None, google_api_key=None)


def make_request(**kwargs) -> ProviderRequest:
    defaults = {"content": "생성형 AI 반도체 시장이 성장하고 있다.", "tags": ["AI", "반도체"]}
    defaults.update(kwargs)
    return ProviderRequest(**defaults)


class TestParsing:
    """Tests for response parsing."""

    def test_parses_fenced_json(self):
        text = "```json\n" + json.dumps(SUGGESTION, ensure_ascii=False) + "\n```"

        assert safe_parse_json(text) == SUGGESTION

    def test_parses_json_with_chatter(self):
        assert safe_parse_json('제안입니다: {"candidates": []} 감사합니다') == {"candidates": []}

    @pytest.mark.parametrize("text", [None, "", "JSON 없음", "{잘못된 json}", "[1, 2]"])
    def test_unparseable_returns_none(self, text):
        assert safe_parse_json(text) is None

    def test_normalize_coerces_fields(self):
        data = normalize_suggestion(SUGGESTION)

        assert len(data["candidates"]) == 2
        second = data["candidates"][1]
        assert second["novelty"] == 0.5
        assert second["specificity"] == 0.0
        assert second["includes_primary_tag"] is False
        assert data["meta_description"].startswith("생성형 AI")

    def test_normalize_accepts_plain_strings(self):
        data = normalize_suggestion({"candidates": ["AI 칩 전쟁", "", {"title": "  "}, 3]})

        assert [c["title"] for c in data["candidates"]] == ["AI 칩 전쟁"]
        assert data["meta_description"] == ""

    def test_normalize_without_candidates(self):
        assert normalize_suggestion({"candidates": []}) is None
        assert normalize_suggestion(None) is None


class TestPrompts:
    """Tests for prompt construction."""

    def test_constraint_text_defaults(self):
        text = build_constraint_text(Filters(), Guidelines())

        lines = text.split("\n")
        assert lines[0] == "- 제목 글자수: 10~100자 내."
        assert lines[1].startswith("- 제목에 금지: 충격, 소름")
        assert len(lines) == 2

    def test_constraint_text_with_hints(self):
        filters = Filters(must_include=["AI"], must_exclude=[], phrase_exclude=["단독", "속보"])
        guidelines = Guidelines(data_backed=True, num_facts_min=3, no_clickbait=True, newsroom_style=True)

        text = build_constraint_text(filters, guidelines)

        assert "- 제목에 반드시 포함: AI" in text
        assert "제목에 금지" not in text
        assert "- 금지 문구: 단독 / 속보" in text
        assert "최소 3개" in text
        assert "클릭베이트/과장 표현 금지" in text
        assert "뉴스룸 스타일" in text

    def test_user_prompt_layout(self):
        prompt = make_request(subject="반도체 업황", tone="분석적").user_prompt()

        assert prompt.startswith("태그: AI, 반도체\n주제 설명: 반도체 업황\n말투: 분석적\n")
        assert "길이: 1000~2000 단어" in prompt
        assert prompt.endswith("[기사원문]\n생성형 AI 반도체 시장이 성장하고 있다.")

    def test_user_prompt_placeholders(self):
        prompt = make_request(tags=[]).user_prompt()

        assert "태그: (없음)" in prompt
        assert "주제 설명: (없음)" in prompt

    def test_from_enhance(self):
        enhance = EnhanceRequest.model_validate({"content": "본문", "tags": "AI", "filters": {"mustInclude": ["AI"]}})

        request = ProviderRequest.from_enhance(enhance)

        assert request.tags == ["AI"]
        assert request.filters.include_terms == ["AI"]

    def test_prompt_key_ignores_tag_order(self):
        a = make_request(tags=["AI", "반도체"]).prompt_key()
        b = make_request(tags=["반도체", "AI"]).prompt_key()

        assert a == b
        assert a != make_request(content="다른 본문").prompt_key()
        assert a != make_request(filters=Filters(must_include=["AI"])).prompt_key()


class TestOrderAndRetry:
    """Tests for provider ordering and retry classification."""

    def test_default_order(self):
        assert provider_order() == ["openai", "claude", "gemini"]

    def test_preferred_first(self):
        assert provider_order("gemini") == ["gemini", "openai", "claude"]

    def test_unknown_preference_ignored(self):
        assert provider_order("mistral") == ["openai", "claude", "gemini"]

    def test_retryable_errors(self):
        class StatusError(Exception):
            def __init__(self, status_code):
                super().__init__(f"status {status_code}")
                self.status_code = status_code

        assert is_retryable(asyncio.TimeoutError()) is True
        assert is_retryable(StatusError(429)) is True
        assert is_retryable(StatusError(503)) is True
        assert is_retryable(StatusError(400)) is False
        assert is_retryable(ValueError("bad")) is False


class TestProviders:
    """Tests for provider adapters with mocked SDK clients."""

    def test_unconfigured_providers(self):
        providers = build_providers(no_key_settings())

        assert set(providers) == {"openai", "claude", "gemini"}
        assert not any(p.available for p in providers.values())
        assert asyncio.run(providers["openai"].suggest(make_request())) is None

    def test_openai_json_mode(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=json.dumps(SUGGESTION)))]
        ))
        provider = OpenAIProvider(no_key_settings(), client=client)

        data = asyncio.run(provider.suggest(make_request()))

        assert data["candidates"][0]["title"] == "AI 반도체 시장 30% 성장 전망"
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][0] == {"role": "system", "content": TITLE_SYSTEM_PROMPT}
        assert kwargs["messages"][1]["content"].startswith("태그: AI, 반도체")

    def test_claude_system_prompt_and_suffix(self):
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=SimpleNamespace(
            content=[SimpleNamespace(text="```json\n" + json.dumps(SUGGESTION) + "\n```")]
        ))
        provider = ClaudeProvider(no_key_settings(), client=client)

        data = asyncio.run(provider.suggest(make_request()))

        assert len(data["candidates"]) == 2
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["system"] == TITLE_SYSTEM_PROMPT
        assert kwargs["messages"][0]["content"].endswith(CLAUDE_JSON_SUFFIX)

    def test_gemini_prompt_suffix(self):
        model = MagicMock()
        model.generate_content_async = AsyncMock(return_value=SimpleNamespace(text=json.dumps(SUGGESTION)))
        provider = GeminiProvider(no_key_settings(), model=model)

        data = asyncio.run(provider.suggest(make_request()))

        assert data["meta_description"]
        prompt = model.generate_content_async.call_args.args[0]
        assert prompt.endswith(GEMINI_JSON_SUFFIX)

    def test_unusable_response_returns_none(self):
        model = MagicMock()
        model.generate_content_async = AsyncMock(return_value=SimpleNamespace(text="제목을 만들 수 없습니다"))
        provider = GeminiProvider(no_key_settings(), model=model)

        assert asyncio.run(provider.suggest(make_request())) is None

    def test_non_retryable_error_propagates_immediately(self):
        client = MagicMock()
        client.messages.create = AsyncMock(side_effect=ValueError("bad request"))
        provider = ClaudeProvider(no_key_settings(), client=client)

        with pytest.raises(ValueError):
            asyncio.run(provider.suggest(make_request()))

        assert client.messages.create.await_count == 1

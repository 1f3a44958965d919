"""
Generative-text providers for headline suggestions.

Each provider exposes the same contract:

    await provider.suggest(ProviderRequest) -> dict | None

The dict is {"candidates": [{"title", "novelty", "specificity",
"actionability", "includes_primary_tag"}], "meta_description": str}.
None means the provider is unconfigured or returned nothing usable.
Transient API errors are retried with tenacity and then propagate to the
gateway, which treats them as "no candidates".
"""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Optional

import anthropic
import google.generativeai as genai
import httpx
import openai
from google.api_core import exceptions as google_exceptions
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from .cache import fingerprint
from .config import KNOWN_PROVIDERS, Settings
from .logging_conf import get_logger
from .models import EnhanceRequest, Filters, Guidelines, LengthRange

logger = get_logger(__name__)

PROVIDER_ORDER = KNOWN_PROVIDERS


# =====================================================
# PROMPTS
# =====================================================
TITLE_SYSTEM_PROMPT = """당신은 한국어 뉴스룸의 헤드라인 에디터입니다.
주어진 기사 원문과 제약 조건을 바탕으로 검색과 공유에 적합한 제목 후보를 제안합니다.

원칙:
1. 기사에 실제로 있는 사실만 사용합니다. 없는 수치나 기관명을 만들지 않습니다.
2. 클릭베이트, 과장, 공포 조장 표현을 쓰지 않습니다.
3. 핵심 키워드와 구체적인 수치를 제목 앞쪽에 배치합니다.
4. 제목 글자수와 포함/금지 조건을 반드시 지킵니다.
5. 후보마다 새로움(novelty), 구체성(specificity), 실용성(actionability)을 0~1로 자체 평가합니다.

출력 형식 (JSON만):
{
  "candidates": [
    {"title": "제목", "novelty": 0.0, "specificity": 0.0, "actionability": 0.0, "includes_primary_tag": true}
  ],
  "meta_description": "검색 결과에 노출될 150자 내외 요약"
}

후보는 5~8개를 제안하세요."""

GEMINI_JSON_SUFFIX = "\n\nJSON만 출력"
CLAUDE_JSON_SUFFIX = "\n\n반드시 JSON 형식으로만 응답하세요. 다른 텍스트는 포함하지 마세요."


def build_constraint_text(filters: Filters, guidelines: Guidelines) -> str:
    """Render hard constraints and prompt hints as a bulleted Korean list."""
    lines = [f"- 제목 글자수: {filters.title_len.min}~{filters.title_len.max}자 내."]

    if filters.include_terms:
        lines.append(f"- 제목에 반드시 포함: {', '.join(filters.include_terms)}")
    if filters.exclude_terms:
        lines.append(f"- 제목에 금지: {', '.join(filters.exclude_terms)}")
    if filters.phrase_include_terms:
        lines.append(f"- 제목에 포함 권장(문구): {' / '.join(filters.phrase_include_terms)}")
    if filters.phrase_exclude_terms:
        lines.append(f"- 금지 문구: {' / '.join(filters.phrase_exclude_terms)}")

    if guidelines.data_backed:
        lines.append(f"- 데이터 근거(기관명/수치/기간) 최소 {guidelines.num_facts_min}개를 본문 맥락에 반영.")
    if guidelines.no_clickbait:
        lines.append("- 클릭베이트/과장 표현 금지.")
    if guidelines.newsroom_style:
        lines.append("- 뉴스룸 스타일: 명확한 리드와 넛그래프, 적절한 소제목, 중립 어휘.")

    return "\n".join(lines)


def safe_parse_json(text: Optional[str]) -> Optional[dict]:
    """
    Parse the outermost {...} block of a model response.

    Tolerates markdown fences and chatter around the object. Returns None
    when no object can be decoded.
    """
    if not text:
        return None

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None

    try:
        data = json.loads(text[start:end + 1])
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def _score(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def normalize_suggestion(data: Optional[dict]) -> Optional[dict]:
    """Keep well-formed candidates. Returns None when none remain."""
    if not data:
        return None

    candidates = []
    for item in data.get("candidates") or []:
        if isinstance(item, str):
            item = {"title": item}
        if not isinstance(item, dict):
            continue
        title = str(item.get("title") or "").strip()
        if not title:
            continue
        candidates.append({
            "title": title,
            "novelty": _score(item.get("novelty")),
            "specificity": _score(item.get("specificity")),
            "actionability": _score(item.get("actionability")),
            "includes_primary_tag": bool(item.get("includes_primary_tag")),
        })

    if not candidates:
        return None

    return {
        "candidates": candidates,
        "meta_description": str(data.get("meta_description") or "").strip(),
    }


# =====================================================
# REQUEST
# =====================================================

@dataclass
class ProviderRequest:
    """Everything a provider needs to propose titles for one article."""
    content: str
    tags: list[str] = field(default_factory=list)
    subject: str = ""
    tone: str = "객관적"
    length_range: LengthRange = field(default_factory=LengthRange)
    filters: Filters = field(default_factory=Filters)
    guidelines: Guidelines = field(default_factory=Guidelines)

    @classmethod
    def from_enhance(cls, request: EnhanceRequest) -> "ProviderRequest":
        return cls(
            content=request.content,
            tags=list(request.tags),
            subject=request.subject,
            tone=request.tone,
            length_range=request.length_range,
            filters=request.filters,
            guidelines=request.guidelines,
        )

    def user_prompt(self) -> str:
        tags = ", ".join(self.tags) if self.tags else "(없음)"
        return (
            f"태그: {tags}\n"
            f"주제 설명: {self.subject or '(없음)'}\n"
            f"말투: {self.tone}\n"
            f"길이: {self.length_range.min}~{self.length_range.max} 단어\n"
            f"추가 제약:\n{build_constraint_text(self.filters, self.guidelines)}\n\n"
            f"[기사원문]\n{self.content}"
        )

    def prompt_key(self) -> str:
        """Stable fingerprint of the inputs that change the provider's answer."""
        f = self.filters
        g = self.guidelines
        return fingerprint({
            "content": fingerprint(self.content) if self.content else "",
            "tags": sorted(self.tags),
            "subject": self.subject,
            "tone": self.tone,
            "length_range": [self.length_range.min, self.length_range.max],
            "filters": {
                "title_len": [f.title_len.min, f.title_len.max],
                "must_include": sorted(f.include_terms),
                "must_exclude": sorted(f.exclude_terms),
                "phrase_include": sorted(f.phrase_include_terms),
                "phrase_exclude": sorted(f.phrase_exclude_terms),
            },
            "guidelines": {
                "data_backed": g.data_backed,
                "no_clickbait": g.no_clickbait,
                "newsroom_style": g.newsroom_style,
                "num_facts_min": g.num_facts_min,
            },
        })


def build_user_prompt(request: ProviderRequest) -> str:
    return request.user_prompt()


# =====================================================
# RETRY POLICY
# =====================================================

_RETRYABLE_ERRORS = (
    asyncio.TimeoutError,
    httpx.TimeoutException,
    httpx.ConnectError,
    openai.APITimeoutError,
    openai.APIConnectionError,
    openai.RateLimitError,
    anthropic.APITimeoutError,
    anthropic.APIConnectionError,
    anthropic.RateLimitError,
    google_exceptions.ResourceExhausted,
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.InternalServerError,
)


def is_retryable(exc: BaseException) -> bool:
    """Rate limits, server errors, timeouts and dropped connections."""
    if isinstance(exc, _RETRYABLE_ERRORS):
        return True
    status = getattr(exc, "status_code", None)
    return isinstance(status, int) and (status == 429 or status >= 500)


provider_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=30),
    retry=retry_if_exception(is_retryable),
    reraise=True,
)


# =====================================================
# PROVIDERS
# =====================================================

class TextProvider:
    """Base class: turns a ProviderRequest into parsed title suggestions."""

    name = "base"

    @property
    def available(self) -> bool:
        return False

    async def _complete(self, request: ProviderRequest) -> Optional[str]:
        raise NotImplementedError

    async def suggest(self, request: ProviderRequest) -> Optional[dict]:
        if not self.available:
            logger.debug("provider_unavailable", provider=self.name)
            return None

        text = await self._complete(request)
        data = normalize_suggestion(safe_parse_json(text))

        if data is None:
            logger.warning("provider_response_unusable", provider=self.name, length=len(text or ""))
            return None

        logger.info("provider_suggested", provider=self.name, candidates=len(data["candidates"]))
        return data


class OpenAIProvider(TextProvider):
    """OpenAI chat completions in JSON mode."""

    name = "openai"

    def __init__(self, settings: Settings, client: Optional[openai.AsyncOpenAI] = None):
        self.model = settings.openai_model
        self.temperature = settings.openai_temperature
        self.client = client
        if self.client is None and settings.openai_api_key:
            self.client = openai.AsyncOpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.provider_timeout_seconds,
            )

    @property
    def available(self) -> bool:
        return self.client is not None

    @provider_retry
    async def _complete(self, request: ProviderRequest) -> Optional[str]:
        response = await self.client.chat.completions.create(
            model=self.model,
            temperature=self.temperature,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": TITLE_SYSTEM_PROMPT},
                {"role": "user", "content": request.user_prompt()},
            ],
        )
        return response.choices[0].message.content


class ClaudeProvider(TextProvider):
    """Anthropic messages API with the system prompt passed separately."""

    name = "claude"

    def __init__(self, settings: Settings, client: Optional[anthropic.AsyncAnthropic] = None):
        self.model = settings.anthropic_model
        self.max_tokens = settings.anthropic_max_tokens
        self.client = client
        if self.client is None and settings.anthropic_api_key:
            self.client = anthropic.AsyncAnthropic(
                api_key=settings.anthropic_api_key,
                timeout=settings.provider_timeout_seconds,
            )

    @property
    def available(self) -> bool:
        return self.client is not None

    @provider_retry
    async def _complete(self, request: ProviderRequest) -> Optional[str]:
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=TITLE_SYSTEM_PROMPT,
            messages=[{"role": "user", "content": request.user_prompt() + CLAUDE_JSON_SUFFIX}],
        )
        return response.content[0].text if response.content else None


class GeminiProvider(TextProvider):
    """Google Gemini with a JSON response mime type."""

    name = "gemini"

    def __init__(self, settings: Settings, model: Optional[Any] = None):
        self.model_name = settings.gemini_model
        self.model = model
        if self.model is None and settings.google_api_key:
            genai.configure(api_key=settings.google_api_key)
            self.model = genai.GenerativeModel(
                self.model_name,
                system_instruction=TITLE_SYSTEM_PROMPT,
                generation_config=genai.GenerationConfig(
                    response_mime_type="application/json",
                    temperature=0.3,
                ),
            )

    @property
    def available(self) -> bool:
        return self.model is not None

    @provider_retry
    async def _complete(self, request: ProviderRequest) -> Optional[str]:
        response = await self.model.generate_content_async(request.user_prompt() + GEMINI_JSON_SUFFIX)
        return response.text


def build_providers(settings: Settings) -> dict[str, TextProvider]:
    """All providers keyed by name. Unconfigured ones report available=False."""
    providers = {
        "openai": OpenAIProvider(settings),
        "claude": ClaudeProvider(settings),
        "gemini": GeminiProvider(settings),
    }
    logger.info(
        "providers_built",
        available=[name for name, p in providers.items() if p.available],
    )
    return providers


def provider_order(preferred: Optional[str] = None) -> list[str]:
    """Preferred provider first, then the default order, without repeats."""
    order = list(PROVIDER_ORDER)
    if preferred in order:
        order.remove(preferred)
        order.insert(0, preferred)
    return order

"""
Request, filter and guideline models.

Callers send camelCase JSON (titleLen, mustExclude, minSEOScore...); snake_case
field names are accepted as well. Every option list is normalized once here so
the generator and evaluator only ever see plain FilterOption records.
"""

from typing import Any, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .lexicons import DEFAULT_BANNED
from .logging_conf import get_logger

logger = get_logger(__name__)


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# =====================================================
# FILTER OPTIONS
# =====================================================

class FilterOption(_CamelModel):
    """A single include/exclude term, as picked in the editor UI."""

    value: str
    label: str = ""
    count: int = 0

    @model_validator(mode="after")
    def default_label(self) -> "FilterOption":
        if not self.label:
            self.label = self.value
        return self


def normalize_options(raw: Any) -> list[FilterOption]:
    """
    Resolve the loose option formats into FilterOption records.

    Accepts None, a comma-separated string, or a list whose items are strings,
    {value, label, count} mappings or FilterOption instances. Blank values are
    dropped and the first occurrence of each value wins.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = raw.split(",")
    elif not isinstance(raw, (list, tuple, set)):
        raw = [raw]

    options: list[FilterOption] = []
    seen: set[str] = set()
    for item in raw:
        if isinstance(item, FilterOption):
            option = item
        elif isinstance(item, dict):
            value = str(item.get("value") or "").strip()
            if not value:
                continue
            option = FilterOption(
                value=value,
                label=str(item.get("label") or value),
                count=int(item.get("count") or 0),
            )
        elif item is None:
            continue
        else:
            value = str(item).strip()
            if not value:
                continue
            option = FilterOption(value=value)

        if option.value in seen:
            continue
        seen.add(option.value)
        options.append(option)

    return options


def _default_banned() -> list[FilterOption]:
    return [FilterOption(value=word) for word in DEFAULT_BANNED]


# =====================================================
# FILTERS
# =====================================================

class TitleLength(_CamelModel):
    """Inclusive character window for a title."""

    min: int = Field(10, ge=0)
    max: int = Field(100, ge=0)

    @model_validator(mode="after")
    def order_bounds(self) -> "TitleLength":
        if self.min > self.max:
            self.min, self.max = self.max, self.min
        return self

    @property
    def midpoint(self) -> float:
        return (self.min + self.max) / 2

    def contains(self, chars: int) -> bool:
        return self.min <= chars <= self.max


class Filters(_CamelModel):
    """Hard editorial constraints plus per-axis score minimums."""

    title_len: TitleLength = Field(default_factory=TitleLength)
    must_include: list[FilterOption] = Field(default_factory=list)
    must_exclude: list[FilterOption] = Field(default_factory=_default_banned)
    phrase_include: list[FilterOption] = Field(default_factory=list)
    phrase_exclude: list[FilterOption] = Field(default_factory=list)

    min_relevance_score: float = Field(0.3, ge=0.0, le=1.0)
    min_length_score: float = Field(0.4, ge=0.0, le=1.0)
    min_readability_score: float = Field(0.3, ge=0.0, le=1.0)
    min_seo_score: float = Field(
        0.2,
        ge=0.0,
        le=1.0,
        validation_alias=AliasChoices("minSEOScore", "minSeoScore", "min_seo_score"),
        serialization_alias="minSEOScore",
    )
    min_engagement_score: float = Field(0.2, ge=0.0, le=1.0)
    min_compliance_score: float = Field(0.5, ge=0.0, le=1.0)
    min_overall_score: float = Field(0.4, ge=0.0, le=1.0)

    @field_validator(
        "must_include", "must_exclude", "phrase_include", "phrase_exclude",
        mode="before",
    )
    @classmethod
    def coerce_options(cls, v: Any) -> list[FilterOption]:
        return normalize_options(v)

    @classmethod
    def from_raw(cls, raw: Any) -> "Filters":
        """Build filters from untrusted input, falling back to defaults."""
        if isinstance(raw, Filters):
            return raw
        if not raw:
            return cls()
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            logger.warning("filters_invalid_using_defaults", error=str(e))
            return cls()

    @property
    def include_terms(self) -> list[str]:
        return [o.value for o in self.must_include]

    @property
    def exclude_terms(self) -> list[str]:
        return [o.value for o in self.must_exclude]

    @property
    def phrase_include_terms(self) -> list[str]:
        return [o.value for o in self.phrase_include]

    @property
    def phrase_exclude_terms(self) -> list[str]:
        return [o.value for o in self.phrase_exclude]

    def minimums(self) -> dict[str, float]:
        """Per-axis minimums keyed by score name."""
        return {
            "relevance": self.min_relevance_score,
            "length": self.min_length_score,
            "readability": self.min_readability_score,
            "seo": self.min_seo_score,
            "engagement": self.min_engagement_score,
            "compliance": self.min_compliance_score,
        }


# =====================================================
# GUIDELINES
# =====================================================

BRAND_TONES = ("positive", "neutral", "authoritative")


class Guidelines(_CamelModel):
    """Soft editorial preferences used for scoring and prompting."""

    preferred_style: str = "professional"
    target_audience: str = "general"
    seo_optimization: bool = True
    clickbait_avoidance: bool = True
    brand_tone: str = "neutral"

    # Prompt hints
    data_backed: bool = False
    no_clickbait: bool = False
    newsroom_style: bool = False
    num_facts_min: int = Field(2, ge=0)

    @field_validator("brand_tone", mode="before")
    @classmethod
    def coerce_brand_tone(cls, v: Any) -> str:
        tone = str(v or "neutral").strip().lower()
        return tone if tone in BRAND_TONES else "neutral"

    @classmethod
    def from_raw(cls, raw: Any) -> "Guidelines":
        if isinstance(raw, Guidelines):
            return raw
        if not raw:
            return cls()
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            logger.warning("guidelines_invalid_using_defaults", error=str(e))
            return cls()


# =====================================================
# REQUEST / RESPONSE
# =====================================================

class LengthRange(_CamelModel):
    """Article length in words, passed through to provider prompts."""

    min: int = 1000
    max: int = 2000

    @classmethod
    def from_raw(cls, raw: Any) -> "LengthRange":
        """Build a range from untrusted input, falling back to defaults."""
        if isinstance(raw, LengthRange):
            return raw
        if not raw:
            return cls()
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            logger.warning("length_range_invalid_using_defaults", error=str(e))
            return cls()


class EnhanceRequest(_CamelModel):
    """Inbound request for a headline."""

    content: str = ""
    tags: list[str] = Field(default_factory=list)
    subject: str = ""
    tone: str = "객관적"
    length_range: LengthRange = Field(default_factory=LengthRange)
    filters: Filters = Field(default_factory=Filters)
    guidelines: Guidelines = Field(default_factory=Guidelines)
    injected_ai_titles: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("injectedAITitles", "injectedAiTitles", "injected_ai_titles"),
    )
    text_provider: Optional[str] = None

    @field_validator("content", "subject", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("tone", mode="before")
    @classmethod
    def default_tone(cls, v: Any) -> str:
        return str(v).strip() if v else "객관적"

    @field_validator("tags", "injected_ai_titles", mode="before")
    @classmethod
    def coerce_string_list(cls, v: Any) -> list[str]:
        return [o.value for o in normalize_options(v)]

    @field_validator("length_range", mode="before")
    @classmethod
    def coerce_length_range(cls, v: Any) -> LengthRange:
        return LengthRange.from_raw(v)

    @field_validator("filters", mode="before")
    @classmethod
    def coerce_filters(cls, v: Any) -> Filters:
        return Filters.from_raw(v)

    @field_validator("guidelines", mode="before")
    @classmethod
    def coerce_guidelines(cls, v: Any) -> Guidelines:
        return Guidelines.from_raw(v)

    @field_validator("text_provider", mode="before")
    @classmethod
    def normalize_provider(cls, v: Any) -> Optional[str]:
        return str(v).strip().lower() if v else None


class SeoBlock(BaseModel):
    title: str
    description: str


class EnhanceResponse(_CamelModel):
    """Headline result. Never carries an empty title."""

    title: str
    seo: SeoBlock
    candidates: list[str]
    meta_description: str = ""
    source: str = "fallback"
    error: Optional[str] = None
    diagnostics: Optional[dict] = None

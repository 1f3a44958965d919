"""
Content analysis: turns an article body plus tags/subject/tone into the
structured signals the generator and evaluator work from.

Extraction is lexical and deterministic:
- headings from markdown # / ## / ### lines
- key phrases from tags, subject words, a domain lexicon and body frequency
- the first substantive paragraph, split into sentences and key points
- statistics (percentages, currency, large counts, multiples) with context
- organization/location entities plus repeated capitalized Latin tokens
- lexicon-based sentiment

Nothing here raises on empty input; missing text yields empty tuples and a
neutral sentiment.
"""

import re
from collections import Counter
from dataclasses import dataclass, field, asdict
from typing import Optional

from .cache import CacheManager
from .lexicons import (
    COMMON_KEYWORDS,
    GLOBAL_COMPANIES,
    KOREAN_COMPANIES,
    LOCATIONS,
    PARAGRAPH_SKIP_MARKERS,
    SENTIMENT_NEGATIVE,
    SENTIMENT_NEUTRAL,
    SENTIMENT_POSITIVE,
    STOPWORDS,
)
from .logging_conf import get_logger

logger = get_logger(__name__)

DEFAULT_TONE = "객관적"

MAX_KEY_PHRASES = 10
MAX_STATISTICS = 5
MAX_ENTITIES = 8
CONTEXT_RADIUS = 20

PERCENT_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*%")
WON_PATTERN = re.compile(r"\d[\d,.]*\s*(?:조|억|만)?\s*원")
DOLLAR_PATTERN = re.compile(r"\$\s?\d[\d,.]*")
COUNT_PATTERN = re.compile(r"(\d{1,3}(?:,\d{3})+|\d{4,})")
MULTIPLE_PATTERN = re.compile(r"(\d+)\s*배")
TOKEN_PATTERN = re.compile(r"[가-힣A-Za-z0-9]{2,}")
PROPER_NOUN_PATTERN = re.compile(r"(?<![A-Za-z0-9])[A-Z][A-Za-z0-9]+")
SENTENCE_SPLIT = re.compile(r"[.!?]")


# =====================================================
# RESULT TYPES
# =====================================================

@dataclass(frozen=True)
class Heading:
    level: int
    text: str
    position: int  # line index
    chars: int


@dataclass(frozen=True)
class KeyPhrase:
    phrase: str
    frequency: int
    importance: float
    source: str  # tag, subject, common, frequent


@dataclass(frozen=True)
class FirstParagraph:
    text: str = ""
    sentences: tuple[str, ...] = ()
    key_points: tuple[str, ...] = ()
    chars: int = 0


@dataclass(frozen=True)
class Statistic:
    value: str
    context: str
    position: int  # character offset
    type: str  # percentage, currency, number, multiple


@dataclass(frozen=True)
class Entity:
    text: str
    type: str  # ORGANIZATION, LOCATION, PROPER_NOUN
    subtype: str
    frequency: int
    confidence: float


@dataclass(frozen=True)
class Sentiment:
    overall: str = "neutral"
    confidence: float = 0.5
    aspects: dict = field(default_factory=lambda: {
        "technology": "neutral",
        "market": "neutral",
        "future": "neutral",
    })
    word_counts: dict = field(default_factory=lambda: {
        "positive": 0,
        "negative": 0,
        "neutral": 0,
    })


@dataclass(frozen=True)
class ContentAnalysis:
    """Structured view of one article. Immutable once produced."""
    headings: tuple[Heading, ...]
    key_phrases: tuple[KeyPhrase, ...]
    first_paragraph: FirstParagraph
    statistics: tuple[Statistic, ...]
    entities: tuple[Entity, ...]
    sentiment: Sentiment
    tags: tuple[str, ...] = ()
    subject: str = ""
    tone: str = DEFAULT_TONE
    content_length: int = 0
    fingerprint: str = ""

    @property
    def top_keyword(self) -> str:
        return self.key_phrases[0].phrase if self.key_phrases else ""

    def headings_at(self, level: int) -> list[Heading]:
        return [h for h in self.headings if h.level == level]

    def summary(self) -> dict:
        """Counts, sentiment label and the top three keywords."""
        return {
            "content_length": self.content_length,
            "headings_count": len(self.headings),
            "key_phrases_count": len(self.key_phrases),
            "statistics_count": len(self.statistics),
            "entities_count": len(self.entities),
            "sentiment": self.sentiment.overall,
            "has_first_paragraph": bool(self.first_paragraph.text),
            "top_keywords": [kp.phrase for kp in self.key_phrases[:3]],
        }

    def to_dict(self) -> dict:
        return asdict(self)


# =====================================================
# EXTRACTORS
# =====================================================

def _count(term: str, text: str) -> int:
    """Case-insensitive, non-overlapping occurrence count."""
    if not term:
        return 0
    return len(re.findall(re.escape(term), text, re.IGNORECASE))


def extract_headings(content: str) -> list[Heading]:
    headings = []
    for i, raw in enumerate(content.split("\n")):
        line = raw.strip()
        if line.startswith("# "):
            level, min_len = 1, 5
        elif line.startswith("## "):
            level, min_len = 2, 3
        elif line.startswith("### "):
            level, min_len = 3, 3
        else:
            continue

        text = line[level + 1:].strip()
        if len(text) > min_len:
            headings.append(Heading(level=level, text=text, position=i, chars=len(text)))

    return headings


def extract_key_phrases(content: str, tags: list[str], subject: str) -> list[KeyPhrase]:
    phrases: list[KeyPhrase] = []

    for tag in tags:
        f = _count(tag, content)
        if f:
            phrases.append(KeyPhrase(tag, f, min(0.9, 0.3 + f * 0.1), "tag"))

    for word in subject.split():
        if len(word) <= 2:
            continue
        f = _count(word, content)
        if f:
            phrases.append(KeyPhrase(word, f, min(0.8, 0.2 + f * 0.1), "subject"))

    for keyword in COMMON_KEYWORDS:
        f = _count(keyword, content)
        if f:
            phrases.append(KeyPhrase(keyword, f, min(0.7, 0.1 + f * 0.05), "common"))

    # Frequent body tokens, first spelling wins
    counts: Counter = Counter()
    spelling: dict[str, str] = {}
    for token in TOKEN_PATTERN.findall(content):
        key = token.lower()
        if key in STOPWORDS or key.isdigit():
            continue
        counts[key] += 1
        spelling.setdefault(key, token)

    for key, f in counts.most_common():
        if f < 3:
            break
        phrases.append(KeyPhrase(spelling[key], f, min(0.6, 0.05 + f * 0.05), "frequent"))

    unique: list[KeyPhrase] = []
    seen: set[str] = set()
    for kp in phrases:
        key = kp.phrase.lower()
        if key not in seen:
            seen.add(key)
            unique.append(kp)

    unique.sort(key=lambda kp: kp.importance, reverse=True)
    return unique[:MAX_KEY_PHRASES]


def _keyword_density(sentence: str, key_phrases: list[KeyPhrase]) -> float:
    lower = sentence.lower()
    hits = sum(1 for kp in key_phrases if kp.phrase.lower() in lower)
    return hits / max(1, len(sentence.split()))


def extract_first_paragraph(content: str, key_phrases: list[KeyPhrase]) -> FirstParagraph:
    paragraph = None
    for raw in content.split("\n"):
        line = raw.strip()
        if len(line) <= 20 or line[0] in "#(-*":
            continue
        if any(marker in line for marker in PARAGRAPH_SKIP_MARKERS):
            continue
        paragraph = line
        break

    if paragraph is None:
        return FirstParagraph()

    sentences = [s.strip() for s in SENTENCE_SPLIT.split(paragraph)]
    sentences = [s for s in sentences if len(s) > 5]

    key_points = []
    if sentences:
        key_points.append(sentences[0])
        rest = list(enumerate(sentences[1:], start=1))
        if rest:
            _, densest = max(
                rest,
                key=lambda pair: (_keyword_density(pair[1], key_phrases), len(pair[1]), pair[0]),
            )
            key_points.append(densest)

    return FirstParagraph(
        text=paragraph,
        sentences=tuple(sentences),
        key_points=tuple(key_points),
        chars=len(paragraph),
    )


def _context(content: str, position: int, radius: int = CONTEXT_RADIUS) -> str:
    start = max(0, position - radius)
    end = min(len(content), position + radius)
    return content[start:end].strip()


def extract_statistics(content: str) -> list[Statistic]:
    found: list[Statistic] = []

    for m in PERCENT_PATTERN.finditer(content):
        found.append(Statistic(f"{m.group(1)}%", _context(content, m.start()), m.start(), "percentage"))

    for pattern in (WON_PATTERN, DOLLAR_PATTERN):
        for m in pattern.finditer(content):
            value = re.sub(r"\s+", "", m.group(0))
            found.append(Statistic(value, _context(content, m.start()), m.start(), "currency"))

    for m in COUNT_PATTERN.finditer(content):
        found.append(Statistic(m.group(1), _context(content, m.start()), m.start(), "number"))

    for m in MULTIPLE_PATTERN.finditer(content):
        found.append(Statistic(f"{m.group(1)}배", _context(content, m.start()), m.start(), "multiple"))

    unique: list[Statistic] = []
    seen: set[tuple[str, int]] = set()
    for stat in found:
        key = (stat.value, stat.position)
        if key not in seen:
            seen.add(key)
            unique.append(stat)

    unique.sort(key=lambda s: s.position)
    return unique[:MAX_STATISTICS]


def extract_entities(content: str) -> list[Entity]:
    patterns = (
        [(name, "ORGANIZATION", "korean") for name in KOREAN_COMPANIES]
        + [(name, "ORGANIZATION", "global") for name in GLOBAL_COMPANIES]
        + [(name, "LOCATION", "region") for name in LOCATIONS]
    )

    entities: list[Entity] = []
    known: set[str] = set()
    for name, etype, subtype in patterns:
        known.add(name.lower())
        f = _count(name, content)
        if f:
            entities.append(Entity(name, etype, subtype, f, min(1.0, 0.8 + f * 0.05)))

    proper_nouns = Counter(PROPER_NOUN_PATTERN.findall(content))
    for token, f in proper_nouns.most_common():
        if f < 2:
            break
        if token.lower() in known:
            continue
        entities.append(Entity(token, "PROPER_NOUN", "latin", f, min(0.9, 0.5 + f * 0.05)))

    entities.sort(key=lambda e: e.frequency, reverse=True)
    return entities[:MAX_ENTITIES]


def analyze_sentiment(content: str) -> Sentiment:
    lower = content.lower()
    positive = sum(lower.count(w) for w in SENTIMENT_POSITIVE)
    negative = sum(lower.count(w) for w in SENTIMENT_NEGATIVE)
    neutral = sum(lower.count(w) for w in SENTIMENT_NEUTRAL)
    total = positive + negative + neutral

    overall, confidence = "neutral", 0.5
    if total:
        positive_ratio = positive / total
        negative_ratio = negative / total
        if positive_ratio > 0.4:
            overall, confidence = "positive", min(0.9, 0.5 + positive_ratio)
        elif negative_ratio > 0.4:
            overall, confidence = "negative", min(0.9, 0.5 + negative_ratio)

    if total > 5:
        market = "positive" if positive > negative else "negative"
    else:
        market = "neutral"

    return Sentiment(
        overall=overall,
        confidence=confidence,
        aspects={
            "technology": "positive" if positive > negative else "neutral",
            "market": market,
            "future": "optimistic" if positive > 0 else "neutral",
        },
        word_counts={"positive": positive, "negative": negative, "neutral": neutral},
    )


def analyze_content(
    content: Optional[str],
    tags: Optional[list[str]] = None,
    subject: Optional[str] = None,
    tone: Optional[str] = None,
    fingerprint: str = "",
) -> ContentAnalysis:
    """Run every extractor over the body. Pure function."""
    content = content or ""
    tags = [t for t in (tags or []) if t and t.strip()]
    subject = subject or ""
    tone = tone or DEFAULT_TONE

    key_phrases = extract_key_phrases(content, tags, subject)

    return ContentAnalysis(
        headings=tuple(extract_headings(content)),
        key_phrases=tuple(key_phrases),
        first_paragraph=extract_first_paragraph(content, key_phrases),
        statistics=tuple(extract_statistics(content)),
        entities=tuple(extract_entities(content)),
        sentiment=analyze_sentiment(content),
        tags=tuple(tags),
        subject=subject,
        tone=tone,
        content_length=len(content),
        fingerprint=fingerprint,
    )


class ContentAnalyzer:
    """
    Cached front-end to analyze_content.

    Results are memoized in the content-analysis cache keyed by the
    (content, tags, subject, tone) fingerprint.
    """

    def __init__(self, cache: Optional[CacheManager] = None):
        self.cache = cache

    def analyze(
        self,
        content: Optional[str],
        tags: Optional[list[str]] = None,
        subject: Optional[str] = None,
        tone: Optional[str] = None,
    ) -> ContentAnalysis:
        key = CacheManager.content_key(content, tags, subject, tone or DEFAULT_TONE)

        if self.cache is not None:
            cached = self.cache.get_content_analysis(key)
            if cached is not None:
                logger.debug("content_analysis_cache_hit", key=key)
                return cached

        try:
            analysis = analyze_content(content, tags, subject, tone, fingerprint=key)
        except Exception as e:
            logger.error("content_analysis_failed", error=str(e))
            analysis = ContentAnalysis(
                headings=(),
                key_phrases=(),
                first_paragraph=FirstParagraph(),
                statistics=(),
                entities=(),
                sentiment=Sentiment(),
                tags=tuple(t for t in tags or () if t),
                subject=subject or "",
                tone=tone or DEFAULT_TONE,
                content_length=len(content or ""),
                fingerprint=key,
            )
            return analysis

        if self.cache is not None:
            self.cache.set_content_analysis(key, analysis)

        logger.info(
            "content_analyzed",
            content_length=analysis.content_length,
            headings=len(analysis.headings),
            key_phrases=len(analysis.key_phrases),
            statistics=len(analysis.statistics),
            entities=len(analysis.entities),
            sentiment=analysis.sentiment.overall,
        )
        return analysis

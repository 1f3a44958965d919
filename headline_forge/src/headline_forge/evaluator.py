"""
Six-axis headline quality evaluation with a hard filter gate.

Scores (each in [0, 1]):
- relevance   0.25  keyword/entity/subject/statistic/sentiment/heading overlap
- length      0.15  character window, word count and word-length balance
- readability 0.20  structural, linguistic, visual, cognitive, grammatical
- seo         0.15  keyword placement, 30-60 char sweet spot, structure,
                    search intent, markup safety
- engagement  0.15  emotional appeal, curiosity, utility, urgency, authority
- compliance  0.10  sequential multiplicative dampening from 0.8

The gate (passes_filters) is independent of the overall score: a title that
violates any hard constraint fails even with a perfect score.

Reasons and recommendations are Korean, deterministic, and ordered weakest
axis first.
"""

import re
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from .analyzer import ContentAnalysis
from .cache import CacheManager
from .lexicons import (
    ABSTRACT_WORDS, AUTHORITY_WORDS, CATEGORY_KEYWORDS, CATEGORY_NAMES,
    CHALLENGE_WORDS, CLICKBAIT_MILD, CLICKBAIT_MODERATE, CLICKBAIT_SEVERE,
    COMPLEX_TERMS, CONCEPT_WORDS, CONCRETE_WORDS, CONTRAST_WORDS, COPYRIGHT_WORDS,
    CURIOSITY_PATTERNS, DISCRIMINATORY_WORDS, EASY_WORDS, EMOTIONAL_POSITIVE,
    EXAGGERATED_CLAIMS, EXCESSIVE_WORDS, FEAR_WORDS, FINANCIAL_CLAIMS, HANGUL_PATTERN,
    HTML_CHARS, LATIN_PATTERN, LATIN_WORD_PATTERN, LOCATION_WORDS, MEANINGLESS_PATTERNS,
    MEDICAL_CLAIMS, PARTICLES, PROFESSIONAL_WORDS, REASON_CLICKBAIT_WORDS,
    REASON_EMOTIONAL_WORDS, RECENCY_WORDS, RECOMMEND_CLICKBAIT_WORDS,
    RECOMMEND_COMPLEX_TERMS, RECOMMEND_EMOTIONAL, RECOMMEND_EXAGGERATED,
    RECOMMEND_INTENT_WORDS, RECOMMEND_UTILITY, RELEVANCE_NEGATIVE, RELEVANCE_POSITIVE,
    RESULT_WORDS, SEARCH_INTENT_WORDS, SPECIAL_CHAR_PATTERN, SYSTEMATIC_WORDS,
    TIME_WORDS, TONE_AUTHORITATIVE, TONE_CASUAL, TONE_EXTREME, TONE_POSITIVE,
    TONE_POSITIVE_NEGATIVE, TREND_WORDS, UNSAFE_META_PATTERN, URGENT_WORDS,
    UTILITY_WORDS, count_present, find_present,
)
from .logging_conf import get_logger
from .models import Filters, Guidelines

logger = get_logger(__name__)

SCORE_WEIGHTS = {
    "relevance": 0.25,
    "length": 0.15,
    "readability": 0.20,
    "seo": 0.15,
    "engagement": 0.15,
    "compliance": 0.10,
}
AXES = tuple(SCORE_WEIGHTS)

MAX_RECOMMENDATIONS = 8
ERROR_SCORE = 0.1


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def split_words(title: str) -> list[str]:
    """Whitespace split that keeps leading/trailing empties, like a regex split."""
    return re.split(r"\s+", title)


def special_char_count(title: str) -> int:
    return len(SPECIAL_CHAR_PATTERN.findall(title))


def overall_score(scores: dict[str, float]) -> float:
    """Weighted average over the axes present in scores."""
    weighted = 0.0
    total = 0.0
    for axis, weight in SCORE_WEIGHTS.items():
        if axis in scores:
            weighted += scores[axis] * weight
            total += weight
    return weighted / total if total else 0.0


@dataclass
class EvaluationResult:
    """Quality verdict for one title."""
    title: str
    scores: dict[str, float] = field(default_factory=dict)
    overall_score: float = 0.0
    passes_filters: bool = False
    failed_filters: list[str] = field(default_factory=list)
    reasons: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)

    @property
    def weakest_axis(self) -> Optional[str]:
        if not self.scores:
            return None
        return min(self.scores, key=self.scores.get)

    def to_dict(self) -> dict:
        return asdict(self)


class TitleQualityEvaluator:
    """
    Scores titles against one article's analysis and the active constraints.

    Args:
        analysis: ContentAnalysis of the article (None scores relevance at 0.1)
        filters: Active Filters
        guidelines: Active Guidelines
        cache: Optional CacheManager for evaluation memoization
        clock: Returns the evaluation timestamp (UTC now by default)
    """

    def __init__(
        self,
        analysis: Optional[ContentAnalysis] = None,
        filters: Optional[Filters] = None,
        guidelines: Optional[Guidelines] = None,
        cache: Optional[CacheManager] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.analysis = analysis
        self.filters = filters or Filters()
        self.guidelines = guidelines or Guidelines()
        self.cache = cache
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def subject(self) -> str:
        return self.analysis.subject if self.analysis else ""

    # =====================================================
    # ENTRY POINTS
    # =====================================================

    def evaluate_title(self, title: Optional[str]) -> EvaluationResult:
        """Score, gate and explain one title. Cached per (title, content, filters, guidelines)."""
        title = title or ""
        key = CacheManager.evaluation_key(
            title,
            self.analysis.fingerprint if self.analysis else "",
            self.filters,
            self.guidelines,
        )

        if self.cache is not None:
            cached = self.cache.get_evaluation(key)
            if cached is not None:
                return cached

        result = self._perform(title)

        if self.cache is not None:
            self.cache.set_evaluation(key, result)

        logger.debug(
            "title_evaluated",
            title=title,
            overall=round(result.overall_score, 3),
            passes=result.passes_filters,
        )
        return result

    def evaluate_titles(self, titles: Iterable[str]) -> list[EvaluationResult]:
        """Evaluate many titles, best overall score first."""
        results = [self.evaluate_title(t) for t in titles]
        results.sort(key=lambda r: r.overall_score, reverse=True)
        return results

    def best_passing(self, titles: Iterable[str]) -> Optional[EvaluationResult]:
        """First title (in the given order) that clears the gate."""
        for title in titles:
            result = self.evaluate_title(title)
            if result.passes_filters:
                return result
        return None

    def _perform(self, title: str) -> EvaluationResult:
        result = EvaluationResult(
            title=title,
            metadata={
                "title_length": len(title),
                "word_count": len(split_words(title)),
                "evaluated_at": self._clock().isoformat(),
            },
        )

        try:
            scores = {
                "relevance": _clamp(self.relevance_score(title)),
                "length": _clamp(self.length_score(title)),
                "readability": _clamp(self.readability_score(title)),
                "seo": _clamp(self.seo_score(title)),
                "engagement": _clamp(self.engagement_score(title)),
                "compliance": _clamp(self.compliance_score(title)),
            }
            result.scores = scores
            result.overall_score = _clamp(overall_score(scores))
            result.failed_filters = self.failed_filters(title, scores)
            result.passes_filters = not result.failed_filters
            result.reasons = result.failed_filters + self.evaluation_reasons(title, scores)
            result.recommendations = self.recommendations(title, scores)

        except Exception as e:
            logger.error("title_evaluation_failed", title=title, error=str(e))
            result.scores = {axis: ERROR_SCORE for axis in AXES}
            result.overall_score = ERROR_SCORE
            result.passes_filters = False
            result.failed_filters = [f"평가 중 오류 발생: {e}"]
            result.reasons = [f"평가 중 오류 발생: {e}"]
            result.recommendations = ["제목을 다시 확인해 주세요"]

        return result

    # =====================================================
    # RELEVANCE
    # =====================================================

    def relevance_score(self, title: str) -> float:
        score = 0.1
        a = self.analysis
        if a is None:
            return score

        lower = title.lower()
        words = [w.lower() for w in split_words(title) if w]

        score += self._keyword_relevance(lower, words) * 0.4
        score += self._entity_relevance(lower) * 0.2
        score += self._subject_relevance(lower) * 0.15
        score += self._statistics_relevance(title) * 0.1
        score += self._sentiment_relevance(lower) * 0.1
        score += self._heading_relevance(lower) * 0.05
        return min(1.0, score)

    def _keyword_relevance(self, lower: str, words: list[str]) -> float:
        phrases = self.analysis.key_phrases
        if not phrases:
            return 0.0

        score = 0.0
        total = 0.0
        for kp in phrases:
            phrase = kp.phrase.lower()
            importance = kp.importance or 0.5
            total += importance
            if phrase in lower:
                score += importance
            elif any(phrase in w or w in phrase for w in words):
                score += importance * 0.5

        return min(1.0, score / total) if total else 0.0

    def _entity_relevance(self, lower: str) -> float:
        entities = self.analysis.entities
        if not entities:
            return 0.0
        total = sum(e.confidence or 0.5 for e in entities)
        matched = sum(e.confidence or 0.5 for e in entities if e.text.lower() in lower)
        return min(1.0, matched / total) if total else 0.0

    def _subject_relevance(self, lower: str) -> float:
        if not self.subject:
            return 0.5
        words = [w for w in self.subject.lower().split() if len(w) > 2]
        if not words:
            return 0.5
        return min(1.0, sum(1 for w in words if w in lower) / len(words))

    def _statistics_relevance(self, title: str) -> float:
        stats = self.analysis.statistics
        if not stats:
            return 0.5
        return 1.0 if any(s.value in title for s in stats) else 0.3

    def _sentiment_relevance(self, lower: str) -> float:
        overall = self.analysis.sentiment.overall
        has_positive = count_present(lower, RELEVANCE_POSITIVE) > 0
        has_negative = count_present(lower, RELEVANCE_NEGATIVE) > 0

        if overall == "positive" and has_positive:
            return 1.0
        if overall == "negative" and has_negative:
            return 1.0
        if overall == "neutral" and not has_positive and not has_negative:
            return 1.0
        return 0.6

    def _heading_relevance(self, lower: str) -> float:
        headings = self.analysis.headings
        if not headings:
            return 0.5
        for h in headings:
            text = h.text.lower()
            if text in lower or lower in text:
                return 1.0
        return 0.3

    # =====================================================
    # LENGTH
    # =====================================================

    def length_score(self, title: str) -> float:
        chars = len(title)
        words = len(split_words(title))
        score = (
            self._char_length_score(chars) * 0.6
            + self._word_count_score(words) * 0.25
            + self._balance_score(chars, words) * 0.15
        )
        return min(1.0, score)

    def _char_length_score(self, chars: int) -> float:
        lo, hi = self.filters.title_len.min, self.filters.title_len.max
        if chars < lo:
            return max(0.1, 0.5 - (lo - chars) * 0.05)
        if chars > hi:
            return max(0.1, 0.5 - (chars - hi) * 0.02)

        optimal = (lo + hi) / 2
        max_distance = max(optimal - lo, hi - optimal)
        if not max_distance:
            return 1.0
        return max(0.7, 1 - (abs(chars - optimal) / max_distance) * 0.3)

    @staticmethod
    def _word_count_score(words: int) -> float:
        if 4 <= words <= 10:
            return 1.0
        if 2 <= words <= 15:
            return 0.8
        if 1 <= words <= 20:
            return 0.6
        return 0.3

    @staticmethod
    def _balance_score(chars: int, words: int) -> float:
        if words == 0:
            return 0.1
        avg = chars / words
        if 3 <= avg <= 8:
            return 1.0
        if 2 <= avg <= 12:
            return 0.7
        return 0.4

    # =====================================================
    # READABILITY
    # =====================================================

    def readability_score(self, title: str) -> float:
        score = (
            self._structural_readability(title) * 0.3
            + self._linguistic_readability(title) * 0.25
            + self._visual_readability(title) * 0.2
            + self._cognitive_readability(title) * 0.15
            + self._grammatical_readability(title) * 0.1
        )
        return min(1.0, score)

    @staticmethod
    def _avg_word_length(title: str) -> float:
        return len(re.sub(r"\s", "", title)) / len(split_words(title))

    def _structural_readability(self, title: str) -> float:
        score = 0.5
        words = len(split_words(title))
        if 3 <= words <= 12:
            score += 0.3
        elif 2 <= words <= 15:
            score += 0.1
        if 3 <= self._avg_word_length(title) <= 8:
            score += 0.2
        return min(1.0, score)

    @staticmethod
    def _linguistic_readability(title: str) -> float:
        score = 0.6
        lower = title.lower()
        if count_present(lower, COMPLEX_TERMS) > 2:
            score -= 0.2
        if count_present(lower, EASY_WORDS) > 0:
            score += 0.2
        if len(LATIN_WORD_PATTERN.findall(title)) > 3:
            score -= 0.1
        return min(1.0, score)

    @staticmethod
    def _visual_readability(title: str) -> float:
        score = 0.7
        specials = special_char_count(title)
        if specials > 3:
            score -= 0.3
        elif specials <= 1:
            score += 0.2

        if "  " in title:
            score -= 0.2

        all_caps = [w for w in LATIN_WORD_PATTERN.findall(title) if w == w.upper() and len(w) > 1]
        if len(all_caps) > 1:
            score -= 0.1

        if re.search(r"\d", title) and re.search(r"[가-힣A-Za-z]", title):
            score += 0.1
        return min(1.0, score)

    @staticmethod
    def _cognitive_readability(title: str) -> float:
        score = 0.6
        words = split_words(title)
        unique = {w.lower() for w in words}
        if 1 - len(unique) / len(words) > 0.3:
            score -= 0.2

        lower = title.lower()
        if count_present(lower, CONCEPT_WORDS) > 2:
            score -= 0.1

        concrete = count_present(lower, CONCRETE_WORDS)
        abstract = count_present(lower, ABSTRACT_WORDS)
        if concrete > 0 and abstract <= concrete:
            score += 0.2
        return min(1.0, score)

    @staticmethod
    def _grammatical_readability(title: str) -> float:
        score = 0.8
        if title.startswith(" ") or title.endswith(" "):
            score -= 0.2
        if title.count("?") > 1 or title.count("!") > 1:
            score -= 0.1
        if count_present(title, PARTICLES) > 0:
            score += 0.1
        return min(1.0, score)

    # =====================================================
    # SEO
    # =====================================================

    def seo_score(self, title: str) -> float:
        score = (
            self._seo_keyword_score(title) * 0.35
            + self._seo_length_score(title) * 0.25
            + self._seo_structure_score(title) * 0.2
            + self._search_friendly_score(title) * 0.15
            + self._metadata_score(title) * 0.05
        )
        return min(1.0, score)

    def _matched_phrases(self, lower: str) -> list:
        if self.analysis is None:
            return []
        return [kp for kp in self.analysis.key_phrases if kp.phrase.lower() in lower]

    def _seo_keyword_score(self, title: str) -> float:
        score = 0.2
        if self.analysis is None:
            return score

        lower = title.lower()
        matches = self._matched_phrases(lower)
        if matches:
            score += 0.4
            position = lower.find(matches[0].phrase.lower())
            if position < len(title) * 0.3:
                score += 0.2
            elif position < len(title) * 0.5:
                score += 0.1

        if len(matches) / len(split_words(title)) > 0.5:
            score -= 0.1

        if any(len(kp.phrase.split(" ")) >= 2 for kp in matches):
            score += 0.1
        return min(1.0, score)

    @staticmethod
    def _seo_length_score(title: str) -> float:
        chars = len(title)
        if 30 <= chars <= 60:
            return 1.0
        if 25 <= chars <= 70:
            return 0.8
        if 20 <= chars <= 80:
            return 0.6
        if 15 <= chars <= 100:
            return 0.4
        return 0.2

    @staticmethod
    def _seo_structure_score(title: str) -> float:
        score = 0.5
        has_colon = ":" in title
        if has_colon or "-" in title or "–" in title:
            score += 0.2
        if has_colon and len(title.split(":")) == 2:
            score += 0.1
        if re.search(r"\d", title):
            score += 0.1
        if "?" in title:
            score += 0.1
        return min(1.0, score)

    @staticmethod
    def _search_friendly_score(title: str) -> float:
        score = 0.4
        lower = title.lower()
        intent = count_present(lower, SEARCH_INTENT_WORDS)
        if intent:
            score += min(0.3, intent * 0.1)
        if count_present(lower, LOCATION_WORDS):
            score += 0.1
        if count_present(lower, RECENCY_WORDS):
            score += 0.1
        if special_char_count(title) > 3:
            score -= 0.1
        return min(1.0, score)

    @staticmethod
    def _metadata_score(title: str) -> float:
        score = 0.8
        if any(c in title for c in HTML_CHARS):
            score -= 0.3
        if UNSAFE_META_PATTERN.search(title):
            score -= 0.2
        if len(title) <= 70:
            score += 0.1
        return min(1.0, score)

    # =====================================================
    # ENGAGEMENT
    # =====================================================

    def engagement_score(self, title: str) -> float:
        score = (
            self._emotional_score(title) * 0.3
            + self._curiosity_score(title) * 0.25
            + self._utility_score(title) * 0.2
            + self._urgency_score(title) * 0.15
            + self._social_proof_score(title) * 0.1
        )
        return min(1.0, score)

    @staticmethod
    def _emotional_score(title: str) -> float:
        score = 0.3
        lower = title.lower()

        positive = count_present(lower, EMOTIONAL_POSITIVE)
        if positive:
            score += min(0.4, positive * 0.15)

        professional = count_present(lower, PROFESSIONAL_WORDS)
        if 0 < professional <= 2:
            score += min(0.2, professional * 0.1)

        challenge = count_present(lower, CHALLENGE_WORDS)
        if challenge:
            score += min(0.2, challenge * 0.1)

        score -= count_present(lower, EXCESSIVE_WORDS) * 0.3
        return max(0.1, min(1.0, score))

    @staticmethod
    def _curiosity_score(title: str) -> float:
        score = 0.2
        lower = title.lower()
        if "?" in title:
            score += 0.3

        numbers = re.findall(r"\d+", title)
        if numbers:
            score += min(0.2, len(numbers) * 0.1)

        curiosity = count_present(lower, CURIOSITY_PATTERNS)
        if curiosity:
            score += min(0.3, curiosity * 0.15)

        if count_present(lower, CONTRAST_WORDS):
            score += 0.2
        return min(1.0, score)

    @staticmethod
    def _utility_score(title: str) -> float:
        score = 0.3
        lower = title.lower()
        utility = count_present(lower, UTILITY_WORDS)
        if utility:
            score += min(0.4, utility * 0.2)
        if count_present(lower, SYSTEMATIC_WORDS):
            score += 0.2
        if count_present(lower, RESULT_WORDS):
            score += 0.1
        return min(1.0, score)

    @staticmethod
    def _urgency_score(title: str) -> float:
        score = 0.4
        lower = title.lower()
        timely = count_present(lower, TIME_WORDS)
        if timely:
            score += min(0.3, timely * 0.15)
        if count_present(lower, TREND_WORDS):
            score += 0.2
        urgent = count_present(lower, URGENT_WORDS)
        if urgent:
            score += min(0.1, urgent * 0.05)
        return min(1.0, score)

    def _social_proof_score(self, title: str) -> float:
        score = 0.5
        lower = title.lower()
        authority = count_present(lower, AUTHORITY_WORDS)
        if authority:
            score += min(0.3, authority * 0.1)

        a = self.analysis
        if a is not None:
            if a.statistics and any(s.value in title for s in a.statistics):
                score += 0.2
            if a.entities and any(e.text.lower() in lower for e in a.entities):
                score += 0.1
        return min(1.0, score)

    # =====================================================
    # COMPLIANCE
    # =====================================================

    def compliance_score(self, title: str) -> float:
        """Compounding dampers applied in a fixed order; never averaged."""
        score = 0.8
        score *= 0.6 + self._banned_words_compliance(title) * 0.4
        score *= 0.7 + self._clickbait_compliance(title) * 0.3
        score *= 0.85 + self._brand_tone_compliance(title) * 0.15
        score *= 0.9 + self._ethical_compliance(title) * 0.1
        score *= 0.95 + self._legal_compliance(title) * 0.05
        return _clamp(score)

    def found_banned(self, title: str) -> list[str]:
        lower = title.lower()
        return [b for b in self.filters.exclude_terms if b.lower() in lower]

    def _banned_words_compliance(self, title: str) -> float:
        banned = self.filters.exclude_terms
        if not banned:
            return 1.0
        found = self.found_banned(title)
        if not found:
            return 1.0
        return max(0.0, 1.0 - (len(found) / len(banned)) * 2)

    def _clickbait_compliance(self, title: str) -> float:
        if not self.guidelines.clickbait_avoidance:
            return 1.0
        lower = title.lower()
        score = 1.0
        score -= count_present(lower, CLICKBAIT_SEVERE) * 0.4
        score -= count_present(lower, CLICKBAIT_MODERATE) * 0.2
        score -= count_present(lower, CLICKBAIT_MILD) * 0.1
        return max(0.0, score)

    def _brand_tone_compliance(self, title: str) -> float:
        lower = title.lower()
        score = 0.8
        tone = self.guidelines.brand_tone

        if tone == "positive":
            if count_present(lower, TONE_POSITIVE):
                score += 0.2
            if count_present(lower, TONE_POSITIVE_NEGATIVE):
                score -= 0.1
        elif tone == "authoritative":
            if count_present(lower, TONE_AUTHORITATIVE):
                score += 0.2
            if count_present(lower, TONE_CASUAL):
                score -= 0.2
        else:
            extreme = count_present(lower, TONE_EXTREME)
            if extreme == 0:
                score += 0.2
            else:
                score -= extreme * 0.1

        return max(0.0, min(1.0, score))

    @staticmethod
    def _ethical_compliance(title: str) -> float:
        lower = title.lower()
        score = 1.0
        score -= count_present(lower, DISCRIMINATORY_WORDS) * 0.3
        score -= count_present(lower, EXAGGERATED_CLAIMS) * 0.2
        fear = count_present(lower, FEAR_WORDS)
        if fear > 2:
            score -= (fear - 2) * 0.1
        return max(0.0, score)

    @staticmethod
    def _legal_compliance(title: str) -> float:
        lower = title.lower()
        score = 1.0
        score -= count_present(lower, MEDICAL_CLAIMS) * 0.2
        score -= count_present(lower, FINANCIAL_CLAIMS) * 0.2
        score -= count_present(lower, COPYRIGHT_WORDS) * 0.3
        return max(0.0, score)

    # =====================================================
    # HARD GATE
    # =====================================================

    def passes_filters(self, title: str, scores: dict[str, float]) -> bool:
        return not self.failed_filters(title, scores)

    def failed_filters(self, title: str, scores: dict[str, float]) -> list[str]:
        """Every violated hard constraint, as a Korean message."""
        f = self.filters
        lower = title.lower()
        failed: list[str] = []

        chars = len(title)
        if not f.title_len.contains(chars):
            failed.append(f"길이 기준 미달 ({chars}자, 기준: {f.title_len.min}-{f.title_len.max}자)")

        missing = [t for t in f.include_terms if t.lower() not in lower]
        if missing:
            failed.append(f"필수 키워드 누락: {', '.join(missing)}")

        banned = self.found_banned(title)
        if banned:
            failed.append(f"금지 키워드 포함: {', '.join(banned)}")

        missing_phrases = [p for p in f.phrase_include_terms if p.lower() not in lower]
        if missing_phrases:
            failed.append(f"필수 구문 누락: {', '.join(missing_phrases)}")

        banned_phrases = [p for p in f.phrase_exclude_terms if p.lower() in lower]
        if banned_phrases:
            failed.append(f"금지 구문 포함: {', '.join(banned_phrases)}")

        minimums = f.minimums()
        for axis in AXES:
            if scores.get(axis, 0.0) < minimums[axis]:
                failed.append(
                    f"{CATEGORY_NAMES[axis]} 점수 미달 ({scores.get(axis, 0.0):.2f}, 기준: {minimums[axis]})"
                )

        overall = overall_score(scores)
        if overall < f.min_overall_score:
            failed.append(f"전체 점수 미달 ({overall:.2f}, 기준: {f.min_overall_score})")

        failed.extend(self._quality_red_flags(title))
        return failed

    @staticmethod
    def _quality_red_flags(title: str) -> list[str]:
        flags = []

        words = split_words(title)
        if len({w.lower() for w in words}) / len(words) < 0.5:
            flags.append("중복 제목")

        if any(p.search(title) for p in MEANINGLESS_PATTERNS):
            flags.append("의미 없는 제목")

        if title and special_char_count(title) / len(title) > 0.3:
            flags.append("과도한 특수문자 사용")

        hangul = len(HANGUL_PATTERN.findall(title))
        latin = len(LATIN_PATTERN.findall(title))
        letters = hangul + latin
        consistent = False
        if letters:
            ko, en = hangul / letters, latin / letters
            consistent = ko >= 0.9 or en >= 0.9 or (ko >= 0.3 and en >= 0.3)
        if not consistent:
            flags.append("언어 일관성 부족")

        return flags

    # =====================================================
    # REASONS
    # =====================================================

    def evaluation_reasons(self, title: str, scores: dict[str, float]) -> list[str]:
        """Per-axis reasons (weakest axis first), then overall and balance."""
        builders = {
            "relevance": self._relevance_reasons,
            "length": self._length_reasons,
            "readability": self._readability_reasons,
            "seo": self._seo_reasons,
            "engagement": self._engagement_reasons,
            "compliance": self._compliance_reasons,
        }
        reasons: list[str] = []
        for axis in sorted(AXES, key=lambda a: scores[a]):
            reasons.extend(builders[axis](title, scores[axis]))

        reasons.append(self._overall_reason(overall_score(scores)))
        reasons.extend(self._special_reasons(scores))
        return reasons

    def _relevance_reasons(self, title: str, score: float) -> list[str]:
        if score >= 0.8:
            reasons = ["콘텐츠와의 관련성이 매우 높음 - 주요 키워드와 주제가 잘 반영됨"]
        elif score >= 0.6:
            reasons = ["콘텐츠와의 관련성이 양호함 - 핵심 내용이 적절히 표현됨"]
        elif score >= 0.4:
            reasons = ["콘텐츠와의 관련성이 보통 수준 - 일부 키워드 매칭"]
        elif score >= 0.2:
            reasons = ["콘텐츠와의 관련성이 낮음 - 주요 키워드 부족"]
        else:
            reasons = ["콘텐츠와의 관련성이 매우 낮음 - 핵심 내용 미반영"]

        if self.analysis is not None:
            lower = title.lower()
            keywords = len(self._matched_phrases(lower))
            if keywords:
                reasons.append(f"{keywords}개의 핵심 키워드가 제목에 포함됨")
            entities = sum(1 for e in self.analysis.entities if e.text.lower() in lower)
            if entities:
                reasons.append(f"{entities}개의 주요 개체명이 제목에 포함됨")
        return reasons

    def _length_reasons(self, title: str, score: float) -> list[str]:
        chars = len(title)
        words = len(split_words(title))

        if score >= 0.8:
            reasons = [f"제목 길이가 최적임 ({chars}자, {words}단어) - 검색 결과와 소셜 미디어에 적합"]
        elif score >= 0.6:
            reasons = [f"제목 길이가 적절함 ({chars}자, {words}단어) - 대부분의 플랫폼에서 잘 표시됨"]
        elif score >= 0.4:
            reasons = [f"제목 길이가 보통 수준 ({chars}자, {words}단어) - 일부 플랫폼에서 잘림 가능성"]
        elif chars < self.filters.title_len.min:
            reasons = [f"제목이 너무 짧음 ({chars}자) - 더 구체적인 정보 필요"]
        else:
            reasons = [f"제목이 너무 김 ({chars}자) - 간결성 개선 필요"]

        if 4 <= words <= 10:
            reasons.append("단어 수가 이상적임 - 정보 전달과 가독성의 균형")
        elif words < 4:
            reasons.append("단어 수가 적음 - 더 상세한 설명 고려")
        else:
            reasons.append("단어 수가 많음 - 핵심 내용으로 압축 고려")
        return reasons

    def _readability_reasons(self, title: str, score: float) -> list[str]:
        if score >= 0.8:
            reasons = ["가독성이 매우 우수함 - 명확하고 이해하기 쉬운 구조"]
        elif score >= 0.6:
            reasons = ["가독성이 양호함 - 대부분의 독자가 쉽게 이해 가능"]
        elif score >= 0.4:
            reasons = ["가독성이 보통 수준 - 일부 개선 여지 있음"]
        else:
            reasons = ["가독성 개선 필요 - 복잡하거나 이해하기 어려운 구조"]

        specials = special_char_count(title)
        if specials > 3:
            reasons.append("특수문자 사용이 과도함 - 시각적 복잡성 증가")
        elif specials <= 1:
            reasons.append("특수문자 사용이 적절함 - 깔끔한 시각적 인상")
        if "  " in title:
            reasons.append("연속 공백 존재 - 형식 정리 필요")
        if 3 <= self._avg_word_length(title) <= 8:
            reasons.append("평균 단어 길이가 적절함 - 읽기 편안함")
        return reasons

    def _seo_reasons(self, title: str, score: float) -> list[str]:
        if score >= 0.8:
            reasons = ["SEO 최적화가 매우 우수함 - 검색 엔진에서 높은 가시성 기대"]
        elif score >= 0.6:
            reasons = ["SEO 최적화가 양호함 - 검색 결과에서 적절한 노출 가능"]
        elif score >= 0.4:
            reasons = ["SEO 최적화가 보통 수준 - 일부 개선으로 검색 성과 향상 가능"]
        else:
            reasons = ["SEO 최적화 개선 필요 - 검색 엔진 가시성 제한적"]

        if 30 <= len(title) <= 60:
            reasons.append("검색 결과 표시에 최적화된 길이")
        if self._matched_phrases(title.lower()):
            reasons.append("주요 검색 키워드 포함으로 검색 매칭 가능성 높음")
        if re.search(r"\d", title):
            reasons.append("숫자 포함으로 구체성과 검색 친화성 향상")
        return reasons

    @staticmethod
    def _engagement_reasons(title: str, score: float) -> list[str]:
        if score >= 0.8:
            reasons = ["참여도가 매우 높음 - 클릭과 공유를 유도하는 매력적인 제목"]
        elif score >= 0.6:
            reasons = ["참여도가 양호함 - 독자의 관심을 끌 수 있는 요소 포함"]
        elif score >= 0.4:
            reasons = ["참여도가 보통 수준 - 일부 흥미 요소 있으나 개선 가능"]
        else:
            reasons = ["참여도 개선 필요 - 독자의 관심을 끌기 어려운 구조"]

        if "?" in title:
            reasons.append("질문형 제목으로 호기심 유발 효과")
        emotional = count_present(title.lower(), REASON_EMOTIONAL_WORDS)
        if emotional:
            reasons.append(f"{emotional}개의 감정적 어필 단어로 관심 유도")
        if re.search(r"\d", title):
            reasons.append("구체적 숫자로 신뢰성과 관심도 증가")
        return reasons

    def _compliance_reasons(self, title: str, score: float) -> list[str]:
        if score >= 0.9:
            reasons = ["가이드라인 준수가 매우 우수함 - 모든 기준 충족"]
        elif score >= 0.7:
            reasons = ["가이드라인 준수가 양호함 - 대부분의 기준 충족"]
        elif score >= 0.5:
            reasons = ["가이드라인 준수가 보통 수준 - 일부 기준 미충족"]
        else:
            reasons = ["가이드라인 준수 개선 필요 - 여러 기준 미충족"]

        banned = self.found_banned(title)
        if banned:
            reasons.append(f"금지 키워드 발견: {', '.join(banned)}")
        else:
            reasons.append("금지 키워드 없음 - 브랜드 가이드라인 준수")
        if not count_present(title.lower(), REASON_CLICKBAIT_WORDS):
            reasons.append("클릭베이트 요소 없음 - 신뢰성 있는 제목")
        return reasons

    @staticmethod
    def _overall_reason(overall: float) -> str:
        if overall >= 0.8:
            return "전체적으로 매우 우수한 제목 - 모든 측면에서 높은 품질"
        if overall >= 0.6:
            return "전체적으로 양호한 제목 - 대부분의 기준 충족"
        if overall >= 0.4:
            return "전체적으로 보통 수준의 제목 - 개선 여지 있음"
        return "전체적으로 개선이 필요한 제목 - 여러 측면에서 보완 필요"

    @staticmethod
    def _special_reasons(scores: dict[str, float]) -> list[str]:
        reasons = []
        strengths = [CATEGORY_NAMES[a] for a in AXES if scores[a] >= 0.9]
        weaknesses = [CATEGORY_NAMES[a] for a in AXES if scores[a] < 0.3]
        if strengths:
            reasons.append(f"특별한 강점: {', '.join(strengths)} 영역에서 탁월한 성과")
        if weaknesses:
            reasons.append(f"개선 필요 영역: {', '.join(weaknesses)} 부분 집중 보완 필요")

        spread = max(scores.values()) - min(scores.values())
        if spread < 0.2:
            reasons.append("모든 영역에서 균형잡힌 품질 - 일관성 있는 우수함")
        elif spread > 0.6:
            reasons.append("영역별 품질 편차 큼 - 약점 보완을 통한 전체 품질 향상 가능")
        return reasons

    # =====================================================
    # RECOMMENDATIONS
    # =====================================================

    def recommendations(self, title: str, scores: dict[str, float]) -> list[str]:
        """De-duplicated suggestions, weakest axis first, capped at eight."""
        suggestions: list[str] = []
        suggestions += self._relevance_recommendations(scores["relevance"])
        suggestions += self._length_recommendations(title, scores["length"])
        suggestions += self._readability_recommendations(title, scores["readability"])
        suggestions += self._seo_recommendations(title, scores["seo"])
        suggestions += self._engagement_recommendations(title, scores["engagement"])
        suggestions += self._compliance_recommendations(title, scores["compliance"])
        suggestions += self._priority_recommendations(scores)

        unique = list(dict.fromkeys(suggestions))
        return self._prioritize(unique, scores)[:MAX_RECOMMENDATIONS]

    def _relevance_recommendations(self, score: float) -> list[str]:
        recs = []
        if score < 0.5:
            recs.append("주요 키워드를 제목에 포함하여 콘텐츠 관련성을 높이세요")
            if self.analysis is not None:
                top = [kp.phrase for kp in self.analysis.key_phrases[:3]]
                if top:
                    recs.append(f"추천 키워드: {', '.join(top)}")
                if self.analysis.entities:
                    recs.append(f"주요 개체명 '{self.analysis.entities[0].text}' 포함을 고려하세요")
        if score < 0.3:
            recs.append("제목이 기사 내용과 거리가 멀어 보입니다. 핵심 주제를 더 명확히 반영하세요")
        return recs

    def _length_recommendations(self, title: str, score: float) -> list[str]:
        recs = []
        chars = len(title)
        words = len(split_words(title))
        lo, hi = self.filters.title_len.min, self.filters.title_len.max

        if score < 0.5:
            if chars < lo:
                recs.append(f"제목이 너무 짧습니다 ({chars}자). 더 구체적인 정보를 추가하세요")
                recs.append("부제목이나 설명을 추가하여 정보량을 늘리세요")
                if words < 4:
                    recs.append("최소 4-5개 단어로 구성하여 의미를 명확히 하세요")
            elif chars > hi:
                recs.append(f"제목이 너무 깁니다 ({chars}자). 핵심 내용만 남기고 간결하게 줄이세요")
                recs.append("부가적인 설명이나 수식어를 제거하세요")
                if words > 12:
                    recs.append("10개 이하의 단어로 압축하여 가독성을 높이세요")

        optimal_min, optimal_max = max(lo, 25), min(hi, 60)
        if chars < optimal_min or chars > optimal_max:
            recs.append(f"SEO와 가독성을 위해 {optimal_min}-{optimal_max}자 범위로 조정하세요")
        return recs

    def _readability_recommendations(self, title: str, score: float) -> list[str]:
        recs = []
        if score < 0.5:
            if special_char_count(title) > 3:
                recs.append("특수문자 사용을 줄여 시각적 복잡성을 낮추세요")
            if "  " in title:
                recs.append("연속된 공백을 제거하여 형식을 정리하세요")
            if self._avg_word_length(title) > 10:
                recs.append("긴 단어나 복합어를 간단한 표현으로 바꾸세요")
            if count_present(title.lower(), RECOMMEND_COMPLEX_TERMS) > 1:
                recs.append("전문용어를 일반적인 표현으로 바꿔 이해도를 높이세요")
        if score < 0.3:
            recs.append("문장 구조를 단순화하여 읽기 쉽게 만드세요")
            recs.append("핵심 메시지를 앞쪽에 배치하세요")
        return recs

    @staticmethod
    def _seo_recommendations(title: str, score: float) -> list[str]:
        recs = []
        if score < 0.5:
            recs.append("검색 엔진 최적화를 위해 주요 키워드를 제목 앞부분에 배치하세요")
            if len(title) < 30:
                recs.append("검색 결과 표시를 위해 제목을 30자 이상으로 늘리세요")
            elif len(title) > 60:
                recs.append("검색 결과에서 잘리지 않도록 60자 이내로 줄이세요")
            if not re.search(r"\d", title):
                recs.append("구체적인 숫자나 연도를 포함하여 검색 친화성을 높이세요")
            if not count_present(title.lower(), RECOMMEND_INTENT_WORDS):
                recs.append("검색 의도를 반영하는 키워드(분석, 전망, 가이드 등)를 추가하세요")
        if score < 0.3:
            recs.append("메타 제목으로 사용하기에 부적합합니다. 검색 키워드를 중심으로 재작성하세요")
        return recs

    @staticmethod
    def _engagement_recommendations(title: str, score: float) -> list[str]:
        recs = []
        lower = title.lower()
        if score < 0.5:
            if "?" not in title:
                recs.append("질문형 제목으로 바꿔 독자의 호기심을 유발하세요")
            if not count_present(lower, RECOMMEND_EMOTIONAL):
                recs.append("감정적 어필이 있는 단어를 추가하여 관심도를 높이세요")
            if not re.search(r"\d", title):
                recs.append("구체적인 숫자나 통계를 포함하여 신뢰성을 높이세요")
            if not count_present(lower, RECOMMEND_UTILITY):
                recs.append("실용적 가치를 나타내는 표현을 추가하세요")
        if score < 0.3:
            recs.append("제목이 너무 평범합니다. 독특하거나 흥미로운 관점을 추가하세요")
            recs.append("독자의 문제나 관심사와 직접 연결되는 표현을 사용하세요")
        return recs

    def _compliance_recommendations(self, title: str, score: float) -> list[str]:
        recs = []
        lower = title.lower()
        if score < 0.7:
            banned = self.found_banned(title)
            if banned:
                recs.append(f"금지된 표현을 제거하세요: {', '.join(banned)}")
            if find_present(lower, RECOMMEND_CLICKBAIT_WORDS):
                recs.append("클릭베이트 표현을 전문적인 용어로 바꾸세요")
            if find_present(lower, RECOMMEND_EXAGGERATED):
                recs.append("과장된 표현을 객관적인 표현으로 수정하세요")
        if score < 0.5:
            recs.append("브랜드 가이드라인을 검토하고 준수하는 제목으로 수정하세요")
            recs.append("신뢰성 있고 전문적인 톤으로 재작성하세요")
        return recs

    @staticmethod
    def _priority_recommendations(scores: dict[str, float]) -> list[str]:
        recs = []
        weakest = min(AXES, key=lambda a: scores[a])
        if scores[weakest] < 0.4:
            recs.append(
                f"우선 개선 영역: {CATEGORY_NAMES[weakest]} 점수가 가장 낮습니다 ({scores[weakest]:.2f})"
            )
        if overall_score(scores) < 0.4:
            recs.append("전체적인 품질 개선이 필요합니다. 단계적으로 각 영역을 보완하세요")
        if max(scores.values()) - min(scores.values()) > 0.5:
            recs.append("영역별 품질 편차가 큽니다. 약점 영역을 집중 보완하세요")
        return recs

    @staticmethod
    def _prioritize(recommendations: list[str], scores: dict[str, float]) -> list[str]:
        """Group suggestions by the axis they address, weakest axis first."""
        remaining = list(recommendations)
        ordered: list[str] = []
        for axis in sorted(AXES, key=lambda a: scores[a]):
            name = CATEGORY_NAMES[axis]
            keywords = CATEGORY_KEYWORDS[axis]
            matched = [r for r in remaining if name in r or any(k in r for k in keywords)]
            ordered.extend(matched)
            remaining = [r for r in remaining if r not in matched]
        return ordered + remaining

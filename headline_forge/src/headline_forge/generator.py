"""
Headline candidate generation.

Four strategies, tried in priority order:
1. AI-injected titles supplied by the caller (always kept, prior score 0.9)
2. Content-derived titles built from headings, the lead sentence,
   statistics and keyword pairs
3. Heuristic templates around the top keyword
4. Tag/subject templates, then fixed generic titles

States 3 and 4 only run when the local state before them produced no
usable title. All titles are merged, de-duplicated, passed through the basic
filters and rescored. AI titles always rank ahead of local ones.
"""

import re
from dataclasses import dataclass, field, asdict, replace
from enum import Enum
from typing import Iterable, Optional

from .analyzer import ContentAnalysis
from .cache import CacheManager
from .lexicons import ACTION_WORDS, FALLBACK_TITLES, GENERIC_HEADINGS
from .logging_conf import get_logger
from .models import Filters, Guidelines
from .steplog import GenerationLog

logger = get_logger(__name__)

MAX_CONTENT_TITLES = 6
MAX_HEURISTIC_TITLES = 8
MAX_CANDIDATES = 6
AI_PRIOR_SCORE = 0.9


class CandidateSource(str, Enum):
    AI = "ai_generation"
    CONTENT = "content_analysis"
    HEURISTIC = "heuristic"
    TAG = "tag_based"


SOURCE_WEIGHTS = {
    CandidateSource.CONTENT.value: 0.3,
    CandidateSource.HEURISTIC.value: 0.2,
    CandidateSource.TAG.value: 0.1,
}


@dataclass(frozen=True)
class TitleCandidate:
    """One proposed headline."""
    title: str
    source: str
    score: float = 0.0
    chars: int = 0

    @property
    def is_ai(self) -> bool:
        return self.source == CandidateSource.AI.value

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class GenerationResult:
    """Ranked candidates plus the chosen title and the run log."""
    candidates: list[TitleCandidate] = field(default_factory=list)
    best_title: str = ""
    sources: list[str] = field(default_factory=list)
    logs: dict = field(default_factory=dict)
    from_cache: bool = False

    @property
    def titles(self) -> list[str]:
        return [c.title for c in self.candidates]

    def to_dict(self) -> dict:
        return asdict(self)


def clean_sentence(sentence: str, max_chars: int) -> str:
    """Trim terminal punctuation, collapse spaces and cap the length."""
    cleaned = re.sub(r"[.!?]+$", "", sentence or "")
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    if len(cleaned) > max_chars:
        cleaned = cleaned[:max(0, max_chars - 3)] + "..."
    return cleaned


def is_generic_heading(text: str) -> bool:
    lower = text.lower()
    return any(term in lower for term in GENERIC_HEADINGS)


class TitleGenerator:
    """
    Generates and ranks headline candidates for one analyzed article.

    Args:
        analysis: ContentAnalysis of the article
        filters: Active Filters (defaults when None)
        guidelines: Active Guidelines (defaults when None)
        cache: Optional CacheManager for candidate memoization
    """

    def __init__(
        self,
        analysis: ContentAnalysis,
        filters: Optional[Filters] = None,
        guidelines: Optional[Guidelines] = None,
        cache: Optional[CacheManager] = None,
    ):
        self.analysis = analysis
        self.filters = filters or Filters()
        self.guidelines = guidelines or Guidelines()
        self.cache = cache
        self.log = GenerationLog()

    @property
    def min_len(self) -> int:
        return self.filters.title_len.min

    @property
    def max_len(self) -> int:
        return self.filters.title_len.max

    def fits_length(self, title: str) -> bool:
        return bool(title) and self.filters.title_len.contains(len(title))

    # =====================================================
    # PIPELINE
    # =====================================================

    def generate_titles(self, ai_titles: Optional[Iterable[str]] = None) -> GenerationResult:
        """
        Run the strategy cascade and return ranked candidates.

        Never raises: an internal error yields an empty result whose log
        carries the error.
        """
        ai_list = self._clean_ai_titles(ai_titles)
        cache_key = CacheManager.candidates_key(
            self.analysis.fingerprint, self.filters, self.guidelines, ai_list
        )

        if self.cache is not None:
            cached = self.cache.get_candidates(cache_key)
            if cached:
                self.log.step("candidates_from_cache", count=len(cached))
                return GenerationResult(
                    candidates=list(cached),
                    best_title=self._pick_best(cached),
                    sources=["cache"],
                    logs=self.log.summary(),
                    from_cache=True,
                )

        result = GenerationResult()
        try:
            raw: list[TitleCandidate] = []

            # 1. AI-injected
            self.log.start_step("ai_generation")
            if ai_list:
                raw.extend(TitleCandidate(t, CandidateSource.AI.value, AI_PRIOR_SCORE) for t in ai_list)
                result.sources.append(CandidateSource.AI.value)
                self.log.step("ai_titles_injected", count=len(ai_list))
            else:
                self.log.warning("ai_generation", "no external AI titles supplied")
            self.log.end_step("ai_generation")

            # 2-4. Local cascade
            local_states = (
                (CandidateSource.CONTENT, self.generate_content_based_titles),
                (CandidateSource.HEURISTIC, self.generate_heuristic_titles),
                (CandidateSource.TAG, self.generate_tag_based_titles),
            )
            for source, strategy in local_states:
                self.log.start_step(source.value)
                titles = strategy()
                self.log.end_step(source.value)

                if titles:
                    raw.extend(TitleCandidate(t, source.value) for t in titles)
                    result.sources.append(source.value)

                usable = sum(1 for t in titles if self.passes_basic_filters(t))
                self.log.step(f"{source.value}_complete", generated=len(titles), usable=usable)
                if usable:
                    break
                self.log.warning(source.value, "no usable titles, falling back")

            self.log.start_step("ranking")
            result.candidates = self.process_and_rank(raw)
            self.log.end_step("ranking")
            result.best_title = self._pick_best(result.candidates)

            if self.cache is not None and result.candidates:
                self.cache.set_candidates(cache_key, tuple(result.candidates))

            self.log.step(
                "generation_complete",
                candidates=len(result.candidates),
                best_title=result.best_title,
                sources=list(result.sources),
            )
            logger.info(
                "titles_generated",
                count=len(result.candidates),
                sources=result.sources,
                best_title=result.best_title,
            )

        except Exception as e:
            self.log.error("generate_titles", e)
            logger.error("title_generation_failed", error=str(e))
            result = GenerationResult(sources=result.sources)

        result.logs = self.log.summary()
        return result

    @staticmethod
    def _clean_ai_titles(ai_titles: Optional[Iterable[str]]) -> list[str]:
        cleaned: list[str] = []
        for title in ai_titles or []:
            title = str(title or "").strip()
            if title and title not in cleaned:
                cleaned.append(title)
        return cleaned

    @staticmethod
    def _pick_best(candidates) -> str:
        """First AI candidate when any exists, else the top-ranked one."""
        for c in candidates:
            if c.is_ai:
                return c.title
        return candidates[0].title if candidates else ""

    # =====================================================
    # STRATEGY 2: CONTENT-DERIVED
    # =====================================================

    def generate_content_based_titles(self) -> list[str]:
        a = self.analysis
        keyword = a.top_keyword
        titles: list[str] = []

        def add(title: str, kind: str) -> None:
            if self.fits_length(title):
                titles.append(title)
                self.log.debug("content_title_added", kind=kind, title=title)

        for heading in a.headings_at(1):
            title = heading.text
            if len(title) < self.min_len and keyword and keyword not in title:
                title = f"{title}: {keyword} 분석"
            if len(title) > self.max_len:
                title = title[:max(0, self.max_len - 3)] + "..."
            add(title, "h1")

        for heading in a.headings_at(2):
            if is_generic_heading(heading.text):
                continue
            title = heading.text
            if len(title) < self.min_len:
                title = f"{keyword} {heading.text}: 상세 분석" if keyword else f"{heading.text}에 대한 심층 분석과 전망"
            add(title, "h2")

        sentences = a.first_paragraph.sentences
        if sentences:
            title = clean_sentence(sentences[0], self.max_len)
            if len(title) < self.min_len and keyword and keyword not in title:
                title = f"{keyword}: {title}"
            add(title, "lead")

            words = sentences[0].split(" ")
            if len(words) > 5 and keyword:
                actions = [w for w in words if any(v in w for v in ACTION_WORDS)]
                if actions:
                    add(f"{keyword} {actions[0]}, 새로운 전환점", "short")
                else:
                    add(f"{keyword} 시장 동향과 전망 분석", "short")

        if a.statistics and keyword:
            for stat in a.statistics[:2]:
                add(self._statistic_title(keyword, stat.type, stat.value), "statistic")

        if len(a.key_phrases) >= 2:
            k1, k2 = a.key_phrases[0].phrase, a.key_phrases[1].phrase
            for title in (
                f"{k1}와 {k2}의 융합, 새로운 시장 기회 창출",
                f"{k1} 기반 {k2} 혁신, 업계 판도 변화 예고",
                f"{k1} 시장에서 {k2}의 역할, 전문가 분석",
            ):
                add(title, "keyword_pair")

        return list(dict.fromkeys(titles))[:MAX_CONTENT_TITLES]

    @staticmethod
    def _statistic_title(keyword: str, stat_type: str, value: str) -> str:
        if stat_type == "percentage":
            return f"{keyword} 시장 {value} 성장, 새로운 전환점 맞나"
        if stat_type == "number":
            return f"{keyword} 분야 {value} 규모 달성, 업계 주목"
        if stat_type == "multiple":
            return f"{keyword} 성능 {value} 향상, 경쟁력 강화 기대"
        if stat_type == "currency":
            return f"{keyword} 분야 {value} 규모 투자, 시장 관심 집중"
        return ""

    # =====================================================
    # STRATEGY 3: HEURISTIC
    # =====================================================

    def generate_heuristic_titles(self) -> list[str]:
        a = self.analysis
        kw = a.top_keyword or "AI"

        templates = [
            f"{kw} 시장 동향 분석: 성장 요인과 전망",
            f"{kw} 산업 혁신, 새로운 패러다임의 시작",
            f"{kw} 기술 발전이 가져올 변화와 기회",
        ]

        if a.statistics:
            value = a.statistics[0].value
            templates += [
                f"{kw} 시장 {value} 급성장, 업계 전망은?",
                f"{value} 기록한 {kw}, 지속 가능한 성장 가능할까",
                f"{kw} 분야 {value} 달성, 전문가들이 보는 의미",
            ]

        if a.entities:
            entity = a.entities[0].text
            templates += [
                f"{entity}의 {kw} 전략, 시장 판도 바꿀까",
                f"{entity} 중심으로 재편되는 {kw} 생태계",
                f"{entity}가 이끄는 {kw} 혁신, 경쟁사 대응은?",
            ]

        if a.sentiment.overall == "positive":
            templates += [
                f"{kw} 시장 호조세 지속, 투자자들 주목",
                f"{kw} 분야 성장 가속화, 새로운 기회 창출",
                f"{kw} 기술 발전으로 업계 전반 활기",
            ]

        templates += [
            f"{kw} 시장, 다음 성장 동력은 무엇일까?",
            f"{kw} 기술 발전, 우리 생활 어떻게 바뀔까?",
            f"{kw} 투자 열풍, 지속 가능한 성장일까?",
        ]

        return [t for t in templates if self.fits_length(t)][:MAX_HEURISTIC_TITLES]

    # =====================================================
    # STRATEGY 4: TAG / SUBJECT
    # =====================================================

    def generate_tag_based_titles(self) -> list[str]:
        tags = list(self.analysis.tags)
        subject = self.analysis.subject
        templates: list[str] = []

        if tags:
            main = tags[0]
            templates += [
                f"{main} 시장 동향과 미래 전망: 전문가 분석",
                f"{main} 기술 혁신이 가져올 산업 변화",
                f"{main} 분야 최신 트렌드와 투자 기회",
                f"{main} 생태계 확장, 새로운 비즈니스 모델 등장",
            ]
            if len(tags) > 1:
                second = tags[1]
                templates += [
                    f"{main}와 {second}의 융합, 새로운 시너지 창출",
                    f"{main} 기반 {second} 혁신, 업계 주목",
                    f"{main}와 {second} 연계 전략, 성공 가능성은?",
                ]

        if subject:
            words = [w for w in subject.split(" ") if len(w) > 2]
            if words:
                phrase = " ".join(words[:3])
                templates += [
                    f"{phrase}에 대한 심층 분석과 시사점",
                    f"{phrase} 현황과 향후 발전 방향",
                    f"{phrase}이 업계에 미치는 영향 분석",
                ]

        if tags and subject:
            main = tags[0]
            key = " ".join(subject.split(" ")[:2])
            templates += [
                f"{main} 중심의 {key} 변화, 업계 전망",
                f"{key}에서 {main}의 역할과 중요성",
                f"{main} 기술로 본 {key}의 미래",
            ]

        titles = [t for t in templates if self.fits_length(t)]
        if not titles:
            titles = [t for t in FALLBACK_TITLES if self.fits_length(t)]
            self.log.step("generic_fallback_titles", count=len(titles))

        return titles

    # =====================================================
    # MERGE / FILTER / RESCORE
    # =====================================================

    def passes_basic_filters(self, title: str) -> bool:
        """Length window, banned words and phrases, every required term."""
        if not self.fits_length(title):
            return False
        lower = title.lower()
        f = self.filters
        if any(t.lower() in lower for t in f.exclude_terms):
            return False
        if any(p.lower() in lower for p in f.phrase_exclude_terms):
            return False
        return all(t.lower() in lower for t in f.include_terms)

    def process_and_rank(self, candidates: list[TitleCandidate]) -> list[TitleCandidate]:
        seen: set[str] = set()
        unique: list[TitleCandidate] = []
        for c in candidates:
            key = c.title.strip()
            if key and key not in seen:
                seen.add(key)
                unique.append(replace(c, title=key))

        filtered = [c for c in unique if self.passes_basic_filters(c.title)]
        self.log.step("candidates_filtered", unique=len(unique), kept=len(filtered))

        scored = [self.rescore(c) for c in filtered]
        scored.sort(key=lambda c: c.score, reverse=True)

        # AI titles rank ahead of local ones regardless of score
        ranked = [c for c in scored if c.is_ai] + [c for c in scored if not c.is_ai]
        return ranked[:MAX_CANDIDATES]

    def rescore(self, candidate: TitleCandidate) -> TitleCandidate:
        a = self.analysis
        title = candidate.title
        lower = title.lower()
        chars = len(title)

        if candidate.is_ai:
            score = AI_PRIOR_SCORE
        else:
            score = 0.5 + SOURCE_WEIGHTS.get(candidate.source, 0.1)

        score += sum(kp.importance * 0.1 for kp in a.key_phrases if kp.phrase.lower() in lower)

        optimal = self.filters.title_len.midpoint
        if optimal:
            score += max(0.0, 1 - abs(chars - optimal) / optimal) * 0.1

        if re.search(r"\d", title) or any(s.value in title for s in a.statistics):
            score += 0.05
        if any(e.text.lower() in lower for e in a.entities):
            score += 0.05
        if any(word in title for word in ACTION_WORDS):
            score += 0.05
        if any(tag.lower() in lower for tag in a.tags):
            score += 0.05

        if chars > self.max_len:
            score -= (chars - self.max_len) * 0.02
        if chars < self.min_len:
            score -= (self.min_len - chars) * 0.01

        return replace(candidate, score=round(max(0.0, min(1.0, score)), 4), chars=chars)

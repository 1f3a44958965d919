"""
Headline orchestration with a cascading fallback chain.

Coordinates one request end to end:
1. Ask text providers for suggestions (preferred provider first)
2. Rule-filter provider titles, analyze the article, generate candidates
   with the AI titles injected, and pick the first one that clears the
   quality gate
3. If that yields nothing: provider titles filtered by rules
4. Else the first H1, H2 or meaningful line of the article
5. Else a tag, subject or keyword template

Every transition is appended to a "Step N: ..." trace. The response never
carries an empty title; a total failure returns an emergency title instead.
"""

import re
import time
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from pydantic import ValidationError

from .analyzer import ContentAnalysis, ContentAnalyzer
from .context import PipelineContext
from .evaluator import EvaluationResult, TitleQualityEvaluator
from .generator import GenerationResult, TitleGenerator
from .lexicons import EXTENDED_BANNED
from .logging_conf import get_logger
from .models import EnhanceRequest, EnhanceResponse, Filters, SeoBlock
from .providers import ProviderRequest, provider_order

logger = get_logger(__name__)

DEFAULT_DESCRIPTION = "AI 관련 이슈를 분석한 기사."
EMERGENCY_DESCRIPTION = "기사 내용을 분석하는 중 오류가 발생했습니다."
EMERGENCY_ERROR = "제목 생성 중 일부 오류가 발생했지만 기본 제목을 제공합니다."
EMERGENCY_DEFAULT = "뉴스"
FINAL_DEFAULT_TITLE = "AI 뉴스: 최신 기술 동향"

AUTO_MARKER_PATTERN = re.compile(r"\s*-\s*자동\s*생성\s*$", re.IGNORECASE)
MARKUP_PATTERN = re.compile(r"[#>*`\-_]")
H1_PATTERN = re.compile(r"^#\s+(.+)$", re.MULTILINE)
H2_PATTERN = re.compile(r"^##\s+(.+)$", re.MULTILINE)
HANGUL_WORD_PATTERN = re.compile(r"[가-힣]{2,}")


# =====================================================
# PROVIDER TITLE RULES
# =====================================================

def _raw_title(candidate: Any) -> str:
    if isinstance(candidate, dict):
        candidate = candidate.get("title")
    return str(candidate or "").strip()


def filter_candidates_by_rules(candidates: list, filters: Filters) -> list[str]:
    """
    Keep provider titles that satisfy the hard rules.

    Length window, the extended banned list plus must_exclude, every
    phrase_exclude absent, every must_include present, and at least one
    phrase_include when any are set. Order preserved, duplicates dropped.
    """
    banned = {b.lower() for b in EXTENDED_BANNED} | {t.lower() for t in filters.exclude_terms}
    must = [t.lower() for t in filters.include_terms]
    phrase_in = [t.lower() for t in filters.phrase_include_terms]
    phrase_out = [t.lower() for t in filters.phrase_exclude_terms]

    kept: list[str] = []
    for candidate in candidates or []:
        title = _raw_title(candidate)
        if not title or not filters.title_len.contains(len(title)):
            continue
        lower = title.lower()
        if any(b and b in lower for b in banned):
            continue
        if any(p in lower for p in phrase_out):
            continue
        if not all(m in lower for m in must):
            continue
        if phrase_in and not any(p in lower for p in phrase_in):
            continue
        if title not in kept:
            kept.append(title)
    return kept


def score_ai_candidates(candidates: list, tags: list[str], filters: Filters) -> list[str]:
    """Rank provider titles inside the length window by their self-assessed scores."""
    lo, hi = filters.title_len.min, filters.title_len.max
    tag_set = [t.strip() for t in tags or [] if t and t.strip()]

    scored: list[tuple[float, str]] = []
    for candidate in candidates or []:
        if not isinstance(candidate, dict):
            continue
        title = _raw_title(candidate)
        length = len(title)
        if not title or not lo <= length <= hi:
            continue

        includes_tag = bool(candidate.get("includes_primary_tag")) or any(t in title for t in tag_set)
        penalty = (length - hi) * 0.8 if length > hi else 0.0
        penalty += (lo - length) * 0.5 if length < lo else 0.0
        score = (
            float(candidate.get("novelty") or 0) * 2
            + float(candidate.get("specificity") or 0) * 1.5
            + float(candidate.get("actionability") or 0) * 1.2
            + (3 if includes_tag else 0)
            - penalty
        )
        scored.append((score, title))

    scored.sort(key=lambda item: item[0], reverse=True)
    return list(dict.fromkeys(title for _, title in scored))


def strip_auto_marker(title: str) -> str:
    return AUTO_MARKER_PATTERN.sub("", title or "").strip()


def clean_line(line: str) -> str:
    return MARKUP_PATTERN.sub("", line or "").strip()


def emergency_title(content: Optional[str], tags: Optional[list[str]]) -> str:
    """Last-resort title built from the first meaningful line and the first tag."""
    title = EMERGENCY_DEFAULT
    first = next((ln for ln in (content or "").split("\n") if len(ln.strip()) > 5), None)
    if first:
        cleaned = clean_line(first)
        if len(cleaned) > 5:
            title = cleaned[:27] + "..." if len(cleaned) > 30 else cleaned
    if tags:
        title = f"{tags[0]} {title}"
    return title


# =====================================================
# RUN STATE
# =====================================================

@dataclass
class FallbackTrace:
    """Numbered record of every transition in one request."""
    steps: list[str] = field(default_factory=list)

    def add(self, message: str) -> None:
        entry = f"Step {len(self.steps) + 1}: {message}"
        self.steps.append(entry)
        logger.debug("enhance_step", step=entry)


@dataclass
class EnhanceRun:
    """Mutable state of one enhance() call."""
    request: EnhanceRequest
    trace: FallbackTrace = field(default_factory=FallbackTrace)
    suggestion: Optional[dict] = None
    provider: Optional[str] = None
    provider_errors: list[str] = field(default_factory=list)
    ai_titles: list[str] = field(default_factory=list)
    analysis: Optional[ContentAnalysis] = None
    generation: Optional[GenerationResult] = None
    evaluations: list[EvaluationResult] = field(default_factory=list)
    best: Optional[EvaluationResult] = None
    title: str = ""
    candidates: list[str] = field(default_factory=list)
    source: str = "fallback"
    timings: dict[str, int] = field(default_factory=dict)

    @property
    def raw_candidates(self) -> list:
        return list((self.suggestion or {}).get("candidates") or [])

    @property
    def meta_description(self) -> str:
        value = (self.suggestion or {}).get("meta_description")
        return value if isinstance(value, str) else ""


# =====================================================
# ORCHESTRATOR
# =====================================================

class HeadlineOrchestrator:
    """
    Produces one headline (plus ranked candidates) per request.

    Args:
        context: Shared PipelineContext (settings, caches, gateway, providers, monitor)
    """

    def __init__(self, context: PipelineContext):
        self.context = context
        self.analyzer = ContentAnalyzer(context.cache)

    async def enhance(self, request: Union[EnhanceRequest, dict]) -> EnhanceResponse:
        """Run the full chain. Never raises and never returns an empty title."""
        started = time.perf_counter()
        if not isinstance(request, EnhanceRequest):
            request = _coerce_request(request)

        run = EnhanceRun(request=request)

        try:
            # === STEP 1: Provider suggestions ===
            phase = time.perf_counter()
            await self.collect_suggestions(run)
            run.timings["providers_ms"] = _ms_since(phase)

            # === STEP 2: Analyze, generate, gate ===
            phase = time.perf_counter()
            selected = self.select_with_pipeline(run)
            run.timings["pipeline_ms"] = _ms_since(phase)

            # === STEP 3-5: Fallback chain ===
            if not selected:
                selected = self.select_from_provider_rules(run)
            if not selected:
                selected = self.select_from_content(run)
            if not selected:
                self.select_from_templates(run)

            run.title = strip_auto_marker(run.title) or emergency_title(request.content, request.tags)
            if not run.candidates:
                run.candidates = [run.title]

            run.timings["total_ms"] = _ms_since(started)
            self._record(True, run.timings["total_ms"], self._quality_of(run), run.source)

            logger.info(
                "headline_selected",
                title=run.title,
                source=run.source,
                candidates=len(run.candidates),
                steps=len(run.trace.steps),
                duration_ms=run.timings["total_ms"],
            )

            return EnhanceResponse(
                title=run.title,
                seo=SeoBlock(title=run.title, description=run.meta_description or DEFAULT_DESCRIPTION),
                candidates=run.candidates,
                meta_description=run.meta_description,
                source=run.source,
                diagnostics=self._diagnostics(run),
            )

        except Exception as e:
            logger.error("enhance_failed", error=str(e))
            elapsed = _ms_since(started)
            self._record(False, elapsed, 0.0, "error")

            title = emergency_title(request.content, request.tags)
            run.trace.add(f"긴급 제목 사용 - \"{title}\"")
            run.timings["total_ms"] = elapsed
            diagnostics = self._diagnostics(run)
            if diagnostics is not None:
                diagnostics["error"] = str(e)

            return EnhanceResponse(
                title=title,
                seo=SeoBlock(title=title, description=EMERGENCY_DESCRIPTION),
                candidates=[title],
                meta_description=EMERGENCY_DESCRIPTION,
                source="emergency",
                error=EMERGENCY_ERROR,
                diagnostics=diagnostics,
            )

    # =====================================================
    # STEP 1
    # =====================================================

    async def collect_suggestions(self, run: EnhanceRun) -> None:
        """Try providers in order until one returns candidates."""
        request = run.request
        preferred = request.text_provider or self.context.settings.text_provider
        provider_request = ProviderRequest.from_enhance(request)

        for name in provider_order(preferred):
            provider = self.context.providers.get(name)
            if provider is None or not provider.available:
                continue
            try:
                suggestion = await self.context.gateway.call(provider, provider_request)
            except Exception as e:
                run.provider_errors.append(f"{name}: {e}")
                logger.warning("provider_suggestion_failed", provider=name, error=str(e))
                continue
            if suggestion and suggestion.get("candidates"):
                run.suggestion = suggestion
                run.provider = name
                logger.info("provider_suggestion_received", provider=name, candidates=len(suggestion["candidates"]))
                return
            logger.info("provider_no_candidates", provider=name)

    # =====================================================
    # STEP 2
    # =====================================================

    def select_with_pipeline(self, run: EnhanceRun) -> bool:
        request = run.request
        trace = run.trace
        cache = self.context.cache

        try:
            trace.add("AI 제목 처리 시작")
            if run.raw_candidates:
                filtered = filter_candidates_by_rules(run.raw_candidates, request.filters)
                run.ai_titles = filtered or score_ai_candidates(run.raw_candidates, request.tags, request.filters)
                trace.add(f"AI 제목 {len(run.ai_titles)}개 처리 완료 ({run.provider})")
            else:
                trace.add("AI 제목 없음, 콘텐츠 분석으로 진행")

            if request.injected_ai_titles:
                run.ai_titles = list(dict.fromkeys(list(request.injected_ai_titles) + run.ai_titles))
                trace.add(f"외부 AI 제목 {len(request.injected_ai_titles)}개 추가")

            trace.add("콘텐츠 분석 시작")
            run.analysis = self.analyzer.analyze(request.content, request.tags, request.subject, request.tone)

            trace.add("제목 생성기 초기화")
            generator = TitleGenerator(run.analysis, request.filters, request.guidelines, cache=cache)
            if run.ai_titles:
                trace.add(f"AI 제목 {len(run.ai_titles)}개 주입 완료")
            run.generation = generator.generate_titles(run.ai_titles)
            trace.add(f"제목 생성 완료 - {len(run.generation.candidates)}개 후보")

            if not run.generation.candidates:
                trace.add("지능형 제목 생성 결과 없음")
                return False

            evaluator = TitleQualityEvaluator(run.analysis, request.filters, request.guidelines, cache=cache)
            run.evaluations = [evaluator.evaluate_title(t) for t in run.generation.titles]
            run.best = next((e for e in run.evaluations if e.passes_filters), None)

            if run.best is not None:
                run.title = run.best.title
                trace.add(f"품질 기준 통과 제목 선택 - \"{run.title}\"")
            else:
                run.title = run.generation.best_title
                run.best = next((e for e in run.evaluations if e.title == run.title), None)
                trace.add(f"품질 기준 통과 후보 없음, 최상위 후보 선택 - \"{run.title}\"")
                logger.warning("no_candidate_passed_gate", candidates=len(run.evaluations))

            run.candidates = run.generation.titles
            run.source = next(
                (c.source for c in run.generation.candidates if c.title == run.title),
                "generator",
            )
            return bool(run.title)

        except Exception as e:
            trace.add(f"지능형 제목 생성 실패 - {e}")
            logger.error("intelligent_selection_failed", error=str(e))
            return False

    # =====================================================
    # STEPS 3-5
    # =====================================================

    def select_from_provider_rules(self, run: EnhanceRun) -> bool:
        trace = run.trace
        trace.add("폴백 1단계 - AI 제목 직접 사용 시도")

        if not run.raw_candidates:
            trace.add("폴백 1단계 실패 - AI 제목 데이터 없음")
            return False

        request = run.request
        titles = filter_candidates_by_rules(run.raw_candidates, request.filters)
        titles = titles or score_ai_candidates(run.raw_candidates, request.tags, request.filters)
        if not titles:
            trace.add("폴백 1단계 실패 - AI 제목 후보 없음")
            return False

        run.title = titles[0]
        run.candidates = titles
        run.source = "provider_rules"
        trace.add(f"폴백 1단계 성공 - \"{run.title}\"")
        return True

    def select_from_content(self, run: EnhanceRun) -> bool:
        trace = run.trace
        content = run.request.content or ""
        trace.add("폴백 2단계 - 기본 콘텐츠 분석 시도")

        h1 = H1_PATTERN.search(content)
        h2 = H2_PATTERN.search(content)
        first_h1 = h1.group(1).strip() if h1 else ""
        first_h2 = h2.group(1).strip() if h2 else ""
        first_line = next(
            (ln.strip() for ln in MARKUP_PATTERN.sub("", content).split("\n") if ln.strip()),
            "",
        )

        if len(first_h1) > 5:
            run.title = first_h1
            trace.add(f"H1 제목 사용 - \"{run.title}\"")
        elif len(first_h2) > 5:
            run.title = first_h2
            trace.add(f"H2 제목 사용 - \"{run.title}\"")
        elif len(first_line) > 10:
            run.title = first_line[:47] + "..." if len(first_line) > 50 else first_line
            trace.add(f"첫 줄 사용 - \"{run.title}\"")
        else:
            trace.add("폴백 2단계 실패 - 유효한 콘텐츠 없음")
            return False

        run.candidates = [run.title]
        run.source = "content_fallback"
        return True

    def select_from_templates(self, run: EnhanceRun) -> None:
        request = run.request
        trace = run.trace
        trace.add("최종 폴백 - 태그/주제 기반 제목 생성")

        keywords = HANGUL_WORD_PATTERN.findall(request.content or "")
        if request.tags:
            run.title = f"{request.tags[0]} 업계 동향: 최신 분석"
            trace.add(f"태그 기반 제목 - \"{run.title}\"")
        elif len(request.subject) > 10:
            run.title = f"{' '.join(request.subject.split(' ')[:4])} - 심층 분석"
            trace.add(f"주제 기반 제목 - \"{run.title}\"")
        elif keywords:
            run.title = f"{keywords[0]} 관련 최신 뉴스"
            trace.add(f"콘텐츠 키워드 기반 제목 - \"{run.title}\"")
        else:
            run.title = FINAL_DEFAULT_TITLE
            trace.add(f"기본 제목 사용 - \"{run.title}\"")

        run.candidates = [run.title]
        run.source = "template_fallback"

    # =====================================================
    # REPORTING
    # =====================================================

    @staticmethod
    def _quality_of(run: EnhanceRun) -> Optional[float]:
        if run.best is not None:
            return run.best.overall_score
        return None

    def _record(self, success: bool, response_time_ms: int, quality: Optional[float], source: str) -> None:
        try:
            self.context.monitor.record(success, response_time_ms, quality, source)
        except Exception as e:
            logger.warning("monitoring_record_failed", error=str(e))

    def _diagnostics(self, run: EnhanceRun) -> Optional[dict]:
        if self.context.settings.is_production:
            return None
        return {
            "steps": list(run.trace.steps),
            "provider": run.provider,
            "provider_errors": list(run.provider_errors),
            "ai_titles": list(run.ai_titles),
            "generation": run.generation.logs if run.generation else None,
            "sources": list(run.generation.sources) if run.generation else [],
            "evaluations": [
                {
                    "title": e.title,
                    "overall_score": round(e.overall_score, 4),
                    "passes_filters": e.passes_filters,
                    "failed_filters": e.failed_filters,
                    "scores": {k: round(v, 4) for k, v in e.scores.items()},
                }
                for e in run.evaluations
            ],
            "analysis": run.analysis.summary() if run.analysis else None,
            "timings": dict(run.timings),
        }


def _coerce_request(raw: Any) -> EnhanceRequest:
    if not isinstance(raw, dict):
        raw = {}
    try:
        return EnhanceRequest.model_validate(raw)
    except ValidationError as e:
        logger.warning("enhance_request_invalid_using_content_only", error=str(e))
        return EnhanceRequest(content=str(raw.get("content") or ""))


def _ms_since(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)

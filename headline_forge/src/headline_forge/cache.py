"""
Bounded TTL memoization for analysis, evaluation, candidates and AI responses.

Each cache is a plain key -> entry map with:
- a maximum entry count, enforced by evicting the single oldest entry
  when a new key is inserted at capacity
- a time-to-live, enforced lazily on read
- a periodic sweep that removes expired entries proactively

Entries are never mutated in place. A write replaces the whole entry and
concurrent writers to the same key simply overwrite each other.
"""

import asyncio
import hashlib
import json
import time
from dataclasses import dataclass, asdict, is_dataclass
from typing import Any, Callable, Optional

from .logging_conf import get_logger

logger = get_logger(__name__)


CONTENT_ANALYSIS = "content_analysis"
EVALUATION = "evaluation"
CANDIDATES = "candidates"
AI_RESPONSE = "ai_response"

CACHE_TYPES = (CONTENT_ANALYSIS, EVALUATION, CANDIDATES, AI_RESPONSE)


def _jsonable(value: Any) -> Any:
    """Convert dataclasses and pydantic models into plain structures."""
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if hasattr(value, "model_dump"):
        return value.model_dump()
    return str(value)


def fingerprint(*parts: Any) -> str:
    """
    Deterministic short hash of arbitrary inputs.

    Stable across processes (unlike the builtin hash()), so keys can be
    logged and compared between runs.
    """
    payload = json.dumps(parts, sort_keys=True, ensure_ascii=False, default=_jsonable)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


def estimate_size(value: Any) -> int:
    """Rough byte estimate of a cached value (two bytes per serialized char)."""
    try:
        return len(json.dumps(value, ensure_ascii=False, default=_jsonable)) * 2
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class CacheEntry:
    """A single cached value with its write time."""
    data: Any
    timestamp: float
    type: str
    size: int = 0


@dataclass
class CacheStats:
    """Counters for one cache."""
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0
    sweeps: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def to_dict(self) -> dict:
        data = asdict(self)
        data["hit_rate"] = round(self.hit_rate, 4)
        return data


class TTLCache:
    """
    A bounded key -> CacheEntry map with lazy expiry.

    Args:
        name: Cache type label stored on each entry
        max_size: Maximum number of entries
        ttl: Seconds an entry stays readable
        clock: Time source (seconds); injectable for tests
    """

    def __init__(
        self,
        name: str,
        max_size: int = 100,
        ttl: float = 1800.0,
        clock: Callable[[], float] = time.time,
    ):
        self.name = name
        self.max_size = max(1, int(max_size))
        self.ttl = float(ttl)
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self.stats = CacheStats()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and not self._is_expired(entry, self._clock())

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.timestamp > self.ttl

    def get(self, key: str, default: Any = None) -> Any:
        """Return the cached value, or default when missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            self.stats.misses += 1
            return default

        if self._is_expired(entry, self._clock()):
            del self._entries[key]
            self.stats.expirations += 1
            self.stats.misses += 1
            return default

        self.stats.hits += 1
        return entry.data

    def set(self, key: str, value: Any) -> CacheEntry:
        """Store a value, evicting the oldest entry when at capacity."""
        if key not in self._entries and len(self._entries) >= self.max_size:
            self._evict_oldest()

        entry = CacheEntry(
            data=value,
            timestamp=self._clock(),
            type=self.name,
            size=estimate_size(value),
        )
        self._entries[key] = entry
        return entry

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def _evict_oldest(self) -> None:
        oldest_key = min(self._entries, key=lambda k: self._entries[k].timestamp)
        del self._entries[oldest_key]
        self.stats.evictions += 1
        logger.debug("cache_evicted", cache=self.name, key=oldest_key)

    def sweep(self) -> int:
        """Remove every expired entry. Returns the number removed."""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if self._is_expired(e, now)]
        for key in expired:
            del self._entries[key]
        self.stats.expirations += len(expired)
        self.stats.sweeps += 1
        return len(expired)

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def total_size(self) -> int:
        return sum(e.size for e in self._entries.values())

    def entry(self, key: str) -> Optional[CacheEntry]:
        """Raw entry access (no stats, no expiry) for diagnostics."""
        return self._entries.get(key)


class CacheManager:
    """
    The four pipeline caches plus a background sweeper.

    One instance is created per process (see PipelineContext) and passed to
    the analyzer, generator, evaluator and AI gateway.
    """

    def __init__(
        self,
        max_size: int = 100,
        ttl_seconds: float = 1800.0,
        sweep_interval_seconds: float = 300.0,
        clock: Callable[[], float] = time.time,
    ):
        self.sweep_interval = sweep_interval_seconds
        self.caches: dict[str, TTLCache] = {
            name: TTLCache(name, max_size=max_size, ttl=ttl_seconds, clock=clock)
            for name in CACHE_TYPES
        }
        self._sweeper: Optional[asyncio.Task] = None

        logger.info(
            "cache_manager_initialized",
            max_size=max_size,
            ttl_seconds=ttl_seconds,
            sweep_interval_seconds=sweep_interval_seconds,
        )

    @classmethod
    def from_settings(cls, settings) -> "CacheManager":
        return cls(
            max_size=settings.cache_max_size,
            ttl_seconds=settings.cache_ttl_seconds,
            sweep_interval_seconds=settings.cache_sweep_interval_seconds,
        )

    # =====================================================
    # KEYS
    # =====================================================

    @staticmethod
    def content_key(content: str, tags, subject: str, tone: str) -> str:
        clean_tags = sorted(str(t) for t in tags or [] if t)
        return fingerprint("content", content or "", clean_tags, subject or "", tone or "")

    @staticmethod
    def candidates_key(content_hash: str, filters: Any, guidelines: Any, ai_titles=None) -> str:
        return fingerprint("titles", content_hash, filters, guidelines, list(ai_titles or []))

    @staticmethod
    def evaluation_key(title: str, content_hash: str, filters: Any, guidelines: Any) -> str:
        return f"eval_{fingerprint(title)}_{content_hash or 'no-content'}_{fingerprint(filters)}_{fingerprint(guidelines)}"

    @staticmethod
    def ai_key(provider: str, prompt_key: str) -> str:
        return f"ai:{provider}:{prompt_key}"

    # =====================================================
    # TYPED ACCESSORS
    # =====================================================

    def get_content_analysis(self, key: str) -> Any:
        return self.caches[CONTENT_ANALYSIS].get(key)

    def set_content_analysis(self, key: str, analysis: Any) -> None:
        self.caches[CONTENT_ANALYSIS].set(key, analysis)

    def get_evaluation(self, key: str) -> Any:
        return self.caches[EVALUATION].get(key)

    def set_evaluation(self, key: str, evaluation: Any) -> None:
        self.caches[EVALUATION].set(key, evaluation)

    def get_candidates(self, key: str) -> Any:
        return self.caches[CANDIDATES].get(key)

    def set_candidates(self, key: str, candidates: Any) -> None:
        self.caches[CANDIDATES].set(key, candidates)

    def get_ai_response(self, key: str) -> Any:
        return self.caches[AI_RESPONSE].get(key)

    def set_ai_response(self, key: str, response: Any) -> None:
        self.caches[AI_RESPONSE].set(key, response)

    def peek_ai_response(self, key: str) -> Any:
        """Last stored response even past its TTL, until swept or evicted."""
        entry = self.caches[AI_RESPONSE].entry(key)
        return entry.data if entry is not None else None

    # =====================================================
    # MAINTENANCE
    # =====================================================

    def sweep(self) -> dict[str, int]:
        """Remove expired entries from every cache."""
        removed = {name: cache.sweep() for name, cache in self.caches.items()}
        if any(removed.values()):
            logger.info("cache_sweep_complete", removed=removed)
        return removed

    def clear(self, cache_type: Optional[str] = None) -> int:
        """Clear one cache type, or all of them when cache_type is None."""
        if cache_type is None:
            cleared = sum(cache.clear() for cache in self.caches.values())
        elif cache_type in self.caches:
            cleared = self.caches[cache_type].clear()
        else:
            raise ValueError(f"Unknown cache type: {cache_type}")

        logger.info("cache_cleared", cache_type=cache_type or "all", entries=cleared)
        return cleared

    def stats(self) -> dict:
        """Aggregate counters, hit rate and size breakdown."""
        totals = CacheStats()
        breakdown = {}
        for name, cache in self.caches.items():
            s = cache.stats
            totals.hits += s.hits
            totals.misses += s.misses
            totals.evictions += s.evictions
            totals.expirations += s.expirations
            totals.sweeps += s.sweeps
            breakdown[name] = {
                "entries": len(cache),
                "estimated_bytes": cache.total_size(),
                **s.to_dict(),
            }

        return {
            **totals.to_dict(),
            "total_entries": sum(len(c) for c in self.caches.values()),
            "estimated_bytes": sum(c.total_size() for c in self.caches.values()),
            "breakdown": breakdown,
        }

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            self.sweep()

    def start_sweeper(self) -> None:
        """Start the periodic sweep on the running event loop."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.get_running_loop().create_task(self._sweep_loop())
            logger.debug("cache_sweeper_started", interval=self.sweep_interval)

    async def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None
        logger.debug("cache_sweeper_stopped")

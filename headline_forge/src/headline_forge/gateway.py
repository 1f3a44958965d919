"""
Cached, rate-limited access to the text providers.

Every provider call from the orchestrator goes through AIGateway.call():
1. When the provider is over its sliding-window budget, serve a cached
   response if there is one, otherwise wait a short defer delay.
2. Serve a fresh cached response for the same prompt.
3. Join an identical call that is already in flight.
4. Call the provider under a timeout. Truthy responses are cached.
5. On failure, serve the last stored response for the prompt even when
   it has expired (until the sweeper removes it), else None.
"""

import asyncio
import time
from collections import deque
from dataclasses import dataclass, asdict
from typing import Awaitable, Callable, Optional

from .cache import CacheManager
from .logging_conf import get_logger
from .providers import ProviderRequest, TextProvider

logger = get_logger(__name__)


class SlidingWindowRateLimiter:
    """
    Per-provider call budget over a sliding time window.

    Args:
        max_calls: Calls allowed inside one window
        window_seconds: Window length
        clock: Time source in seconds
    """

    def __init__(
        self,
        max_calls: int = 5,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_calls = max_calls
        self.window = window_seconds
        self._clock = clock
        self._calls: dict[str, deque[float]] = {}

    def _prune(self, provider: str) -> deque[float]:
        calls = self._calls.setdefault(provider, deque())
        now = self._clock()
        while calls and now - calls[0] >= self.window:
            calls.popleft()
        return calls

    def recent_calls(self, provider: str) -> int:
        return len(self._prune(provider))

    def is_limited(self, provider: str) -> bool:
        return self.recent_calls(provider) >= self.max_calls

    def record(self, provider: str) -> None:
        self._prune(provider).append(self._clock())

    def stats(self) -> dict:
        return {
            provider: {
                "recent_calls": self.recent_calls(provider),
                "is_limited": self.is_limited(provider),
            }
            for provider in list(self._calls)
        }


@dataclass
class GatewayStats:
    """Counters for gateway traffic."""
    calls: int = 0
    cache_hits: int = 0
    deduplicated: int = 0
    deferred: int = 0
    failures: int = 0
    stale_served: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class AIGateway:
    """Single entry point for provider calls."""

    def __init__(
        self,
        cache: CacheManager,
        limiter: Optional[SlidingWindowRateLimiter] = None,
        timeout_seconds: float = 30.0,
        defer_seconds: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.cache = cache
        self.limiter = limiter or SlidingWindowRateLimiter()
        self.timeout = timeout_seconds
        self.defer_seconds = defer_seconds
        self._sleep = sleep
        self._in_flight: dict[str, asyncio.Future] = {}
        self.stats = GatewayStats()

    @classmethod
    def from_settings(cls, settings, cache: CacheManager) -> "AIGateway":
        return cls(
            cache=cache,
            limiter=SlidingWindowRateLimiter(
                max_calls=settings.rate_limit_max_calls,
                window_seconds=settings.rate_limit_window_seconds,
            ),
            timeout_seconds=settings.provider_timeout_seconds,
            defer_seconds=settings.rate_limit_defer_seconds,
        )

    def _cached(self, key: str) -> Optional[dict]:
        cached = self.cache.get_ai_response(key)
        if cached:
            self.stats.cache_hits += 1
        return cached or None

    async def call(self, provider: TextProvider, request: ProviderRequest) -> Optional[dict]:
        """Ask one provider for suggestions. Never raises for provider errors."""
        name = provider.name
        prompt_key = request.prompt_key()
        cache_key = CacheManager.ai_key(name, prompt_key)

        if self.limiter.is_limited(name):
            cached = self._cached(cache_key)
            if cached is not None:
                logger.info("provider_rate_limited_cache_served", provider=name)
                return cached
            self.stats.deferred += 1
            logger.info("provider_rate_limited_deferring", provider=name, delay=self.defer_seconds)
            await self._sleep(self.defer_seconds)

        stale = self.cache.peek_ai_response(cache_key)
        cached = self._cached(cache_key)
        if cached is not None:
            logger.debug("provider_cache_hit", provider=name)
            return cached

        request_key = f"{name}:{prompt_key}"
        pending = self._in_flight.get(request_key)
        if pending is not None:
            self.stats.deduplicated += 1
            logger.debug("provider_call_joined", provider=name)
            return await asyncio.shield(pending)

        # Counted at dispatch, before the provider answers
        self.limiter.record(name)
        task = asyncio.ensure_future(self._invoke(provider, request, cache_key, stale))
        self._in_flight[request_key] = task
        try:
            return await asyncio.shield(task)
        finally:
            if task.done():
                self._in_flight.pop(request_key, None)
            else:
                task.add_done_callback(lambda _: self._in_flight.pop(request_key, None))

    async def _invoke(
        self,
        provider: TextProvider,
        request: ProviderRequest,
        cache_key: str,
        stale: Optional[dict] = None,
    ) -> Optional[dict]:
        self.stats.calls += 1
        started = time.perf_counter()

        try:
            response = await asyncio.wait_for(provider.suggest(request), timeout=self.timeout)

        except Exception as e:
            self.stats.failures += 1
            logger.warning(
                "provider_call_failed",
                provider=provider.name,
                error=str(e) or type(e).__name__,
                duration_ms=int((time.perf_counter() - started) * 1000),
            )
            if stale:
                self.stats.stale_served += 1
                logger.info("provider_stale_cache_served", provider=provider.name)
                return stale
            return None

        if response:
            self.cache.set_ai_response(cache_key, response)

        logger.info(
            "provider_call_complete",
            provider=provider.name,
            has_response=bool(response),
            duration_ms=int((time.perf_counter() - started) * 1000),
        )
        return response

    def snapshot(self) -> dict:
        return {
            **self.stats.to_dict(),
            "in_flight": len(self._in_flight),
            "rate_limits": self.limiter.stats(),
        }

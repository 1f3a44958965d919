"""
Process-wide pipeline dependencies.

One PipelineContext is built per CLI invocation or server lifespan and
passed explicitly to the orchestrator. It owns the cache sweeper task.
"""

from dataclasses import dataclass
from typing import Optional

from .cache import CacheManager
from .config import Settings, get_settings
from .gateway import AIGateway
from .logging_conf import get_logger
from .monitoring import MonitoringRecorder
from .providers import TextProvider, build_providers

logger = get_logger(__name__)


@dataclass
class PipelineContext:
    settings: Settings
    cache: CacheManager
    gateway: AIGateway
    providers: dict[str, TextProvider]
    monitor: MonitoringRecorder

    @classmethod
    def create(
        cls,
        settings: Optional[Settings] = None,
        providers: Optional[dict[str, TextProvider]] = None,
    ) -> "PipelineContext":
        settings = settings or get_settings()
        cache = CacheManager.from_settings(settings)
        return cls(
            settings=settings,
            cache=cache,
            gateway=AIGateway.from_settings(settings, cache),
            providers=providers if providers is not None else build_providers(settings),
            monitor=MonitoringRecorder(history_size=settings.monitoring_history_size),
        )

    async def start(self) -> None:
        """Start background maintenance. Must run inside an event loop."""
        self.cache.start_sweeper()
        logger.info("pipeline_context_started", env=self.settings.app_env)

    async def aclose(self) -> None:
        await self.cache.stop_sweeper()
        logger.info("pipeline_context_closed")

    async def __aenter__(self) -> "PipelineContext":
        await self.start()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

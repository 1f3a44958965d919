"""
FastAPI server for headline generation and monitoring.

Provides:
- Health check endpoint
- Headline enhancement endpoint
- Cache, gateway and request statistics
- Cache clearing
"""

import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel

from . import __version__
from .config import get_settings
from .context import PipelineContext
from .logging_conf import get_logger, request_context, setup_logging
from .models import EnhanceResponse
from .orchestrator import HeadlineOrchestrator

logger = get_logger(__name__)


# Pydantic models for API
class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str = __version__
    environment: str
    providers: list[str]


class StatsResponse(BaseModel):
    cache: dict
    gateway: dict
    monitoring: dict


class CacheClearRequest(BaseModel):
    cache_type: Optional[str] = None


class CacheClearResponse(BaseModel):
    success: bool
    cache_type: str
    cleared: int


def get_context(request: Request) -> PipelineContext:
    return request.app.state.context


def create_app(context_factory: Optional[Callable[[], PipelineContext]] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        context_factory: Builds the PipelineContext at startup
            (PipelineContext.create by default)
    """
    factory = context_factory or PipelineContext.create

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        settings = get_settings()

        setup_logging(
            level=settings.log_level,
            json_output=settings.log_json,
            app_env=settings.app_env,
        )

        logger.info("server_starting")

        context = factory()
        await context.start()
        app.state.context = context
        app.state.orchestrator = HeadlineOrchestrator(context)

        yield

        await context.aclose()
        logger.info("server_stopped")

    app = FastAPI(
        title="Headline Forge",
        description="Headline synthesis and quality scoring for generated articles",
        version=__version__,
        lifespan=lifespan,
    )

    @app.get("/health", response_model=HealthResponse)
    async def health_check(context: PipelineContext = Depends(get_context)):
        """Health check endpoint."""
        return HealthResponse(
            status="ok",
            timestamp=datetime.now(timezone.utc).isoformat(),
            environment=context.settings.app_env,
            providers=[name for name, p in context.providers.items() if p.available],
        )

    @app.post("/enhance", response_model=EnhanceResponse, response_model_exclude_none=True)
    async def enhance(request: Request, payload: Optional[dict[str, Any]] = Body(None)):
        """Generate a headline, SEO block and ranked candidates for an article."""
        if not payload or not str(payload.get("content") or "").strip():
            raise HTTPException(status_code=400, detail="content 가 필요합니다.")

        with request_context(request_id=uuid.uuid4().hex[:12]):
            return await request.app.state.orchestrator.enhance(payload)

    @app.get("/stats", response_model=StatsResponse)
    async def get_stats(context: PipelineContext = Depends(get_context)):
        """Get cache, gateway and request statistics."""
        return StatsResponse(
            cache=context.cache.stats(),
            gateway=context.gateway.snapshot(),
            monitoring=context.monitor.snapshot(),
        )

    @app.post("/cache/clear", response_model=CacheClearResponse)
    async def clear_cache(
        body: Optional[CacheClearRequest] = None,
        context: PipelineContext = Depends(get_context),
    ):
        """Clear one cache type, or every cache when none is given."""
        cache_type = body.cache_type if body else None
        try:
            cleared = context.cache.clear(cache_type)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        return CacheClearResponse(success=True, cache_type=cache_type or "all", cleared=cleared)

    return app


app = create_app()


def run_server(host: str = "0.0.0.0", port: Optional[int] = None):
    """
    Run the FastAPI server.

    Args:
        host: Host to bind to
        port: Port to bind to (defaults to settings.port)
    """
    import uvicorn

    settings = get_settings()
    port = port or settings.port

    logger.info("starting_server", host=host, port=port)

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="info",
    )

"""
Tests for logging setup.

Tests:
- Environment tagging
- Renderer selection
- Request-scoped context
"""

import pytest
import structlog

from headline_forge.logging_conf import build_processors, environment_tagger, request_context


class TestProcessors:
    """Tests for the processor chain."""

    def test_environment_tagger(self):
        tag = environment_tagger("production")

        assert tag(None, "info", {"event": "x"})["env"] == "production"
        assert tag(None, "info", {"event": "x", "env": "test"})["env"] == "test"

    def test_json_renderer_last(self):
        processors = build_processors(json_output=True, app_env="production")

        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_console_renderer_last(self):
        processors = build_processors(json_output=False, app_env="development")

        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)


class TestRequestContext:
    """Tests for request-scoped log context."""

    def test_binds_only_inside_block(self):
        with request_context(request_id="abc123"):
            assert structlog.contextvars.get_contextvars()["request_id"] == "abc123"

        assert "request_id" not in structlog.contextvars.get_contextvars()

    def test_unbinds_on_error(self):
        with pytest.raises(RuntimeError):
            with request_context(request_id="abc123"):
                raise RuntimeError("boom")

        assert "request_id" not in structlog.contextvars.get_contextvars()

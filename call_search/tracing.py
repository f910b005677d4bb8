"""Arize observability setup for the call search.

Registers an OpenTelemetry tracer provider with Arize and instruments the
Anthropic SDK, so LLM spans nest under the search engine's manual spans.
"""

import logging
import os
from typing import Any

from opentelemetry import trace

from .config import get_settings

logger = logging.getLogger(__name__)


def setup_arize_tracing() -> Any | None:
    """
    Initialize Arize tracing.

    Returns the tracer_provider if successful, None otherwise.
    """
    settings = get_settings()

    if not settings.arize_space_id or not settings.arize_api_key:
        logger.info("Arize tracing not configured - ARIZE_SPACE_ID and ARIZE_API_KEY required")
        return None

    try:
        from arize.otel import register
        from openinference.instrumentation.anthropic import AnthropicInstrumentor

        # arize.otel may read these from the environment
        os.environ["ARIZE_SPACE_ID"] = settings.arize_space_id
        os.environ["ARIZE_API_KEY"] = settings.arize_api_key

        tracer_provider = register(
            space_id=settings.arize_space_id,
            api_key=settings.arize_api_key,
            project_name=settings.arize_project_name,
            set_global_tracer_provider=True,
        )
        AnthropicInstrumentor().instrument(tracer_provider=tracer_provider)

        logger.info(
            "Arize tracing enabled - project: %s, traces at %s",
            settings.arize_project_name,
            get_trace_url(settings.arize_space_id),
        )
        return tracer_provider

    except Exception as e:
        logger.warning("Failed to initialize Arize tracing: %s", e)
        return None


def get_tracer(name: str = "gong-call-search"):
    """Get a tracer for manual instrumentation."""
    return trace.get_tracer(name)


def get_trace_url(space_id: str) -> str:
    """Get the Arize dashboard URL for viewing traces."""
    return f"https://app.arize.com/organizations/default/spaces/{space_id}/projects"

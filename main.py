import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from dotenv import load_dotenv

# Load environment variables FIRST
load_dotenv(override=True)

logging.basicConfig(level=logging.INFO)

from call_search.tracing import setup_arize_tracing

tracer_provider = setup_arize_tracing()

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from call_search.clients.anthropic_client import AnthropicAnswerGenerator
from call_search.config import get_settings
from call_search.engines.search_engine import create_search_engine
from call_search.errors import AnswerGenerationError, UpstreamUnavailableError
from call_search.models import SearchMetadata, SearchRequest, SearchResult

logger = logging.getLogger("gong-call-search-api")

MIN_QUERY_LENGTH = 3

# Shared across requests; Gong and Salesforce clients are built per request
_answer_generator: AnthropicAnswerGenerator | None = None


def get_answer_generator() -> AnthropicAnswerGenerator:
    global _answer_generator
    if _answer_generator is None:
        settings = get_settings()
        _answer_generator = AnthropicAnswerGenerator(
            api_key=settings.anthropic_api_key,
            llm_model=settings.llm_model,
            max_tokens=settings.answer_max_tokens,
        )
    return _answer_generator


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _answer_generator
    yield
    if _answer_generator is not None:
        await _answer_generator.close()
        _answer_generator = None


app = FastAPI(
    lifespan=lifespan,
    title="Gong Call Search",
    description="Ask questions across Gong calls, emails and Salesforce context for the org, an account or a deal",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    settings = get_settings()
    return {
        "status": "healthy",
        "api_key_configured": bool(os.getenv("ANTHROPIC_API_KEY")),
        "gong_configured": settings.gong_configured,
        "salesforce_configured": settings.salesforce_configured,
    }


@app.post("/api/gong/ai-search", response_model=SearchResult)
async def gong_ai_search(request: SearchRequest):
    """
    Answer a question from Gong call data.

    Scope the question to the whole org ("global"), one account ("account")
    or one deal ("opportunity"); filters narrow the time range, participant
    mix and opportunity types.
    """
    query = request.query.strip()
    if len(query) < MIN_QUERY_LENGTH:
        raise HTTPException(status_code=400, detail=f"Query must be at least {MIN_QUERY_LENGTH} characters")
    request = request.model_copy(update={"query": query})

    settings = get_settings()
    if not settings.gong_configured:
        return SearchResult(
            answer=(
                "Gong integration is not configured. Please ask your administrator to set "
                "GONG_ACCESS_KEY and GONG_SECRET_KEY."
            ),
            sources=[],
            metadata=SearchMetadata(generated_at=datetime.now(timezone.utc)),
        )

    # One engine per request: the Gong client carries per-request throttle state
    engine = create_search_engine(settings, answer_generator=get_answer_generator())

    try:
        result = await engine.search(request)
    except UpstreamUnavailableError as e:
        raise HTTPException(status_code=502, detail=e.message)
    except AnswerGenerationError as e:
        raise HTTPException(status_code=503, detail=e.message)

    logger.info(
        "Search complete: %d calls, %d transcripts, %d emails",
        result.metadata.calls_analyzed,
        result.metadata.transcripts_fetched,
        result.metadata.emails_analyzed,
    )
    return result


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8080")))

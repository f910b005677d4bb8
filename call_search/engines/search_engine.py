"""Search engine - orchestrates scoped Q&A over Gong calls.

1. Resolve the lookback window for the scope
2. List calls (email and CRM context fetches start alongside)
3. Match calls to the account/opportunity, falling back to name matching
4. Apply participant and opportunity-type filters
5. Select up to 15 calls and batch-fetch their transcripts
6. Build the grounded prompt and ask the answer generator
"""

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, TypeVar

from opentelemetry.trace import Status, StatusCode

from ..clients.base import AnswerGenerator, CallProvider, CrmClient
from ..config import Settings, get_settings
from ..errors import (
    AnswerGenerationError,
    PartialDataUnavailableError,
    SearchError,
    UpstreamUnavailableError,
)
from ..tracing import get_tracer
from ..models import (
    CallRecord,
    CrmContext,
    EmailActivityRecord,
    ParticipantType,
    Scope,
    SearchMetadata,
    SearchRequest,
    SearchResult,
    TranscriptRecord,
)
from .crm_context import fetch_crm_context
from .filters import (
    enrich_calls,
    filter_by_opportunity_type,
    filter_by_participants,
    match_by_name,
    match_crm_associations,
    needs_crm_data,
    needs_participant_data,
)
from .prompt_builder import build_prompt
from .scope import SearchWindow, resolve_window
from .selector import MAX_SELECTED_CALLS, select_calls

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _dedupe(calls: list[CallRecord]) -> list[CallRecord]:
    seen: set[str] = set()
    unique = []
    for call in calls:
        if call.id not in seen:
            seen.add(call.id)
            unique.append(call)
    return unique


class _ExtensiveListing:
    """Fetches the extensive call listing at most once per request."""

    def __init__(self, fetch: Callable[[], Awaitable[list[CallRecord]]]):
        self._fetch = fetch
        self._calls: list[CallRecord] | None = None

    async def get(self) -> list[CallRecord]:
        if self._calls is None:
            self._calls = await self._fetch()
        return self._calls


class CallSearchEngine:
    """Answers a scoped question from Gong calls, emails and Salesforce context.

    Holds only the injected collaborators; every ``search`` call works on its
    own local state.
    """

    def __init__(
        self,
        call_provider: CallProvider,
        answer_generator: AnswerGenerator,
        crm_client: CrmClient | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        settings = settings or get_settings()
        self.calls = call_provider
        self.answer_generator = answer_generator
        self.crm = crm_client
        self.clock = clock
        self.timeout = settings.upstream_timeout_seconds
        self.answer_max_tokens = settings.answer_max_tokens
        self.max_transcript_calls = min(settings.max_transcript_calls, MAX_SELECTED_CALLS)
        self.tracer = get_tracer()

    async def _with_timeout(self, awaitable: Awaitable[T]) -> T:
        return await asyncio.wait_for(awaitable, timeout=self.timeout)

    async def _list_calls(self, operation: str, fetch: Awaitable[list[CallRecord]]) -> list[CallRecord]:
        try:
            return await self._with_timeout(fetch)
        except Exception as e:
            raise UpstreamUnavailableError(operation, str(e) or type(e).__name__) from e

    async def _fetch_emails(self, window: SearchWindow) -> list[EmailActivityRecord]:
        """Email engagement is supplementary; failures degrade to no emails."""
        try:
            return await self._with_timeout(
                self.calls.fetch_email_activity(window.start, window.end)
            )
        except Exception as e:
            error = PartialDataUnavailableError("Email activity", str(e) or type(e).__name__)
            logger.warning(error.message)
            return []

    async def _fetch_crm_context(self, request: SearchRequest) -> CrmContext | None:
        if self.crm is None:
            return None
        try:
            return await fetch_crm_context(
                self.crm,
                request.scope,
                account_id=request.account_id,
                opportunity_id=request.opportunity_id,
                timeout=self.timeout,
            )
        except PartialDataUnavailableError as e:
            logger.warning(e.message)
            return None

    async def _retrieve_candidates(
        self, request: SearchRequest, window: SearchWindow, extensive: _ExtensiveListing
    ) -> list[CallRecord]:
        calls = _dedupe(
            await self._list_calls("call listing", self.calls.list_calls(window.start, window.end))
        )
        logger.info("Fetched %d calls from paginated endpoint", len(calls))

        if request.scope == Scope.GLOBAL:
            return calls

        matched = match_crm_associations(
            calls, request.scope, request.account_id, request.opportunity_id
        )
        logger.info("CRM association match: %d calls for %s scope", len(matched), request.scope.value)
        if matched:
            return matched

        # The basic listing may omit CRM context; retry the links on the extensive listing
        broader = _dedupe(await extensive.get() + calls)
        matched = match_crm_associations(
            broader, request.scope, request.account_id, request.opportunity_id
        )
        if matched:
            logger.info("CRM association match on extensive listing: %d calls", len(matched))
            return matched

        # Call-to-CRM linking is often incomplete; fall back to the entity name
        name = (
            request.opportunity_name
            if request.scope == Scope.OPPORTUNITY and request.opportunity_name
            else request.account_name
        )
        if not name:
            return []

        matched = match_by_name(broader, name)
        logger.info("Name-based fallback: %d calls matching %r", len(matched), name)
        return matched

    async def _apply_filters(
        self, request: SearchRequest, candidates: list[CallRecord], extensive: _ExtensiveListing
    ) -> list[CallRecord]:
        filters = request.filters

        participant_type = filters.participant_type
        if participant_type and participant_type != ParticipantType.ALL:
            if needs_participant_data(candidates):
                candidates = enrich_calls(candidates, await extensive.get())
            before = len(candidates)
            candidates = filter_by_participants(candidates, participant_type)
            logger.info(
                "Participant filter (%s): %d -> %d calls", participant_type.value, before, len(candidates)
            )

        if filters.opportunity_types:
            if self.crm is None:
                logger.info("Opportunity type filter skipped: no CRM client configured")
            else:
                if needs_crm_data(candidates):
                    candidates = enrich_calls(candidates, await extensive.get())
                candidates = await filter_by_opportunity_type(
                    candidates, filters.opportunity_types, self.crm, timeout=self.timeout
                )

        return candidates

    async def _fetch_transcripts(self, selected: list[CallRecord]) -> dict[str, TranscriptRecord]:
        if not selected:
            return {}
        selected_ids = [call.id for call in selected]
        try:
            fetched = await self._with_timeout(self.calls.fetch_transcripts(selected_ids))
        except Exception as e:
            raise UpstreamUnavailableError("transcript fetch", str(e) or type(e).__name__) from e
        return {call_id: fetched[call_id] for call_id in selected_ids if call_id in fetched}

    async def _generate_answer(self, prompt: str) -> str:
        try:
            return await self._with_timeout(
                self.answer_generator.complete(prompt, max_tokens=self.answer_max_tokens)
            )
        except AnswerGenerationError:
            raise
        except Exception as e:
            raise AnswerGenerationError(str(e) or type(e).__name__) from e

    async def search(self, request: SearchRequest) -> SearchResult:
        """Run one search. Cancelling it abandons any outstanding sub-fetch.

        Raises:
            UpstreamUnavailableError: If call listing or the transcript fetch fails
            AnswerGenerationError: If the answer generator fails
        """
        now = self.clock()
        window = resolve_window(request.scope, request.filters.time_range, now)

        with self.tracer.start_as_current_span(
            "gong_ai_search",
            attributes={
                "search.scope": request.scope.value,
                "search.lookback_days": window.lookback_days,
                "input.value": request.model_dump_json(by_alias=True),
                "input.mime_type": "application/json",
                "openinference.span.kind": "chain",
            },
        ) as span:
            logger.info(
                "scope=%s, query=%r, lookback=%dd, filters=%s",
                request.scope.value,
                request.query,
                window.lookback_days,
                request.filters.model_dump_json(by_alias=True, exclude_none=True),
            )

            email_task = asyncio.create_task(self._fetch_emails(window))
            crm_task = asyncio.create_task(self._fetch_crm_context(request))
            try:
                extensive = _ExtensiveListing(
                    lambda: self._list_calls(
                        "extensive call listing",
                        self.calls.list_calls_extensive(window.start, window.end),
                    )
                )
                candidates = await self._retrieve_candidates(request, window, extensive)
                candidates = await self._apply_filters(request, candidates, extensive)

                selected = select_calls(candidates, request.query, now, self.max_transcript_calls)
                logger.info("Selected %d of %d calls for transcript fetch", len(selected), len(candidates))

                transcripts = await self._fetch_transcripts(selected)
                emails, crm_context = await asyncio.gather(email_task, crm_task)
            except SearchError as e:
                span.set_status(Status(StatusCode.ERROR, e.message))
                span.record_exception(e)
                raise
            finally:
                for task in (email_task, crm_task):
                    if not task.done():
                        task.cancel()

            logger.info("Fetched %d transcripts, %d emails", len(transcripts), len(emails))

            prompt = build_prompt(
                request,
                candidates,
                selected,
                transcripts,
                emails,
                crm_context,
                window.lookback_days,
            )
            try:
                answer = await self._generate_answer(prompt)
            except AnswerGenerationError as e:
                span.set_status(Status(StatusCode.ERROR, e.message))
                span.record_exception(e)
                raise

            metadata = SearchMetadata(
                calls_analyzed=len(candidates),
                transcripts_fetched=len(transcripts),
                emails_analyzed=len(emails),
                lookback_days=window.lookback_days,
                generated_at=now,
            )
            span.set_attribute("output.value", json.dumps(metadata.model_dump(mode="json", by_alias=True)))
            span.set_attribute("output.mime_type", "application/json")
            span.set_status(Status(StatusCode.OK))

            return SearchResult(
                answer=answer,
                sources=[call for call in selected if call.id in transcripts],
                metadata=metadata,
            )


def create_search_engine(
    settings: Settings | None = None,
    answer_generator: AnswerGenerator | None = None,
) -> CallSearchEngine:
    """Build an engine from configured clients; Salesforce is optional.

    Pass a long-lived ``answer_generator`` to share one LLM client across
    engines; otherwise a new one is built from settings.
    """
    from ..clients.anthropic_client import AnthropicAnswerGenerator
    from ..clients.gong_client import GongClient
    from ..clients.salesforce_client import SalesforceClient

    settings = settings or get_settings()
    crm_client = None
    if settings.salesforce_configured:
        crm_client = SalesforceClient(
            instance_url=settings.salesforce_instance_url,
            access_token=settings.salesforce_access_token,
            api_version=settings.salesforce_api_version,
            timeout=settings.upstream_timeout_seconds,
        )
    return CallSearchEngine(
        call_provider=GongClient(
            access_key=settings.gong_access_key,
            secret_key=settings.gong_secret_key,
            base_url=settings.gong_base_url,
            timeout=settings.upstream_timeout_seconds,
            max_calls=settings.max_paginated_calls,
        ),
        answer_generator=answer_generator or AnthropicAnswerGenerator(
            api_key=settings.anthropic_api_key,
            llm_model=settings.llm_model,
            max_tokens=settings.answer_max_tokens,
        ),
        crm_client=crm_client,
        settings=settings,
    )

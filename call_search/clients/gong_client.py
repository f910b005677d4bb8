"""Gong REST API client.

Fetches call listings (paginated and extensive), batched transcripts and
Gong Engage email activity.

Auth: Basic Auth (access key + secret key)
Rate limit: 3 req/sec, 10K req/day
"""

import asyncio
import base64
import json
import logging
import time
from datetime import datetime, timezone
from typing import Any

import httpx
from opentelemetry.trace import Status, StatusCode

from ..config import get_settings
from ..errors import GongAPIError
from ..tracing import get_tracer
from ..models import (
    CallRecord,
    CrmAssociations,
    EmailActivityRecord,
    Participant,
    TranscriptRecord,
)

logger = logging.getLogger(__name__)

MIN_REQUEST_INTERVAL = 1 / 3  # seconds between requests (3 req/sec)
PAGE_SIZE = 100
TRANSCRIPT_BATCH_SIZE = 100

EXTENSIVE_CONTENT_SELECTOR = {
    "context": "Extended",
    "exposedFields": {
        "collaboration": {"publicComments": True},
        "content": {"topics": True},
        "parties": True,
    },
}


def _iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class GongClient:
    """Client for the Gong v2 REST API."""

    def __init__(
        self,
        access_key: str | None = None,
        secret_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        max_calls: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        access_key = access_key or settings.gong_access_key
        secret_key = secret_key or settings.gong_secret_key
        credentials = base64.b64encode(f"{access_key}:{secret_key}".encode()).decode()
        self.headers = {
            "Authorization": f"Basic {credentials}",
            "Content-Type": "application/json",
        }
        self.base_url = (base_url or settings.gong_base_url).rstrip("/")
        self.timeout = timeout or settings.upstream_timeout_seconds
        self.max_calls = max_calls or settings.max_paginated_calls
        self.transport = transport
        self.tracer = get_tracer("gong-client")
        self._last_request_time = 0.0

    async def _throttle(self) -> None:
        elapsed = time.monotonic() - self._last_request_time
        if elapsed < MIN_REQUEST_INTERVAL:
            await asyncio.sleep(MIN_REQUEST_INTERVAL - elapsed)
        self._last_request_time = time.monotonic()

    async def _request(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        payload: dict | None = None,
    ) -> dict[str, Any]:
        """Make a throttled request, retrying rate limits and server errors.

        Raises:
            GongAPIError: If the request fails after retries
        """
        url = f"{self.base_url}{path}"

        with self.tracer.start_as_current_span(
            f"gong_{path.strip('/').replace('/', '_')}",
            attributes={
                "http.url": url,
                "http.method": method,
                "input.value": json.dumps(payload or params or {}),
                "input.mime_type": "application/json",
                "openinference.span.kind": "tool",
            },
        ) as span:
            last_error: GongAPIError | None = None

            for attempt in range(3):
                await self._throttle()
                try:
                    async with httpx.AsyncClient(transport=self.transport) as client:
                        response = await client.request(
                            method,
                            url,
                            headers=self.headers,
                            params=params,
                            json=payload,
                            timeout=self.timeout,
                        )
                    span.set_attribute("http.status_code", response.status_code)

                    if response.status_code == 429 or response.status_code >= 500:
                        last_error = GongAPIError(response.status_code, response.text)
                        if attempt < 2:
                            await asyncio.sleep(2**attempt)
                            continue
                        break

                    if response.status_code != 200:
                        # Auth and request errors are not retried
                        last_error = GongAPIError(response.status_code, response.text)
                        break

                    span.set_status(Status(StatusCode.OK))
                    return response.json()

                except httpx.TimeoutException:
                    last_error = GongAPIError(None, f"Request timed out after {self.timeout} seconds")
                except httpx.RequestError as e:
                    last_error = GongAPIError(None, f"Connection error: {e}")

                if attempt < 2:
                    await asyncio.sleep(2**attempt)

            span.set_status(Status(StatusCode.ERROR, last_error.message))
            span.record_exception(last_error)
            raise last_error

    async def list_calls(self, window_start: datetime, window_end: datetime) -> list[CallRecord]:
        """List calls in the window, following Gong's cursor pagination.

        Capped at ``max_calls`` records.
        """
        calls: list[CallRecord] = []
        cursor = None

        while len(calls) < self.max_calls:
            params = {"fromDateTime": _iso(window_start), "toDateTime": _iso(window_end)}
            if cursor:
                params["cursor"] = cursor

            data = await self._request("GET", "/calls", params=params)
            page = [self.map_call(raw) for raw in data.get("calls", [])]
            calls.extend(page)

            cursor = (data.get("records") or {}).get("cursor")
            if not cursor or len(page) < PAGE_SIZE:
                break

        return calls[: self.max_calls]

    async def list_calls_extensive(
        self, window_start: datetime, window_end: datetime
    ) -> list[CallRecord]:
        """List calls with parties, topics and CRM context for the window."""
        calls: list[CallRecord] = []
        cursor = None

        while len(calls) < self.max_calls:
            payload: dict[str, Any] = {
                "filter": {
                    "fromDateTime": _iso(window_start),
                    "toDateTime": _iso(window_end),
                },
                "contentSelector": EXTENSIVE_CONTENT_SELECTOR,
            }
            if cursor:
                payload["cursor"] = cursor

            data = await self._request("POST", "/calls/extensive", payload=payload)
            page = [self.map_call(raw) for raw in data.get("calls", [])]
            calls.extend(page)

            cursor = (data.get("records") or {}).get("cursor")
            if not cursor or len(page) < PAGE_SIZE:
                break

        return calls[: self.max_calls]

    async def fetch_transcripts(self, call_ids: list[str]) -> dict[str, TranscriptRecord]:
        """Fetch transcripts for many calls; up to 100 call IDs per request."""
        transcripts: dict[str, TranscriptRecord] = {}

        for i in range(0, len(call_ids), TRANSCRIPT_BATCH_SIZE):
            batch = call_ids[i : i + TRANSCRIPT_BATCH_SIZE]
            data = await self._request(
                "POST", "/calls/transcript", payload={"filter": {"callIds": batch}}
            )
            for raw in data.get("callTranscripts", []):
                transcript = TranscriptRecord(
                    call_id=raw["callId"],
                    segments=raw.get("transcript") or [],
                )
                transcripts[transcript.call_id] = transcript

        return transcripts

    async def fetch_email_activity(
        self, window_start: datetime, window_end: datetime
    ) -> list[EmailActivityRecord]:
        """Get Gong Engage email activity for the window."""
        params = {"fromDateTime": _iso(window_start), "toDateTime": _iso(window_end)}
        data = await self._request("GET", "/engage/emails", params=params)

        return [
            EmailActivityRecord(
                id=email["id"],
                subject=email.get("subject") or "No Subject",
                sender=email.get("from") or "",
                to=email.get("to") or [],
                sent_at=email.get("sentAt") or None,
                opened=bool(email.get("opened")),
                clicked=bool(email.get("clicked")),
                replied=bool(email.get("replied")),
                bounced=bool(email.get("bounced")),
                account_id=(email.get("crmAssociations") or {}).get("accountId"),
            )
            for email in data.get("emails", [])
        ]

    @staticmethod
    def map_call(raw: dict) -> CallRecord:
        """Map raw Gong call data (basic or extensive shape) to a CallRecord."""
        meta = raw.get("metaData") or raw

        crm = meta.get("crmAssociations") or raw.get("crmAssociations")
        if crm:
            associations = CrmAssociations(
                account_ids=crm.get("accountIds") or [],
                opportunity_ids=crm.get("opportunityIds") or [],
                contact_ids=crm.get("contactIds") or [],
            )
        else:
            # Extensive calls carry CRM links in a "context" array
            account_ids, opportunity_ids, contact_ids = [], [], []
            for ctx in raw.get("context") or []:
                for obj in ctx.get("objects") or []:
                    object_type = obj.get("objectType")
                    if object_type == "Opportunity":
                        opportunity_ids.append(obj.get("objectId"))
                    elif object_type == "Account":
                        account_ids.append(obj.get("objectId"))
                    elif object_type in ("Contact", "Lead"):
                        contact_ids.append(obj.get("objectId"))
            associations = None
            if account_ids or opportunity_ids or contact_ids:
                associations = CrmAssociations(
                    account_ids=account_ids,
                    opportunity_ids=opportunity_ids,
                    contact_ids=contact_ids,
                )

        parties = raw.get("parties") or meta.get("parties") or []
        participants = [
            Participant(
                name=party.get("name"),
                affiliation=party.get("affiliation"),
                email_address=party.get("emailAddress"),
                speaker_id=party.get("speakerId"),
            )
            for party in parties
        ]

        content = raw.get("content") or {}
        topics = [topic.get("name") for topic in content.get("topics") or [] if topic.get("name")]

        return CallRecord(
            id=str(meta.get("id") or raw.get("id")),
            title=meta.get("title") or "Untitled Call",
            scheduled=meta.get("scheduled") or None,
            started=meta.get("started") or meta.get("scheduled") or None,
            duration=int(meta.get("duration") or 0),
            direction=meta.get("direction") or "unknown",
            participants=participants,
            topics=topics,
            crm_associations=associations,
            url=meta.get("url") or (meta.get("media") or {}).get("audioUrl"),
            sentiment=content.get("sentiment"),
        )

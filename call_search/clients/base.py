"""Collaborator contracts the search engine is built against.

Concrete clients live beside this module; tests inject fakes that satisfy
the same protocols.
"""

from datetime import datetime
from typing import Any, Protocol

from ..models import CallRecord, EmailActivityRecord, TranscriptRecord


class CallProvider(Protocol):
    """Source of recorded calls, transcripts and email engagement."""

    async def list_calls(self, window_start: datetime, window_end: datetime) -> list[CallRecord]:
        ...

    async def list_calls_extensive(
        self, window_start: datetime, window_end: datetime
    ) -> list[CallRecord]:
        ...

    async def fetch_transcripts(self, call_ids: list[str]) -> dict[str, TranscriptRecord]:
        ...

    async def fetch_email_activity(
        self, window_start: datetime, window_end: datetime
    ) -> list[EmailActivityRecord]:
        ...


class CrmClient(Protocol):
    """Read-only structured query access to CRM records."""

    async def query(self, soql: str) -> dict[str, Any]:
        ...


class AnswerGenerator(Protocol):
    """Text-generation backend used to synthesize the final answer."""

    async def complete(self, prompt: str, max_tokens: int | None = None) -> str:
        ...

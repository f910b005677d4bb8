"""Shared test fixtures and configuration."""

import os
import pytest
from unittest.mock import MagicMock, AsyncMock
from datetime import datetime, timedelta, timezone


# Set test environment variables BEFORE any application imports
os.environ.setdefault("ANTHROPIC_API_KEY", "test-key-123")
os.environ.setdefault("GONG_ACCESS_KEY", "test-gong-access")
os.environ.setdefault("GONG_SECRET_KEY", "test-gong-secret")
os.environ.setdefault("ARIZE_API_KEY", "")
os.environ.setdefault("ARIZE_SPACE_ID", "")

NOW = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True, scope="session")
def clear_settings_cache():
    """Clear the lru_cache on get_settings to prevent stale config."""
    from call_search.config import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_call():
    """Factory fixture to create CallRecord objects."""
    from call_search.models import CallRecord, CrmAssociations, Participant

    def _make(
        id="call-1",
        title="Test Call",
        started=None,
        duration=1800,
        participants=None,
        topics=None,
        account_ids=None,
        opportunity_ids=None,
        url=None,
    ):
        crm = None
        if account_ids is not None or opportunity_ids is not None:
            crm = CrmAssociations(
                account_ids=account_ids or [],
                opportunity_ids=opportunity_ids or [],
            )
        return CallRecord(
            id=id,
            title=title,
            started=started or NOW - timedelta(days=1),
            duration=duration,
            direction="Outbound",
            participants=[Participant(**p) for p in (participants or [])],
            topics=topics or [],
            crm_associations=crm,
            url=url,
        )

    return _make


@pytest.fixture
def make_transcript():
    """Factory fixture to create a one-segment TranscriptRecord."""
    from call_search.models import TranscriptRecord

    def _make(call_id, *sentences):
        sentences = sentences or ("Let's talk about pricing.",)
        return TranscriptRecord(
            call_id=call_id,
            segments=[
                {
                    "speaker_id": "spk-1",
                    "sentences": [
                        {"start": i * 5, "end": i * 5 + 4, "text": text}
                        for i, text in enumerate(sentences)
                    ],
                }
            ],
        )

    return _make


@pytest.fixture
def make_email():
    from call_search.models import EmailActivityRecord

    def _make(id="e1", subject="Hi", opened=False, clicked=False, replied=False, bounced=False):
        return EmailActivityRecord(
            id=id,
            subject=subject,
            sender="rep@example.com",
            to=["buyer@acme.com"],
            sent_at=NOW - timedelta(days=2),
            opened=opened,
            clicked=clicked,
            replied=replied,
            bounced=bounced,
        )

    return _make


@pytest.fixture
def call_provider(make_transcript):
    """A call provider whose methods are AsyncMocks returning empty data.

    fetch_transcripts returns a transcript for every requested ID.
    """
    provider = MagicMock()
    provider.list_calls = AsyncMock(return_value=[])
    provider.list_calls_extensive = AsyncMock(return_value=[])
    provider.fetch_transcripts = AsyncMock(
        side_effect=lambda call_ids: {call_id: make_transcript(call_id) for call_id in call_ids}
    )
    provider.fetch_email_activity = AsyncMock(return_value=[])
    return provider


@pytest.fixture
def answer_generator():
    generator = MagicMock()
    generator.complete = AsyncMock(return_value="AI analysis result")
    return generator


@pytest.fixture
def make_engine(call_provider, answer_generator):
    """Build a CallSearchEngine over the mocked collaborators with a fixed clock."""
    from call_search.config import Settings
    from call_search.engines.search_engine import CallSearchEngine

    def _make(crm_client=None, **settings_overrides):
        return CallSearchEngine(
            call_provider=call_provider,
            answer_generator=answer_generator,
            crm_client=crm_client,
            settings=Settings(**settings_overrides),
            clock=lambda: NOW,
        )

    return _make

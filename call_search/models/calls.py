"""Pydantic models for Gong calls, transcripts and email activity."""

from datetime import datetime
from enum import Enum

from pydantic import Field

from .base import FrozenWireModel


class Affiliation(str, Enum):
    """Which side of the conversation a participant belongs to."""

    INTERNAL = "Internal"
    EXTERNAL = "External"
    UNKNOWN = "Unknown"


class Participant(FrozenWireModel):
    """A party on a recorded call."""

    name: str | None = None
    affiliation: Affiliation | None = None
    email_address: str | None = None
    speaker_id: str | None = None

    @property
    def is_external(self) -> bool:
        return self.affiliation == Affiliation.EXTERNAL


class CrmAssociations(FrozenWireModel):
    """Salesforce records a call is linked to."""

    account_ids: list[str] = Field(default_factory=list)
    opportunity_ids: list[str] = Field(default_factory=list)
    contact_ids: list[str] = Field(default_factory=list)


class CallRecord(FrozenWireModel):
    """Metadata for one recorded call, as listed by Gong."""

    id: str
    title: str = "Untitled Call"
    scheduled: datetime | None = None
    started: datetime | None = None
    duration: int = Field(0, description="Duration in seconds")
    direction: str = "unknown"
    participants: list[Participant] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    crm_associations: CrmAssociations | None = None
    url: str | None = None
    sentiment: str | None = None

    @property
    def start_time(self) -> datetime | None:
        """When the call started, falling back to its scheduled time."""
        return self.started or self.scheduled

    @property
    def account_ids(self) -> list[str]:
        return self.crm_associations.account_ids if self.crm_associations else []

    @property
    def opportunity_ids(self) -> list[str]:
        return self.crm_associations.opportunity_ids if self.crm_associations else []


class TranscriptSentence(FrozenWireModel):
    """A single sentence; start/end are offsets from the call start."""

    start: float = 0
    end: float = 0
    text: str = ""


class TranscriptSegment(FrozenWireModel):
    """A monologue by one speaker."""

    speaker_id: str = "Unknown"
    topic: str | None = None
    sentences: list[TranscriptSentence] = Field(default_factory=list)


class TranscriptRecord(FrozenWireModel):
    """Transcript for one call, fetched only for selected calls."""

    call_id: str
    segments: list[TranscriptSegment] = Field(default_factory=list)

    def text(self, max_chars: int | None = None) -> str:
        """Concatenate sentence text, stopping once max_chars is exceeded."""
        parts = []
        length = 0
        for segment in self.segments:
            for sentence in segment.sentences:
                parts.append(sentence.text)
                length += len(sentence.text) + 1
                if max_chars is not None and length > max_chars:
                    return " ".join(parts).strip()[:max_chars]
        return " ".join(parts).strip()


class EmailActivityRecord(FrozenWireModel):
    """Gong Engage email, aggregated into engagement counts."""

    id: str
    subject: str = "No Subject"
    sender: str = Field("", alias="from")
    to: list[str] = Field(default_factory=list)
    sent_at: datetime | None = None
    opened: bool = False
    clicked: bool = False
    replied: bool = False
    bounced: bool = False
    account_id: str | None = None

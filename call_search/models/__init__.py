"""Pydantic models for the application."""

from .calls import (
    Affiliation,
    Participant,
    CrmAssociations,
    CallRecord,
    TranscriptSentence,
    TranscriptSegment,
    TranscriptRecord,
    EmailActivityRecord,
)
from .search import (
    Scope,
    TimeRange,
    ParticipantType,
    SearchFilters,
    SearchRequest,
    SearchMetadata,
    SearchResult,
)
from .crm import OpportunityContext, AccountContext, CrmContext

__all__ = [
    "Affiliation",
    "Participant",
    "CrmAssociations",
    "CallRecord",
    "TranscriptSentence",
    "TranscriptSegment",
    "TranscriptRecord",
    "EmailActivityRecord",
    "Scope",
    "TimeRange",
    "ParticipantType",
    "SearchFilters",
    "SearchRequest",
    "SearchMetadata",
    "SearchResult",
    "OpportunityContext",
    "AccountContext",
    "CrmContext",
]

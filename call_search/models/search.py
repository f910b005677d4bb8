"""Request and response models for the call search."""

from datetime import datetime
from enum import Enum

from pydantic import Field, model_validator

from .base import WireModel
from .calls import CallRecord


class Scope(str, Enum):
    """CRM entity level a question is framed against."""

    GLOBAL = "global"
    ACCOUNT = "account"
    OPPORTUNITY = "opportunity"


class TimeRange(str, Enum):
    """Explicit lookback window requested by the user."""

    LAST_30 = "last30"
    LAST_90 = "last90"
    LAST_180 = "last180"
    LAST_365 = "last365"
    ALL = "all"


class ParticipantType(str, Enum):
    """Participant composition filter."""

    ALL = "all"
    INTERNAL_ONLY = "internal-only"
    EXTERNAL_ONLY = "external-only"


class SearchFilters(WireModel):
    """Optional refinements applied on top of the scope."""

    time_range: TimeRange | None = None
    participant_type: ParticipantType | None = None
    opportunity_types: list[str] = Field(default_factory=list)


class SearchRequest(WireModel):
    """A natural-language question scoped to the org, an account or a deal."""

    scope: Scope
    query: str
    account_id: str | None = None
    account_name: str | None = None
    opportunity_id: str | None = None
    opportunity_name: str | None = None
    filters: SearchFilters = Field(default_factory=SearchFilters)

    @model_validator(mode="after")
    def _check_scope_target(self):
        if self.scope == Scope.ACCOUNT and not (self.account_id or self.account_name):
            raise ValueError("Account scope requires 'accountId' or 'accountName'")
        if self.scope == Scope.OPPORTUNITY and not (self.opportunity_id or self.opportunity_name):
            raise ValueError("Opportunity scope requires 'opportunityId' or 'opportunityName'")
        return self


class SearchMetadata(WireModel):
    """Counts describing the evidence behind an answer."""

    calls_analyzed: int = Field(0, description="Candidate calls after filtering, before selection")
    transcripts_fetched: int = 0
    emails_analyzed: int = 0
    lookback_days: int = 0
    generated_at: datetime


class SearchResult(WireModel):
    """Answer plus the calls it was grounded on."""

    answer: str
    sources: list[CallRecord] = Field(default_factory=list)
    metadata: SearchMetadata

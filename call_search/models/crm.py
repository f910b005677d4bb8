"""Salesforce context used to ground scoped answers."""

from .base import WireModel


class OpportunityContext(WireModel):
    name: str
    account_id: str | None = None
    account_name: str | None = None
    stage: str | None = None
    amount: float | None = None
    close_date: str | None = None
    probability: float | None = None
    next_step: str | None = None
    owner_name: str | None = None
    type: str | None = None


class AccountContext(WireModel):
    name: str
    industry: str | None = None
    type: str | None = None
    website: str | None = None
    employee_count: int | None = None
    annual_revenue: float | None = None


class CrmContext(WireModel):
    """Opportunity and/or account fields for the entity in scope."""

    opportunity: OpportunityContext | None = None
    account: AccountContext | None = None

    @property
    def is_empty(self) -> bool:
        return self.opportunity is None and self.account is None

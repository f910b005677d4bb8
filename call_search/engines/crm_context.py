"""CRM context fetcher - Salesforce fields that ground scoped answers."""

import asyncio

from ..clients.base import CrmClient
from ..clients.salesforce_client import escape_soql_value
from ..errors import PartialDataUnavailableError
from ..models import AccountContext, CrmContext, OpportunityContext, Scope

OPPORTUNITY_QUERY = (
    "SELECT Name, StageName, Amount, CloseDate, NextStep, Type, Probability, "
    "Owner.Name, Account.Name, AccountId "
    "FROM Opportunity WHERE Id = '{opportunity_id}' LIMIT 1"
)

ACCOUNT_QUERY = (
    "SELECT Name, Industry, Type, Website, NumberOfEmployees, AnnualRevenue "
    "FROM Account WHERE Id = '{account_id}' LIMIT 1"
)


def _first_record(result: dict) -> dict | None:
    records = result.get("records") or []
    return records[0] if records else None


def _related_name(record: dict, relation: str) -> str | None:
    return (record.get(relation) or {}).get("Name")


async def fetch_crm_context(
    crm_client: CrmClient,
    scope: Scope,
    account_id: str | None = None,
    opportunity_id: str | None = None,
    timeout: float | None = None,
) -> CrmContext | None:
    """Fetch the opportunity and/or account record for the entity in scope.

    Returns None when the scope has no CRM entity or nothing was found.

    Raises:
        PartialDataUnavailableError: If a Salesforce query fails
    """
    if scope == Scope.GLOBAL:
        return None

    opportunity = None
    account = None

    try:
        if scope == Scope.OPPORTUNITY and opportunity_id:
            soql = OPPORTUNITY_QUERY.format(opportunity_id=escape_soql_value(opportunity_id))
            record = _first_record(await asyncio.wait_for(crm_client.query(soql), timeout=timeout))
            if record:
                opportunity = OpportunityContext(
                    name=record.get("Name") or "",
                    account_id=record.get("AccountId"),
                    account_name=_related_name(record, "Account"),
                    stage=record.get("StageName"),
                    amount=record.get("Amount"),
                    close_date=record.get("CloseDate"),
                    probability=record.get("Probability"),
                    next_step=record.get("NextStep"),
                    owner_name=_related_name(record, "Owner"),
                    type=record.get("Type"),
                )
                account_id = account_id or opportunity.account_id

        if account_id:
            soql = ACCOUNT_QUERY.format(account_id=escape_soql_value(account_id))
            record = _first_record(await asyncio.wait_for(crm_client.query(soql), timeout=timeout))
            if record:
                account = AccountContext(
                    name=record.get("Name") or "",
                    industry=record.get("Industry"),
                    type=record.get("Type"),
                    website=record.get("Website"),
                    employee_count=record.get("NumberOfEmployees"),
                    annual_revenue=record.get("AnnualRevenue"),
                )
    except Exception as e:
        raise PartialDataUnavailableError("Salesforce context", str(e) or type(e).__name__) from e

    context = CrmContext(opportunity=opportunity, account=account)
    return None if context.is_empty else context

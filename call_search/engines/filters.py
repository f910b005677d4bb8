"""Candidate filters - CRM association matching, participant and deal-type filters."""

import asyncio
import logging

from opentelemetry import trace

from ..clients.base import CrmClient
from ..clients.salesforce_client import escape_soql_value
from ..errors import FilterEvaluationError
from ..models import CallRecord, ParticipantType, Scope

logger = logging.getLogger(__name__)


def match_crm_associations(
    calls: list[CallRecord],
    scope: Scope,
    account_id: str | None = None,
    opportunity_id: str | None = None,
) -> list[CallRecord]:
    """Keep calls linked to the account/opportunity in scope.

    Opportunity-scoped searches fall back to the account link when no call
    is linked to the opportunity itself, since Gong associates calls with
    accounts far more reliably than with opportunities.
    """
    if scope == Scope.GLOBAL:
        return list(calls)

    if scope == Scope.OPPORTUNITY and opportunity_id:
        matched = [call for call in calls if opportunity_id in call.opportunity_ids]
        if matched or not account_id:
            return matched

    if account_id:
        return [call for call in calls if account_id in call.account_ids]

    return []


def match_by_name(calls: list[CallRecord], name: str | None) -> list[CallRecord]:
    """Keep calls whose title contains the entity name (case-insensitive).

    Known to be imprecise: a generic company name matches unrelated calls.
    Only used when no call carries a CRM association for the entity.
    """
    needle = (name or "").strip().lower()
    if not needle:
        return []
    return [call for call in calls if needle in (call.title or "").lower()]


def needs_participant_data(calls: list[CallRecord]) -> bool:
    return any(not call.participants for call in calls)


def needs_crm_data(calls: list[CallRecord]) -> bool:
    return any(call.crm_associations is None for call in calls)


def enrich_calls(calls: list[CallRecord], detailed: list[CallRecord]) -> list[CallRecord]:
    """Swap in the richer record for each call present in ``detailed``."""
    by_id = {call.id: call for call in detailed}
    return [by_id.get(call.id, call) for call in calls]


def filter_by_participants(
    calls: list[CallRecord], participant_type: ParticipantType | None
) -> list[CallRecord]:
    """internal-only: no External participant; external-only: at least one."""
    if participant_type == ParticipantType.EXTERNAL_ONLY:
        return [call for call in calls if any(p.is_external for p in call.participants)]
    if participant_type == ParticipantType.INTERNAL_ONLY:
        return [call for call in calls if not any(p.is_external for p in call.participants)]
    return list(calls)


async def filter_by_opportunity_type(
    calls: list[CallRecord],
    opportunity_types: list[str],
    crm_client: CrmClient,
    timeout: float | None = None,
) -> list[CallRecord]:
    """Keep calls linked to at least one opportunity of a requested Type.

    Fails closed when no call carries an opportunity association, and fails
    open (returns ``calls`` unchanged) when the CRM query itself fails.
    """
    opportunity_ids = sorted({opp_id for call in calls for opp_id in call.opportunity_ids})

    if not opportunity_ids:
        logger.info("Opp type filter: no opportunity associations found, returning 0 calls")
        return []

    id_list = ",".join(f"'{escape_soql_value(opp_id)}'" for opp_id in opportunity_ids)
    soql = f"SELECT Id, Type FROM Opportunity WHERE Id IN ({id_list})"

    try:
        result = await asyncio.wait_for(crm_client.query(soql), timeout=timeout)
    except Exception as e:
        error = FilterEvaluationError("opportunity type", str(e) or type(e).__name__)
        logger.warning("%s", error.message)
        span = trace.get_current_span()
        span.record_exception(error)
        span.set_attribute("filter.opportunity_type.skipped", True)
        return list(calls)

    wanted = set(opportunity_types)
    matching_ids = {
        record.get("Id")
        for record in result.get("records", [])
        if record.get("Type") and record.get("Type") in wanted
    }

    filtered = [call for call in calls if any(opp_id in matching_ids for opp_id in call.opportunity_ids)]
    logger.info(
        "Opp type filter (%s): %d -> %d calls",
        ", ".join(opportunity_types),
        len(calls),
        len(filtered),
    )
    return filtered

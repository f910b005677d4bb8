"""Tests for the Salesforce context fetcher."""

import asyncio

import pytest
from unittest.mock import MagicMock, AsyncMock

from call_search.engines.crm_context import fetch_crm_context
from call_search.errors import PartialDataUnavailableError
from call_search.models import Scope


OPPORTUNITY_RECORD = {
    "Name": "Acme Expansion",
    "StageName": "Negotiation",
    "Amount": 120000,
    "CloseDate": "2026-09-30",
    "NextStep": "Security review",
    "Type": "Expansion",
    "Probability": 60,
    "Owner": {"Name": "Jane Rep"},
    "Account": {"Name": "Acme"},
    "AccountId": "001ACME",
}

ACCOUNT_RECORD = {
    "Name": "Acme",
    "Industry": "Manufacturing",
    "Type": "Customer",
    "Website": "acme.example",
    "NumberOfEmployees": 2500,
    "AnnualRevenue": 50000000,
}


def _crm(*results):
    crm = MagicMock()
    crm.query = AsyncMock(side_effect=list(results))
    return crm


def test_global_scope_does_not_query():
    crm = _crm()
    assert asyncio.run(fetch_crm_context(crm, Scope.GLOBAL)) is None
    crm.query.assert_not_awaited()


def test_opportunity_scope_fetches_opportunity_then_its_account():
    crm = _crm({"records": [OPPORTUNITY_RECORD]}, {"records": [ACCOUNT_RECORD]})

    context = asyncio.run(fetch_crm_context(crm, Scope.OPPORTUNITY, opportunity_id="006OPP"))

    assert crm.query.await_count == 2
    first, second = (c.args[0] for c in crm.query.await_args_list)
    assert "FROM Opportunity WHERE Id = '006OPP'" in first
    assert "FROM Account WHERE Id = '001ACME'" in second

    assert context.opportunity.name == "Acme Expansion"
    assert context.opportunity.owner_name == "Jane Rep"
    assert context.opportunity.account_name == "Acme"
    assert context.account.industry == "Manufacturing"
    assert context.account.employee_count == 2500


def test_request_account_id_takes_precedence():
    crm = _crm({"records": [OPPORTUNITY_RECORD]}, {"records": [ACCOUNT_RECORD]})

    asyncio.run(
        fetch_crm_context(crm, Scope.OPPORTUNITY, account_id="001OTHER", opportunity_id="006OPP")
    )

    assert "'001OTHER'" in crm.query.await_args_list[1].args[0]


def test_account_scope_fetches_account_only():
    crm = _crm({"records": [ACCOUNT_RECORD]})

    context = asyncio.run(fetch_crm_context(crm, Scope.ACCOUNT, account_id="001ACME"))

    crm.query.assert_awaited_once()
    assert context.opportunity is None
    assert context.account.name == "Acme"


def test_nothing_found_returns_none():
    crm = _crm({"records": []})
    assert asyncio.run(fetch_crm_context(crm, Scope.ACCOUNT, account_id="001MISSING")) is None


def test_account_scope_without_id_returns_none():
    crm = _crm()
    assert asyncio.run(fetch_crm_context(crm, Scope.ACCOUNT, account_id=None)) is None
    crm.query.assert_not_awaited()


def test_ids_are_escaped():
    crm = _crm({"records": []})
    asyncio.run(fetch_crm_context(crm, Scope.ACCOUNT, account_id="x' OR Name != '"))
    assert "x\\' OR Name != \\'" in crm.query.await_args.args[0]


def test_query_failure_is_partial_data_error():
    crm = _crm(RuntimeError("session expired"))

    with pytest.raises(PartialDataUnavailableError) as exc_info:
        asyncio.run(fetch_crm_context(crm, Scope.ACCOUNT, account_id="001ACME"))

    assert exc_info.value.recoverable is True
    assert "session expired" in exc_info.value.message

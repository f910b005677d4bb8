"""Tests for prompt assembly."""

from call_search.engines.prompt_builder import (
    GROUNDING_INSTRUCTION,
    MAX_EXCERPT_CHARS,
    build_prompt,
    call_summaries,
    crm_summary,
    email_summary,
)
from call_search.models import (
    AccountContext,
    CrmContext,
    OpportunityContext,
    SearchRequest,
)


def _build(request, candidates=(), selected=(), transcripts=None, emails=(), crm=None, lookback=180):
    return build_prompt(
        request,
        list(candidates),
        list(selected),
        transcripts or {},
        list(emails),
        crm,
        lookback,
    )


class TestFraming:
    def test_account_framing_names_account(self):
        prompt = _build(SearchRequest(scope="account", query="health?", account_id="a1", account_name="Acme"))
        assert "sales intelligence analyst" in prompt
        assert '"Acme"' in prompt

    def test_opportunity_framing_is_deal_coach(self):
        prompt = _build(SearchRequest(scope="opportunity", query="risks?", opportunity_id="o1", opportunity_name="Big Deal"))
        assert "deal coach" in prompt
        assert '"Big Deal"' in prompt

    def test_global_framing_mentions_lookback(self):
        prompt = _build(SearchRequest(scope="global", query="objections?"), lookback=180)
        assert "sales analytics expert" in prompt
        assert "last 180 days" in prompt


class TestCallSummaries:
    def test_caps_at_fifty_with_remainder_note(self, make_call):
        calls = [make_call(id=f"c{i}", title=f"Call {i}") for i in range(55)]
        block = call_summaries(calls)
        assert "and 5 more calls" in block
        assert '50. "Call 49"' in block
        assert '"Call 50"' not in block

    def test_no_note_at_or_under_fifty(self, make_call):
        block = call_summaries([make_call(id=f"c{i}") for i in range(50)])
        assert "more calls" not in block

    def test_one_line_includes_date_duration_topics(self, make_call, now):
        call = make_call(title="Kickoff", started=now, duration=1800, topics=["pricing"])
        assert '1. "Kickoff" - 2026-06-15 30m [pricing]' in call_summaries([call])

    def test_empty_pool_says_so(self):
        assert "No calls matched" in call_summaries([])


class TestCallDetails:
    def test_includes_participants_topics_and_excerpt(self, make_call, make_transcript):
        call = make_call(
            id="c1",
            title="Discovery",
            participants=[{"name": "Dana", "affiliation": "External"}, {"name": "Rep", "affiliation": "Internal"}],
            topics=["pricing"],
        )
        prompt = _build(
            SearchRequest(scope="global", query="pricing"),
            candidates=[call],
            selected=[call],
            transcripts={"c1": make_transcript("c1", "We need a discount.", "Budget is tight.")},
        )
        assert "Participants: Dana (External), Rep (Internal)" in prompt
        assert "Topics: pricing" in prompt
        assert "We need a discount. Budget is tight." in prompt

    def test_excerpt_is_bounded(self, make_call, make_transcript):
        call = make_call(id="c1")
        long_sentences = ["word " * 100] * 10
        prompt = _build(
            SearchRequest(scope="global", query="pricing"),
            candidates=[call],
            selected=[call],
            transcripts={"c1": make_transcript("c1", *long_sentences)},
        )
        excerpt = prompt.split("Transcript:\n", 1)[1].split("\n", 1)[0]
        assert len(excerpt) <= MAX_EXCERPT_CHARS

    def test_calls_without_transcript_are_skipped(self, make_call):
        call = make_call(id="c1", title="No transcript")
        prompt = _build(SearchRequest(scope="global", query="x y z"), candidates=[call], selected=[call])
        assert "Detailed Call Transcripts" not in prompt


class TestEmailSummary:
    def test_counts(self, make_email):
        emails = [
            make_email(id="e1", opened=True),
            make_email(id="e2", opened=True, clicked=True, replied=True),
            make_email(id="e3"),
        ]
        block = email_summary(emails)
        assert "3 tracked emails" in block
        assert "Stats: 2 opened, 1 clicked, 1 replied" in block
        assert "bounced" not in block

    def test_bounced_only_when_present(self, make_email):
        block = email_summary([make_email(bounced=True)])
        assert "1 bounced" in block

    def test_empty(self):
        assert email_summary([]) == ""


class TestCrmSummary:
    def test_opportunity_and_account_fields(self):
        context = CrmContext(
            opportunity=OpportunityContext(
                name="Big Deal",
                account_name="Acme",
                stage="Negotiation",
                amount=100000,
                close_date="2025-12-01",
                probability=75,
                next_step="Contract review",
                owner_name="Jane",
                type="New Business",
            ),
            account=AccountContext(name="Acme", industry="Tech", employee_count=500, annual_revenue=10000000),
        )
        block = crm_summary(context)
        assert "Salesforce Opportunity: Big Deal" in block
        assert "Stage: Negotiation | Amount: $100,000" in block
        assert "Probability: 75%" in block
        assert "Owner: Jane | Type: New Business" in block
        assert "Industry: Tech" in block
        assert "Revenue: $10,000,000" in block

    def test_none(self):
        assert crm_summary(None) == ""


class TestPromptLayout:
    def test_query_and_grounding_instruction_come_last(self, make_call):
        prompt = _build(SearchRequest(scope="global", query="What are common objections?"), candidates=[make_call()])
        assert prompt.endswith(GROUNDING_INSTRUCTION)
        assert prompt.index('User\'s question: "What are common objections?"') > prompt.index("All Calls Analyzed")

    def test_section_order(self, make_call, make_transcript, make_email):
        call = make_call(id="c1")
        prompt = _build(
            SearchRequest(scope="account", query="status", account_id="a1", account_name="Acme"),
            candidates=[call],
            selected=[call],
            transcripts={"c1": make_transcript("c1")},
            emails=[make_email()],
            crm=CrmContext(account=AccountContext(name="Acme")),
        )
        markers = [
            "sales intelligence analyst",
            "All Calls Analyzed",
            "Detailed Call Transcripts",
            "Email Activity",
            "Salesforce Context",
            "User's question",
        ]
        positions = [prompt.index(marker) for marker in markers]
        assert positions == sorted(positions)

"""Prompt builder - assembles the size-bounded, scope-framed answer prompt.

Pure text assembly; no I/O.
"""

from ..models import (
    CallRecord,
    CrmContext,
    EmailActivityRecord,
    Scope,
    SearchRequest,
    TranscriptRecord,
)

MAX_CALL_SUMMARIES = 50
MAX_EXCERPT_CHARS = 1500
MAX_SAMPLE_EMAILS = 10

GROUNDING_INSTRUCTION = (
    "IMPORTANT: Answer based ONLY on the data provided above. Cite specific calls by name "
    "and date when referencing insights. Do NOT fabricate or guess information not present "
    "in the data. If the data is insufficient to answer the question, say so clearly. "
    "Provide a structured, actionable answer."
)


def _format_date(call: CallRecord) -> str:
    return call.start_time.date().isoformat() if call.start_time else "Unknown"


def _format_money(value: float | None) -> str:
    return f"${value:,.0f}" if value is not None else "N/A"


def _or_na(value) -> str:
    return "N/A" if value is None or value == "" else str(value)


def framing(request: SearchRequest, lookback_days: int) -> str:
    if request.scope == Scope.ACCOUNT:
        name = request.account_name or "this account"
        return (
            f'You are a sales intelligence analyst. Analyze Gong call data for the account "{name}". '
            "Focus on relationship health, stakeholder patterns, sentiment trends, and key themes "
            "across conversations."
        )
    if request.scope == Scope.OPPORTUNITY:
        name = request.opportunity_name or "this deal"
        return (
            f'You are a deal coach analyzing Gong call data for the opportunity "{name}". '
            "Focus on deal progression, objections raised, buying signals, competitive mentions, "
            "and recommended next steps."
        )
    return (
        f"You are a sales analytics expert. Analyze Gong call data across all deals from the last "
        f"{lookback_days} days. Focus on cross-deal trends, quantified themes, strategic patterns, "
        "and actionable recommendations."
    )


def call_summaries(calls: list[CallRecord]) -> str:
    """One line per call, capped at MAX_CALL_SUMMARIES."""
    if not calls:
        return "--- All Calls Analyzed (0 total) ---\nNo calls matched this scope and filters.\n"

    lines = [f"--- All Calls Analyzed ({len(calls)} total) ---"]
    for idx, call in enumerate(calls[:MAX_CALL_SUMMARIES], start=1):
        duration = f" {round(call.duration / 60)}m" if call.duration else ""
        topics = f" [{', '.join(call.topics)}]" if call.topics else ""
        lines.append(f'{idx}. "{call.title}" - {_format_date(call)}{duration}{topics}')
    if len(calls) > MAX_CALL_SUMMARIES:
        lines.append(f"... and {len(calls) - MAX_CALL_SUMMARIES} more calls")
    return "\n".join(lines) + "\n"


def call_details(selected: list[CallRecord], transcripts: dict[str, TranscriptRecord]) -> str:
    """Participants, topics and a transcript excerpt for each transcribed call."""
    transcribed = [call for call in selected if call.id in transcripts]
    if not transcribed:
        return ""

    lines = [f"--- Detailed Call Transcripts ({len(transcribed)} key calls) ---"]
    for idx, call in enumerate(transcribed, start=1):
        duration = f"{round(call.duration / 60)} min" if call.duration else "unknown length"
        lines.append(f'\n### Call {idx}: "{call.title}" - {_format_date(call)} ({duration})')

        participants = ", ".join(
            f"{p.name} ({p.affiliation.value})" if p.affiliation else p.name
            for p in call.participants
            if p.name
        )
        if participants:
            lines.append(f"Participants: {participants}")
        if call.topics:
            lines.append(f"Topics: {', '.join(call.topics)}")

        excerpt = transcripts[call.id].text(max_chars=MAX_EXCERPT_CHARS)
        if excerpt:
            lines.append(f"Transcript:\n{excerpt}")
    return "\n".join(lines) + "\n"


def email_summary(emails: list[EmailActivityRecord]) -> str:
    if not emails:
        return ""

    opened = sum(1 for e in emails if e.opened)
    clicked = sum(1 for e in emails if e.clicked)
    replied = sum(1 for e in emails if e.replied)
    bounced = sum(1 for e in emails if e.bounced)

    stats = f"Stats: {opened} opened, {clicked} clicked, {replied} replied"
    if bounced:
        stats += f", {bounced} bounced"

    lines = [f"--- Email Activity ({len(emails)} tracked emails) ---", stats]
    for email in emails[:MAX_SAMPLE_EMAILS]:
        sent = email.sent_at.date().isoformat() if email.sent_at else "Unknown"
        status = " [replied]" if email.replied else " [opened]" if email.opened else ""
        lines.append(f'- "{email.subject}" ({sent}){status}')
    return "\n".join(lines) + "\n"


def crm_summary(context: CrmContext | None) -> str:
    if context is None or context.is_empty:
        return ""

    lines = ["--- Salesforce Context ---"]
    opp = context.opportunity
    if opp:
        lines.append(f"Salesforce Opportunity: {opp.name}")
        lines.append(f"  Account: {_or_na(opp.account_name)}")
        lines.append(f"  Stage: {_or_na(opp.stage)} | Amount: {_format_money(opp.amount)}")
        probability = f"{opp.probability:g}%" if opp.probability is not None else "N/A"
        lines.append(f"  Close Date: {_or_na(opp.close_date)} | Probability: {probability}")
        lines.append(f"  Next Step: {_or_na(opp.next_step)}")
        lines.append(f"  Owner: {_or_na(opp.owner_name)} | Type: {_or_na(opp.type)}")
    account = context.account
    if account:
        lines.append(f"Salesforce Account: {account.name}")
        lines.append(f"  Industry: {_or_na(account.industry)} | Type: {_or_na(account.type)}")
        lines.append(
            f"  Employees: {_or_na(account.employee_count)} | "
            f"Revenue: {_format_money(account.annual_revenue)}"
        )
    return "\n".join(lines) + "\n"


def build_prompt(
    request: SearchRequest,
    candidates: list[CallRecord],
    selected: list[CallRecord],
    transcripts: dict[str, TranscriptRecord],
    emails: list[EmailActivityRecord],
    crm_context: CrmContext | None,
    lookback_days: int,
) -> str:
    sections = [
        framing(request, lookback_days) + "\n",
        call_summaries(candidates),
        call_details(selected, transcripts),
        email_summary(emails),
        crm_summary(crm_context),
        f'User\'s question: "{request.query}"\n',
        "---\n" + GROUNDING_INSTRUCTION,
    ]
    return "\n".join(section for section in sections if section)

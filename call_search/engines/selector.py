"""Call selector - scores candidates and stratified-samples them by quarter.

Scoring weights (only their ordering matters):
- +10 per query term found in the call's topics
- +5 per query term found in the call title
- recency: 20 for a call today, falling linearly to 0 at 730 days
- duration: up to 10, reached at 60 minutes
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from ..models import CallRecord

MAX_SELECTED_CALLS = 15

TOPIC_MATCH_WEIGHT = 10.0
TITLE_MATCH_WEIGHT = 5.0
MAX_RECENCY_SCORE = 20.0
RECENCY_HORIZON_DAYS = 730
MAX_DURATION_SCORE = 10.0
FULL_DURATION_MINUTES = 60

UNDATED_QUARTER = "undated"


@dataclass(frozen=True)
class ScoredCall:
    call: CallRecord
    score: float
    quarter: str


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def query_terms(query: str) -> list[str]:
    """Lower-cased query tokens longer than two characters."""
    return [term for term in query.lower().split() if len(term) > 2]


def quarter_key(when: datetime | None) -> str:
    if when is None:
        return UNDATED_QUARTER
    when = _as_utc(when)
    return f"{when.year}-Q{(when.month - 1) // 3 + 1}"


def score_call(call: CallRecord, terms: list[str], now: datetime) -> float:
    score = 0.0

    if call.topics and terms:
        topics = " ".join(topic.lower() for topic in call.topics)
        score += TOPIC_MATCH_WEIGHT * sum(1 for term in terms if term in topics)

    title = (call.title or "").lower()
    score += TITLE_MATCH_WEIGHT * sum(1 for term in terms if term in title)

    if call.start_time is not None:
        age_days = max(0.0, (_as_utc(now) - _as_utc(call.start_time)).total_seconds() / 86400)
        score += max(0.0, MAX_RECENCY_SCORE * (1 - age_days / RECENCY_HORIZON_DAYS))

    duration_minutes = (call.duration or 0) / 60
    score += min(MAX_DURATION_SCORE, MAX_DURATION_SCORE * duration_minutes / FULL_DURATION_MINUTES)

    return score


def rank_calls(calls: list[CallRecord], query: str, now: datetime) -> list[ScoredCall]:
    """Score every call; ordered by score descending, then call ID."""
    terms = query_terms(query)
    scored = [
        ScoredCall(call=call, score=score_call(call, terms, now), quarter=quarter_key(call.start_time))
        for call in calls
    ]
    scored.sort(key=lambda s: (-s.score, s.call.id))
    return scored


def select_calls(
    calls: list[CallRecord],
    query: str,
    now: datetime,
    max_calls: int = MAX_SELECTED_CALLS,
) -> list[CallRecord]:
    """Pick at most ``max_calls`` calls, covering every populated quarter.

    The best call of each quarter is taken first (best quarters first when
    there are more quarters than slots); remaining slots go to the highest
    scores across the whole pool.
    """
    if max_calls <= 0:
        return []

    ranked = rank_calls(calls, query, now)

    representatives: dict[str, ScoredCall] = {}
    for scored in ranked:
        representatives.setdefault(scored.quarter, scored)

    chosen = {s.call.id for s in list(representatives.values())[:max_calls]}
    for scored in ranked:
        if len(chosen) >= max_calls:
            break
        chosen.add(scored.call.id)

    selected: list[CallRecord] = []
    for scored in ranked:
        if scored.call.id in chosen:
            chosen.discard(scored.call.id)
            selected.append(scored.call)
    return selected

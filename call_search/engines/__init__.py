"""Search pipeline stages and the engine that runs them."""

from .scope import SearchWindow, resolve_lookback_days, resolve_window
from .filters import (
    filter_by_opportunity_type,
    filter_by_participants,
    match_by_name,
    match_crm_associations,
)
from .selector import quarter_key, score_call, select_calls
from .crm_context import fetch_crm_context
from .prompt_builder import build_prompt
from .search_engine import CallSearchEngine, create_search_engine

__all__ = [
    "SearchWindow",
    "resolve_lookback_days",
    "resolve_window",
    "filter_by_opportunity_type",
    "filter_by_participants",
    "match_by_name",
    "match_crm_associations",
    "quarter_key",
    "score_call",
    "select_calls",
    "fetch_crm_context",
    "build_prompt",
    "CallSearchEngine",
    "create_search_engine",
]

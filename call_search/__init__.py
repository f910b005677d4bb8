"""Gong call search: scoped, grounded Q&A over recorded sales calls."""

from .engines.search_engine import CallSearchEngine, create_search_engine
from .models import SearchRequest, SearchResult

__all__ = ["CallSearchEngine", "create_search_engine", "SearchRequest", "SearchResult"]

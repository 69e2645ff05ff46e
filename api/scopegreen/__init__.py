"""SCOPEGREEN LCA metrics search API client."""

from api.scopegreen.client import build_query_string, build_request_url, fetch_metrics
from api.scopegreen.lookup import scopegreen
from api.scopegreen.outcomes import classify_response
from api.scopegreen.params import QueryParameters, build_cache_key, normalize_params
from api.scopegreen.rows import format_match_row, outcome_to_table

__all__ = [
    "QueryParameters",
    "build_cache_key",
    "build_query_string",
    "build_request_url",
    "classify_response",
    "fetch_metrics",
    "format_match_row",
    "normalize_params",
    "outcome_to_table",
    "scopegreen",
]

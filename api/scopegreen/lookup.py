"""
SCOPEGREEN lookup: the spreadsheet-callable entry point.
Normalizes inputs, serves from the per-user cache when possible, otherwise calls
the metrics search API once, classifies the response and returns a one-row table.
Never raises: every failure comes back as a single message cell.
"""

import json
import logging
from typing import Any, Callable, Protocol

from api.cache import CACHE_TTL_SECONDS, get_user_cache
from api.scopegreen.client import fetch_metrics
from api.scopegreen.outcomes import GenericFailure, Outcome, Success, Timeout, classify_response
from api.scopegreen.params import (
    DEFAULT_NUM_MATCHES,
    QueryParameters,
    build_cache_key,
    normalize_params,
)
from api.scopegreen.rows import outcome_to_table

logger = logging.getLogger(__name__)

_TIMEOUT_MARKERS = ("timeout", "execution time")


class CacheStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def put(self, key: str, value: str, ttl_seconds: float) -> None: ...


Fetcher = Callable[[QueryParameters], tuple[int, str]]


def _read_cached_table(cache: CacheStore, key: str) -> list[list] | None:
    """Return the cached one-row table, or None on miss, unreadable entry, or store failure."""
    try:
        cached = cache.get(key)
    except Exception as e:
        logger.warning("SCOPEGREEN cache read failed key=%s: %s", key, e)
        return None
    if not cached:
        return None
    try:
        table = json.loads(cached)
    except ValueError as e:
        logger.warning("SCOPEGREEN cache parse failed key=%s: %s", key, e)
        return None
    if not isinstance(table, list) or not table or not all(isinstance(r, list) for r in table):
        logger.warning("SCOPEGREEN cache entry is not a row table key=%s", key)
        return None
    return table


def _write_cached_table(cache: CacheStore, key: str, table: list[list]) -> None:
    try:
        cache.put(key, json.dumps(table), CACHE_TTL_SECONDS)
    except Exception as e:
        logger.warning("SCOPEGREEN cache storage error key=%s: %s", key, e)


def _failure_outcome(error: Exception) -> Outcome:
    """Timeouts are told apart from other failures by the error text only."""
    text = str(error)
    if any(marker in text for marker in _TIMEOUT_MARKERS):
        return Timeout(detail=text)
    return GenericFailure(detail=text)


def scopegreen(
    item_name: Any = None,
    year: Any = None,
    geography: Any = None,
    metric: Any = None,
    domain: Any = None,
    num_matches: Any = None,
    mode: Any = None,
    not_english: Any = None,
    unit: Any = None,
    *,
    cache: CacheStore | None = None,
    fetch: Fetcher | None = None,
    user: str | None = None,
) -> list[list]:
    """
    Fetch LCA metrics for one item and return them as a one-row table.

    Args:
        item_name: Item to find metrics for (max 100 chars, checked by the API).
        year: Optional year (>= 2000).
        geography: Optional geography (max 50 chars).
        metric: "Carbon footprint" (default), "EF3.1 Score" or "Land Use".
        domain: Optional domain filter (Materials & Products, Processing, Transport,
            Energy, Direct emissions).
        num_matches: Matches to return, 1-3 (default 1).
        mode: Search mode (default "lite").
        not_english: True if item_name must be translated before search.
        unit: Optional target functional unit for conversion (e.g. "g", "kWh", "lb").
        cache: Store with get/put; defaults to the in-memory cache for `user`.
        fetch: Callable(params) -> (status_code, body_text); defaults to fetch_metrics.
        user: Cache scope when `cache` is not given.

    Returns:
        [[cells...]]: eight cells per match plus an explanation cell on success,
        otherwise a single message cell.
    """
    logger.info(
        "SCOPEGREEN parameters item_name=%r year=%r geography=%r metric=%r domain=%r "
        "num_matches=%r mode=%r not_english=%r unit=%r",
        item_name, year, geography, metric, domain, num_matches, mode, not_english, unit,
    )
    try:
        params = normalize_params(
            item_name, year, geography, metric, domain, num_matches, mode, not_english, unit
        )
        key = build_cache_key(params)
        cache = cache if cache is not None else get_user_cache(user)
    except Exception as e:
        logger.warning("SCOPEGREEN parameter preparation failed: %s", e)
        return outcome_to_table(GenericFailure(detail=str(e)), DEFAULT_NUM_MATCHES)
    fetch = fetch or fetch_metrics

    cached = _read_cached_table(cache, key)
    if cached is not None:
        logger.info("SCOPEGREEN cache hit key=%s", key)
        return cached

    try:
        status_code, body_text = fetch(params)
    except Exception as e:
        logger.warning("SCOPEGREEN request failed item_name=%s: %s", params.item_name, e)
        return outcome_to_table(_failure_outcome(e), params.num_matches)

    outcome = classify_response(status_code, body_text)
    logger.info("SCOPEGREEN outcome=%s status=%s", outcome.kind, status_code)
    table = outcome_to_table(outcome, params.num_matches)
    if isinstance(outcome, Success):
        _write_cached_table(cache, key, table)
    return table

"""
SCOPEGREEN metrics search API client.
Builds the GET query for one lookup and returns (status_code, body_text) without
raising on non-2xx responses. Loads SCOPEGREEN_API_KEY / SCOPEGREEN_API_URL from
.env in the project root.
"""

import logging
import os
from pathlib import Path
from urllib.parse import quote

import requests
from dotenv import load_dotenv

from api.scopegreen.params import QueryParameters

# Load .env from project root (api/scopegreen/client.py -> parent.parent.parent = project root)
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

logger = logging.getLogger(__name__)

SCOPEGREEN_SEARCH_URL = "https://scopegreen-main-1a948ab.d2.zuplo.dev/api/metrics/search"
REQUEST_TIMEOUT_SECONDS = 50
RESPONSE_LOG_CHARS = 500

# Same unescaped set as JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "-_.!~*'()"


def _encode(value: object) -> str:
    return quote(str(value), safe=_URI_COMPONENT_SAFE)


def get_api_key() -> str | None:
    """Return SCOPEGREEN_API_KEY from the environment, stripped of quotes; None if unset."""
    raw = os.environ.get("SCOPEGREEN_API_KEY")
    key = (raw or "").strip().strip('"').strip("'")
    return key or None


def get_base_url() -> str:
    return (os.environ.get("SCOPEGREEN_API_URL") or "").strip() or SCOPEGREEN_SEARCH_URL


def build_query_string(params: QueryParameters) -> str:
    """
    Query string for one lookup. item_name, web_mode and not_english are always
    sent; the rest only when non-empty. Order is fixed.
    """
    pairs: list[tuple[str, object]] = [("item_name", params.item_name)]
    if params.year:
        pairs.append(("year", params.year))
    if params.geography:
        pairs.append(("geography", params.geography))
    if params.metric:
        pairs.append(("metric", params.metric))
    if params.mode:
        pairs.append(("mode", params.mode))
    pairs.append(("web_mode", "false"))
    if params.num_matches:
        pairs.append(("num_matches", params.num_matches))
    if params.domain:
        pairs.append(("domain", params.domain))
    pairs.append(("not_english", "true" if params.not_english else "false"))
    if params.unit:
        pairs.append(("unit", params.unit))
    return "&".join(f"{name}={_encode(value)}" for name, value in pairs)


def build_request_url(params: QueryParameters, base_url: str | None = None) -> str:
    return f"{base_url or get_base_url()}?{build_query_string(params)}"


def fetch_metrics(
    params: QueryParameters,
    *,
    api_key: str | None = None,
    base_url: str | None = None,
    timeout: float = REQUEST_TIMEOUT_SECONDS,
) -> tuple[int, str]:
    """
    Run one metrics search.

    Args:
        params: Normalized lookup parameters.
        api_key: Bearer token. If None, uses env var SCOPEGREEN_API_KEY.
        base_url: Search endpoint. If None, uses SCOPEGREEN_API_URL or the default.
        timeout: Client-side timeout in seconds.

    Returns:
        (status_code, body_text). Error statuses are returned, not raised.
        Transport errors (timeouts, connection failures) propagate.
    """
    key = api_key or get_api_key()
    if not key:
        raise ValueError(
            "SCOPEGREEN API key required. Set SCOPEGREEN_API_KEY in the environment."
        )
    url = build_request_url(params, base_url)
    logger.info("SCOPEGREEN request url=%s", url)
    resp = requests.get(
        url,
        headers={"Authorization": f"Bearer {key}"},
        timeout=timeout,
    )
    text = resp.text
    logger.info(
        "SCOPEGREEN response status=%s body=%s",
        resp.status_code,
        text[:RESPONSE_LOG_CHARS],
    )
    return resp.status_code, text

"""
Normalize the nine raw SCOPEGREEN inputs and derive the cache key from them.
Inputs come from spreadsheet cells or query strings, so they may be str, int,
float, bool or empty. Nothing is rejected here; the remote API validates.
"""

import math
import re
from typing import Any
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict

DEFAULT_METRIC = "Carbon footprint"
DEFAULT_NUM_MATCHES = 1
DEFAULT_MODE = "lite"

CACHE_KEY_PREFIX = "LCA"
CACHE_KEY_DELIMITER = "|"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class QueryParameters(BaseModel):
    """Normalized lookup parameters; the unit of cache-key derivation."""

    model_config = ConfigDict(frozen=True)

    item_name: str = ""
    year: str = ""
    geography: str = ""
    metric: str = DEFAULT_METRIC
    domain: str = ""
    num_matches: int = DEFAULT_NUM_MATCHES
    mode: str = DEFAULT_MODE
    not_english: bool = False
    unit: str = ""


def _to_text(value: Any) -> str:
    """Render a cell value as text: 2020.0 -> "2020", True -> "true"."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _text_or_default(value: Any, default: str = "") -> str:
    return _to_text(value).strip() if value else default


def _parse_int(value: Any) -> int | None:
    """Integer from the leading digits of value (2.7 -> 2, "3 matches" -> 3), else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def normalize_params(
    item_name: Any = None,
    year: Any = None,
    geography: Any = None,
    metric: Any = None,
    domain: Any = None,
    num_matches: Any = None,
    mode: Any = None,
    not_english: Any = None,
    unit: Any = None,
) -> QueryParameters:
    """
    Apply defaults and casts to the raw inputs.

    Empty values (None, "", 0, False) take the documented default; present values
    are trimmed strings, except num_matches (int) and not_english (bool, True only
    for literal True or the string "true").
    """
    parsed_matches = _parse_int(num_matches) if num_matches else None
    return QueryParameters(
        item_name=_text_or_default(item_name),
        year=_text_or_default(year),
        geography=_text_or_default(geography),
        metric=_text_or_default(metric, DEFAULT_METRIC),
        domain=_text_or_default(domain),
        num_matches=parsed_matches if parsed_matches is not None else DEFAULT_NUM_MATCHES,
        mode=_text_or_default(mode, DEFAULT_MODE).lower(),
        not_english=not_english is True or not_english == "true",
        unit=_text_or_default(unit),
    )


def build_cache_key(params: QueryParameters) -> str:
    """
    Deterministic key over all nine normalized fields.
    Fields are percent-encoded with no safe characters so the delimiter never
    appears inside a field.
    """
    fields = [
        params.item_name,
        params.year,
        params.geography,
        params.metric,
        params.domain,
        str(params.num_matches),
        params.mode,
        "true" if params.not_english else "false",
        params.unit,
    ]
    return CACHE_KEY_DELIMITER.join([CACHE_KEY_PREFIX] + [quote(f, safe="") for f in fields])

"""
Classify one SCOPEGREEN API response (status code + body text) into an Outcome.
Checks run in a fixed precedence: rate limit, unparseable body, API error,
no-match message, matches, then whatever is left.
"""

import json
import logging
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger(__name__)

NO_MATCH_MARKER = "No good match was found"
GENERIC_RATE_LIMIT_MESSAGE = "Please try again later."
UNKNOWN_ERROR_MESSAGE = "Unknown error"


class MatchMetric(BaseModel):
    model_config = ConfigDict(extra="ignore")

    value: Any = ""
    unit: Any = ""


class Match(BaseModel):
    """One ranked candidate item returned by the API. Unknown fields are ignored."""

    model_config = ConfigDict(extra="ignore")

    rank: Any = None
    matched_name: Any = None
    metric: MatchMetric | None = None
    year: Any = None
    geography: Any = None
    source: Any = None
    source_link: Any = None
    conversion_info: Any = None


class RateLimited(BaseModel):
    kind: Literal["rate_limited"] = "rate_limited"
    message: str


class ApiError(BaseModel):
    kind: Literal["api_error"] = "api_error"
    code: Any
    message: Any


class NoMatch(BaseModel):
    kind: Literal["no_match"] = "no_match"
    message: str


class Malformed(BaseModel):
    kind: Literal["malformed"] = "malformed"
    raw_text: str


class Success(BaseModel):
    kind: Literal["success"] = "success"
    matches: list[Match]
    explanation: Any = ""


class UnexpectedShape(BaseModel):
    """Parsed body with none of the known shapes: carries its message, or the raw text."""

    kind: Literal["unexpected_shape"] = "unexpected_shape"
    message: Any = None
    raw_text: str | None = None


class Timeout(BaseModel):
    kind: Literal["timeout"] = "timeout"
    detail: str = ""


class GenericFailure(BaseModel):
    kind: Literal["generic_failure"] = "generic_failure"
    detail: str


Outcome = Union[
    RateLimited,
    ApiError,
    NoMatch,
    Malformed,
    Success,
    UnexpectedShape,
    Timeout,
    GenericFailure,
]


def _rate_limited(body_text: str) -> RateLimited:
    try:
        data = json.loads(body_text)
    except ValueError:
        return RateLimited(message=GENERIC_RATE_LIMIT_MESSAGE)
    error = data.get("error") if isinstance(data, dict) else None
    message = error.get("message") if isinstance(error, dict) else None
    if message:
        return RateLimited(message=str(message))
    return RateLimited(message=GENERIC_RATE_LIMIT_MESSAGE)


def _api_error(error: Any, status_code: int) -> ApiError:
    if isinstance(error, dict):
        code = error.get("code")
        message = error.get("message")
    else:
        code, message = None, error
    return ApiError(
        code=code if code not in (None, "") else status_code,
        message=message if message not in (None, "") else UNKNOWN_ERROR_MESSAGE,
    )


def classify_response(status_code: int, body_text: str) -> Outcome:
    """
    Map (status_code, body_text) to exactly one Outcome. Never raises.

    Malformed bodies keep the raw text verbatim so the caller sees what the API
    actually sent.
    """
    if status_code == 429:
        return _rate_limited(body_text)

    try:
        data = json.loads(body_text)
    except ValueError:
        return Malformed(raw_text=body_text)

    if not isinstance(data, dict):
        logger.warning("SCOPEGREEN unexpected response type=%s", type(data).__name__)
        return UnexpectedShape(raw_text=body_text)

    logger.info("SCOPEGREEN parsed keys=%s", ", ".join(data.keys()))

    if data.get("error"):
        return _api_error(data["error"], status_code)

    message = data.get("message")
    if isinstance(message, str) and NO_MATCH_MARKER in message:
        return NoMatch(message=message)

    matches = data.get("matches")
    if isinstance(matches, list) and matches:
        try:
            return Success(
                matches=[m if isinstance(m, dict) else {} for m in matches],
                explanation=data.get("explanation") or "",
            )
        except ValidationError as e:
            logger.warning("SCOPEGREEN matches did not validate: %s", e)

    logger.warning("SCOPEGREEN unexpected response structure: %s", body_text[:500])
    if message:
        return UnexpectedShape(message=message)
    return UnexpectedShape(raw_text=body_text)

"""
Render a classified Outcome as a one-row table for a spreadsheet.
Success flattens every requested match into the same row (eight cells per match
plus a trailing explanation cell); every other outcome is a single message cell.
"""

from api.scopegreen.outcomes import (
    ApiError,
    GenericFailure,
    Malformed,
    Match,
    NoMatch,
    Outcome,
    RateLimited,
    Success,
    Timeout,
    UnexpectedShape,
)

CELLS_PER_MATCH = 8
TIMEOUT_MESSAGE = "Error: API request timed out. Try simplifying your query."


def _find_rank(matches: list[Match], rank: int) -> Match | None:
    for match in matches:
        if not isinstance(match.rank, bool) and match.rank == rank:
            return match
    return None


def _match_cells(rank: int, match: Match) -> list:
    metric = match.metric
    return [
        f"Match {rank}: {match.matched_name if match.matched_name is not None else ''}",
        metric.value if metric is not None else "",
        metric.unit if metric is not None else "",
        match.year or "",
        match.geography or "",
        match.source or "",
        match.source_link or "",
        match.conversion_info or "",
    ]


def format_match_row(matches: list[Match], num_matches: int, explanation=None) -> list:
    """
    Flatten matches into one row.

    Ranks 1..min(num_matches, len(matches)) are looked up by their rank value, not
    by position. A rank with no match is skipped, so the row can be shorter than
    num_matches implies.
    """
    row: list = []
    for rank in range(1, min(num_matches, len(matches)) + 1):
        match = _find_rank(matches, rank)
        if match is not None:
            row.extend(_match_cells(rank, match))
    row.append(explanation or "")
    return row


def message_table(message) -> list[list]:
    return [[message]]


def outcome_to_table(outcome: Outcome, num_matches: int) -> list[list]:
    """Return the one-row table shown for an outcome."""
    if isinstance(outcome, Success):
        return [format_match_row(outcome.matches, num_matches, outcome.explanation)]
    if isinstance(outcome, RateLimited):
        return message_table(f"Rate limit exceeded: {outcome.message}")
    if isinstance(outcome, ApiError):
        return message_table(f"{outcome.code}: {outcome.message}")
    if isinstance(outcome, NoMatch):
        return message_table(outcome.message)
    if isinstance(outcome, Malformed):
        return message_table(outcome.raw_text)
    if isinstance(outcome, UnexpectedShape):
        if outcome.message:
            return message_table(f"Message from API: {outcome.message}")
        return message_table(outcome.raw_text or "")
    if isinstance(outcome, Timeout):
        return message_table(TIMEOUT_MESSAGE)
    if isinstance(outcome, GenericFailure):
        return message_table(f"Error: {outcome.detail}")
    raise TypeError(f"Unknown outcome: {type(outcome).__name__}")

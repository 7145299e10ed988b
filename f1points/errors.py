"""
Exception types raised by the points pipeline.

Recovery policy: FetchError is absorbed per round, NoDataError per season.
Only TotalFailureError (and PipelineCancelled) reach the caller.
"""
from typing import Any, Optional


class F1PointsError(Exception):
    """Base class for all pipeline errors."""


class FetchError(F1PointsError):
    """A single request failed after exhausting retries, or returned no usable data."""

    def __init__(
        self,
        kind: str,
        params: dict[str, Any],
        attempts: int,
        last_error: Optional[BaseException] = None,
    ) -> None:
        self.kind = kind
        self.params = dict(params)
        self.attempts = attempts
        self.last_error = last_error
        detail = f": {last_error}" if last_error is not None else ": empty or malformed response"
        super().__init__(f"Failed to fetch {kind} {self.params} after {attempts} attempts{detail}")


class NoDataError(F1PointsError):
    """A whole season yielded no rounds or no results."""

    def __init__(self, season: int, reason: str = "no data") -> None:
        self.season = season
        self.reason = reason
        super().__init__(f"No data for season {season}: {reason}")


class TotalFailureError(F1PointsError):
    """No season in the requested range produced any data."""

    def __init__(self, start_year: int, end_year: int) -> None:
        self.start_year = start_year
        self.end_year = end_year
        super().__init__(
            f"No data could be processed for any season in {start_year}-{end_year}. "
            "Check your internet connection and API availability."
        )


class PipelineCancelled(F1PointsError):
    """The run was cancelled between units of work."""

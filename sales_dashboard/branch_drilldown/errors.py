# sales_dashboard/branch_drilldown/errors.py
"""
Error taxonomy for the drill-down controller.

Precondition errors are raised synchronously and leave state untouched.
Provider failures are recorded per level in the snapshot instead of being
raised to the caller.
"""

from typing import Optional


class DrilldownError(Exception):
    """Base class for drill-down errors."""


class InvalidRangeError(DrilldownError, ValueError):
    """Date range with start after end."""


class InvalidSelectionError(DrilldownError, ValueError):
    """Selection that would break the branch -> vendor -> product chain."""


class ProviderFetchError(DrilldownError):
    """
    Failure surfaced by a data provider for a given level.

    Attributes:
        level: Fetch level name (one of FETCH_LEVELS)
        status_code: HTTP status when the failure came from a response
    """

    def __init__(
        self,
        message: str,
        level: Optional[str] = None,
        status_code: Optional[int] = None
    ):
        super().__init__(message)
        self.message = message
        self.level = level
        self.status_code = status_code

    def __str__(self) -> str:
        if self.level:
            return f"[{self.level}] {self.message}"
        return self.message


class StaleResultDiscarded(DrilldownError):
    """Internal signal: a fetch result belongs to a superseded epoch."""

    def __init__(self, level: str, epoch: int, current_epoch: int):
        super().__init__(f"{level} epoch {epoch} superseded by {current_epoch}")
        self.level = level
        self.epoch = epoch
        self.current_epoch = current_epoch

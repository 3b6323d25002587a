"""Interest calculation package."""

from debt_tracker.engine.accrual import (
    DAYS_IN_YEAR,
    DEFAULT_ANNUAL_RATE,
    accrue,
    elapsed_days,
)

__all__ = [
    "DAYS_IN_YEAR",
    "DEFAULT_ANNUAL_RATE",
    "accrue",
    "elapsed_days",
]

"""
Daily Interest Accrual

Interest is simple, per elapsed day, rounded UP to whole days: any part of a
day since the last accrual counts as a full day. A clock that moved
backwards accrues nothing.
"""

from debt_tracker.models.ledger import MS_PER_DAY, AccrualResult


DEFAULT_ANNUAL_RATE = 0.15
DAYS_IN_YEAR = 365


def elapsed_days(last_timestamp: int, now: int) -> int:
    """Whole days between two epoch-ms instants, ceiling, never negative."""
    elapsed_ms = int(now) - int(last_timestamp)
    if elapsed_ms <= 0:
        return 0
    return -(-elapsed_ms // MS_PER_DAY)


def accrue(
    balance: float,
    last_timestamp: int,
    now: int,
    annual_rate: float = DEFAULT_ANNUAL_RATE,
    days_in_year: int = DAYS_IN_YEAR,
) -> AccrualResult:
    """
    Apply daily interest to a balance.

    Args:
        balance: Balance before interest
        last_timestamp: Last accrual instant (epoch ms)
        now: Current instant (epoch ms)
        annual_rate: Yearly rate, 0.15 = 15%
        days_in_year: Day count for the daily rate

    Returns:
        AccrualResult with the new balance, interest added and days counted
    """
    days = elapsed_days(last_timestamp, now)
    if days == 0:
        return AccrualResult(new_balance=balance, interest_applied=0.0, elapsed_days=0)

    daily_rate = annual_rate / days_in_year
    interest = balance * daily_rate * days
    return AccrualResult(
        new_balance=balance + interest,
        interest_applied=interest,
        elapsed_days=days,
    )

"""Billing date calculations for recurring subscriptions.

Everything in this module is pure: the caller passes ``now`` explicitly and
nothing is cached, so every read of a subscription reflects the clock at
response time.

Billing days that do not exist in a month (for example 31 in February) are
clamped to the last day of that month. The clamp is applied per target month,
so a subscription billed on day 31 charges on February 29th and then on
March 31st rather than drifting to the 29th permanently.
"""

from __future__ import annotations

import enum
import logging
from calendar import monthrange
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

LOGGER = logging.getLogger(__name__)

MIN_BILLING_DAY = 1
MAX_BILLING_DAY = 31

DateLike = Union[date, datetime, str, None]


class InvalidBillingDayError(ValueError):
    """Raised when a billing day is outside the 1-31 range."""


class BillingStatus(str, enum.Enum):
    """Billing state reported alongside a computed billing date."""

    UPCOMING = "upcoming"
    OVERDUE = "overdue"
    INVALID = "invalid"


@dataclass(frozen=True)
class BillingSnapshot:
    """Derived billing information for one subscription at one instant."""

    next_billing_date: Optional[date]
    status: BillingStatus

    @property
    def is_overdue(self) -> bool:
        return self.status is BillingStatus.OVERDUE


def _clamped_date(year: int, month: int, day: int) -> date:
    last_day = monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def _following_month(year: int, month: int) -> tuple[int, int]:
    return year + (month // 12), month % 12 + 1


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def validate_billing_day(billing_day: object) -> int:
    if isinstance(billing_day, bool) or not isinstance(billing_day, int):
        raise InvalidBillingDayError(f"billing_day must be an integer, got {billing_day!r}")
    if not MIN_BILLING_DAY <= billing_day <= MAX_BILLING_DAY:
        raise InvalidBillingDayError(
            f"billing_day must be between {MIN_BILLING_DAY} and {MAX_BILLING_DAY}, got {billing_day}"
        )
    return billing_day


def next_billing_date(billing_day: int, now: date | datetime) -> date:
    """Return the next date on which a subscription charges.

    The candidate is ``billing_day`` of the current month. A candidate that is
    today or earlier has already been billed, so the next month is used
    instead.
    """

    day = validate_billing_day(billing_day)
    today = _as_date(now)
    candidate = _clamped_date(today.year, today.month, day)
    if candidate <= today:
        year, month = _following_month(today.year, today.month)
        candidate = _clamped_date(year, month, day)
    return candidate


def parse_billing_date(value: DateLike) -> Optional[date]:
    """Coerce ``value`` into a date, returning ``None`` when it cannot be read."""

    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return _as_date(value)
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        try:
            return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
        except ValueError:
            pass
        try:
            return date.fromisoformat(raw)
        except ValueError:
            return None
    return None


def is_overdue(next_billing: DateLike, now: date | datetime) -> bool:
    """Return whether ``next_billing`` lies before the current day.

    Missing or unparseable dates are never overdue.
    """

    parsed = parse_billing_date(next_billing)
    if parsed is None:
        return False
    return parsed < _as_date(now)


def billing_status(next_billing: DateLike, now: date | datetime) -> BillingStatus:
    parsed = parse_billing_date(next_billing)
    if parsed is None:
        return BillingStatus.INVALID
    if parsed < _as_date(now):
        return BillingStatus.OVERDUE
    return BillingStatus.UPCOMING


def resolve_billing(billing_day: object, now: date | datetime) -> BillingSnapshot:
    """Compute the billing snapshot without raising on corrupt data."""

    try:
        upcoming = next_billing_date(billing_day, now)  # type: ignore[arg-type]
    except InvalidBillingDayError as exc:
        LOGGER.warning("Cannot compute next billing date: %s", exc)
        return BillingSnapshot(next_billing_date=None, status=BillingStatus.INVALID)
    return BillingSnapshot(next_billing_date=upcoming, status=billing_status(upcoming, now))

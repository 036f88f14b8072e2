"""Civil-calendar helpers anchored to the business timezone"""

from datetime import date, datetime, timezone, tzinfo
from zoneinfo import ZoneInfo
from dateutil.relativedelta import relativedelta
from microloan.config import settings


def business_timezone() -> tzinfo:
    """Timezone in which all civil dates are evaluated"""
    return ZoneInfo(settings.business_timezone)


def to_civil_date(value: date | datetime, tz: tzinfo | None = None) -> date:
    """
    Strip time-of-day, evaluating the value in the business timezone.

    Naive datetimes are taken as UTC, which is how timestamps are stored.
    """
    if not isinstance(value, datetime):
        return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz or business_timezone()).date()


def civil_today(now: datetime, tz: tzinfo | None = None) -> date:
    """Current civil date for an injected "now" """
    return to_civil_date(now, tz)


def civil_days_between(start: date, end: date) -> int:
    """Whole calendar days from start to end (negative if end is earlier)"""
    return (end - start).days


def add_months(from_date: date, months: int) -> date:
    """Advance by calendar months, clamping the day to the target month's length"""
    return from_date + relativedelta(months=months)


def format_date(value: date | datetime) -> str:
    """Format as day/month/year"""
    return to_civil_date(value).strftime("%d/%m/%Y")

from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional, Tuple
import calendar
import re

import config

# Shared date helpers. Business dates are IST calendar days.

DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)
MONTH_PATTERN = re.compile(r"\d{4}-(0[1-9]|1[0-2])", re.ASCII)


def ensure_timezone_aware(dt: datetime) -> datetime:
    """Ensures a datetime object is timezone-aware, assuming UTC if naive."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def parse_business_date(value: str) -> date:
    """Parses a strict YYYY-MM-DD calendar string, raising ValueError otherwise."""
    if not isinstance(value, str) or DATE_PATTERN.fullmatch(value) is None:
        raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD.")
    return date.fromisoformat(value)


def is_valid_month(value: str) -> bool:
    return bool(value) and MONTH_PATTERN.fullmatch(value) is not None


def now_in_business_tz(now: Optional[datetime] = None) -> datetime:
    if now is None:
        now = datetime.now(timezone.utc)
    return ensure_timezone_aware(now).astimezone(config.BUSINESS_TZ)


def business_today(now: Optional[datetime] = None) -> str:
    return now_in_business_tz(now).date().isoformat()


def day_bounds(day: str) -> Tuple[datetime, datetime]:
    """Returns the [start, end] instants of an IST calendar day."""
    d = parse_business_date(day)
    start = datetime.combine(d, time(0, 0, 0), tzinfo=config.BUSINESS_TZ)
    end = datetime.combine(d, time(23, 59, 59), tzinfo=config.BUSINESS_TZ)
    return start, end


def month_date_range(month: str) -> Tuple[str, str]:
    """First and last calendar-day strings of a YYYY-MM month."""
    if not is_valid_month(month):
        raise ValueError(f"Invalid month '{month}', expected YYYY-MM.")
    year, month_num = int(month[:4]), int(month[5:])
    last_day = calendar.monthrange(year, month_num)[1]
    return f"{month}-01", f"{month}-{last_day:02d}"


def month_bounds(month: str) -> Tuple[datetime, datetime]:
    """First and last instants of a YYYY-MM month in IST."""
    first, last = month_date_range(month)
    start = datetime.combine(date.fromisoformat(first), time.min, tzinfo=config.BUSINESS_TZ)
    end = datetime.combine(date.fromisoformat(last), time.max, tzinfo=config.BUSINESS_TZ)
    return start, end


def current_and_previous_month(now: Optional[datetime] = None) -> Tuple[str, str]:
    local = now_in_business_tz(now)
    first_of_month = local.date().replace(day=1)
    previous = first_of_month - timedelta(days=1)
    return first_of_month.strftime("%Y-%m"), previous.strftime("%Y-%m")


def following_months(month: str, count: int) -> List[str]:
    """The `count` YYYY-MM months after `month`, in order."""
    if not is_valid_month(month):
        raise ValueError(f"Invalid month '{month}', expected YYYY-MM.")
    year, month_num = int(month[:4]), int(month[5:])
    months = []
    for _ in range(count):
        year, month_num = (year + 1, 1) if month_num == 12 else (year, month_num + 1)
        months.append(f"{year}-{month_num:02d}")
    return months

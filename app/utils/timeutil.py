"""날짜/시간 유틸리티 — UTC 정규화, 스튜디오 현지 시각, 요일 변환.

Date/time helpers shared by services.
Day-of-week values follow the studio convention 0=Sunday ... 6=Saturday.
"""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.utils.exceptions import BadRequestError

DAY_NAMES: list[str] = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """naive datetime을 UTC로 간주 — Treat naive datetimes (SQLite) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def studio_zone(tz_name: str | None) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


def to_studio_time(value: datetime, tz_name: str | None) -> datetime:
    """UTC 시각을 스튜디오 현지 시각으로 변환 — Convert to the studio's local time."""
    return ensure_utc(value).astimezone(studio_zone(tz_name))


def day_of_week(d: date) -> int:
    """Python weekday(월=0) → 스튜디오 요일(일=0) 변환."""
    return (d.weekday() + 1) % 7


def day_name(dow: int) -> str:
    return DAY_NAMES[dow % 7]


def age_in_years(birth_date: date, on: date) -> int:
    """만 나이 — floor(days / 365.25)."""
    return int((on - birth_date).days // 365.25)


def minutes_between(start: time, end: time) -> int:
    return (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)


def combine_local(d: date, t: time, tz_name: str | None) -> datetime:
    """현지 날짜+시각을 aware datetime으로 — Localized datetime for a date and wall time."""
    return datetime.combine(d, t, tzinfo=studio_zone(tz_name))


def iter_dates(start: date, end: date):
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def month_key(value: date | datetime) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def validate_date_range(
    start_date: date | None,
    end_date: date | None,
    max_years: int = 5,
) -> tuple[date, date]:
    """분석용 기간 검증 — 기본값은 최근 12개월.

    Validate an analytics date range. Defaults to the trailing 12 months.

    Raises:
        BadRequestError: 시작일이 종료일보다 늦거나 범위가 max_years 초과
                         (start after end, or range longer than max_years)
    """
    today = date.today()
    end = end_date or today
    start = start_date or (end - timedelta(days=365))
    if start > end:
        raise BadRequestError("시작일이 종료일보다 늦습니다 (start_date must be on or before end_date)")
    if (end - start).days > max_years * 366:
        raise BadRequestError(f"조회 기간은 최대 {max_years}년입니다 (Date range cannot exceed {max_years} years)")
    return start, end

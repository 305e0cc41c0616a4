"""
Resolve the metering period an event falls in.

Daily windows are calendar days in the reference timezone; the period key is
the ISO date of that day. Lifetime windows share one key.
"""

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from common.core.config import settings
from packages.metering.exceptions import InvalidPeriodError
from packages.metering.models.domain.enums import MeteringWindow
from packages.metering.models.domain.period import LIFETIME_PERIOD_KEY, Period

Moment = Union[datetime, str, None]


def utcnow() -> datetime:
    """Current time, timezone-aware."""
    return datetime.now(timezone.utc)


def get_reference_timezone(name: Optional[str] = None) -> tzinfo:
    """Look up the reference timezone for daily windows."""
    name = name or settings.metering_timezone
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidPeriodError(f"Unknown metering timezone: {name!r}") from e


def coerce_moment(now: Moment) -> datetime:
    """
    Turn the caller's notion of "now" into a timezone-aware datetime.

    None means the current time. Strings must be ISO-8601. Naive datetimes
    are taken to be UTC.
    """
    if now is None:
        return utcnow()

    if isinstance(now, str):
        try:
            now = datetime.fromisoformat(now.strip())
        except ValueError as e:
            raise InvalidPeriodError(f"Unparseable timestamp: {now!r}") from e

    if not isinstance(now, datetime):
        raise InvalidPeriodError(f"Expected a datetime, got {type(now).__name__}")

    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def period_key_for_day(day: date) -> str:
    return day.isoformat()


def resolve_period(
    now: Moment,
    window: MeteringWindow,
    timezone_name: Optional[str] = None,
) -> Period:
    """
    Resolve the period containing `now` for the given window.

    Raises:
        InvalidPeriodError: `now` cannot be parsed or the timezone is unknown.
    """
    moment = coerce_moment(now)

    if window == MeteringWindow.LIFETIME:
        return Period(window=window, key=LIFETIME_PERIOD_KEY)

    tz = get_reference_timezone(timezone_name)
    local_day = moment.astimezone(tz).date()
    start = datetime.combine(local_day, time.min, tzinfo=tz)
    # Next midnight by date arithmetic so DST days keep their real length
    end = datetime.combine(local_day + timedelta(days=1), time.min, tzinfo=tz)

    return Period(
        window=window,
        key=period_key_for_day(local_day),
        start=start,
        end=end,
    )


def ensure_current_period(
    moment: Moment,
    window: MeteringWindow,
    timezone_name: Optional[str] = None,
    now: Moment = None,
) -> Period:
    """
    Resolve the period of a caller-supplied event time and require it to be
    the period containing `now`.

    Events are charged to the period they happen in.

    Raises:
        InvalidPeriodError: `moment` falls outside the current period.
    """
    period = resolve_period(moment, window, timezone_name)
    current = resolve_period(now, window, timezone_name)
    if period.key != current.key:
        raise InvalidPeriodError(
            f"Event time {moment} is outside the current {window.value} period ({current.key})"
        )
    return period

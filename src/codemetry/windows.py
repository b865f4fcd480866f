"""Daily analysis windows.

Turns a request's ``since`` / ``until`` / ``days`` / timezone into an
ordered list of non-overlapping midnight-to-midnight windows.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone as dt_timezone, tzinfo
from zoneinfo import ZoneInfo

DEFAULT_DAYS = 7
DEFAULT_TIMEZONE = "UTC"


@dataclass(frozen=True)
class AnalysisWindow:
    """A half-open ``[start, end)`` interval, labelled by its start date."""

    start: datetime
    end: datetime
    label: str

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError(
                f"window start {self.start.isoformat()} must precede end {self.end.isoformat()}"
            )

    @property
    def duration_seconds(self) -> int:
        # Same-tzinfo subtraction ignores DST offsets; compare instants instead
        return int(self.end.timestamp() - self.start.timestamp())

    def to_dict(self) -> dict:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "label": self.label,
            "duration_seconds": self.duration_seconds,
        }


def resolve_timezone(tz: str | tzinfo | None) -> tzinfo:
    """Accept an IANA name, a tzinfo, or None (UTC)."""
    if tz is None:
        return ZoneInfo(DEFAULT_TIMEZONE)
    if isinstance(tz, str):
        return ZoneInfo(tz)
    return tz


def _localize(dt: datetime, tz: tzinfo) -> datetime:
    # Naive datetimes are taken to be wall-clock time in *tz*
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


def _local_midnight(dt: datetime, tz: tzinfo) -> datetime:
    return _localize(dt, tz).replace(hour=0, minute=0, second=0, microsecond=0)


def daily_windows(since: datetime, until: datetime, tz: tzinfo) -> list[AnalysisWindow]:
    """Consecutive local-midnight windows covering ``[since, until)``.

    Both bounds are floored to local midnight first, so a partial final
    day is not included.
    """
    current = _local_midnight(since, tz)
    end = _local_midnight(until, tz)

    windows: list[AnalysisWindow] = []
    while current < end:
        day_end = _local_midnight(current + timedelta(days=1), tz)
        windows.append(
            AnalysisWindow(start=current, end=day_end, label=current.strftime("%Y-%m-%d"))
        )
        current = day_end
    return windows


def plan_windows(
    since: datetime | None = None,
    until: datetime | None = None,
    days: int | None = None,
    timezone: str | tzinfo | None = None,
    now: datetime | None = None,
) -> list[AnalysisWindow]:
    """Resolve a request into daily windows.

    Args:
        since: Inclusive start. Optional.
        until: Exclusive end. Defaults to *now*.
        days: Look-back when *since* is omitted (default 7).
        timezone: IANA name or tzinfo used for day boundaries (default UTC).
        now: Reference "now" (default: current time), mainly for tests.

    Returns:
        Chronologically ordered windows; empty if ``since >= until``.
    """
    tz = resolve_timezone(timezone)

    if since is not None and until is not None:
        return daily_windows(since, until, tz)

    if until is None:
        until = now if now is not None else datetime.now(dt_timezone.utc)
    until = _localize(until, tz)

    if since is None:
        since = until - timedelta(days=days if days is not None else DEFAULT_DAYS)

    return daily_windows(since, until, tz)


def trailing_windows(anchor: datetime, days: int) -> list[AnalysisWindow]:
    """The *days* daily windows ending at the anchor's local midnight.

    Oldest first.  The anchor's own timezone defines day boundaries
    (UTC if it is naive).
    """
    tz = anchor.tzinfo or ZoneInfo(DEFAULT_TIMEZONE)
    end = _local_midnight(anchor, tz)
    return daily_windows(end - timedelta(days=days), end, tz) if days > 0 else []

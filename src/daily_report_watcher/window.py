from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from typing import Optional

from .config import is_end_of_day, parse_hhmm


@dataclass(frozen=True)
class AuditWindow:
    """Audit interval in epoch seconds, tagged with its report day.

    ``end`` is the last included whole second, so any fractional ts inside
    that second still belongs to the window.
    """
    start: int
    end: int
    report_date: str  # YYYY-MM-DD in the configured zone

    def contains(self, ts: float) -> bool:
        return self.start <= ts < self.end + 1


def compute_window(
    cutoff: str,
    day_offset: int,
    tz: tzinfo,
    now: Optional[datetime] = None,
) -> AuditWindow:
    """Compute the audit window for ``cutoff`` on the day ``day_offset`` days from today.

    The window runs from local midnight of the base day to one second before
    the cutoff. An end-of-day cutoff (23:59 or 24:00) runs through 23:59:59.
    All arithmetic happens in ``tz``, never the host zone.
    """
    if now is None:
        now = datetime.now(tz=tz)
    base_day = now.astimezone(tz).date() + timedelta(days=day_offset)

    start = datetime(base_day.year, base_day.month, base_day.day, tzinfo=tz)
    last_second = datetime(base_day.year, base_day.month, base_day.day, 23, 59, 59, tzinfo=tz)

    if is_end_of_day(cutoff):
        end = last_second
    else:
        hour, minute = parse_hhmm(cutoff)
        end = datetime(base_day.year, base_day.month, base_day.day, hour, minute, tzinfo=tz) - timedelta(seconds=1)

    # A 00:00 cutoff would end before it starts
    if end < start:
        end = last_second

    return AuditWindow(
        start=int(start.timestamp()),
        end=int(end.timestamp()),
        report_date=base_day.isoformat(),
    )

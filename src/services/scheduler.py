"""
Time-window selection: which slice of activity a run should cover
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Sequence

from core.errors import WindowSelectionError
from services.config import MarkConfig, ScheduleConfig


@dataclass(frozen=True)
class Window:
    """
    Query interval [start, end]. `end` is the publication mark the run targets.
    """
    start: datetime
    end: datetime
    post_type: str

    @property
    def mark(self) -> datetime:
        return self.end

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end


def _as_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def mark_candidates(now: datetime, marks: Sequence[MarkConfig]) -> List[datetime]:
    """
    Every mark on the previous, current and next UTC day, in chronological order.
    """
    today = _as_utc(now).replace(hour=0, minute=0, second=0, microsecond=0)
    candidates = []
    for day_offset in (-1, 0, 1):
        day = today + timedelta(days=day_offset)
        for mark in marks:
            candidates.append(day.replace(hour=mark.hour))
    return sorted(candidates)


def select_mark(now: datetime, marks: Sequence[MarkConfig], snap_minutes: float) -> datetime:
    """
    Nearest future mark if it is strictly closer than `snap_minutes`,
    otherwise the nearest past mark.
    """
    now = _as_utc(now)
    candidates = mark_candidates(now, marks)
    if not candidates:
        raise WindowSelectionError("No publication marks configured")

    future = [c for c in candidates if c >= now]
    past = [c for c in candidates if c <= now]

    snap = timedelta(minutes=snap_minutes)
    if future and future[0] - now < snap:
        return future[0]
    if past:
        return past[-1]
    raise WindowSelectionError(f"No past publication mark found before {now.isoformat()}")


def post_type_for_hour(hour: int, marks: Sequence[MarkConfig], skew_hours: int = 1) -> str:
    """
    Map an hour of the day onto a post type. Each mark owns the hours from
    `skew_hours` before it up to `skew_hours` before the next mark, so a run
    triggered a little early still lands in the intended bucket.
    """
    if not marks:
        raise WindowSelectionError("No publication marks configured")

    ordered = sorted(marks, key=lambda m: m.hour)
    shifted = (hour + skew_hours) % 24
    # The last mark's bucket wraps past midnight
    owner = ordered[-1]
    for mark in ordered:
        if mark.hour <= shifted:
            owner = mark
    return owner.type


def post_type_for(instant: datetime, schedule: ScheduleConfig) -> str:
    return post_type_for_hour(_as_utc(instant).hour, schedule.marks, schedule.trigger_skew_hours)


def select_window(now: datetime, schedule: ScheduleConfig) -> Window:
    """
    Compute the activity window for a run happening at `now`.
    """
    mark = select_mark(now, schedule.marks, schedule.snap_minutes)
    return Window(
        start=mark - timedelta(hours=schedule.lookback_hours),
        end=mark,
        post_type=post_type_for(mark, schedule),
    )


def window_ending_at(end: datetime, hours: float, schedule: ScheduleConfig) -> Window:
    """Window for an explicit end instant (used for backfills)."""
    end = _as_utc(end)
    return Window(
        start=end - timedelta(hours=hours),
        end=end,
        post_type=post_type_for(end, schedule),
    )

"""
System Clock: infrastructure adapter for wall-clock time and study days.

Implements Clock using the host clock, a fixed UTC offset and the hour at
which a study day rolls over.
"""

import logging
import time
from datetime import datetime, timedelta, timezone

from anamnesis.domain.constants import DEFAULT_ROLLOVER_HOUR, MAX_UTC_OFFSET_MINUTES
from anamnesis.domain.scheduling.ports import Clock

logger = logging.getLogger(__name__)


def local_utc_offset_minutes() -> int:
    """Current offset of the host timezone from UTC, in minutes east."""
    offset = datetime.now().astimezone().utcoffset()
    return int(offset.total_seconds() // 60) if offset else 0


def day_cut_off(
    now: int, utc_offset_minutes: int, rollover_hour: int = DEFAULT_ROLLOVER_HOUR
) -> int:
    """
    Compute the timestamp at which the study day containing `now` ends.

    Args:
        now: Current unix timestamp.
        utc_offset_minutes: Offset east of UTC; clamped to +/- 23 hours.
        rollover_hour: Local hour (0-23) at which a new study day starts.

    Returns:
        The next rollover moment as a unix timestamp. When today's rollover
        has already passed, that is tomorrow's rollover.
    """
    offset = max(-MAX_UTC_OFFSET_MINUTES, min(MAX_UTC_OFFSET_MINUTES, utc_offset_minutes))
    now_dt = datetime.fromtimestamp(now, timezone(timedelta(minutes=offset)))
    rollover = now_dt.replace(hour=rollover_hour, minute=0, second=0, microsecond=0)
    if rollover <= now_dt:
        rollover += timedelta(days=1)
    return int(rollover.timestamp())


class SystemClock(Clock):
    """
    Reads the host clock.

    The UTC offset defaults to the host timezone at construction time.
    """

    def __init__(
        self,
        utc_offset_minutes: int | None = None,
        rollover_hour: int = DEFAULT_ROLLOVER_HOUR,
    ):
        if utc_offset_minutes is None:
            utc_offset_minutes = local_utc_offset_minutes()
        self.utc_offset_minutes = utc_offset_minutes
        self.rollover_hour = rollover_hour

    def now(self) -> int:
        return int(time.time())

    def day_cut_off(self) -> int:
        cut_off = day_cut_off(self.now(), self.utc_offset_minutes, self.rollover_hour)
        logger.debug(
            f"Day cutoff {cut_off} "
            f"(offset={self.utc_offset_minutes}m, rollover={self.rollover_hour}h)"
        )
        return cut_off

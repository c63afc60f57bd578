"""Human-readable rendering of scheduling delays ("10m", "4d", "1.2mo")."""

from anamnesis.domain.constants import END_OF_SCHEDULE_LABEL

_MINUTE = 60
_HOUR = 60 * _MINUTE
_DAY = 24 * _HOUR
_MONTH = 30 * _DAY
_YEAR = 365 * _DAY

# (upper bound in seconds, unit size, suffix), checked in order
_UNITS = [
    (_MINUTE, 1, "s"),
    (_HOUR, _MINUTE, "m"),
    (_DAY, _HOUR, "h"),
    (_MONTH, _DAY, "d"),
    (_YEAR, _MONTH, "mo"),
]


def format_time_span(seconds: int) -> str:
    """
    Format a delay in seconds using the largest unit it fills.

    Whole values print without a decimal; others are rounded to one decimal.
    A zero delay means there is nothing left to schedule.
    """
    if not seconds:
        return END_OF_SCHEDULE_LABEL

    size, suffix = _YEAR, "y"
    for bound, unit, unit_suffix in _UNITS:
        if abs(seconds) < bound:
            size, suffix = unit, unit_suffix
            break

    value = round(seconds / size, 1)
    if value == int(value):
        return f"{int(value)}{suffix}"
    return f"{value:.1f}{suffix}"

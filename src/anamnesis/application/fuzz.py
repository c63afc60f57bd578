"""
Interval fuzzing.

Spreads reviews that would otherwise land on the same day by drawing the
final interval from a small window around the ideal one.
"""

from anamnesis.domain.scheduling.ports import RandomSource


def fuzz_interval_range(interval: int) -> tuple[int, int]:
    """
    Compute the inclusive window an interval may be fuzzed into.

    Args:
        interval: Ideal interval in days.

    Returns:
        (low, high) with 1 <= low <= high.
    """
    if interval <= 1:
        return 1, 1
    if interval == 2:
        return 2, 3

    if interval < 7:
        fuzz = int(interval * 0.25)
    elif interval < 30:
        fuzz = max(2, int(interval * 0.15))
    else:
        fuzz = max(4, int(interval * 0.05))
    fuzz = max(fuzz, 1)
    return interval - fuzz, interval + fuzz


def fuzz_interval(interval: int, rng: RandomSource) -> int:
    """Draw a fuzzed interval from `fuzz_interval_range(interval)`."""
    low, high = fuzz_interval_range(interval)
    return rng.uniform(low, high)

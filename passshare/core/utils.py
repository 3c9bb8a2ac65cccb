import math
import time
import itertools

_temp_counter = itertools.count(1)


def upload_percent(loaded: int, total: int) -> int:
    """``round(100 * loaded / total)`` with halves rounded up; 0 when total is unknown."""
    if total <= 0:
        return 0
    return min(100, int(math.floor(loaded * 100 / total + 0.5)))


def download_percent(written: int, expected: int) -> int:
    """
    ``floor(100 * written / expected)``.

    An expected size of zero or less (unknown) counts as 1 byte, and the
    result is capped at 100.
    """
    divisor = expected if expected > 0 else 1
    return min(100, (written * 100) // divisor)


def temp_transfer_id() -> str:
    """Temporary progress key for an upload that has no server id yet."""
    return f"temp-{int(time.time() * 1000)}-{next(_temp_counter)}"


def format_size(size: int) -> str:
    """Human readable byte count."""
    value = float(size)
    for unit in ('B', 'KB', 'MB', 'GB'):
        if value < 1024 or unit == 'GB':
            return f"{value:.0f} {unit}" if unit == 'B' else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"

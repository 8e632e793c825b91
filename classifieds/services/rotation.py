"""
Rotation selector for fixed-slot featured windows.
"""
import time
from typing import Optional

from classifieds.core.exceptions import ValidationError


def get_rotation_start(
    total_count: int,
    slots_to_show: int,
    interval_seconds: int,
    now: Optional[float] = None,
) -> int:
    """
    Starting index of the featured window for the current time bucket.

    The index only changes when the clock crosses an `interval_seconds`
    boundary, so every render inside one bucket shows the same window.

    Args:
        total_count: Number of rotation-eligible listings (must be > 0)
        slots_to_show: Window size
        interval_seconds: Bucket width in seconds (must be > 0)
        now: Unix seconds; defaults to the wall clock

    Raises:
        ValidationError: If total_count or interval_seconds is not positive
    """
    if total_count <= 0:
        raise ValidationError(
            "Rotation needs at least one eligible listing",
            details={"total_count": total_count},
        )
    if interval_seconds <= 0:
        raise ValidationError(
            "Rotation interval must be positive",
            details={"interval_seconds": interval_seconds},
        )

    current = int(time.time()) if now is None else int(now)
    bucket = current // interval_seconds
    return (bucket * slots_to_show) % total_count

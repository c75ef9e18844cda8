"""Progress calculation utility.

Centralizes progress calculation for both batch variants:

- Video items report time-based progress parsed from encoder log lines.
- Image items report coarse index-based progress around each item.
"""

from __future__ import annotations

import re

PROGRESS_MIN = 0.0
PROGRESS_MAX = 100.0

# Encoder stats lines carry the elapsed output time, e.g. "time=00:01:23.45"
TIME_MARKER_PATTERN = re.compile(r"time=(\d+):(\d+):(\d+(?:\.\d+)?)")


def elapsed_ms_from_line(line: str) -> float | None:
    """Extract the elapsed-time marker from an encoder log line.

    Args:
        line: One line of encoder log output

    Returns:
        Elapsed time in milliseconds, or None if the line has no marker
    """
    if "time=" not in line:
        return None

    match = TIME_MARKER_PATTERN.search(line)
    if match is None:
        return None

    hours = int(match.group(1))
    minutes = int(match.group(2))
    seconds = float(match.group(3))
    return (hours * 3600 + minutes * 60 + seconds) * 1000


def parse_progress(line: str, expected_duration_ms: int | float) -> float | None:
    """Calculate item progress from one encoder log line.

    A line without a time marker yields None ("no update") rather than 0.0,
    so callers never overwrite an earlier sample with a spurious zero.

    Args:
        line: One line of encoder log output
        expected_duration_ms: Expected media duration in milliseconds (0 = unknown)

    Returns:
        Progress percentage in [0.0, 100.0], 0.0 when the duration is unknown,
        or None if the line carries no time marker
    """
    elapsed_ms = elapsed_ms_from_line(line)
    if elapsed_ms is None:
        return None

    if not expected_duration_ms or expected_duration_ms <= 0:
        return PROGRESS_MIN

    progress = elapsed_ms / expected_duration_ms * 100
    return min(max(progress, PROGRESS_MIN), PROGRESS_MAX)


def image_progress(index: int, total: int) -> float:
    """Calculate coarse batch progress for image items.

    Called with the item index before an item starts and with index + 1
    after it finishes.

    Args:
        index: Number of items considered done
        total: Number of items in the batch

    Returns:
        Progress percentage in [0.0, 100.0]
    """
    if total <= 0:
        return PROGRESS_MIN
    progress = index / total * 100
    return min(max(progress, PROGRESS_MIN), PROGRESS_MAX)

"""Subtitle placement on the project timeline.

All windows are half-open: ``[start, end)``. Two subtitles touching at a
boundary (one ends at 4.0, the next starts at 4.0) do not overlap.
"""

import logging
from typing import Iterable, Optional, Sequence, Tuple
from uuid import UUID

from ..config import config
from ..errors import ValidationError
from ..models import Subtitle

logger = logging.getLogger(__name__)

TimeRange = Tuple[float, float]


def normalize_time(value: float, duration: float, precision: float) -> float:
    """Clamp ``value`` into the timeline and snap it to ``1 / precision`` steps.

    A non-positive ``duration`` means the timeline length is unknown, so only
    the lower bound applies.
    """
    if duration > 0:
        clamped = min(max(0.0, value), duration)
    else:
        clamped = max(0.0, value)
    return round(clamped * precision) / precision


def next_subtitle_range(
    anchor: float,
    duration: float,
    existing: Iterable[Subtitle],
    default_length: float = 2.0,
    minimum_length: float = 0.1,
) -> TimeRange:
    """Propose a free subtitle window, preferring one at ``anchor``.

    Falls back to the first gap from the start of the timeline wide enough for
    ``minimum_length`` and, failing that, to a ``minimum_length`` window at the
    very end. Never raises.
    """
    ordered = sorted(existing, key=lambda subtitle: subtitle.start_seconds)
    bounded = max(duration, 0.0)

    def window(start: float, max_end: float) -> Optional[TimeRange]:
        end = min(start + default_length, max_end)
        if end - start >= minimum_length:
            return start, end
        return None

    cursor = min(max(anchor, 0.0), bounded)
    for subtitle in ordered:
        if subtitle.end_seconds <= cursor:
            cursor = max(cursor, subtitle.end_seconds)
    next_start = next(
        (s.start_seconds for s in ordered if s.start_seconds >= cursor),
        bounded,
    )
    found = window(cursor, next_start)
    if found:
        return found

    # First gap from zero.
    cursor = 0.0
    for subtitle in ordered:
        found = window(cursor, subtitle.start_seconds)
        if found:
            return found
        cursor = max(cursor, subtitle.end_seconds)
    found = window(cursor, bounded)
    if found:
        return found

    return max(0.0, bounded - minimum_length), bounded


def find_overlapping_subtitle(
    start: float,
    end: float,
    existing: Iterable[Subtitle],
    ignore_id: Optional[UUID] = None,
) -> Optional[Subtitle]:
    """Return the first subtitle whose window intersects [start, end)."""
    for subtitle in existing:
        if ignore_id is not None and subtitle.id == ignore_id:
            continue
        if subtitle.overlaps(start, end):
            return subtitle
    return None


class SubtitleTimelinePlanner:
    """Proposes and validates subtitle windows for one timeline."""

    def __init__(
        self,
        default_length: float = config.subtitle_default_length,
        minimum_length: float = config.subtitle_minimum_length,
        precision: float = config.timeline_precision,
    ) -> None:
        self.default_length = default_length
        self.minimum_length = minimum_length
        self.precision = precision

    def normalize_time(self, value: float, duration: float) -> float:
        return normalize_time(value, duration, self.precision)

    def next_subtitle_range(
        self,
        anchor: float,
        duration: float,
        existing: Iterable[Subtitle],
    ) -> TimeRange:
        return next_subtitle_range(
            anchor,
            duration,
            existing,
            default_length=self.default_length,
            minimum_length=self.minimum_length,
        )

    def validate_range(
        self,
        start: float,
        end: float,
        existing: Sequence[Subtitle],
        duration: Optional[float] = None,
        ignore_id: Optional[UUID] = None,
    ) -> None:
        """Reject an empty, out-of-timeline or overlapping window.

        Raises:
            ValidationError: If the window cannot be saved.
        """
        if start < 0 or start >= end:
            raise ValidationError(f"Invalid subtitle range: {start:.2f}s - {end:.2f}s")
        if duration is not None and duration > 0 and end > duration:
            raise ValidationError(
                f"Subtitle ends at {end:.2f}s, after the timeline end ({duration:.2f}s)"
            )
        clash = find_overlapping_subtitle(start, end, existing, ignore_id=ignore_id)
        if clash is not None:
            logger.debug(f"Rejected subtitle {start:.2f}-{end:.2f}: overlaps {clash.id}")
            raise ValidationError(
                f"Subtitle {start:.2f}s - {end:.2f}s overlaps an existing subtitle "
                f"({clash.start_seconds:.2f}s - {clash.end_seconds:.2f}s)"
            )

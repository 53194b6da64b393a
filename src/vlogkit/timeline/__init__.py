"""Timeline queries and edits."""

from .tracker import SegmentAssignmentTracker
from .planner import (
    SubtitleTimelinePlanner,
    find_overlapping_subtitle,
    next_subtitle_range,
    normalize_time,
)
from .editing import SubtitleEditor, timeline_duration

__all__ = [
    "SegmentAssignmentTracker",
    "SubtitleTimelinePlanner",
    "find_overlapping_subtitle",
    "next_subtitle_range",
    "normalize_time",
    "SubtitleEditor",
    "timeline_duration",
]

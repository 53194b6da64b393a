"""Data models for vlog projects."""

from .segment import Segment
from .template import Template, TemplateSpec, SegmentSpec
from .asset import VideoAsset
from .subtitle import Subtitle
from .bgm import BGMTrack
from .project import ChatMessage, Project, ProjectStatus

__all__ = [
    "Segment",
    "Template",
    "TemplateSpec",
    "SegmentSpec",
    "VideoAsset",
    "Subtitle",
    "BGMTrack",
    "ChatMessage",
    "Project",
    "ProjectStatus",
]

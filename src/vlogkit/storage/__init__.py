"""Persistence and local file storage."""

from .project_store import ProjectStore, YamlProjectStore, InMemoryProjectStore
from .local_video import LocalVideoStorage, canonical_path
from .bgm import BGMLibrary

__all__ = [
    "ProjectStore",
    "YamlProjectStore",
    "InMemoryProjectStore",
    "LocalVideoStorage",
    "canonical_path",
    "BGMLibrary",
]

"""Pytest fixtures for vlogkit tests.

The shared template has three segments covering a 40 second timeline:
order 0 [0, 10), order 1 [10, 25), order 2 [25, 40).
"""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from vlogkit.models import Project, ProjectStatus, Segment, Template, VideoAsset
from vlogkit.storage import InMemoryProjectStore, LocalVideoStorage


def make_segments():
    return (
        Segment(order=0, start_seconds=0.0, end_seconds=10.0, description="Opening shot"),
        Segment(order=1, start_seconds=10.0, end_seconds=25.0, description="Main activity"),
        Segment(order=2, start_seconds=25.0, end_seconds=40.0, description=""),
    )


def make_asset(path, segment_order=None, duration=5.0, trim_start=0.0) -> VideoAsset:
    return VideoAsset(
        segment_order=segment_order,
        local_file_url=str(path),
        duration=duration,
        trim_start_seconds=trim_start,
    )


@pytest.fixture
def template() -> Template:
    """Three-segment template, 40 seconds long."""
    return Template(source_template_id="cafe-vlog", segments=make_segments())


@pytest.fixture
def project(template) -> Project:
    """A project in the recording state with no clips yet."""
    return Project(name="Cafe day", theme="cafe", template=template, status=ProjectStatus.RECORDING)


@pytest.fixture
def store() -> InMemoryProjectStore:
    return InMemoryProjectStore()


@pytest.fixture
def file_storage() -> MagicMock:
    """Stand-in for LocalVideoStorage that records delete calls."""
    storage = MagicMock(spec=LocalVideoStorage)
    storage.remove_managed_video.return_value = True
    return storage


@pytest.fixture
def video_storage(tmp_path) -> LocalVideoStorage:
    return LocalVideoStorage(tmp_path / "video_assets")


@pytest.fixture
def clip_file(tmp_path) -> Path:
    """A fake recorded clip on disk."""
    path = tmp_path / "camera" / "clip.mov"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"not really a video")
    return path

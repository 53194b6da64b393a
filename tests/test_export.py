"""Tests for export orchestration."""

import asyncio
import threading
from pathlib import Path

import pytest

from vlogkit.errors import EncodeError, ExportCancelled, ValidationError
from vlogkit.models import ProjectStatus
from vlogkit.workflow import ExportOrchestrator, ProgressRelay, ProjectStateMachine

from .conftest import make_asset


class FakeEncoder:
    """Encoder double that records its input and writes an empty file."""

    def __init__(self, output_dir: Path, progress=(0.2, 0.1, 0.5, 1.4)):
        self.output_dir = output_dir
        self.progress = progress
        self.calls = []

    def export(self, clips, subtitles, bgm_path, bgm_volume, on_progress, should_cancel):
        self.calls.append((clips, subtitles, bgm_path, bgm_volume))
        for value in self.progress:
            on_progress(value)
        output = self.output_dir / "out.mp4"
        output.write_bytes(b"")
        return output


class BlockingEncoder:
    """Encoder double that waits until cancellation is requested."""

    def __init__(self, output_dir: Path, honour_cancel=True, error=None):
        self.output_dir = output_dir
        self.honour_cancel = honour_cancel
        self.error = error
        self.started = threading.Event()
        self.release = threading.Event()

    def export(self, clips, subtitles, bgm_path, bgm_volume, on_progress, should_cancel):
        self.started.set()
        while not self.release.wait(0.01):
            if should_cancel():
                if self.error is not None:
                    raise self.error
                if self.honour_cancel:
                    raise ExportCancelled("stopped")
                break
        output = self.output_dir / "late.mp4"
        output.write_bytes(b"")
        return output


@pytest.fixture
def complete_project(project, tmp_path):
    for order in (0, 1, 2):
        clip = tmp_path / f"{order}.mov"
        clip.write_bytes(b"clip")
        project.video_assets.append(make_asset(clip, segment_order=order, trim_start=order * 0.5))
    project.status = ProjectStatus.EDITING
    return project


class TestProgressRelay:
    """Tests for ProgressRelay."""

    @pytest.mark.asyncio
    async def test_monotonic_and_clamped(self):
        values = []
        relay = ProgressRelay(asyncio.get_running_loop(), values.append)

        for value in (-0.5, 0.3, 0.2, 0.3, 0.7, 2.0):
            relay.report(value)
        await asyncio.sleep(0)

        assert values == [0.0, 0.3, 0.7, 1.0]

    @pytest.mark.asyncio
    async def test_finish_delivers_immediately(self):
        values = []
        relay = ProgressRelay(asyncio.get_running_loop(), values.append)

        relay.report(0.4)
        relay.finish()

        assert values == [1.0]
        await asyncio.sleep(0)
        assert values == [1.0]

    @pytest.mark.asyncio
    async def test_finish_after_encoder_reported_done(self):
        values = []
        relay = ProgressRelay(asyncio.get_running_loop(), values.append)

        relay.report(1.0)
        relay.finish()
        await asyncio.sleep(0)

        assert values == [1.0]

    @pytest.mark.asyncio
    async def test_no_callback(self):
        relay = ProgressRelay(asyncio.get_running_loop(), None)
        relay.report(0.4)

        assert relay.last == pytest.approx(0.4)


class TestExportOrchestrator:
    """Tests for ExportOrchestrator."""

    def test_plan_lays_clips_end_to_end(self, complete_project, store, tmp_path):
        orchestrator = ExportOrchestrator(FakeEncoder(tmp_path), ProjectStateMachine(store))

        clips = orchestrator.plan(complete_project)

        assert [c.order for c in clips] == [0, 1, 2]
        assert [c.duration for c in clips] == [10.0, 15.0, 15.0]
        assert [c.timeline_start for c in clips] == [0.0, 10.0, 25.0]
        assert clips[-1].timeline_end == pytest.approx(40.0)
        assert clips[1].trim_start_seconds == pytest.approx(0.5)

    @pytest.mark.asyncio
    async def test_incomplete_project_fails_before_encoding(self, project, store, tmp_path):
        encoder = FakeEncoder(tmp_path)
        project.video_assets.append(make_asset(tmp_path / "0.mov", segment_order=0))
        orchestrator = ExportOrchestrator(encoder, ProjectStateMachine(store))

        with pytest.raises(ValidationError, match="1, 2"):
            await orchestrator.export(project)

        assert encoder.calls == []
        assert project.status == ProjectStatus.RECORDING

    @pytest.mark.asyncio
    async def test_missing_clip_file(self, complete_project, store, tmp_path):
        (tmp_path / "1.mov").unlink()
        encoder = FakeEncoder(tmp_path)

        with pytest.raises(ValidationError, match="missing"):
            await ExportOrchestrator(encoder, ProjectStateMachine(store)).export(complete_project)

        assert encoder.calls == []

    @pytest.mark.asyncio
    async def test_export_marks_completed(self, complete_project, store, tmp_path):
        encoder = FakeEncoder(tmp_path)
        orchestrator = ExportOrchestrator(encoder, ProjectStateMachine(store))
        complete_project.bgm_volume = 0.6
        progress = []

        output = await orchestrator.export(
            complete_project, bgm_path=Path("/music/a.mp3"), on_progress=progress.append
        )

        assert output == tmp_path / "out.mp4"
        assert complete_project.status == ProjectStatus.COMPLETED
        assert (await store.fetch(complete_project.id)).status == ProjectStatus.COMPLETED
        assert progress == sorted(progress)
        assert progress[-1] == 1.0
        assert all(0.0 <= value <= 1.0 for value in progress)
        _, _, bgm_path, bgm_volume = encoder.calls[0]
        assert bgm_path == Path("/music/a.mp3")
        assert bgm_volume == pytest.approx(0.6)

    @pytest.mark.asyncio
    async def test_encoder_failure(self, complete_project, store, tmp_path):
        class BrokenEncoder(FakeEncoder):
            def export(self, *args):
                raise OSError("ffmpeg not found")

        orchestrator = ExportOrchestrator(BrokenEncoder(tmp_path), ProjectStateMachine(store))

        with pytest.raises(EncodeError, match="ffmpeg"):
            await orchestrator.export(complete_project)

        assert complete_project.status == ProjectStatus.EDITING

    @pytest.mark.asyncio
    async def test_cancel_stops_encoder(self, complete_project, store, tmp_path):
        encoder = BlockingEncoder(tmp_path)
        orchestrator = ExportOrchestrator(encoder, ProjectStateMachine(store))

        task = asyncio.create_task(orchestrator.export(complete_project))
        await asyncio.to_thread(encoder.started.wait, 5)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert complete_project.status == ProjectStatus.EDITING
        assert not (tmp_path / "late.mp4").exists()

    @pytest.mark.asyncio
    async def test_cancel_discards_late_output(self, complete_project, store, tmp_path):
        """Test that output finished after cancellation is removed."""
        encoder = BlockingEncoder(tmp_path, honour_cancel=False)
        orchestrator = ExportOrchestrator(encoder, ProjectStateMachine(store))

        task = asyncio.create_task(orchestrator.export(complete_project))
        await asyncio.to_thread(encoder.started.wait, 5)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert not (tmp_path / "late.mp4").exists()
        assert complete_project.status == ProjectStatus.EDITING

    @pytest.mark.asyncio
    async def test_cancel_survives_encoder_error(self, complete_project, store, tmp_path):
        """Test that an encoder failing while it stops still reports cancellation."""
        encoder = BlockingEncoder(tmp_path, error=OSError("broken pipe"))
        orchestrator = ExportOrchestrator(encoder, ProjectStateMachine(store))

        task = asyncio.create_task(orchestrator.export(complete_project))
        await asyncio.to_thread(encoder.started.wait, 5)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert complete_project.status == ProjectStatus.EDITING
        assert not (tmp_path / "late.mp4").exists()

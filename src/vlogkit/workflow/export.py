"""Final export: validate completeness, encode, mark the project completed.

The encoder is synchronous and runs on a worker thread. Progress it reports
from that thread is forwarded to the caller's event loop, never invoked on
the worker. Cancelling the awaiting task asks the encoder to stop at its next
step and discards any output it still produced.
"""

import asyncio
import functools
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence

from ..errors import EncodeError, ExportCancelled, ValidationError
from ..models import Project, Subtitle
from ..timeline import SegmentAssignmentTracker
from .lifecycle import ProjectStateMachine

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


@dataclass(frozen=True)
class ClipPlacement:
    """One bound clip as it appears in the exported timeline."""

    order: int
    source_path: str
    trim_start_seconds: float
    duration: float
    timeline_start: float

    @property
    def timeline_end(self) -> float:
        return self.timeline_start + self.duration


class VideoEncoder(Protocol):
    """External encoder that assembles clips, subtitles and BGM."""

    def export(
        self,
        clips: Sequence[ClipPlacement],
        subtitles: Sequence[Subtitle],
        bgm_path: Optional[Path],
        bgm_volume: float,
        on_progress: ProgressCallback,
        should_cancel: Callable[[], bool],
    ) -> Path: ...


class ProgressRelay:
    """Clamps progress to [0, 1], drops regressions and hands values to ``loop``.

    Values reported from the worker are queued onto the loop. Delivery drops
    anything at or below the last value the callback already saw, so a queued
    value that arrives after ``finish`` is not replayed.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, callback: Optional[ProgressCallback]) -> None:
        self._loop = loop
        self._callback = callback
        self._lock = threading.Lock()
        self._last = 0.0
        self._started = False
        self._delivered: Optional[float] = None

    @property
    def last(self) -> float:
        return self._last

    def report(self, value: float) -> None:
        """Thread-safe; may be called from the encoder's worker thread."""
        value = self._accept(value)
        if value is not None and self._callback is not None:
            self._loop.call_soon_threadsafe(self._deliver, value)

    def finish(self) -> None:
        """Emit the terminal 1.0 once the encoder succeeded.

        Must be called on the loop thread; the callback runs before this returns.
        """
        self._accept(1.0)
        if self._callback is not None:
            self._deliver(1.0)

    def _accept(self, value: float) -> Optional[float]:
        value = min(max(float(value), 0.0), 1.0)
        with self._lock:
            if self._started and value <= self._last:
                return None
            self._started = True
            self._last = value
        return value

    def _deliver(self, value: float) -> None:
        if self._delivered is not None and value <= self._delivered:
            return
        self._delivered = value
        self._callback(value)


class ExportOrchestrator:
    """Runs the export of a complete project."""

    def __init__(self, encoder: VideoEncoder, state_machine: ProjectStateMachine) -> None:
        self._encoder = encoder
        self._state_machine = state_machine

    def plan(self, project: Project) -> List[ClipPlacement]:
        """Lay every segment's clip out on the export timeline.

        Raises:
            ValidationError: If the template is missing, a segment has no
                clip, a segment has more than one clip or a clip file is gone.
        """
        if project.template is None or not project.template.segments:
            raise ValidationError(f"Project {project.id} has no template segments to export")

        tracker = SegmentAssignmentTracker.for_project(project)
        if not tracker.is_complete():
            missing = ", ".join(str(order) for order in tracker.missing_orders())
            raise ValidationError(f"Cannot export: no clip recorded for segment(s) {missing}")

        placements: List[ClipPlacement] = []
        cursor = 0.0
        for segment in project.template.sorted_segments():
            bound = [a for a in project.video_assets if a.segment_order == segment.order]
            if len(bound) != 1:
                raise ValidationError(
                    f"Cannot export: segment {segment.order} has {len(bound)} clips"
                )
            asset = bound[0]
            if not Path(asset.local_file_url).is_file():
                raise ValidationError(
                    f"Cannot export: clip for segment {segment.order} is missing "
                    f"({asset.local_file_url})"
                )
            placements.append(
                ClipPlacement(
                    order=segment.order,
                    source_path=asset.local_file_url,
                    trim_start_seconds=asset.trim_start_seconds,
                    duration=segment.duration,
                    timeline_start=cursor,
                )
            )
            cursor += segment.duration
        return placements

    async def export(
        self,
        project: Project,
        bgm_path: Optional[Path] = None,
        bgm_volume: Optional[float] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Path:
        """Encode the project and mark it completed.

        Args:
            project: Project to export; must have a clip for every segment.
            bgm_path: Background music file, or None for no music.
            bgm_volume: Music volume 0-1; defaults to the project's setting.
            on_progress: Called on this event loop with non-decreasing values
                in [0, 1], ending with 1.0 on success.

        Returns:
            Path of the exported video.

        Raises:
            ValidationError: If the project is not complete.
            EncodeError: If the encoder fails.
            StorageError: If the completed status cannot be persisted.
            asyncio.CancelledError: If the export task was cancelled.
        """
        clips = self.plan(project)
        volume = project.bgm_volume if bgm_volume is None else min(max(bgm_volume, 0.0), 1.0)
        subtitles = [subtitle.model_copy() for subtitle in project.subtitles]

        loop = asyncio.get_running_loop()
        relay = ProgressRelay(loop, on_progress)
        cancel_requested = threading.Event()

        logger.info(
            f"Exporting project {project.id}: {len(clips)} clips, "
            f"{len(subtitles)} subtitles, bgm={bgm_path}"
        )
        job = loop.run_in_executor(
            None,
            functools.partial(
                self._encoder.export,
                clips,
                subtitles,
                bgm_path,
                volume,
                relay.report,
                cancel_requested.is_set,
            ),
        )

        try:
            output = await asyncio.shield(job)
        except asyncio.CancelledError:
            cancel_requested.set()
            logger.info(f"Export of project {project.id} cancelled")
            await self._discard(job)
            raise
        except (EncodeError, ExportCancelled):
            raise
        except Exception as e:
            raise EncodeError(f"Export failed: {e}") from e

        relay.finish()
        await self._state_machine.mark_completed(project)
        logger.info(f"Exported project {project.id} to {output}")
        return output

    @staticmethod
    async def _discard(job: "asyncio.Future[Path]") -> None:
        """Wait for a cancelled encoder to stop and drop whatever it wrote."""
        try:
            output = await job
        except Exception as e:
            logger.debug(f"Encoder stopped after cancellation: {e}")
            return
        # The encoder finished before it saw the request.
        Path(output).unlink(missing_ok=True)
        logger.debug(f"Discarded export output {output}")

"""Capture flow: recorded or imported clips into segments."""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Protocol, Union
from uuid import UUID, uuid4

from ..errors import StorageError, ValidationError
from ..models import Project, VideoAsset
from ..storage import LocalVideoStorage
from ..timeline import SegmentAssignmentTracker
from .assets import VideoAssetLifecycleManager
from .lifecycle import ProjectStateMachine, promote_to_editing_best_effort

logger = logging.getLogger(__name__)


class VideoTrimmer(Protocol):
    """External trimmer: cuts ``duration_seconds`` starting at ``start_seconds``."""

    def trim(self, source: Union[str, Path], start_seconds: float, duration_seconds: float) -> Path: ...


class RecordingWorkflow:
    """Saves clips for a project and opportunistically advances it to editing."""

    def __init__(
        self,
        assets: VideoAssetLifecycleManager,
        state_machine: ProjectStateMachine,
        video_storage: LocalVideoStorage,
        trimmer: Optional[VideoTrimmer] = None,
    ) -> None:
        self._assets = assets
        self._state_machine = state_machine
        self._video_storage = video_storage
        self._trimmer = trimmer

    async def record_clip(
        self,
        project: Project,
        source: Union[str, Path],
        duration: float,
        segment_order: Optional[int] = None,
    ) -> VideoAsset:
        """Store a freshly recorded clip.

        The clip is bound to ``segment_order`` (default: the next recordable
        segment) only if that segment may be recorded now; otherwise it is
        kept as stock.
        """
        tracker = SegmentAssignmentTracker.for_project(project)
        target = tracker.recordable_order() if segment_order is None else segment_order
        bound = target if target is not None and tracker.can_record(target) else None
        if bound is None:
            logger.info(f"Segment {target} is not recordable now; keeping clip as stock")

        asset_id = uuid4()
        managed = await asyncio.to_thread(
            self._video_storage.persist_video, source, project.id, asset_id
        )
        asset = await self._save_persisted(
            project, managed, duration, segment_order=bound, asset_id=asset_id
        )
        await promote_to_editing_best_effort(self._state_machine, project)
        return asset

    async def trim_and_save(
        self,
        project: Project,
        source: Union[str, Path],
        start_seconds: float,
        segment_order: int,
    ) -> VideoAsset:
        """Cut a segment-length clip out of ``source`` and bind it.

        The trimmed file already starts at the chosen point, so the saved
        asset's ``trim_start_seconds`` is 0.
        """
        if self._trimmer is None:
            raise ValidationError("No video trimmer configured")
        segment = project.template.segment(segment_order) if project.template else None
        if segment is None:
            raise ValidationError(f"Project {project.id} has no segment {segment_order}")

        trimmed = await asyncio.to_thread(
            self._trimmer.trim, source, start_seconds, segment.duration
        )
        asset_id = uuid4()
        try:
            managed = await asyncio.to_thread(
                self._video_storage.persist_video, trimmed, project.id, asset_id
            )
        finally:
            if not self._video_storage.is_managed(trimmed):
                Path(trimmed).unlink(missing_ok=True)

        logger.info(
            f"Trimmed {source} at {start_seconds:.2f}s for segment {segment_order}"
        )
        asset = await self._save_persisted(
            project, managed, segment.duration, segment_order=segment_order, asset_id=asset_id
        )
        await promote_to_editing_best_effort(self._state_machine, project)
        return asset

    async def _save_persisted(self, project: Project, managed: Path, duration: float, **kwargs) -> VideoAsset:
        """Save an asset for a freshly persisted copy; drop the copy if saving fails."""
        try:
            return await self._assets.save(project, managed, duration, **kwargs)
        except (StorageError, ValidationError):
            self._video_storage.remove_managed_video(managed)
            raise

    async def assign_stock(self, project: Project, asset_id: UUID, segment_order: int) -> VideoAsset:
        asset = await self._assets.assign_stock(project, asset_id, segment_order)
        await promote_to_editing_best_effort(self._state_machine, project)
        return asset

    async def delete_segment_clip(self, project: Project, segment_order: int) -> List[VideoAsset]:
        return await self._assets.delete(project, segment_order=segment_order)

    async def delete_stock_clip(self, project: Project, asset_id: UUID) -> List[VideoAsset]:
        return await self._assets.delete(project, asset_id=asset_id)

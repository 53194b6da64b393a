"""Video asset lifecycle with reference-aware file cleanup.

A clip file may be referenced by more than one asset (for example a stock
clip that is being assigned to a segment). A file is deleted only when no
asset left in the project points at it, and that check always runs after
every mutation of one logical operation has been applied.
"""

import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Protocol, Union
from uuid import UUID, uuid4

from ..errors import StorageError, ValidationError
from ..models import Project, VideoAsset
from ..storage import ProjectStore, canonical_path

logger = logging.getLogger(__name__)


class VideoFileRemover(Protocol):
    """Local file storage as seen by the lifecycle manager."""

    def remove_managed_video(self, path: Union[str, Path]) -> bool: ...


class VideoAssetLifecycleManager:
    """Creates, replaces and deletes a project's video assets.

    Keeps at most one asset per segment order. If the store rejects a save,
    the asset list and ``updated_at`` are restored and no file is deleted.
    Callers serialise all mutations of one project; there is no internal
    locking.
    """

    def __init__(self, store: ProjectStore, file_storage: VideoFileRemover) -> None:
        self._store = store
        self._file_storage = file_storage

    async def save(
        self,
        project: Project,
        path: Union[str, Path],
        duration: float,
        segment_order: Optional[int] = None,
        trim_start: float = 0.0,
        asset_id: Optional[UUID] = None,
    ) -> VideoAsset:
        """Add a clip, replacing whatever occupied ``segment_order``.

        Args:
            project: Project to modify.
            path: Clip location; stored in canonical form.
            duration: Clip duration in seconds.
            segment_order: Segment to bind to. None stores the clip as stock.
            trim_start: Offset into the clip where the segment starts.
            asset_id: Identifier for the new asset (generated if omitted).

        Returns:
            The new asset.

        Raises:
            ValidationError: On negative times or an unknown segment.
            StorageError: If persisting or cleaning up fails.
        """
        if duration < 0 or trim_start < 0:
            raise ValidationError(
                f"Invalid clip timing: duration={duration}, trim_start={trim_start}"
            )
        if segment_order is not None:
            self._require_segment(project, segment_order)

        asset = VideoAsset(
            id=asset_id or uuid4(),
            segment_order=segment_order,
            local_file_url=canonical_path(path),
            duration=duration,
            trim_start_seconds=trim_start,
        )

        previous = list(project.video_assets)
        removed: List[VideoAsset] = []
        if segment_order is not None:
            removed = self._detach(project, lambda a: a.segment_order == segment_order)
        project.video_assets.append(asset)

        await self._commit(project, removed, previous)
        logger.info(
            f"Saved asset {asset.id} (segment={segment_order}) -> {asset.local_file_url}"
        )
        return asset

    async def delete(
        self,
        project: Project,
        segment_order: Optional[int] = None,
        asset_id: Optional[UUID] = None,
    ) -> List[VideoAsset]:
        """Remove the asset(s) bound to ``segment_order`` or with ``asset_id``.

        Exactly one selector must be given. Nothing is persisted when no
        asset matches.

        Returns:
            The removed assets.
        """
        if (segment_order is None) == (asset_id is None):
            raise ValidationError("Pass exactly one of segment_order or asset_id")

        previous = list(project.video_assets)
        if segment_order is not None:
            removed = self._detach(project, lambda a: a.segment_order == segment_order)
        else:
            removed = self._detach(project, lambda a: a.id == asset_id)

        if not removed:
            return []

        await self._commit(project, removed, previous)
        return removed

    async def assign_stock(
        self,
        project: Project,
        asset_id: UUID,
        segment_order: int,
    ) -> VideoAsset:
        """Bind a stock clip to a segment.

        The stock entry is replaced by a new asset on ``segment_order`` that
        reuses the same file, so the file is never deleted. An asset that
        previously occupied the segment is dropped (and its file cleaned up if
        nothing else uses it).
        """
        stock = project.find_asset(asset_id)
        if stock is None or not stock.is_stock:
            raise ValidationError(f"No stock clip with id {asset_id}")
        segment = self._require_segment(project, segment_order)

        assigned = VideoAsset(
            segment_order=segment_order,
            local_file_url=canonical_path(stock.local_file_url),
            duration=segment.duration,
            trim_start_seconds=stock.trim_start_seconds,
        )
        previous = list(project.video_assets)
        removed = self._detach(
            project,
            lambda a: a.id == asset_id or a.segment_order == segment_order,
        )
        project.video_assets.append(assigned)

        await self._commit(project, removed, previous)
        logger.info(f"Assigned stock clip {asset_id} to segment {segment_order}")
        return assigned

    def _require_segment(self, project: Project, order: int):
        segment = project.template.segment(order) if project.template else None
        if segment is None:
            raise ValidationError(f"Project {project.id} has no segment {order}")
        return segment

    @staticmethod
    def _detach(project: Project, predicate: Callable[[VideoAsset], bool]) -> List[VideoAsset]:
        removed = [asset for asset in project.video_assets if predicate(asset)]
        if removed:
            project.video_assets[:] = [
                asset for asset in project.video_assets if not predicate(asset)
            ]
        return removed

    async def _commit(
        self,
        project: Project,
        removed: Iterable[VideoAsset],
        previous: List[VideoAsset],
    ) -> None:
        """Persist the mutated project, or put ``previous`` back if the store fails."""
        previous_updated_at = project.updated_at
        project.touch()
        try:
            await self._store.save(project)
        except StorageError:
            project.video_assets[:] = previous
            project.updated_at = previous_updated_at
            raise
        self._remove_orphans(project, removed)

    def _remove_orphans(self, project: Project, removed: Iterable[VideoAsset]) -> int:
        """Delete files of ``removed`` assets that nothing in ``project`` references."""
        referenced = {canonical_path(asset.local_file_url) for asset in project.video_assets}
        handled = set()
        deleted = 0
        for asset in removed:
            path = canonical_path(asset.local_file_url)
            if path in handled:
                continue
            handled.add(path)
            if path in referenced:
                logger.debug(f"Keeping {path}: still referenced by project {project.id}")
                continue
            self._file_storage.remove_managed_video(path)
            deleted += 1
        return deleted

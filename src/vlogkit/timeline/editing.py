"""User edits on the timeline: subtitles and background music settings."""

import logging
from datetime import datetime
from typing import List, NamedTuple, Optional
from uuid import UUID

from ..errors import StorageError, ValidationError
from ..models import Project, Subtitle
from ..storage import ProjectStore
from .planner import SubtitleTimelinePlanner, TimeRange

logger = logging.getLogger(__name__)


def _clamp_ratio(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def timeline_duration(project: Project) -> float:
    """Length of the exported video: the sum of the template's segments."""
    return project.template.total_duration if project.template else 0.0


class _EditSnapshot(NamedTuple):
    subtitles: List[Subtitle]
    selected_bgm_id: Optional[str]
    bgm_volume: float
    updated_at: datetime

    @classmethod
    def of(cls, project: Project) -> "_EditSnapshot":
        return cls(
            list(project.subtitles),
            project.selected_bgm_id,
            project.bgm_volume,
            project.updated_at,
        )

    def restore(self, project: Project) -> None:
        project.subtitles[:] = self.subtitles
        project.selected_bgm_id = self.selected_bgm_id
        project.bgm_volume = self.bgm_volume
        project.updated_at = self.updated_at


class SubtitleEditor:
    """Validated subtitle and BGM edits that persist the project.

    Validation happens before any mutation, and a save the store rejects is
    rolled back, so a failed edit leaves the project exactly as it was.
    Edited subtitles are replaced by updated copies rather than changed in
    place.
    """

    def __init__(self, store: ProjectStore, planner: Optional[SubtitleTimelinePlanner] = None) -> None:
        self._store = store
        self._planner = planner or SubtitleTimelinePlanner()

    @property
    def planner(self) -> SubtitleTimelinePlanner:
        return self._planner

    def suggest_range(self, project: Project, anchor: float) -> TimeRange:
        """Free window for a new subtitle near ``anchor``."""
        return self._planner.next_subtitle_range(
            anchor, timeline_duration(project), project.subtitles
        )

    async def save_subtitle(
        self,
        project: Project,
        start: float,
        end: float,
        text: str,
        position_x_ratio: float = 0.5,
        position_y_ratio: float = 0.85,
        duration: Optional[float] = None,
    ) -> Subtitle:
        """Add a subtitle.

        Times are snapped to the planner precision and clamped to the
        timeline (``duration`` defaults to the template length).

        Raises:
            ValidationError: If the window is empty or overlaps another subtitle.
            StorageError: If the project cannot be saved.
        """
        start, end, duration = self._normalize(project, start, end, duration)
        self._planner.validate_range(start, end, project.subtitles, duration=duration)

        subtitle = Subtitle(
            start_seconds=start,
            end_seconds=end,
            text=text,
            position_x_ratio=_clamp_ratio(position_x_ratio),
            position_y_ratio=_clamp_ratio(position_y_ratio),
        )
        snapshot = _EditSnapshot.of(project)
        project.subtitles.append(subtitle)
        await self._commit(project, snapshot)
        logger.info(f"Added subtitle {subtitle.id} at {start:.1f}s - {end:.1f}s")
        return subtitle

    async def update_subtitle(
        self,
        project: Project,
        subtitle_id: UUID,
        start: float,
        end: float,
        text: Optional[str] = None,
        duration: Optional[float] = None,
    ) -> Subtitle:
        """Move a subtitle and optionally change its text.

        Returns:
            The updated subtitle, which replaces the old one in the project.
        """
        subtitle = self._require(project, subtitle_id)
        start, end, duration = self._normalize(project, start, end, duration)
        self._planner.validate_range(
            start, end, project.subtitles, duration=duration, ignore_id=subtitle_id
        )

        changes = {"start_seconds": start, "end_seconds": end}
        if text is not None:
            changes["text"] = text
        return await self._replace(project, subtitle, changes)

    async def update_position(
        self,
        project: Project,
        subtitle_id: UUID,
        position_x_ratio: float,
        position_y_ratio: float,
    ) -> Subtitle:
        subtitle = self._require(project, subtitle_id)
        return await self._replace(
            project,
            subtitle,
            {
                "position_x_ratio": _clamp_ratio(position_x_ratio),
                "position_y_ratio": _clamp_ratio(position_y_ratio),
            },
        )

    async def delete_subtitle(self, project: Project, subtitle_id: UUID) -> bool:
        """Remove a subtitle. Returns False if it did not exist."""
        remaining = [s for s in project.subtitles if s.id != subtitle_id]
        if len(remaining) == len(project.subtitles):
            return False
        snapshot = _EditSnapshot.of(project)
        project.subtitles[:] = remaining
        await self._commit(project, snapshot)
        logger.info(f"Deleted subtitle {subtitle_id}")
        return True

    async def save_bgm_settings(
        self,
        project: Project,
        bgm_id: Optional[str],
        volume: float,
    ) -> None:
        snapshot = _EditSnapshot.of(project)
        project.selected_bgm_id = bgm_id
        project.bgm_volume = _clamp_ratio(volume)
        await self._commit(project, snapshot)

    def _normalize(self, project: Project, start: float, end: float, duration: Optional[float]):
        if duration is None:
            duration = timeline_duration(project)
        return (
            self._planner.normalize_time(start, duration),
            self._planner.normalize_time(end, duration),
            duration,
        )

    @staticmethod
    def _require(project: Project, subtitle_id: UUID) -> Subtitle:
        subtitle = project.find_subtitle(subtitle_id)
        if subtitle is None:
            raise ValidationError(f"Subtitle not found: {subtitle_id}")
        return subtitle

    async def _replace(self, project: Project, subtitle: Subtitle, changes: dict) -> Subtitle:
        updated = subtitle.model_copy(update=changes)
        snapshot = _EditSnapshot.of(project)
        project.subtitles[:] = [
            updated if existing.id == subtitle.id else existing for existing in project.subtitles
        ]
        await self._commit(project, snapshot)
        return updated

    async def _commit(self, project: Project, snapshot: _EditSnapshot) -> None:
        project.touch()
        try:
            await self._store.save(project)
        except StorageError:
            snapshot.restore(project)
            raise

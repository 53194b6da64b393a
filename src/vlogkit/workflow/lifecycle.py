"""Project lifecycle: chatting -> recording -> editing -> completed."""

import logging

from ..errors import StorageError
from ..models import Project, ProjectStatus
from ..storage import ProjectStore
from ..timeline import SegmentAssignmentTracker

logger = logging.getLogger(__name__)


class ProjectStateMachine:
    """The only writer of ``Project.status``.

    Every transition bumps ``updated_at`` and persists the project. If the
    store rejects the save, the in-memory status and timestamp are restored
    before the StorageError propagates.
    """

    def __init__(self, store: ProjectStore) -> None:
        self._store = store

    async def mark_recording(self, project: Project) -> None:
        await self._transition(project, ProjectStatus.RECORDING)

    async def mark_editing_if_ready(self, project: Project) -> bool:
        """Move to editing once every template segment has a clip.

        Returns:
            False (and leaves the project untouched) while segments are
            missing or the project has no template segments.
        """
        if project.template is None or not project.template.segments:
            return False
        if not SegmentAssignmentTracker.for_project(project).is_complete():
            return False
        await self._transition(project, ProjectStatus.EDITING)
        return True

    async def mark_completed(self, project: Project) -> None:
        await self._transition(project, ProjectStatus.COMPLETED)

    async def _transition(self, project: Project, status: ProjectStatus) -> None:
        previous_status = project.status
        previous_updated_at = project.updated_at

        project.status = status
        project.touch()
        try:
            await self._store.save(project)
        except StorageError:
            project.status = previous_status
            project.updated_at = previous_updated_at
            raise

        logger.info(
            f"Project {project.id}: {previous_status.value} -> {status.value}"
        )


async def promote_to_editing_best_effort(
    state_machine: ProjectStateMachine,
    project: Project,
) -> bool:
    """Best-effort transition to editing after a clip was saved.

    Used by the capture flow only. A project that is not ready yet, or a store
    that fails to persist the transition, must never interrupt recording: the
    storage failure is logged and swallowed here, and the next successful save
    retries the promotion. Any other exception is a bug and propagates.

    Returns:
        True if the project is (now) ready for editing.
    """
    try:
        return await state_machine.mark_editing_if_ready(project)
    except StorageError as e:
        logger.warning(
            f"Best-effort promotion to editing failed for project {project.id}: {e}"
        )
        return False

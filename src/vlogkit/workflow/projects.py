"""Project creation and deletion."""

import logging
from typing import Optional

from ..config import config
from ..models import Project, TemplateSpec
from ..storage import LocalVideoStorage, ProjectStore
from .lifecycle import ProjectStateMachine

logger = logging.getLogger(__name__)


async def create_project_from_template(
    store: ProjectStore,
    state_machine: ProjectStateMachine,
    spec: TemplateSpec,
    preferred_name: Optional[str] = None,
    bgm_id: Optional[str] = None,
    bgm_volume: float = config.default_bgm_volume,
) -> Project:
    """Create a project carrying a frozen copy of ``spec`` and start recording.

    The project is named ``preferred_name`` (trimmed) or, if that is blank,
    after the template.
    """
    name = (preferred_name or "").strip() or spec.name
    project = Project(
        name=name,
        theme=spec.name,
        description=spec.description,
        template=spec.to_template(),
        selected_bgm_id=bgm_id,
        bgm_volume=bgm_volume,
    )
    await store.save(project)
    await state_machine.mark_recording(project)
    logger.info(f"Created project {project.id} '{name}' from template {spec.id}")
    return project


async def delete_project(
    store: ProjectStore,
    video_storage: LocalVideoStorage,
    project: Project,
) -> None:
    """Delete a project together with its managed clips."""
    await store.delete(project)
    video_storage.remove_project_directory(project.id)

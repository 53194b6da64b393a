"""Project persistence.

A project is persisted as one YAML document holding its whole owned graph
(template snapshot, assets, subtitles, chat history), so deleting the
document deletes everything the project owns.
"""

import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional, Protocol
from uuid import UUID

from ..errors import StorageError
from ..models import Project

logger = logging.getLogger(__name__)


class ProjectStore(Protocol):
    """Asynchronous project repository used by the workflow components."""

    async def fetch_all(self) -> List[Project]: ...

    async def fetch(self, project_id: UUID) -> Optional[Project]: ...

    async def save(self, project: Project) -> None: ...

    async def delete(self, project: Project) -> None: ...


class YamlProjectStore:
    """Stores each project as ``<root>/<project-id>.yaml``."""

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def _path_for(self, project_id: UUID) -> Path:
        return self._root / f"{project_id}.yaml"

    async def fetch_all(self) -> List[Project]:
        """Return every stored project, most recently updated first."""
        try:
            projects = await asyncio.to_thread(self._load_all)
        except Exception as e:
            raise StorageError.wrap(e, "Failed to fetch projects")
        return sorted(projects, key=lambda project: project.updated_at, reverse=True)

    async def fetch(self, project_id: UUID) -> Optional[Project]:
        path = self._path_for(project_id)
        try:
            if not path.exists():
                return None
            return await asyncio.to_thread(Project.from_yaml, path)
        except Exception as e:
            raise StorageError.wrap(e, f"Failed to fetch project {project_id}")

    async def save(self, project: Project) -> None:
        path = self._path_for(project.id)
        try:
            await asyncio.to_thread(self._write, project, path)
        except Exception as e:
            raise StorageError.wrap(e, f"Failed to save project {project.id}")
        logger.debug(f"Saved project {project.id} to {path}")

    async def delete(self, project: Project) -> None:
        path = self._path_for(project.id)
        try:
            await asyncio.to_thread(path.unlink, True)
        except Exception as e:
            raise StorageError.wrap(e, f"Failed to delete project {project.id}")
        logger.info(f"Deleted project {project.id}")

    def _load_all(self) -> List[Project]:
        if not self._root.exists():
            return []
        return [Project.from_yaml(path) for path in sorted(self._root.glob("*.yaml"))]

    def _write(self, project: Project, path: Path) -> None:
        self._root.mkdir(parents=True, exist_ok=True)
        # Atomic replace.
        tmp_path = path.with_suffix(".yaml.tmp")
        project.to_yaml(tmp_path)
        tmp_path.replace(path)


class InMemoryProjectStore:
    """Process-local store holding deep copies of saved projects."""

    def __init__(self) -> None:
        self._projects: Dict[UUID, Project] = {}
        self.save_count = 0

    async def fetch_all(self) -> List[Project]:
        projects = [project.model_copy(deep=True) for project in self._projects.values()]
        return sorted(projects, key=lambda project: project.updated_at, reverse=True)

    async def fetch(self, project_id: UUID) -> Optional[Project]:
        project = self._projects.get(project_id)
        return project.model_copy(deep=True) if project else None

    async def save(self, project: Project) -> None:
        self._projects[project.id] = project.model_copy(deep=True)
        self.save_count += 1

    async def delete(self, project: Project) -> None:
        self._projects.pop(project.id, None)

"""Managed local storage for recorded clips."""

import logging
import os
import shutil
from pathlib import Path
from typing import Optional, Union
from urllib.parse import unquote, urlparse
from uuid import UUID

from ..errors import StorageError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def canonical_path(value: PathLike) -> str:
    """Normalise a file reference to one comparable absolute path.

    Accepts plain paths (absolute or relative), ``~`` paths and ``file://``
    URLs. Symlinks and ``..`` segments are resolved, so differently written
    references to the same file compare equal. The file does not need to
    exist.
    """
    raw = str(value).strip()
    if raw.startswith("file:"):
        raw = unquote(urlparse(raw).path)
    return os.path.realpath(os.path.expanduser(raw))


class LocalVideoStorage:
    """Copies clips under a managed root and removes them again.

    Layout: ``<root>/<project-id>/<asset-id><ext>``. Only files under the
    managed root are ever deleted.
    """

    DEFAULT_EXTENSION = ".mov"

    def __init__(self, root: Path) -> None:
        self._root = Path(canonical_path(root))

    @property
    def root(self) -> Path:
        return self._root

    def is_managed(self, path: PathLike) -> bool:
        candidate = Path(canonical_path(path))
        return candidate == self._root or self._root in candidate.parents

    def project_directory(self, project_id: UUID) -> Path:
        return self._root / str(project_id)

    def persist_video(self, source: PathLike, project_id: UUID, asset_id: UUID) -> Path:
        """Copy ``source`` into the project's managed directory.

        Returns:
            Canonical path of the managed copy.

        Raises:
            StorageError: If the source is missing or the copy fails.
        """
        source_path = Path(canonical_path(source))
        if not source_path.is_file():
            raise StorageError(f"Source video not found: {source_path}")

        extension = source_path.suffix or self.DEFAULT_EXTENSION
        directory = self.project_directory(project_id)
        destination = directory / f"{asset_id}{extension}"

        if source_path != destination:
            try:
                directory.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source_path, destination)
            except OSError as e:
                raise StorageError.wrap(e, f"Failed to persist {source_path}")

        logger.info(f"Persisted video. source={source_path} destination={destination}")
        return destination

    def remove_managed_video(self, path: PathLike) -> bool:
        """Delete a managed clip.

        A path outside the managed root or a file that is already gone is a
        no-op.

        Returns:
            True if a file was deleted.

        Raises:
            StorageError: If the file exists but cannot be removed.
        """
        target = Path(canonical_path(path))
        if not self.is_managed(target):
            logger.debug(f"Not removing unmanaged file {target}")
            return False
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError.wrap(e, f"Failed to remove {target}")

        logger.info(f"Removed managed video. path={target}")
        return True

    def remove_project_directory(self, project_id: UUID) -> Optional[Path]:
        """Delete every managed clip of a project."""
        directory = self.project_directory(project_id)
        if not directory.exists():
            return None
        try:
            shutil.rmtree(directory)
        except OSError as e:
            raise StorageError.wrap(e, f"Failed to remove {directory}")
        logger.info(f"Removed project video directory {directory}")
        return directory

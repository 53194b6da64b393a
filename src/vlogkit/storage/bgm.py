"""Background music catalog."""

import logging
from pathlib import Path
from typing import List, Optional

import yaml

from ..errors import StorageError
from ..models import BGMTrack

logger = logging.getLogger(__name__)


class BGMLibrary:
    """Tracks listed in ``<root>/catalog.yaml``, audio files next to it."""

    CATALOG_NAME = "catalog.yaml"

    def __init__(self, root: Path) -> None:
        self._root = root

    def list_tracks(self) -> List[BGMTrack]:
        catalog = self._root / self.CATALOG_NAME
        if not catalog.exists():
            return []
        try:
            with open(catalog, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise StorageError.wrap(e, f"Failed to read {catalog}")
        return [BGMTrack(**entry) for entry in data.get("tracks", [])]

    def get(self, track_id: str) -> Optional[BGMTrack]:
        for track in self.list_tracks():
            if track.id == track_id:
                return track
        return None

    def resolve_path(self, track_id: Optional[str]) -> Optional[Path]:
        """Local audio file for ``track_id``; None if unset or unavailable."""
        if not track_id:
            return None
        track = self.get(track_id)
        if track is None:
            logger.warning(f"Unknown BGM track: {track_id}")
            return None
        path = self._root / track.file
        if not path.exists():
            logger.warning(f"BGM file not found: {path}")
            return None
        return path

"""Project state model."""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional
from uuid import UUID, uuid4

import yaml
from pydantic import BaseModel, Field

from .asset import VideoAsset
from .subtitle import Subtitle
from .template import Template


class ProjectStatus(str, Enum):
    """Project lifecycle state."""
    CHATTING = "chatting"
    RECORDING = "recording"
    EDITING = "editing"
    COMPLETED = "completed"


class ChatMessage(BaseModel):
    """One turn of the template-selection chat."""

    id: UUID = Field(default_factory=uuid4)
    role: str = Field(..., description="'user' or 'assistant'")
    content: str = Field(default="")
    created_at: datetime = Field(default_factory=datetime.now)


class Project(BaseModel):
    """A vlog project and every collection it owns.

    Assets, subtitles and chat messages live and die with the project. The
    ``status`` field is written only by ``ProjectStateMachine``.
    """

    id: UUID = Field(default_factory=uuid4, description="Project identifier")
    name: str = Field(default="", description="Project name")
    theme: str = Field(default="", description="Theme, usually the template name")
    description: str = Field(default="", description="Project description")
    template: Optional[Template] = Field(None, description="Frozen template snapshot")
    video_assets: List[VideoAsset] = Field(default_factory=list)
    subtitles: List[Subtitle] = Field(default_factory=list)
    chat_history: List[ChatMessage] = Field(default_factory=list)
    selected_bgm_id: Optional[str] = Field(None, description="Selected background music")
    bgm_volume: float = Field(default=0.3, description="Background music volume", ge=0, le=1)
    status: ProjectStatus = Field(default=ProjectStatus.CHATTING, description="Current state")
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    class Config:
        """Pydantic config."""
        frozen = False

    def touch(self) -> None:
        """Bump ``updated_at`` after a mutation."""
        self.updated_at = datetime.now()

    @property
    def stock_assets(self) -> List[VideoAsset]:
        return [asset for asset in self.video_assets if asset.segment_order is None]

    def asset_for_segment(self, order: int) -> Optional[VideoAsset]:
        for asset in self.video_assets:
            if asset.segment_order == order:
                return asset
        return None

    def find_asset(self, asset_id: UUID) -> Optional[VideoAsset]:
        for asset in self.video_assets:
            if asset.id == asset_id:
                return asset
        return None

    def find_subtitle(self, subtitle_id: UUID) -> Optional[Subtitle]:
        for subtitle in self.subtitles:
            if subtitle.id == subtitle_id:
                return subtitle
        return None

    @classmethod
    def from_yaml(cls, path: Path) -> "Project":
        """Load project from YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls(**data)

    def to_yaml(self, path: Path) -> None:
        """Save project to YAML file."""
        with open(path, "w") as f:
            yaml.safe_dump(self.model_dump(mode="json"), f, default_flow_style=False, allow_unicode=True)

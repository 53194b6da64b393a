"""Configuration management."""

import os
from pathlib import Path
from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config(BaseModel):
    """Application configuration."""

    # Google Cloud (guide images)
    google_cloud_project: str = Field(
        default_factory=lambda: os.getenv("GOOGLE_CLOUD_PROJECT", ""),
        description="Google Cloud project ID"
    )
    imagen_model: str = Field(
        default_factory=lambda: os.getenv("IMAGEN_MODEL", "imagen-3.0-generate-001"),
        description="Imagen model used for guide images"
    )

    # Paths
    workspace: Path = Field(
        default_factory=lambda: Path(os.getenv("VLOG_WORKSPACE", ".")),
        description="Workspace directory"
    )

    # Timeline settings
    guide_image_cache_capacity: int = Field(default=5, description="Cached guide images", gt=0)
    subtitle_default_length: float = Field(default=2.0, description="Suggested subtitle length (s)")
    subtitle_minimum_length: float = Field(default=0.1, description="Shortest subtitle window (s)")
    timeline_precision: float = Field(default=10.0, description="Timeline ticks per second", gt=0)
    default_bgm_volume: float = Field(default=0.3, ge=0.0, le=1.0)

    # Export settings
    fps: int = Field(default=30, description="Export frames per second")

    class Config:
        """Pydantic config."""
        frozen = False

    @property
    def projects_dir(self) -> Path:
        return self.workspace / "projects"

    @property
    def video_assets_dir(self) -> Path:
        return self.workspace / "video_assets"

    @property
    def exports_dir(self) -> Path:
        return self.workspace / "exports"

    @property
    def bgm_dir(self) -> Path:
        return self.workspace / "bgm"

    @property
    def guide_images_dir(self) -> Path:
        return self.workspace / "guide_images"

    def validate_imagen_required(self) -> None:
        """Validate that Imagen / Google Cloud settings are present.

        Raises:
            ValueError: If any required Imagen configuration is missing.
        """
        missing: list[str] = []

        if not self.google_cloud_project:
            missing.append("GOOGLE_CLOUD_PROJECT")
        if not self.imagen_model:
            missing.append("IMAGEN_MODEL")

        if missing:
            raise ValueError(
                f"Missing required Imagen configuration: {', '.join(missing)}. "
                "Set the corresponding environment variables."
            )


# Global config instance
config = Config()

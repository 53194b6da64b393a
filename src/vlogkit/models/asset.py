"""Video asset data model."""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class VideoAsset(BaseModel):
    """A locally stored clip, bound to a segment or held as stock."""

    id: UUID = Field(default_factory=uuid4, description="Asset identifier")
    segment_order: Optional[int] = Field(None, description="Bound segment; None for stock clips")
    local_file_url: str = Field(..., description="Path to the clip on local storage")
    duration: float = Field(default=0.0, description="Clip duration in seconds", ge=0)
    trim_start_seconds: float = Field(default=0.0, description="Offset into the source", ge=0)
    created_at: datetime = Field(default_factory=datetime.now)

    class Config:
        """Pydantic config."""
        frozen = False

    @property
    def is_stock(self) -> bool:
        return self.segment_order is None

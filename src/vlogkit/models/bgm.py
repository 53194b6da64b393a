"""Background music track model."""

from typing import List

from pydantic import BaseModel, Field


class BGMTrack(BaseModel):
    """Entry of the background music catalog."""

    id: str = Field(..., description="Track identifier")
    title: str = Field(..., description="Display title")
    description: str = Field(default="")
    genre: str = Field(default="")
    duration: int = Field(default=0, description="Length in seconds", ge=0)
    file: str = Field(..., description="Audio file, relative to the BGM directory")
    tags: List[str] = Field(default_factory=list)

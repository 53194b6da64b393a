"""Subtitle data model."""

from uuid import UUID, uuid4

from pydantic import BaseModel, Field, model_validator


class Subtitle(BaseModel):
    """Text shown over the timeline window [start_seconds, end_seconds)."""

    id: UUID = Field(default_factory=uuid4)
    start_seconds: float = Field(..., ge=0)
    end_seconds: float = Field(...)
    text: str = Field(default="")
    position_x_ratio: float = Field(default=0.5, description="Horizontal centre, 0-1", ge=0, le=1)
    position_y_ratio: float = Field(default=0.85, description="Vertical centre, 0-1", ge=0, le=1)

    class Config:
        """Pydantic config."""
        frozen = False

    @model_validator(mode="after")
    def _check_range(self) -> "Subtitle":
        if self.start_seconds >= self.end_seconds:
            raise ValueError(
                f"Subtitle start ({self.start_seconds}) must be before end ({self.end_seconds})"
            )
        return self

    def overlaps(self, start: float, end: float) -> bool:
        """True if [start, end) intersects this subtitle's window."""
        return start < self.end_seconds and self.start_seconds < end

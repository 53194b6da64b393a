"""Segment data model."""

from pydantic import BaseModel, Field, model_validator


class Segment(BaseModel):
    """A fixed time window of a template with its shot description."""

    order: int = Field(..., description="Recording order, unique within a template", ge=0)
    start_seconds: float = Field(..., description="Window start in seconds", ge=0)
    end_seconds: float = Field(..., description="Window end in seconds")
    description: str = Field(default="", description="What to film in this segment")

    class Config:
        """Pydantic config."""
        frozen = True

    @model_validator(mode="after")
    def _check_window(self) -> "Segment":
        if self.start_seconds >= self.end_seconds:
            raise ValueError(
                f"Segment {self.order}: start ({self.start_seconds}) must be before "
                f"end ({self.end_seconds})"
            )
        return self

    @property
    def duration(self) -> float:
        """Length of the window in seconds."""
        return self.end_seconds - self.start_seconds

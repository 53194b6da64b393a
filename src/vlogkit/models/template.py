"""Template data models.

``TemplateSpec`` is the editable document a template is authored in (YAML);
``Template`` is the frozen snapshot a project carries once it is created.
"""

from pathlib import Path
from typing import List, Optional, Tuple
from uuid import UUID, uuid4

import yaml
from pydantic import BaseModel, Field, model_validator

from .segment import Segment


class Template(BaseModel):
    """Immutable ordered set of segments captured at project creation."""

    id: UUID = Field(default_factory=uuid4, description="Snapshot identifier")
    source_template_id: Optional[str] = Field(None, description="Id of the template document")
    segments: Tuple[Segment, ...] = Field(default_factory=tuple, description="Segments by order")

    class Config:
        """Pydantic config."""
        frozen = True

    @model_validator(mode="after")
    def _check_orders(self) -> "Template":
        orders = [segment.order for segment in self.segments]
        if len(orders) != len(set(orders)):
            raise ValueError(f"Segment orders must be unique, got {orders}")
        return self

    @property
    def orders(self) -> List[int]:
        """Segment orders, ascending."""
        return sorted(segment.order for segment in self.segments)

    @property
    def total_duration(self) -> float:
        """Sum of all segment lengths in seconds."""
        return sum(segment.duration for segment in self.segments)

    def segment(self, order: int) -> Optional[Segment]:
        """Return the segment with ``order`` or None."""
        for segment in self.segments:
            if segment.order == order:
                return segment
        return None

    def sorted_segments(self) -> List[Segment]:
        return sorted(self.segments, key=lambda segment: segment.order)


class SegmentSpec(BaseModel):
    """Segment entry of a template document."""

    order: int = Field(..., ge=0)
    start_sec: float = Field(..., ge=0)
    end_sec: float = Field(...)
    description: str = Field(default="")


class TemplateSpec(BaseModel):
    """Template document as authored or returned by the chat flow."""

    id: str = Field(..., description="Template identifier")
    name: str = Field(..., description="Template name")
    description: str = Field(default="", description="Template description")
    segments: List[SegmentSpec] = Field(default_factory=list, description="Template segments")

    @classmethod
    def from_yaml(cls, path: Path) -> "TemplateSpec":
        """Load a template document from a YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls(**data)

    def to_template(self) -> Template:
        """Freeze the document into a snapshot, segments sorted by order."""
        return Template(
            source_template_id=self.id,
            segments=tuple(
                Segment(
                    order=spec.order,
                    start_seconds=spec.start_sec,
                    end_seconds=spec.end_sec,
                    description=spec.description,
                )
                for spec in sorted(self.segments, key=lambda spec: spec.order)
            ),
        )

"""Which segment may be recorded next."""

from typing import Iterable, List, Optional, Sequence, Set

from ..models import Project, Segment, VideoAsset


class SegmentAssignmentTracker:
    """Query over a template's segments and a project's assets.

    Nothing is cached: every call reads the collections it was given, so a
    tracker built from ``project.video_assets`` sees later mutations of that
    list. Build a new tracker if the project's asset list is replaced.
    """

    def __init__(self, segments: Iterable[Segment], assets: Sequence[VideoAsset]) -> None:
        self._segments = segments
        self._assets = assets

    @classmethod
    def for_project(cls, project: Project) -> "SegmentAssignmentTracker":
        segments = project.template.segments if project.template else ()
        return cls(segments, project.video_assets)

    def segment_orders(self) -> List[int]:
        """Template orders, ascending."""
        return sorted({segment.order for segment in self._segments})

    def assigned_orders(self) -> Set[int]:
        """Distinct segment orders currently bound to an asset."""
        return {
            asset.segment_order
            for asset in self._assets
            if asset.segment_order is not None
        }

    def recordable_order(self) -> Optional[int]:
        """Lowest template order without an asset, or None."""
        assigned = self.assigned_orders()
        for order in self.segment_orders():
            if order not in assigned:
                return order
        return None

    def can_record(self, order: int) -> bool:
        """Recording is strictly sequential: only the first empty slot is open."""
        recordable = self.recordable_order()
        return recordable is not None and order == recordable

    def is_complete(self) -> bool:
        """True if the template has segments and each one has an asset."""
        orders = self.segment_orders()
        if not orders:
            return False
        return set(orders).issubset(self.assigned_orders())

    def missing_orders(self) -> List[int]:
        """Template orders still waiting for a clip, ascending."""
        assigned = self.assigned_orders()
        return [order for order in self.segment_orders() if order not in assigned]

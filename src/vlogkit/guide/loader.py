"""Loads guide images for segments, generating them on a cache miss."""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Protocol

from ..models import Segment
from .cache import GuideImageCache

logger = logging.getLogger(__name__)


class GuideImageGenerator(Protocol):
    """Slow external generator; raises GuideImageError on failure."""

    def generate_guide_image(self, prompt: str, output_path: Path) -> Path: ...


class GuideImageLoader:
    """Cache-first guide image lookup.

    Concurrent loads of the same uncached segment are not de-duplicated; the
    caller should keep at most one request per segment in flight.
    """

    def __init__(
        self,
        generator: GuideImageGenerator,
        output_dir: Path,
        cache: Optional[GuideImageCache[Path]] = None,
    ) -> None:
        self._generator = generator
        self._output_dir = output_dir
        self._cache: GuideImageCache[Path] = cache if cache is not None else GuideImageCache()

    @property
    def cache(self) -> GuideImageCache[Path]:
        return self._cache

    async def load(self, segment: Segment) -> Optional[Path]:
        """Guide image for ``segment``; None if it has no description.

        Raises:
            GuideImageError: If generation fails. Nothing is cached then.
        """
        cached = self._cache.get(segment.order)
        if cached is not None:
            logger.debug(f"Guide image cache hit for segment {segment.order}")
            return cached

        prompt = segment.description.strip()
        if not prompt:
            return None

        output_path = self._output_dir / f"segment_{segment.order}.png"
        image = await asyncio.to_thread(
            self._generator.generate_guide_image, prompt, output_path
        )
        self._cache.put(segment.order, image)
        return image

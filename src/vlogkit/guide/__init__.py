"""Guide images shown while recording a segment."""

from .cache import GuideImageCache
from .loader import GuideImageGenerator, GuideImageLoader

__all__ = ["GuideImageCache", "GuideImageGenerator", "GuideImageLoader"]

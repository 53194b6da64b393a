"""External service integrations."""

from .imagen import ImagenClient

__all__ = ["ImagenClient"]

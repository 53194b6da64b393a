"""Video editing and assembly module."""

from .compositor import ExportProgressLogger, MoviePyEncoder
from .trimmer import MoviePyTrimmer
from .overlays import (
    TextStyle,
    STYLES,
    get_style,
    render_subtitle,
    subtitle_position,
)
from .audio import (
    fit_music,
    prepare_music,
    add_background_music,
)

__all__ = [
    # Compositor
    "ExportProgressLogger",
    "MoviePyEncoder",
    "MoviePyTrimmer",
    # Overlays
    "TextStyle",
    "STYLES",
    "get_style",
    "render_subtitle",
    "subtitle_position",
    # Audio
    "fit_music",
    "prepare_music",
    "add_background_music",
]

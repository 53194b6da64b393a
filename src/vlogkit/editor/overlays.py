"""Subtitle text rendering for exported videos."""

from dataclasses import dataclass
from typing import Optional, Tuple

from moviepy import TextClip

from ..models import Subtitle


@dataclass
class TextStyle:
    """Configuration for subtitle styling."""

    font: Optional[str] = None
    font_size_ratio: float = 0.04
    color: str = "white"
    stroke_color: Optional[str] = "black"
    stroke_width: int = 2
    background_color: Optional[str] = None
    max_width_ratio: float = 0.8


# Preset styles
STYLES = {
    "default": TextStyle(),
    "caption": TextStyle(
        background_color="rgba(0,0,0,0.7)",
        stroke_color=None,
        stroke_width=0,
    ),
    "minimal": TextStyle(stroke_color=None, stroke_width=0),
}


def get_style(name: str) -> TextStyle:
    """Get a text style by name.

    Raises:
        ValueError: If style not found.
    """
    if name not in STYLES:
        raise ValueError(f"Unknown style: {name}. Available: {list(STYLES.keys())}")
    return STYLES[name]


def subtitle_position(
    subtitle: Subtitle,
    frame_size: Tuple[int, int],
    text_size: Tuple[int, int],
) -> Tuple[int, int]:
    """Top-left pixel position that centres the text on the subtitle's ratios.

    The text is kept fully inside the frame.
    """
    frame_w, frame_h = frame_size
    text_w, text_h = text_size
    x = subtitle.position_x_ratio * frame_w - text_w / 2
    y = subtitle.position_y_ratio * frame_h - text_h / 2
    x = min(max(x, 0), max(frame_w - text_w, 0))
    y = min(max(y, 0), max(frame_h - text_h, 0))
    return int(round(x)), int(round(y))


def render_subtitle(
    subtitle: Subtitle,
    frame_size: Tuple[int, int],
    style: Optional[TextStyle] = None,
) -> TextClip:
    """Create a positioned text clip shown during the subtitle's window."""
    if style is None:
        style = STYLES["default"]

    frame_w, frame_h = frame_size
    params = {
        "text": subtitle.text,
        "font": style.font,
        "font_size": max(int(frame_h * style.font_size_ratio), 1),
        "color": style.color,
        "method": "caption",
        "size": (int(frame_w * style.max_width_ratio), None),
        "text_align": "center",
    }

    if style.stroke_color and style.stroke_width > 0:
        params["stroke_color"] = style.stroke_color
        params["stroke_width"] = style.stroke_width

    if style.background_color:
        params["bg_color"] = style.background_color

    text_clip = TextClip(**params)
    position = subtitle_position(subtitle, frame_size, text_clip.size)

    return (
        text_clip
        .with_start(subtitle.start_seconds)
        .with_duration(subtitle.end_seconds - subtitle.start_seconds)
        .with_position(position)
    )

"""MoviePy export encoder: bound clips + subtitles + BGM into one video."""

import logging
import os
from pathlib import Path
from typing import Callable, List, Optional, Sequence
from uuid import uuid4

from moviepy import CompositeVideoClip, VideoFileClip, concatenate_videoclips
from proglog import ProgressBarLogger

from ..errors import EncodeError, ExportCancelled
from ..models import Subtitle
from ..workflow.export import ClipPlacement
from .audio import add_background_music
from .overlays import STYLES, render_subtitle

logger = logging.getLogger(__name__)

# Share of the progress range spent loading clips before frames are written.
LOADING_SHARE = 0.1


class ExportProgressLogger(ProgressBarLogger):
    """Maps MoviePy's frame bar onto [start, end] and enforces cancellation."""

    FRAME_BAR = "frame_index"

    def __init__(
        self,
        on_progress: Callable[[float], None],
        should_cancel: Callable[[], bool],
        start: float = LOADING_SHARE,
        end: float = 1.0,
    ) -> None:
        super().__init__()
        self._on_progress = on_progress
        self._should_cancel = should_cancel
        self._start = start
        self._end = end

    def bars_callback(self, bar, attr, value, old_value=None):
        if self._should_cancel():
            raise ExportCancelled("Export cancelled while writing frames")
        if bar != self.FRAME_BAR or attr != "index":
            return
        total = self.bars[bar].get("total") or 0
        if total <= 0:
            return
        fraction = min(max(value / total, 0.0), 1.0)
        self._on_progress(self._start + (self._end - self._start) * fraction)


class MoviePyEncoder:
    """Concatenates segment clips, overlays subtitles and mixes music.

    Output is written to a temporary file next to the destination and only
    renamed into place after a successful write, so a failed or cancelled
    export leaves no output behind.
    """

    def __init__(
        self,
        output_dir: Path,
        fps: int = 30,
        codec: str = "libx264",
        audio_codec: str = "aac",
        preset: str = "medium",
        style_name: str = "default",
    ) -> None:
        self._output_dir = output_dir
        self._fps = fps
        self._codec = codec
        self._audio_codec = audio_codec
        self._preset = preset
        self._style = STYLES.get(style_name, STYLES["default"])

    def export(
        self,
        clips: Sequence[ClipPlacement],
        subtitles: Sequence[Subtitle],
        bgm_path: Optional[Path],
        bgm_volume: float,
        on_progress: Callable[[float], None],
        should_cancel: Callable[[], bool],
    ) -> Path:
        """Render the export and return its path.

        Raises:
            ExportCancelled: If ``should_cancel`` turned true between steps.
            EncodeError: If MoviePy or ffmpeg failed.
        """
        if not clips:
            raise EncodeError("No clips to export")

        self._output_dir.mkdir(parents=True, exist_ok=True)
        name = uuid4().hex
        output_path = self._output_dir / f"{name}.mp4"
        partial_path = self._output_dir / f"{name}.part.mp4"

        sources: List[VideoFileClip] = []
        video = None
        try:
            segments = []
            for index, placement in enumerate(clips):
                self._check_cancel(should_cancel)
                source = VideoFileClip(placement.source_path)
                sources.append(source)
                segments.append(
                    source.subclipped(
                        placement.trim_start_seconds,
                        placement.trim_start_seconds + placement.duration,
                    )
                )
                on_progress(LOADING_SHARE * (index + 1) / len(clips))

            self._check_cancel(should_cancel)
            video = concatenate_videoclips(segments, method="compose")

            overlays = [
                render_subtitle(subtitle, video.size, self._style)
                for subtitle in subtitles
                if subtitle.text.strip() and subtitle.start_seconds < video.duration
            ]
            if overlays:
                video = CompositeVideoClip([video, *overlays])

            if bgm_path is not None:
                self._check_cancel(should_cancel)
                video = add_background_music(video, bgm_path, bgm_volume)

            self._check_cancel(should_cancel)
            video.write_videofile(
                str(partial_path),
                fps=self._fps,
                codec=self._codec,
                audio_codec=self._audio_codec,
                preset=self._preset,
                temp_audiofile=str(self._output_dir / f"{name}.audio.m4a"),
                logger=ExportProgressLogger(on_progress, should_cancel),
            )
            self._check_cancel(should_cancel)
            os.replace(partial_path, output_path)

        except ExportCancelled:
            partial_path.unlink(missing_ok=True)
            raise
        except Exception as e:
            partial_path.unlink(missing_ok=True)
            logger.error(f"Export failed: {e}")
            raise EncodeError(f"Export failed: {e}") from e
        finally:
            if video is not None:
                video.close()
            for source in sources:
                source.close()

        logger.info(f"Exported video to {output_path}")
        return output_path

    @staticmethod
    def _check_cancel(should_cancel: Callable[[], bool]) -> None:
        if should_cancel():
            raise ExportCancelled("Export cancelled")

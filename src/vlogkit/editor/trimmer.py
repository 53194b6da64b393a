"""MoviePy-backed clip trimmer."""

import logging
from pathlib import Path
from typing import Union
from uuid import uuid4

from moviepy import VideoFileClip

from ..errors import EncodeError, ValidationError

logger = logging.getLogger(__name__)

# Container durations are rounded; allow this much slack at the end.
DURATION_TOLERANCE = 0.05


class MoviePyTrimmer:
    """Cuts a fixed-length range out of a source clip into ``output_dir``."""

    def __init__(
        self,
        output_dir: Path,
        codec: str = "libx264",
        audio_codec: str = "aac",
        preset: str = "medium",
    ) -> None:
        self._output_dir = output_dir
        self._codec = codec
        self._audio_codec = audio_codec
        self._preset = preset

    def trim(
        self,
        source: Union[str, Path],
        start_seconds: float,
        duration_seconds: float,
    ) -> Path:
        """Write ``[start, start + duration)`` of ``source`` to a new file.

        Raises:
            ValidationError: If the range is empty or outside the source.
            EncodeError: If the source cannot be read or the write fails.
        """
        if start_seconds < 0 or duration_seconds <= 0:
            raise ValidationError(
                f"Invalid trim range: start={start_seconds}, duration={duration_seconds}"
            )

        try:
            clip = VideoFileClip(str(source))
        except Exception as e:
            raise EncodeError(f"Cannot open {source}: {e}") from e

        output_path = self._output_dir / f"{uuid4().hex}.mp4"
        try:
            end_seconds = start_seconds + duration_seconds
            if end_seconds > clip.duration + DURATION_TOLERANCE:
                raise ValidationError(
                    f"Trim range {start_seconds:.2f}s - {end_seconds:.2f}s exceeds "
                    f"clip length {clip.duration:.2f}s"
                )
            self._output_dir.mkdir(parents=True, exist_ok=True)
            clip.subclipped(start_seconds, min(end_seconds, clip.duration)).write_videofile(
                str(output_path),
                codec=self._codec,
                audio_codec=self._audio_codec,
                preset=self._preset,
                temp_audiofile=str(self._output_dir / f"{output_path.stem}.audio.m4a"),
                logger=None,
            )
        except ValidationError:
            raise
        except Exception as e:
            output_path.unlink(missing_ok=True)
            raise EncodeError(f"Trim of {source} failed: {e}") from e
        finally:
            clip.close()

        logger.info(f"Trimmed {source} [{start_seconds:.2f}s +{duration_seconds:.2f}s] -> {output_path}")
        return output_path

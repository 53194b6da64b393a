"""Background music mixing for exported videos."""

import logging
from pathlib import Path

from moviepy import AudioClip, AudioFileClip, CompositeAudioClip, VideoClip
from moviepy.audio.fx import AudioFadeOut, AudioLoop

from ..errors import EncodeError

logger = logging.getLogger(__name__)


def fit_music(audio: AudioClip, duration: float) -> AudioClip:
    """Loop or cut ``audio`` so it lasts exactly ``duration`` seconds."""
    if not audio.duration:
        raise EncodeError("Background music has no duration")
    if audio.duration >= duration:
        return audio.subclipped(0, duration)
    return audio.with_effects([AudioLoop(duration=duration)])


def prepare_music(
    audio_path: Path,
    duration: float,
    volume: float,
    fade_out: float = 1.0,
) -> AudioClip:
    """Load the music track fitted to ``duration``, scaled and faded out.

    Raises:
        FileNotFoundError: If the track is missing.
    """
    if not audio_path.exists():
        raise FileNotFoundError(f"Audio file not found: {audio_path}")

    music = fit_music(AudioFileClip(str(audio_path)), duration)
    music = music.with_volume_scaled(min(max(volume, 0.0), 1.0))
    if 0 < fade_out < duration:
        music = music.with_effects([AudioFadeOut(fade_out)])
    return music


def add_background_music(
    video: VideoClip,
    audio_path: Path,
    volume: float,
    fade_out: float = 1.0,
) -> VideoClip:
    """Mix background music under the video's own sound.

    The clips' recorded audio stays at full level; only the music is scaled.
    """
    music = prepare_music(audio_path, video.duration, volume, fade_out)
    logger.debug(f"Mixing {audio_path} at volume {volume:.2f}")

    if video.audio is None:
        return video.with_audio(music)
    return video.with_audio(CompositeAudioClip([video.audio, music]))

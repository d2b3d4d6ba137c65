"""Audio loading and preprocessing before inference."""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import soundfile as sf

from .constants import PAD_SECONDS, TOO_LONG_SECONDS
from .errors import PreprocessingError
from .types import AudioData

logger = logging.getLogger(__name__)

LONG_AUDIO_ISSUE_URL = "https://github.com/k2-fsa/icefall/issues/1680"


def get_padding_length(sample_rate: int, pad_seconds: float = PAD_SECONDS) -> int:
    """Number of silent samples added on each side."""
    return int(round(pad_seconds * sample_rate))


def pad_audio(
    samples: np.ndarray, sample_rate: int, pad_seconds: float = PAD_SECONDS
) -> np.ndarray:
    """Surround audio with ``pad_seconds`` of silence on both sides."""
    pad_width = get_padding_length(sample_rate, pad_seconds)
    audio = np.asarray(samples, dtype=np.float32)
    return np.pad(audio, pad_width, mode="constant")


class AudioPreprocessor:
    """Duration accounting and silence padding for the transducer model.

    Args:
        pad_seconds: Silence added before and after the audio
        too_long_seconds: Duration above which a memory warning is logged
    """

    def __init__(
        self,
        pad_seconds: float = PAD_SECONDS,
        too_long_seconds: float = TOO_LONG_SECONDS,
    ) -> None:
        self.pad_seconds = pad_seconds
        self.too_long_seconds = too_long_seconds

    def prepare(
        self, samples: np.ndarray, sample_rate: int
    ) -> tuple[np.ndarray, float]:
        """
        Pad audio for inference.

        Args:
            samples: Mono float samples
            sample_rate: Sample rate in Hz

        Returns:
            Tuple of (padded samples, original duration in seconds)

        Raises:
            PreprocessingError: If the sample rate is not positive or the
                buffer is not one-dimensional
        """
        if sample_rate <= 0:
            raise PreprocessingError(f"Invalid sample rate: {sample_rate}")
        audio = np.asarray(samples, dtype=np.float32)
        if audio.ndim != 1:
            raise PreprocessingError(
                f"Expected mono 1-D audio, got shape {audio.shape}"
            )

        duration = len(audio) / sample_rate
        if duration > self.too_long_seconds:
            logger.warning(
                "Passing a long audio input (%.1fs) is not recommended, "
                "because K2 will require a large amount of memory. "
                "Read the upstream discussion for more details: %s",
                duration,
                LONG_AUDIO_ISSUE_URL,
            )

        return pad_audio(audio, sample_rate, self.pad_seconds), duration


def prepare_audio(samples: np.ndarray, sample_rate: int) -> tuple[np.ndarray, float]:
    """Pad audio with the default settings. See :meth:`AudioPreprocessor.prepare`."""
    return AudioPreprocessor().prepare(samples, sample_rate)


def read_audio(path: str | Path) -> AudioData:
    """
    Read an audio file into mono float32 samples.

    Multi-channel audio is downmixed by averaging the channels.

    Args:
        path: Audio file (16kHz mono WAV recommended)

    Returns:
        AudioData with samples and the file's sample rate
    """
    try:
        data, sample_rate = sf.read(str(path), dtype="float32", always_2d=False)
    except (sf.LibsndfileError, OSError) as e:
        raise PreprocessingError(f"Cannot read audio file {path}: {e}") from e

    if data.ndim > 1:
        data = data.mean(axis=1).astype(np.float32)
    return AudioData(samples=data, sample_rate=int(sample_rate))

"""Inference engine boundary.

The recognizer only needs ``decode(samples, sample_rate) -> str``; the
default implementation wraps sherpa-onnx's offline transducer recognizer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

import numpy as np

from .constants import DECODING_METHOD, FEATURE_DIM, SAMPLE_RATE
from .errors import EngineLoadError

if TYPE_CHECKING:
    from .types import AssetPaths

logger = logging.getLogger(__name__)


class Engine(Protocol):
    def decode(self, samples: np.ndarray, sample_rate: int) -> str: ...


@dataclass(frozen=True)
class EngineConfig:
    """Everything the engine constructor needs."""

    encoder: Path
    decoder: Path
    joiner: Path
    tokens: Path
    num_threads: int = 4
    provider: str = "cpu"
    debug: bool = False

    # Fixed by the published models
    sample_rate: int = SAMPLE_RATE
    feature_dim: int = FEATURE_DIM
    decoding_method: str = DECODING_METHOD

    @classmethod
    def from_paths(cls, paths: AssetPaths, **kwargs: Any) -> EngineConfig:
        return cls(
            encoder=paths.encoder,
            decoder=paths.decoder,
            joiner=paths.joiner,
            tokens=paths.tokens,
            **kwargs,
        )


class SherpaOnnxEngine:
    """Wraps a ``sherpa_onnx.OfflineRecognizer``."""

    def __init__(self, recognizer: Any) -> None:
        self._recognizer = recognizer

    def decode(self, samples: np.ndarray, sample_rate: int) -> str:
        stream = self._recognizer.create_stream()
        stream.accept_waveform(sample_rate, samples)
        self._recognizer.decode_stream(stream)
        return stream.result.text.strip()


def load_engine(config: EngineConfig) -> SherpaOnnxEngine:
    """
    Construct the transducer recognizer from the four model files.

    Args:
        config: Engine configuration

    Returns:
        Engine ready for decoding

    Raises:
        EngineLoadError: If sherpa-onnx is missing or rejects the model
    """
    try:
        import sherpa_onnx
    except ImportError as e:
        raise EngineLoadError(
            "sherpa-onnx is required for inference. "
            "Install with: pip install sherpa-onnx"
        ) from e

    logger.info(
        "Loading transducer model (provider=%s, threads=%d)",
        config.provider,
        config.num_threads,
    )
    try:
        recognizer = sherpa_onnx.OfflineRecognizer.from_transducer(
            encoder=str(config.encoder),
            decoder=str(config.decoder),
            joiner=str(config.joiner),
            tokens=str(config.tokens),
            num_threads=config.num_threads,
            sample_rate=config.sample_rate,
            feature_dim=config.feature_dim,
            decoding_method=config.decoding_method,
            provider=config.provider,
            debug=config.debug,
        )
    except Exception as e:
        raise EngineLoadError(
            f"Failed to load model with provider {config.provider}: {e}"
        ) from e

    return SherpaOnnxEngine(recognizer)

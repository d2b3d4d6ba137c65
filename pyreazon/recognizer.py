from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from pathlib import Path

from .audio import AudioPreprocessor, read_audio
from .catalog import resolve_variant
from .config import RecognizerConfig, resolve_provider
from .engine import Engine, EngineConfig, load_engine
from .errors import AssetIntegrityError, InferenceError
from .runtime.cache import AssetCache
from .types import AssetPaths, AudioData, Language, Precision, TranscriptionResult

logger = logging.getLogger(__name__)

EngineFactory = Callable[[EngineConfig], Engine]


def verify_assets(paths: AssetPaths) -> None:
    """Raise AssetIntegrityError for the first asset missing on disk."""
    for role, path in paths:
        if not path.is_file():
            raise AssetIntegrityError(path.name or role, path)


class ReazonSpeech:
    """
    Japanese speech recognition with ReazonSpeech k2 models.

    Model files are resolved through the local cache (downloaded on a miss)
    and the engine is built once at construction. The engine is owned by
    this object; concurrent ``transcribe`` calls are serialized.

    Args:
        config: Recognizer configuration (defaults to ja/fp32)
        cache: Asset cache to resolve model files with
        engine_factory: Builds the engine from an EngineConfig
    """

    def __init__(
        self,
        config: RecognizerConfig | None = None,
        *,
        cache: AssetCache | None = None,
        engine_factory: EngineFactory | None = None,
    ) -> None:
        self.config = config or RecognizerConfig()
        self._repo_id, files = resolve_variant(
            self.config.language, self.config.precision
        )

        # Settle the provider before any download can start
        self._provider = resolve_provider(
            self.config.provider, platform=self.config.platform
        )

        cache = cache or AssetCache(self.config.cache_dir)
        self._assets = cache.ensure_assets(self._repo_id, files)
        verify_assets(self._assets)

        engine_config = EngineConfig.from_paths(
            self._assets,
            num_threads=self.config.num_threads,
            provider=self._provider,
            debug=self.config.debug,
        )
        factory = engine_factory or load_engine
        self._engine: Engine | None = factory(engine_config)
        self._preprocessor = AudioPreprocessor()
        self._lock = threading.Lock()
        logger.info(
            f"ReazonSpeech ready ({self._repo_id}, {self.config.precision.value}, "
            f"provider={self._provider})"
        )

    def __enter__(self) -> ReazonSpeech:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        with self._lock:
            if self._engine is None:
                return
            close = getattr(self._engine, "close", None)
            if callable(close):
                close()
            self._engine = None

    @property
    def provider(self) -> str:
        return self._provider

    @property
    def language(self) -> Language:
        return self.config.language

    @property
    def precision(self) -> Precision:
        return self.config.precision

    @property
    def repo_id(self) -> str:
        return self._repo_id

    @property
    def assets(self) -> AssetPaths:
        return self._assets

    def transcribe(self, audio: AudioData) -> TranscriptionResult:
        """
        Recognize speech in an audio buffer.

        Args:
            audio: Mono samples and their sample rate

        Returns:
            Recognized text and the duration of the unpadded audio
        """
        padded, duration = self._preprocessor.prepare(audio.samples, audio.sample_rate)

        with self._lock:
            if self._engine is None:
                raise InferenceError("Recognizer is closed")
            try:
                text = self._engine.decode(padded, audio.sample_rate)
            except Exception as e:
                raise InferenceError(f"Decoding failed: {e}") from e

        return TranscriptionResult(text=text, audio_duration=duration)

    def transcribe_file(self, path: str | Path) -> TranscriptionResult:
        """Read an audio file and transcribe it."""
        return self.transcribe(read_audio(path))

    async def transcribe_async(self, audio: AudioData) -> TranscriptionResult:
        """Run :meth:`transcribe` in a worker thread."""
        return await asyncio.to_thread(self.transcribe, audio)

    def __call__(self, audio: AudioData) -> TranscriptionResult:
        return self.transcribe(audio)

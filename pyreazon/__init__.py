"""PyReazon - ReazonSpeech k2 speech recognition with a local model cache."""

from .audio import AudioPreprocessor, prepare_audio, read_audio
from .catalog import VariantCatalog, resolve_variant
from .config import RecognizerConfig, default_provider, resolve_provider
from .errors import (
    AssetIntegrityError,
    AssetResolutionError,
    ConfigurationError,
    EngineLoadError,
    InferenceError,
    PreprocessingError,
    ReazonSpeechError,
)
from .recognizer import ReazonSpeech
from .runtime.cache import AssetCache, are_models_downloaded, download_models
from .types import AudioData, Language, Precision, TranscriptionResult

# Version info
try:
    from ._version import __version__, __version_tuple__
except ImportError:
    __version__ = "0.0.0"
    __version_tuple__ = (0, 0, 0)

__all__ = [
    "__version__",
    "ReazonSpeech",
    "RecognizerConfig",
    "AudioData",
    "TranscriptionResult",
    "Language",
    "Precision",
    "AssetCache",
    "VariantCatalog",
    "AudioPreprocessor",
    "download_models",
    "are_models_downloaded",
    "resolve_variant",
    "prepare_audio",
    "read_audio",
    "default_provider",
    "resolve_provider",
    "ReazonSpeechError",
    "ConfigurationError",
    "AssetResolutionError",
    "AssetIntegrityError",
    "EngineLoadError",
    "InferenceError",
    "PreprocessingError",
]

"""Exception hierarchy for pyreazon.

Every error carries a ``stage`` naming where in the resolve -> load ->
preprocess -> infer chain it was raised.
"""

from __future__ import annotations

from pathlib import Path


class ReazonSpeechError(Exception):
    """Base exception for pyreazon."""

    stage = "unknown"


class ConfigurationError(ReazonSpeechError, ValueError):
    """Raised when a precision, language or provider token cannot be parsed."""

    stage = "configuration"

    def __init__(
        self,
        kind: str,
        value: str,
        valid: list[str] | None = None,
        message: str | None = None,
    ):
        message = message or f"Unknown {kind}: {value}"
        if valid:
            message += f". Valid options: {valid}"
        super().__init__(message)
        self.kind = kind
        self.value = value
        self.valid = valid or []


class AssetResolutionError(ReazonSpeechError):
    """Raised when model assets cannot be fetched into the local cache."""

    stage = "resolution"

    def __init__(self, message: str, repo_id: str, filename: str | None = None):
        super().__init__(message)
        self.repo_id = repo_id
        self.filename = filename


class AssetIntegrityError(ReazonSpeechError):
    """Raised when a path reported as cached does not exist on disk."""

    stage = "resolution"

    def __init__(self, filename: str, path: Path):
        super().__init__(f"Model file not found: {filename} ({path})")
        self.filename = filename
        self.path = path


class EngineLoadError(ReazonSpeechError):
    """Raised when the inference engine cannot be constructed."""

    stage = "engine"


class InferenceError(ReazonSpeechError):
    """Raised when decoding fails or the recognizer is already closed."""

    stage = "inference"


class PreprocessingError(ReazonSpeechError, ValueError):
    """Raised when audio cannot be read or has an unusable shape/sample rate."""

    stage = "preprocessing"
